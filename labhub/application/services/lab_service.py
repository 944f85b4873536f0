"""Lab service: create, update, delete and read workflows for labs.

Each mutation runs guard → required fields → coercion → uploads → persist,
stopping at the first failure. Uploads happen before the database write and
are rolled back best-effort if the write fails; replaced or removed images
are deleted after the write and a failed delete is only logged.
"""

from typing import Iterable, List, Mapping, Optional

import structlog
from sqlalchemy.exc import IntegrityError

from labhub.application.services.access_policy import Action, Deny, DenyReason, authorize, enforce
from labhub.application.services.form_fields import (
    FieldSpec,
    as_boolean,
    as_enum,
    as_json,
    as_positive_integer,
    as_text,
    coerce_form,
    is_blank,
    require_fields,
)
from labhub.application.services.lab_projection import project_lab
from labhub.core.exceptions import (
    DependencyTimeoutError,
    DuplicateTitleError,
    NotFoundError,
    StorageError,
)
from labhub.domain.models.lab import Difficulty, Lab
from labhub.domain.repositories.lab_repository import LabRepository
from labhub.domain.schemas.auth import Caller
from labhub.domain.schemas.lab import LabRead
from labhub.domain.storage import StorageGateway, UploadedFile

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS = ("title", "duration", "description", "audience", "prerequisites")


def _difficulty(name, raw):
    if is_blank(raw):
        return Difficulty.BEGINNER
    return as_enum(name, raw, Difficulty)


LAB_FIELDS = (
    FieldSpec("title", "title", lambda n, r: as_text(r).strip()),
    FieldSpec("difficulty", "difficulty", _difficulty),
    FieldSpec("duration", "duration", as_positive_integer),
    FieldSpec("description", "description", lambda n, r: as_text(r)),
    FieldSpec("audience", "audience", lambda n, r: as_text(r)),
    FieldSpec("prerequisites", "prerequisites", lambda n, r: as_text(r)),
    FieldSpec("objectives", "objectives", lambda n, r: as_json(n, r, default=[], expect=list)),
    FieldSpec("coveredTopics", "covered_topics", lambda n, r: as_json(n, r, default=[], expect=list)),
    FieldSpec("steps", "steps", lambda n, r: as_json(n, r, default={}, expect=dict)),
)

PUBLISHED_FIELD = FieldSpec("published", "published", lambda n, r: as_boolean(r))

# form file field -> (model attribute, storage key prefix)
IMAGE_SLOTS = {
    "environmentImageBefore": ("environment_image_before", "before"),
    "environmentImageAfter": ("environment_image_after", "after"),
}


class LabService:
    def __init__(self, repo: LabRepository, storage: StorageGateway):
        self.repo = repo
        self.storage = storage

    # Reads

    def get(self, caller: Optional[Caller], lab_id: str) -> LabRead:
        lab = self._get_or_404(lab_id)
        return project_lab(lab, caller, self.storage)

    def list(self, caller: Optional[Caller], published_only: bool = True) -> List[LabRead]:
        if not published_only:
            enforce(authorize(caller, Action.LIST))
            if not caller.is_admin:
                enforce(Deny(DenyReason.ADMIN_REQUIRED))
        labs = self.repo.list_labs(published_only=published_only)
        return [project_lab(lab, caller, self.storage) for lab in labs]

    # Mutations

    def create(
        self,
        caller: Optional[Caller],
        form: Mapping[str, str],
        files: Mapping[str, Optional[UploadedFile]],
    ) -> LabRead:
        enforce(authorize(caller, Action.CREATE))
        require_fields(form, REQUIRED_FIELDS)
        values = coerce_form(form, LAB_FIELDS)

        if self.repo.get_by_title(values["title"]) is not None:
            raise DuplicateTitleError(values["title"])

        uploaded = self._upload_images(files)
        values.update(uploaded)
        values["author_id"] = caller.id
        values["published"] = False

        try:
            lab = self.repo.create(values)
        except IntegrityError:
            self._discard(uploaded.values())
            raise DuplicateTitleError(values["title"])
        except Exception:
            self._discard(uploaded.values())
            raise

        logger.info("Lab created", lab_id=lab.id, author_id=caller.id, images=len(uploaded))
        return project_lab(lab, caller, self.storage)

    def update(
        self,
        caller: Optional[Caller],
        lab_id: str,
        form: Mapping[str, str],
        files: Mapping[str, Optional[UploadedFile]],
    ) -> LabRead:
        if caller is None:
            enforce(authorize(caller, Action.UPDATE))
        lab = self._get_or_404(lab_id)
        enforce(authorize(caller, Action.UPDATE, lab))
        if PUBLISHED_FIELD.name in form:
            enforce(authorize(caller, Action.PUBLISH, lab))

        require_fields(form, [name for name in REQUIRED_FIELDS if name in form])
        values = coerce_form(form, LAB_FIELDS + (PUBLISHED_FIELD,), partial=True)

        title = values.get("title")
        if title is not None and title != lab.title:
            holder = self.repo.get_by_title(title)
            if holder is not None and holder.id != lab.id:
                raise DuplicateTitleError(title)

        uploaded = self._upload_images(files)
        replaced = [
            getattr(lab, attr)
            for attr in uploaded
            if getattr(lab, attr) and getattr(lab, attr) != uploaded[attr]
        ]
        values.update(uploaded)

        try:
            lab = self.repo.update(lab, values)
        except IntegrityError:
            self._discard(uploaded.values())
            raise DuplicateTitleError(values.get("title") or "")
        except Exception:
            self._discard(uploaded.values())
            raise

        self._discard(replaced)
        logger.info(
            "Lab updated",
            lab_id=lab.id,
            fields=sorted(values),
            replaced_images=len(replaced),
        )
        return project_lab(lab, caller, self.storage)

    def delete(self, caller: Optional[Caller], lab_id: str) -> None:
        if caller is None:
            enforce(authorize(caller, Action.DELETE))
        lab = self._get_or_404(lab_id)
        enforce(authorize(caller, Action.DELETE, lab))

        self._discard(lab.image_urls())
        self.repo.delete(lab.id)
        logger.info("Lab deleted", lab_id=lab_id, deleted_by=caller.id)

    # Helpers

    def _get_or_404(self, lab_id: str) -> Lab:
        lab = self.repo.get_by_id(lab_id)
        if lab is None:
            raise NotFoundError("Lab not found", {"id": lab_id})
        return lab

    def _upload_images(self, files: Mapping[str, Optional[UploadedFile]]) -> dict:
        """Upload every supplied slot; on failure remove what was already stored."""
        uploaded = {}
        for field_name, (attr, prefix) in IMAGE_SLOTS.items():
            file = files.get(field_name)
            if file is None:
                continue
            try:
                uploaded[attr] = self.storage.upload(file, prefix)
            except Exception:
                self._discard(uploaded.values())
                raise
        return uploaded

    def _discard(self, urls: Iterable[str]) -> None:
        """Best-effort deletion: failures are logged, never raised."""
        for url in list(urls):
            try:
                self.storage.delete(url)
            except (StorageError, DependencyTimeoutError) as e:
                logger.warning("Image deletion failed", url=url, error=e.message)
