"""Profile service: one profile per user, editable by its user or an admin."""

from typing import Iterable, Mapping, Optional

import structlog
from sqlalchemy.exc import IntegrityError

from labhub.application.services.access_policy import Action, authorize, authorize_profile, enforce
from labhub.application.services.form_fields import as_text, is_blank
from labhub.core.exceptions import (
    DependencyTimeoutError,
    NotFoundError,
    ProfileExistsError,
    StorageError,
)
from labhub.domain.models.profile import PROFILE_TEXT_FIELDS, Profile
from labhub.domain.repositories.profile_repository import ProfileRepository, UserRepository
from labhub.domain.schemas.auth import Caller
from labhub.domain.schemas.profile import ProfileRead
from labhub.domain.storage import StorageGateway, UploadedFile

logger = structlog.get_logger(__name__)

IMAGE_PREFIX = "profile"


class ProfileService:
    def __init__(self, profiles: ProfileRepository, users: UserRepository, storage: StorageGateway):
        self.profiles = profiles
        self.users = users
        self.storage = storage

    def get_own(self, caller: Optional[Caller]) -> ProfileRead:
        enforce(authorize(caller, Action.READ))
        return ProfileRead.model_validate(self._get_or_404(caller.id))

    def get(self, caller: Optional[Caller], user_id: str) -> ProfileRead:
        enforce(authorize(caller, Action.READ))
        profile = self._get_or_404(user_id)
        enforce(authorize_profile(caller, profile.user_id))
        return ProfileRead.model_validate(profile)

    def create(
        self,
        caller: Optional[Caller],
        form: Mapping[str, str],
        image: Optional[UploadedFile] = None,
    ) -> ProfileRead:
        enforce(authorize(caller, Action.READ))
        user = self.users.get_by_id(caller.id)
        if user is None:
            raise NotFoundError("User not found", {"id": caller.id})
        if self.profiles.get_by_user_id(user.id) is not None:
            raise ProfileExistsError()

        values = {
            name: as_text(form[name])
            for name in PROFILE_TEXT_FIELDS
            if not is_blank(form.get(name))
        }
        values["user_id"] = user.id
        if image is not None:
            values["image"] = self.storage.upload(image, IMAGE_PREFIX)

        try:
            profile = self.profiles.create(values)
        except IntegrityError:
            self._discard([values.get("image")])
            raise ProfileExistsError()
        except Exception:
            self._discard([values.get("image")])
            raise

        if image is not None:
            self.users.update(user, {"image": profile.image})

        logger.info("Profile created", user_id=user.id)
        return ProfileRead.model_validate(profile)

    def update(
        self,
        caller: Optional[Caller],
        user_id: str,
        form: Mapping[str, str],
        image: Optional[UploadedFile] = None,
    ) -> ProfileRead:
        enforce(authorize(caller, Action.READ))
        profile = self._get_or_404(user_id)
        enforce(authorize_profile(caller, profile.user_id))

        # Absent fields are untouched; present-but-blank fields clear to null
        values = {
            name: as_text(form[name], blank_to_none=True)
            for name in PROFILE_TEXT_FIELDS
            if name in form
        }

        old_image = profile.image
        if image is not None:
            values["image"] = self.storage.upload(image, IMAGE_PREFIX)

        try:
            profile = self.profiles.update(profile, values)
        except Exception:
            self._discard([values.get("image")])
            raise

        if image is not None:
            self.users.update(profile.user, {"image": profile.image})
            self._discard([old_image])

        logger.info("Profile updated", user_id=user_id, fields=sorted(values))
        return ProfileRead.model_validate(profile)

    def delete(self, caller: Optional[Caller], user_id: str) -> None:
        enforce(authorize(caller, Action.READ))
        profile = self._get_or_404(user_id)
        enforce(authorize_profile(caller, profile.user_id))

        user = profile.user
        self._discard([profile.image])
        self.profiles.delete(profile.id)
        if user is not None:
            self.users.update(user, {"image": None})

        logger.info("Profile deleted", user_id=user_id, deleted_by=caller.id)

    def _get_or_404(self, user_id: str) -> Profile:
        profile = self.profiles.get_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("Profile not found", {"user_id": user_id})
        return profile

    def _discard(self, urls: Iterable[Optional[str]]) -> None:
        for url in urls:
            if not url:
                continue
            try:
                self.storage.delete(url)
            except (StorageError, DependencyTimeoutError) as e:
                logger.warning("Profile image deletion failed", url=url, error=e.message)
