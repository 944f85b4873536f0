"""Read projection: shapes stored labs for API responses."""

import json
from typing import Any, Optional

import structlog

from labhub.application.services.access_policy import is_owner
from labhub.config import get_settings
from labhub.domain.models.lab import Lab
from labhub.domain.schemas.auth import Caller
from labhub.domain.schemas.lab import AuthorSummary, LabRead
from labhub.domain.storage import StorageGateway

logger = structlog.get_logger(__name__)


def normalize_json(value: Any, default: Any) -> Any:
    """Read a JSON column written before values were stored natively.

    Current writes always store lists/dicts; strings only appear in legacy rows.
    """
    if value is None:
        return default
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Unparseable JSON column value", value=value[:80])
            return default
    return value


def sign_image(storage: StorageGateway, url: Optional[str], ttl_seconds: int) -> Optional[str]:
    if not url:
        return None
    return storage.signed_read_url(storage.key_from_url(url), ttl_seconds)


def project_lab(lab: Lab, caller: Optional[Caller], storage: StorageGateway) -> LabRead:
    """Build the response shape, signing image URLs fresh on every call."""
    ttl = get_settings().SIGNED_URL_TTL_SECONDS
    return LabRead(
        id=lab.id,
        title=lab.title,
        difficulty=lab.difficulty,
        duration=lab.duration,
        description=lab.description,
        audience=lab.audience,
        prerequisites=lab.prerequisites,
        objectives=normalize_json(lab.objectives, []),
        covered_topics=normalize_json(lab.covered_topics, []),
        steps=normalize_json(lab.steps, {}),
        environment_image_before=sign_image(storage, lab.environment_image_before, ttl),
        environment_image_after=sign_image(storage, lab.environment_image_after, ttl),
        published=bool(lab.published),
        author_id=lab.author_id,
        author=AuthorSummary.model_validate(lab.author) if lab.author is not None else None,
        is_owner=is_owner(caller, lab),
        created_at=lab.created_at,
        updated_at=lab.updated_at,
    )
