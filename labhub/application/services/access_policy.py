"""Access policy: who may read or mutate labs and profiles.

``authorize`` is a pure decision table returning ``Allow`` or ``Deny``;
``enforce`` turns a denial into the matching HTTP error.
"""

import enum
from dataclasses import dataclass
from typing import Optional, Union

from labhub.core.exceptions import ForbiddenError, UnauthenticatedError
from labhub.domain.models.lab import Lab
from labhub.domain.schemas.auth import Caller


class Action(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    PUBLISH = "publish"
    DELETE = "delete"
    READ = "read"
    LIST = "list"


READ_ACTIONS = {Action.READ, Action.LIST}


class DenyReason(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    ADMIN_REQUIRED = "admin_required"
    NOT_OWNER = "not_owner"


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Deny:
    reason: DenyReason


Decision = Union[Allow, Deny]


def authorize(caller: Optional[Caller], action: Action, record: Optional[Lab] = None) -> Decision:
    if caller is None:
        return Deny(DenyReason.UNAUTHENTICATED)
    if action in READ_ACTIONS:
        return Allow()
    if not caller.is_admin:
        return Deny(DenyReason.ADMIN_REQUIRED)
    if record is not None and record.author_id != caller.id:
        return Deny(DenyReason.NOT_OWNER)
    return Allow()


def authorize_profile(caller: Optional[Caller], profile_user_id: str) -> Decision:
    """A profile may be managed by its own user or by any admin."""
    if caller is None:
        return Deny(DenyReason.UNAUTHENTICATED)
    if caller.id == profile_user_id or caller.is_admin:
        return Allow()
    return Deny(DenyReason.NOT_OWNER)


_DENY_MESSAGES = {
    DenyReason.ADMIN_REQUIRED: "Forbidden: only administrators can perform this action",
    DenyReason.NOT_OWNER: "Forbidden: you can only modify your own records",
}


def enforce(decision: Decision) -> None:
    if isinstance(decision, Allow):
        return
    if decision.reason == DenyReason.UNAUTHENTICATED:
        raise UnauthenticatedError("Unauthorized: you must be signed in")
    raise ForbiddenError(_DENY_MESSAGES[decision.reason], {"reason": decision.reason.value})


def is_owner(caller: Optional[Caller], record: Lab) -> bool:
    return caller is not None and caller.is_admin and caller.id == record.author_id
