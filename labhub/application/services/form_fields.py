"""Form field coercion: turns raw multipart strings into typed values.

Every directive raises ``InvalidFieldError`` on bad input rather than falling
back silently; defaults apply only when a field is absent or blank.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Type

from labhub.core.exceptions import InvalidFieldError, MissingFieldsError


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def require_fields(form: Mapping[str, Any], names: Iterable[str]) -> None:
    """Raise MissingFieldsError naming every absent, empty or null field."""
    missing = [name for name in names if is_blank(form.get(name))]
    if missing:
        raise MissingFieldsError(missing)


_INTEGER = re.compile(r"[+-]?[0-9]+")


def as_integer(name: str, raw: Any) -> int:
    # ASCII digits only; int() alone also takes "1_000" and full-width digits
    if not isinstance(raw, str) or not _INTEGER.fullmatch(raw):
        raise InvalidFieldError(name, "expected an integer")
    return int(raw, 10)


def as_positive_integer(name: str, raw: Any) -> int:
    value = as_integer(name, raw)
    if value <= 0:
        raise InvalidFieldError(name, "must be greater than zero")
    return value


def as_boolean(raw: Any) -> bool:
    return raw == "true"


def as_text(raw: Any, blank_to_none: bool = False) -> Optional[str]:
    if raw is None:
        return None
    text = str(raw)
    if blank_to_none and text.strip() == "":
        return None
    return text


def as_enum(name: str, raw: Any, enum_cls: Type[Enum]) -> Enum:
    try:
        return enum_cls(str(raw).strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidFieldError(name, f"expected one of {allowed}")


def as_json(name: str, raw: Any, default: Any = None, expect: Optional[type] = None) -> Any:
    """Parse a JSON-encoded form value.

    Absent or blank values return a copy of ``default``. Malformed JSON, or a
    document of the wrong container type when ``expect`` is given, raises.
    """
    if is_blank(raw):
        return _copy_default(default)
    if not isinstance(raw, str):
        value = raw
    else:
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            raise InvalidFieldError(name, "malformed JSON")
    if expect is not None and not isinstance(value, expect):
        raise InvalidFieldError(name, f"expected a JSON {expect.__name__}")
    return value


def _copy_default(default: Any) -> Any:
    if isinstance(default, (list, dict)):
        return type(default)(default)
    return default


@dataclass(frozen=True)
class FieldSpec:
    """How one form field maps onto a model attribute."""

    name: str
    attr: str
    coerce: Callable[[str, Any], Any]


def coerce_form(form: Mapping[str, Any], specs: Iterable[FieldSpec], partial: bool = False) -> dict:
    """Apply each FieldSpec to the form.

    With ``partial`` only fields present in the form are returned, so absent
    fields keep their stored values.
    """
    values = {}
    for field in specs:
        if partial and field.name not in form:
            continue
        values[field.attr] = field.coerce(field.name, form.get(field.name))
    return values
