# hostcert/models/identity.py

from __future__ import annotations

import re
from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

HOSTNAME_RE = re.compile(
    r"(?=.{1,253}\.?\Z)"
    r"(?!-)[a-z0-9-]{1,63}(?<!-)"
    r"(\.(?!-)[a-z0-9-]{1,63}(?<!-))*\.?",
    re.IGNORECASE | re.ASCII,
)
WILDCARD_PREFIX = "*."

COUNTRY_RE = re.compile(r"[A-Z]{2}", re.ASCII)
STATE_RE = re.compile(r"[A-Z]+", re.IGNORECASE | re.ASCII)
CITY_RE = re.compile(r"[A-Z ]+", re.IGNORECASE | re.ASCII)

# no control characters, and nothing openssl config syntax would interpret
NAME_RE = re.compile(r"[^\x00-\x1f\x7f$#\\]+")


def is_hostname(value: str) -> bool:
    """ True if `value` follows the DNS hostname grammar """
    return bool(HOSTNAME_RE.fullmatch(value))


def _flatten(values: Any) -> list:
    if isinstance(values, (str, bytes)):
        raise ValueError("alt_names must be a list of strings, not a single string")
    if not isinstance(values, (list, tuple, set, frozenset)):
        raise ValueError("alt_names must be a list of strings")

    flat: list = []
    for value in values:
        if isinstance(value, (list, tuple, set, frozenset)):
            flat.extend(_flatten(value))
        else:
            flat.append(value)
    return flat


class CertificateIdentity(BaseModel):
    """
    The subject of one host certificate.

    `alt_names` is canonical once constructed: flattened, de-duplicated and
    always led by the common name.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    common_name: str
    alt_names: Tuple[str, ...] = ()
    country: str
    state: str
    city: str
    org: str
    org_unit: str

    @field_validator("common_name", mode="before")
    @classmethod
    def _check_common_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not is_hostname(value):
            raise ValueError(f"{value!r} is not a valid hostname")
        return value

    @field_validator("country", mode="before")
    @classmethod
    def _check_country(cls, value: Any) -> str:
        if not isinstance(value, str) or not COUNTRY_RE.fullmatch(value):
            raise ValueError(f"country {value!r} must be two uppercase letters")
        return value

    @field_validator("state", mode="before")
    @classmethod
    def _check_state(cls, value: Any) -> str:
        if not isinstance(value, str) or not STATE_RE.fullmatch(value):
            raise ValueError(f"state {value!r} must contain letters only")
        return value

    @field_validator("city", mode="before")
    @classmethod
    def _check_city(cls, value: Any) -> str:
        if not isinstance(value, str) or not CITY_RE.fullmatch(value):
            raise ValueError(f"city {value!r} must contain letters and spaces only")
        return value

    @field_validator("org", "org_unit", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("must be a non-empty string")
        if not NAME_RE.fullmatch(value):
            raise ValueError(f"{value!r} contains control characters or one of '$#\\'")
        return value

    @field_validator("alt_names", mode="before")
    @classmethod
    def _check_alt_names(cls, value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()

        names = _flatten(value)

        for name in names:
            if not isinstance(name, str):
                raise ValueError(f"alternate name {name!r} is not a string")
            bare = name[len(WILDCARD_PREFIX):] if name.startswith(WILDCARD_PREFIX) else name
            if not is_hostname(bare):
                raise ValueError(f"alternate name {name!r} is not a valid hostname")

        return tuple(names)

    @model_validator(mode="after")
    def _canonical_alt_names(self) -> "CertificateIdentity":
        # common name first, then the rest in order of first appearance
        canonical = tuple(dict.fromkeys((self.common_name, *self.alt_names)))
        if canonical != self.alt_names:
            object.__setattr__(self, "alt_names", canonical)
        return self

    @property
    def has_alt_names(self) -> bool:
        """ True when the certificate names more than its common name """
        return len(self.alt_names) > 1

    @property
    def subject(self) -> str:
        """ The subject in openssl's slash form """
        return (f"/C={self.country}/ST={self.state}/L={self.city}"
                f"/O={self.org}/OU={self.org_unit}/CN={self.common_name}")
