# hostcert/services/validator.py

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from hostcert.models.identity import CertificateIdentity
from hostcert.services.errors import InvalidFormatError, InvalidHostnameError

log = logging.getLogger(__name__)

IDENTITY_FIELDS: tuple[str, ...] = (
    'common_name',
    'alt_names',
    'country',
    'state',
    'city',
    'org',
    'org_unit',
)


def validate(data: Mapping[str, Any]) -> CertificateIdentity:
    """
    Build a CertificateIdentity from raw input.

    Keys outside the identity fields (directories, key size, ...) are ignored,
    so a resolved settings mapping can be passed straight in.

    Args:
        data: Mapping holding at least the identity fields.

    Returns:
        CertificateIdentity

    Raises:
        InvalidHostnameError: The common name is not a hostname.
        InvalidFormatError: Any other field is missing or malformed.
    """
    pruned = {k: data[k] for k in IDENTITY_FIELDS if k in data}

    try:
        identity = CertificateIdentity.model_validate(pruned)
    except PydanticValidationError as exc:
        problems = [_describe(err) for err in exc.errors()]
        message = "; ".join(problems)
        fields = {err["loc"][0] for err in exc.errors() if err["loc"]}

        log.debug("Identity validation failed: %s", message)

        if "common_name" in fields:
            raise InvalidHostnameError(message) from exc
        raise InvalidFormatError(message) from exc

    log.debug("Validated identity %s (%d names)", identity.common_name, len(identity.alt_names))

    return identity


def _describe(err: Mapping[str, Any]) -> str:
    field = ".".join(str(part) for part in err.get("loc", ())) or "identity"
    msg = str(err.get("msg", "invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{field}: {msg}"
