# hostcert/models/settings.py

from __future__ import annotations

import logging
from collections import ChainMap
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from hostcert.constants import DEFAULT_SETTINGS
from hostcert.services.errors import ConfigError
from hostcert.models.identity import CertificateIdentity
from hostcert.utils.files import read_bytes

log = logging.getLogger(__name__)


class Settings(BaseModel):
    """
    Fully resolved engine settings for one certificate identity.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    key_dir: Path
    cert_dir: Path
    bundle_dir: Path
    key_size: int = Field(ge=1024)
    days: int = Field(ge=1)
    digest: str
    owner: Optional[str] = None
    group: Optional[str] = None
    key_mode: int
    openssl_bin: str
    command_timeout: float = Field(gt=0)
    lock_timeout: float = Field(ge=0)


KNOWN_KEYS = frozenset(Settings.model_fields) | frozenset(CertificateIdentity.model_fields)


class ConfigFile(BaseModel):
    """
    On-disk YAML configuration.

    defaults:       class-level settings layer
    certificates:   resource-level entries, one per identity
    """
    model_config = ConfigDict(extra="forbid")

    defaults: Dict[str, Any] = Field(default_factory=dict)
    certificates: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("defaults")
    @classmethod
    def _check_defaults(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        _reject_unknown(value)
        return value

    @field_validator("certificates")
    @classmethod
    def _check_certificates(cls, value: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for entry in value:
            _reject_unknown(entry)
        return value


def _reject_unknown(layer: Mapping[str, Any]) -> None:
    unknown = sorted(set(layer) - KNOWN_KEYS)
    if unknown:
        raise ValueError(f"unknown key(s): {', '.join(unknown)}")


def _drop_none(layer: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (layer or {}).items() if v is not None}


def resolve(
        resource: Optional[Mapping[str, Any]] = None,
        class_level: Optional[Mapping[str, Any]] = None,
        global_defaults: Mapping[str, Any] = DEFAULT_SETTINGS,
    ) -> ChainMap:
    """
    Stack the settings layers. Lookups fall through resource-level, then
    class-level, then global defaults; a None value never hides a lower layer.

    Args:
        resource: Per-certificate values (config entry or CLI flags).
        class_level: The config file's `defaults:` section.
        global_defaults: Built-in defaults.

    Returns:
        ChainMap: The merged view, identity fields included.
    """
    return ChainMap(_drop_none(resource), _drop_none(class_level), dict(global_defaults))


def build_settings(merged: Mapping[str, Any]) -> Settings:
    """ Validate a resolved mapping into Settings """
    try:
        return Settings.model_validate(dict(merged))
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


def load_config_file(path: Optional[str]) -> ConfigFile:
    """
    Load the YAML configuration file.

    Args:
        path: File path, or None for an empty configuration.

    Returns:
        ConfigFile

    Raises:
        ConfigError: The file is not valid YAML or has unknown sections.
    """
    if path is None:
        return ConfigFile()

    raw = read_bytes(path)

    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")

    try:
        config = ConfigFile.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigError(f"Config file '{path}' is malformed: {exc}") from exc

    log.debug("Loaded %d certificate entries from %s", len(config.certificates), path)

    return config
