# hostcert/models/app.py

from __future__ import annotations

import logging
from argparse import Namespace
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from hostcert.models.identity import CertificateIdentity
from hostcert.models.settings import ConfigFile, Settings, build_settings, load_config_file, resolve
from hostcert.services.executor import Executor
from hostcert.services.openssl import Openssl
from hostcert.services.template import ConfigRenderer
from hostcert.services.validator import validate

log = logging.getLogger(__name__)

# argparse dest -> settings/identity key
ARG_SETTINGS: Tuple[Tuple[str, str], ...] = (
    ('cn', 'common_name'),
    ('alt', 'alt_names'),
    ('country', 'country'),
    ('state', 'state'),
    ('city', 'city'),
    ('org', 'org'),
    ('ou', 'org_unit'),
    ('key_dir', 'key_dir'),
    ('cert_dir', 'cert_dir'),
    ('bundle_dir', 'bundle_dir'),
    ('key_size', 'key_size'),
    ('days', 'days'),
    ('owner', 'owner'),
    ('group', 'group'),
    ('openssl_bin', 'openssl_bin'),
    ('timeout', 'command_timeout'),
)


@dataclass(frozen=True)
class Job:
    """ One validated identity with its resolved settings """
    identity: CertificateIdentity
    settings: Settings


@dataclass(frozen=True)
class App:
    """
    Lightweight application context passed to all handlers.
    Holds the loaded configuration file and shared runtime config.
    """
    args: Namespace
    config: ConfigFile

    @classmethod
    def from_args(cls, args: Namespace) -> "App":
        config = load_config_file(getattr(args, "config", None))
        return cls(args=args, config=config)

    def cli_layer(self) -> Dict[str, Any]:
        """ Resource-level values given on the command line """
        return {
            key: getattr(self.args, dest)
            for dest, key in ARG_SETTINGS
            if getattr(self.args, dest, None) is not None
        }

    def jobs(self) -> List[Job]:
        """
        Resolve and validate every identity selected on the command line.

        With --all, each `certificates:` entry is a resource layer, with CLI
        overrides stacked above it. Otherwise the CLI flags alone are the
        resource layer.

        Raises:
            ValidationError, ConfigError
        """
        cli = self.cli_layer()

        if getattr(self.args, "all", False):
            resources: List[Mapping[str, Any]] = [{**entry, **cli} for entry in self.config.certificates]
        else:
            resources = [cli]

        jobs = []
        for resource in resources:
            merged = resolve(resource, self.config.defaults)
            jobs.append(Job(identity=validate(merged), settings=build_settings(merged)))

        return jobs

    def executor(self, settings: Settings) -> Executor:
        tool = Openssl(
            binary=settings.openssl_bin,
            timeout=settings.command_timeout,
            digest=settings.digest,
        )
        return Executor(
            tool=tool,
            settings=settings,
            renderer=ConfigRenderer(getattr(self.args, "template_dir", None)),
        )
