# hostcert/services/template.py

from __future__ import annotations

import logging
from typing import List, Optional, Union

import jinja2

from hostcert.models.identity import CertificateIdentity
from hostcert.models.settings import Settings
from hostcert.services.errors import ConfigError

log = logging.getLogger(__name__)

CONFIG_TEMPLATE = "openssl.cnf.j2"


class ConfigRenderer:
    """
    Renders the per-host openssl request config.

    Templates are loaded from the package unless a search path is given, in
    which case a site-local `openssl.cnf.j2` there takes precedence.
    """
    def __init__(
            self,
            searchpath: Optional[Union[str, List[str]]] = None,
            template_name: str = CONFIG_TEMPLATE,
        ):
        loaders: List[jinja2.BaseLoader] = []
        if searchpath:
            loaders.append(jinja2.FileSystemLoader(searchpath))
        loaders.append(jinja2.PackageLoader("hostcert", "templates"))

        self.template_name = template_name
        self.env = jinja2.Environment(
            loader=jinja2.ChoiceLoader(loaders),
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def __call__(self, identity: CertificateIdentity, settings: Settings) -> str:
        return self.render(identity, settings)

    def render(self, identity: CertificateIdentity, settings: Settings) -> str:
        """
        Render the config file content for an identity.

        Args:
            identity: Validated certificate identity.
            settings: Resolved settings (key size, digest).

        Returns:
            str: The config file content.

        Raises:
            ConfigError: The template is missing or fails to render.
        """
        try:
            template = self.env.get_template(self.template_name)
            return template.render(
                identity=identity,
                key_size=settings.key_size,
                digest=settings.digest,
            )
        except jinja2.TemplateNotFound as e:
            raise ConfigError(f"Config template {self.template_name!r} not found.") from e
        except jinja2.TemplateError as e:
            raise ConfigError(f"Unable to render {self.template_name!r}: {e}") from e
