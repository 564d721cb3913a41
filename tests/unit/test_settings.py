"""Unit tests for hostcert.models.settings module."""

from pathlib import Path

import pytest

from hostcert.constants import DEFAULT_SETTINGS
from hostcert.models.settings import build_settings, load_config_file, resolve
from hostcert.services.errors import ConfigError, FilesystemError


class TestResolve:
    """Tests for layered settings resolution."""

    def test_global_defaults(self):
        """Should fall back to the built-in defaults."""
        merged = resolve()

        assert merged["key_size"] == DEFAULT_SETTINGS["key_size"]
        assert merged["cert_dir"] == "/etc/ssl/certs"

    def test_class_level_overrides_global(self):
        """Should prefer the config file defaults over built-ins."""
        merged = resolve(class_level={"days": 730})

        assert merged["days"] == 730

    def test_resource_overrides_class_level(self):
        """Should prefer per-certificate values over everything else."""
        merged = resolve({"days": 90}, {"days": 730})

        assert merged["days"] == 90

    def test_none_does_not_shadow(self):
        """Should look through None values to the next layer."""
        merged = resolve({"country": None}, {"country": "US"})

        assert merged["country"] == "US"

    def test_identity_fields_fall_through(self):
        """Should resolve subject defaults the same way."""
        merged = resolve({"common_name": "host.berkeley.edu"}, {"org": "UCB"})

        assert merged["common_name"] == "host.berkeley.edu"
        assert merged["org"] == "UCB"
        assert merged["org_unit"] is None


class TestBuildSettings:
    """Tests for Settings validation."""

    def test_paths_converted(self):
        """Should turn directory strings into Paths."""
        settings = build_settings(resolve())

        assert settings.key_dir == Path("/etc/ssl/private")
        assert settings.key_mode == 0o600

    def test_identity_fields_ignored(self):
        """Should ignore identity keys in the merged mapping."""
        settings = build_settings(resolve({"common_name": "host.berkeley.edu"}))

        assert not hasattr(settings, "common_name")

    def test_small_key_rejected(self):
        """Should refuse keys below 1024 bits."""
        with pytest.raises(ConfigError):
            build_settings(resolve({"key_size": 512}))

    def test_zero_timeout_rejected(self):
        with pytest.raises(ConfigError):
            build_settings(resolve({"command_timeout": 0}))


class TestLoadConfigFile:
    """Tests for YAML config loading."""

    def test_no_file(self):
        """Should return an empty config when no path is given."""
        config = load_config_file(None)

        assert config.defaults == {}
        assert config.certificates == []

    def test_full_file(self, tmp_path):
        """Should read defaults and certificate entries."""
        path = tmp_path / "hostcert.yaml"
        path.write_text(
            "defaults:\n"
            "  country: US\n"
            "  days: 730\n"
            "certificates:\n"
            "  - common_name: host.berkeley.edu\n"
            "    alt_names: [www.berkeley.edu]\n"
            "  - common_name: mail.berkeley.edu\n"
        )

        config = load_config_file(str(path))

        assert config.defaults == {"country": "US", "days": 730}
        assert [c["common_name"] for c in config.certificates] == ["host.berkeley.edu", "mail.berkeley.edu"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config_file(str(path)).certificates == []

    def test_invalid_yaml(self, tmp_path):
        """Should raise ConfigError on unparsable YAML."""
        path = tmp_path / "bad.yaml"
        path.write_text("defaults: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config_file(str(path))

    def test_unknown_section(self, tmp_path):
        """Should raise ConfigError on unexpected top-level keys."""
        path = tmp_path / "bad.yaml"
        path.write_text("certs:\n  - common_name: host.berkeley.edu\n")

        with pytest.raises(ConfigError):
            load_config_file(str(path))

    def test_misspelled_default(self, tmp_path):
        """Should raise ConfigError naming a key no setting or identity field uses."""
        path = tmp_path / "typo.yaml"
        path.write_text("defaults:\n  certdir: /srv/certs\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config_file(str(path))

        assert "certdir" in str(exc_info.value)

    def test_misspelled_certificate_key(self, tmp_path):
        """Should raise ConfigError for an unknown key in a certificate entry."""
        path = tmp_path / "typo.yaml"
        path.write_text("certificates:\n  - common_name: host.berkeley.edu\n    altnames: [www.berkeley.edu]\n")

        with pytest.raises(ConfigError):
            load_config_file(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ConfigError):
            load_config_file(str(path))

    def test_missing_file(self, tmp_path):
        """Should raise FilesystemError when the file does not exist."""
        with pytest.raises(FilesystemError):
            load_config_file(str(tmp_path / "missing.yaml"))
