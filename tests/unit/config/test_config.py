"""Unit tests for configuration loading and context overrides."""

import contextvars

import pytest

from src.forum_admin.runtime.config.config_data import (
    AppConfig,
    ConfigData,
    SSOConfig,
)
from src.forum_admin.runtime.config.config_template import (
    load_templated_yaml,
    parse_config_text,
    substitute_env_vars,
)
from src.forum_admin.runtime.context import get_config, set_config, with_context


class TestSubstituteEnvVars:
    def test_uses_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("FORUM_TEST_VAR", raising=False)

        assert substitute_env_vars("x=${FORUM_TEST_VAR:-fallback}") == "x=fallback"

    def test_prefers_environment(self, monkeypatch):
        monkeypatch.setenv("FORUM_TEST_VAR", "set")

        assert substitute_env_vars("${FORUM_TEST_VAR:-fallback}") == "set"

    def test_required_variable_raises_with_message(self, monkeypatch):
        monkeypatch.delenv("FORUM_TEST_VAR", raising=False)

        with pytest.raises(ValueError, match="needed for tests"):
            substitute_env_vars("${FORUM_TEST_VAR:?needed for tests}")

    def test_bare_required_variable_raises(self, monkeypatch):
        monkeypatch.delenv("FORUM_TEST_VAR", raising=False)

        with pytest.raises(ValueError):
            substitute_env_vars("${FORUM_TEST_VAR}")


class TestParseConfigText:
    def test_parses_config_section(self, monkeypatch):
        monkeypatch.setenv("FORUM_SSO_SECRET", "from-env")
        text = """
config:
  sso:
    enabled: true
    secret: ${FORUM_SSO_SECRET}
    email_editable: false
    overrides_email: true
  jobs:
    backend: temporal
"""

        config = parse_config_text(text)

        assert config.sso.secret == "from-env"
        assert config.sso.overrides_email is True
        assert config.jobs.backend == "temporal"
        assert config.database.url.startswith("sqlite")

    def test_invalid_sso_flags_are_rejected(self):
        text = """
config:
  sso:
    email_editable: true
    overrides_email: true
"""

        with pytest.raises(ValueError, match="Invalid configuration"):
            parse_config_text(text)

    def test_empty_document_is_rejected(self):
        with pytest.raises(ValueError):
            parse_config_text("")

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_templated_yaml(tmp_path / "absent.yaml", env_mode="test")

        assert config == ConfigData()


class TestAppConfig:
    def test_public_url_wins(self):
        config = AppConfig(public_url="https://forum.example.com/")

        assert config.base_url == "https://forum.example.com"

    def test_base_url_from_host_and_port(self):
        assert AppConfig(host="h", port=1).base_url == "http://h:1"
        assert (
            AppConfig(environment="production", host="h", port=1).base_url
            == "https://h:1"
        )


class TestWithContext:
    def test_overrides_only_set_fields(self):
        before = get_config()

        with with_context(ConfigData(sso=SSOConfig(enabled=True, secret="s"))):
            inside = get_config()
            assert inside.sso.enabled is True
            assert inside.sso.secret == "s"
            assert inside.database.url == before.database.url

        assert get_config() == before

    def test_rejects_non_config(self):
        with pytest.raises(ValueError):
            with with_context({"sso": {}}):
                pass

    def test_set_config_replaces_whole_config(self):
        """Should stay inside the context it was called in."""
        replacement = ConfigData(app=AppConfig(public_url="https://elsewhere.test"))

        def _inside() -> str:
            set_config(replacement)
            return get_config().app.base_url

        assert contextvars.copy_context().run(_inside) == "https://elsewhere.test"
        assert get_config() is not replacement
