"""Unit tests for configuration system."""

from pathlib import Path

import pytest
import yaml

from stencil.config import (
    EncoderSettings,
    StencilConfig,
    create_default_config,
    find_config_file,
    load_config,
    load_config_from_dict,
    substitute_env_vars,
)
from stencil.modifiers import ModifierRegistry


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitute_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env var in string."""
        monkeypatch.setenv("TEST_VAR", "test_value")

        result = substitute_env_vars("prefix_${TEST_VAR}_suffix")

        assert result == "prefix_test_value_suffix"

    def test_substitute_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env vars in nested dicts and lists."""
        monkeypatch.setenv("APP", "pets")

        data = {"context": {"app": "${APP}", "tags": ["${APP}", 3]}}

        assert substitute_env_vars(data) == {"context": {"app": "pets", "tags": ["pets", 3]}}

    def test_non_string_passthrough(self) -> None:
        assert substitute_env_vars(42) == 42
        assert substitute_env_vars(None) is None

    def test_missing_env_var_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a missing env var raises ValueError."""
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)

        with pytest.raises(ValueError, match="Environment variable not set"):
            substitute_env_vars("${NONEXISTENT_VAR}")


class TestEncoderSettings:
    """Tests for EncoderSettings validation."""

    def test_defaults(self) -> None:
        settings = EncoderSettings()

        assert settings.mime_type == "text/plain"
        assert settings.charset == "utf-8"
        assert settings.base_name is None
        assert settings.locale is None

    def test_empty_mime_type(self) -> None:
        with pytest.raises(ValueError, match="MIME type"):
            EncoderSettings(mime_type="")

    def test_unknown_charset(self) -> None:
        with pytest.raises(ValueError, match="Unknown charset"):
            EncoderSettings(charset="no-such-charset")

    def test_invalid_locale(self) -> None:
        with pytest.raises(ValueError, match="Invalid locale"):
            EncoderSettings(locale="zz_ZZ")

    def test_valid_locale(self) -> None:
        assert EncoderSettings(locale="fr_CA").locale == "fr_CA"


class TestLoadConfigFromDict:
    """Tests for load_config_from_dict()."""

    def test_empty(self) -> None:
        config = load_config_from_dict({})

        assert config.encoder == EncoderSettings()
        assert config.context == {}
        assert config.modifiers == {}

    def test_full(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_NAME", "Pet Store")

        config = load_config_from_dict({
            "encoder": {
                "mime_type": "text/html",
                "charset": "latin-1",
                "base_name": "messages",
                "locale": "fr_FR",
            },
            "context": {"app": "${APP_NAME}"},
            "modifiers": {"upper": "mypackage.modifiers:upper"},
        })

        assert config.encoder.mime_type == "text/html"
        assert config.encoder.charset == "latin-1"
        assert config.encoder.base_name == "messages"
        assert config.encoder.locale == "fr_FR"
        assert config.context == {"app": "Pet Store"}
        assert config.modifiers == {"upper": "mypackage.modifiers:upper"}

    def test_null_sections(self) -> None:
        config = load_config_from_dict({"encoder": None, "context": None, "modifiers": None})

        assert config.encoder == EncoderSettings()
        assert config.context == {}

    @pytest.mark.parametrize("section", ["encoder", "context", "modifiers"])
    def test_section_must_be_mapping(self, section: str) -> None:
        with pytest.raises(ValueError, match=f"'{section}' must be a mapping"):
            load_config_from_dict({section: ["a", "b"]})


class TestRegisterModifiers:
    """Tests for StencilConfig.register_modifiers()."""

    def test_registers_imported_functions(self) -> None:
        config = StencilConfig(modifiers={"escape": "stencil.modifiers.builtin:escape_markup"})
        registry = ModifierRegistry(include_builtins=False)

        assert config.register_modifiers(registry) == ["escape"]
        assert registry.get("escape") is not None

    def test_bad_reference(self) -> None:
        config = StencilConfig(modifiers={"bad": "nope"})

        with pytest.raises(ValueError):
            config.register_modifiers(ModifierRegistry())


class TestFindConfigFile:
    """Tests for find_config_file()."""

    def test_not_found(self, tmp_path: Path) -> None:
        assert find_config_file(tmp_path) is None

    def test_dot_stencil_preferred(self, tmp_path: Path) -> None:
        (tmp_path / ".stencil").mkdir()
        (tmp_path / ".stencil" / "config.yaml").write_text("{}")
        (tmp_path / "stencil.yaml").write_text("{}")

        assert find_config_file(tmp_path) == (tmp_path / ".stencil" / "config.yaml").resolve()

    def test_root_file(self, tmp_path: Path) -> None:
        (tmp_path / "stencil.yaml").write_text("{}")

        assert find_config_file(tmp_path) == (tmp_path / "stencil.yaml").resolve()


class TestLoadConfig:
    """Tests for load_config()."""

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text("encoder:\n  mime_type: text/csv\n")

        config = load_config(config_path=path)

        assert config.encoder.mime_type == "text/csv"
        assert config.config_path == path

    def test_explicit_path_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "missing.yaml")

    def test_auto_discover(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "stencil.yaml").write_text("context:\n  a: 1\n")
        monkeypatch.chdir(tmp_path)

        assert load_config().context == {"a": 1}

    def test_no_discovery(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "stencil.yaml").write_text("context:\n  a: 1\n")
        monkeypatch.chdir(tmp_path)

        config = load_config(auto_discover=False)

        assert config.context == {}
        assert config.config_path is None

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(config_path=path).encoder == EncoderSettings()

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(config_path=path)


class TestCreateDefaultConfig:
    """Tests for create_default_config()."""

    def test_round_trips_to_defaults(self) -> None:
        """Test that the generated file loads to the default configuration."""
        data = yaml.safe_load(create_default_config())

        config = load_config_from_dict(data)

        assert config.encoder == EncoderSettings()
        assert config.context == {}
        assert config.modifiers == {}
