import pytest

from transcript_import.config import (
    DEFAULT_ACCEPTED_FORMATS,
    ImportSettings,
    load_settings,
    settings_from_mapping,
)
from transcript_import.errors import ConfigError


def test_defaults_without_config():
    settings = settings_from_mapping({}, env={})

    assert settings == ImportSettings()
    assert settings.accepted_formats == DEFAULT_ACCEPTED_FORMATS
    assert settings.max_courses == 200


def test_yaml_values_then_env_overrides(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "import:\n"
        "  accepted_formats: [xlsx, .CSV]\n"
        "  max_size_mb: 2\n"
        "  max_courses: 50\n"
        "curriculum_api:\n"
        "  url: http://localhost:3000/\n"
        "  timeout: 5\n"
    )
    monkeypatch.setenv("TRANSCRIPT_MAX_COURSES", "75")
    monkeypatch.delenv("TRANSCRIPT_MAX_SIZE_MB", raising=False)
    monkeypatch.delenv("TRANSCRIPT_ACCEPTED_FORMATS", raising=False)
    monkeypatch.delenv("CURRICULUM_API_URL", raising=False)
    monkeypatch.delenv("CURRICULUM_REQUEST_TIMEOUT", raising=False)
    monkeypatch.chdir(tmp_path)

    settings = load_settings(config_path)

    assert settings.accepted_formats == (".xlsx", ".csv")
    assert settings.max_size_mb == 2.0
    assert settings.max_courses == 75
    assert settings.curriculum_api_url == "http://localhost:3000"
    assert settings.request_timeout == 5.0


def test_env_formats_comma_separated():
    settings = settings_from_mapping({}, env={"TRANSCRIPT_ACCEPTED_FORMATS": ".csv, .xlsx"})

    assert settings.accepted_formats == (".csv", ".xlsx")


@pytest.mark.parametrize(
    "raw",
    [
        {"import": {"max_courses": 0}},
        {"import": {"max_size_mb": "big"}},
        {"import": {"accepted_formats": []}},
        {"import": ["not", "a", "mapping"]},
    ],
)
def test_invalid_values_raise(raw):
    with pytest.raises(ConfigError):
        settings_from_mapping(raw, env={})


def test_missing_or_malformed_file(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "nope.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("import: [unclosed\n")
    with pytest.raises(ConfigError):
        load_settings(bad)
