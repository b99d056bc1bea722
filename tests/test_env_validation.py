import logging

import pytest

from env_validation import (
    EnvironmentError,
    get_env_float,
    get_env_int,
    validate_environment,
)


def test_defaults_pass_and_warn_about_optional_vars(clean_env, caplog):
    with caplog.at_level(logging.WARNING, logger="env_validation"):
        validate_environment()

    assert "ANTHROPIC_API_KEY" in caplog.text


def test_api_key_can_be_required(clean_env):
    with pytest.raises(EnvironmentError, match="ANTHROPIC_API_KEY"):
        validate_environment(require_api_key=True)

    clean_env.setenv("ANTHROPIC_API_KEY", "k")
    validate_environment(require_api_key=True)


def test_invalid_url_is_rejected(clean_env):
    clean_env.setenv("ANTHROPIC_API_URL", "ftp://example.com")

    with pytest.raises(EnvironmentError, match="Invalid URL format"):
        validate_environment()


@pytest.mark.parametrize("value", ["0", "-5", "abc"])
def test_numeric_settings_must_be_positive(clean_env, value):
    clean_env.setenv("LLM_TIMEOUT", value)

    with pytest.raises(EnvironmentError, match="LLM_TIMEOUT must be a positive number"):
        validate_environment()


def test_env_helpers_fall_back_on_bad_values(monkeypatch):
    monkeypatch.setenv("X_INT", "12")
    monkeypatch.setenv("X_FLOAT", "oops")

    assert get_env_int("X_INT", 1) == 12
    assert get_env_float("X_FLOAT", 2.5) == 2.5
    assert get_env_int("X_MISSING", 7) == 7
