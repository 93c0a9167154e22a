"""Unit tests for cache configuration."""

import pytest

from sqlstash.config import CacheConfig, get_default_config, load_config_from_env, set_default_config
from sqlstash.exceptions import ImproperConfigurationError

ENV_VARS = (
    "SQLSTASH_ENABLE_CACHING",
    "SQLSTASH_KEY_PREFIX",
    "SQLSTASH_HASH_ALGORITHM",
    "SQLSTASH_PARAMETER_MARKER",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_defaults() -> None:
    config = CacheConfig()

    assert config.enable_caching is True
    assert config.key_prefix == ""
    assert config.hash_algorithm == "md5"
    assert config.parameter_marker == ":"
    assert config.validate() == []


def test_config_is_frozen() -> None:
    config = CacheConfig()
    with pytest.raises(AttributeError):
        config.key_prefix = "x"  # type: ignore[misc]


def test_replace_returns_copy() -> None:
    config = CacheConfig()
    changed = config.replace(key_prefix="app:")

    assert changed.key_prefix == "app:"
    assert config.key_prefix == ""


@pytest.mark.parametrize(
    "kwargs,fragment",
    [
        ({"hash_algorithm": "nope"}, "not available"),
        ({"hash_algorithm": "shake_128"}, "fixed-length"),
        ({"parameter_marker": ""}, "single character"),
        ({"parameter_marker": "::"}, "single character"),
    ],
)
def test_validate_reports_errors(kwargs: dict, fragment: str) -> None:
    errors = CacheConfig(**kwargs).validate()

    assert len(errors) == 1
    assert fragment in errors[0]


def test_ensure_valid_raises() -> None:
    with pytest.raises(ImproperConfigurationError, match="hash_algorithm"):
        CacheConfig(hash_algorithm="nope").ensure_valid()


def test_ensure_valid_returns_self() -> None:
    config = CacheConfig(hash_algorithm="sha256")
    assert config.ensure_valid() is config


def test_load_from_empty_env(clean_env: pytest.MonkeyPatch) -> None:
    assert load_config_from_env() == CacheConfig()


def test_load_from_env(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SQLSTASH_ENABLE_CACHING", "off")
    clean_env.setenv("SQLSTASH_KEY_PREFIX", "svc:")
    clean_env.setenv("SQLSTASH_HASH_ALGORITHM", "SHA1")
    clean_env.setenv("SQLSTASH_PARAMETER_MARKER", "@")

    config = load_config_from_env()

    assert config == CacheConfig(enable_caching=False, key_prefix="svc:", hash_algorithm="sha1", parameter_marker="@")


@pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("YES", True), ("false", False), ("0", False)])
def test_enable_caching_env_values(clean_env: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    clean_env.setenv("SQLSTASH_ENABLE_CACHING", value)
    assert load_config_from_env().enable_caching is expected


def test_invalid_env_falls_back_to_defaults(
    clean_env: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    clean_env.setenv("SQLSTASH_HASH_ALGORITHM", "bogus")
    clean_env.setenv("SQLSTASH_KEY_PREFIX", "kept:")

    with caplog.at_level("WARNING", logger="sqlstash.config"):
        config = load_config_from_env()

    assert config.hash_algorithm == "md5"
    assert config.key_prefix == "kept:"
    assert "Invalid cache configuration" in caplog.text


def test_set_default_config(default_config: CacheConfig) -> None:
    assert get_default_config() is default_config

    custom = CacheConfig(key_prefix="custom:")
    set_default_config(custom)

    assert get_default_config() is custom


def test_reset_default_reloads_from_env(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SQLSTASH_KEY_PREFIX", "env:")
    set_default_config(None)

    assert get_default_config().key_prefix == "env:"


def test_set_default_rejects_invalid() -> None:
    with pytest.raises(ImproperConfigurationError):
        set_default_config(CacheConfig(parameter_marker=""))
