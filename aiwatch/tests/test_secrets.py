"""Tests for env:/file: secret references."""

import pytest
from aiwatch.common.errors import ConfigError, SecretResolutionError
from aiwatch.common.secrets import is_secret_reference, resolve_secret


class TestResolveSecret:
    def test_literal_passes_through(self):
        assert resolve_secret("xoxb-literal") == "xoxb-literal"
        assert resolve_secret("") == ""

    def test_env_reference(self, monkeypatch):
        monkeypatch.setenv("AIWATCH_TEST_TOKEN", "xoxb-from-env")
        assert resolve_secret("env:AIWATCH_TEST_TOKEN") == "xoxb-from-env"

    def test_unset_env_reference_raises(self, monkeypatch):
        monkeypatch.delenv("AIWATCH_TEST_TOKEN", raising=False)
        with pytest.raises(SecretResolutionError) as exc_info:
            resolve_secret("env:AIWATCH_TEST_TOKEN")
        assert exc_info.value.missing == ["AIWATCH_TEST_TOKEN"]

    def test_file_reference_strips_whitespace(self, tmp_path):
        secret_file = tmp_path / "signing_secret"
        secret_file.write_text("s3cr3t\n")
        assert resolve_secret(f"file:{secret_file}") == "s3cr3t"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(SecretResolutionError, match="Cannot read"):
            resolve_secret(f"file:{tmp_path / 'nope'}")

    def test_empty_file_raises(self, tmp_path):
        secret_file = tmp_path / "empty"
        secret_file.write_text("  \n")
        with pytest.raises(SecretResolutionError, match="empty"):
            resolve_secret(f"file:{secret_file}")

    def test_resolution_error_is_config_error(self):
        assert issubclass(SecretResolutionError, ConfigError)


class TestIsSecretReference:
    def test_prefixes(self):
        assert is_secret_reference("env:X")
        assert is_secret_reference("file:/run/secrets/x")
        assert not is_secret_reference("xoxb-1")
        assert not is_secret_reference("")
