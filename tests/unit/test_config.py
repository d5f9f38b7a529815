"""Tests for stockpile.core.config - configuration management.

Tests cover:
- Required host/port/cache settings with no defaults.
- Environment variable loading via the STOCKPILE_ prefix.
- Default values for optional settings.
- Pydantic validation constraints (port range, photo size, log level).
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from stockpile.core.config import DEFAULT_MAX_PHOTO_BYTES, DEFAULT_TEMPLATES_DIR, StockpileConfig


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in ("HOST", "PORT", "CACHE_DIR", "LOG_LEVEL", "MAX_PHOTO_BYTES", "TEMPLATES_DIR"):
        monkeypatch.delenv(f"STOCKPILE_{name}", raising=False)


class TestRequiredSettings:
    """Verify host, port and cache_dir must be supplied."""

    def test_missing_everything_raises(self):
        with pytest.raises(ValidationError):
            StockpileConfig(_env_file=None)

    @pytest.mark.parametrize("missing", ["host", "port", "cache_dir"])
    def test_each_field_is_required(self, missing):
        values = {"host": "127.0.0.1", "port": 8000, "cache_dir": "/tmp/cache"}
        del values[missing]
        with pytest.raises(ValidationError):
            StockpileConfig(_env_file=None, **values)

    def test_explicit_values(self):
        cfg = StockpileConfig(host="0.0.0.0", port=9000, cache_dir="cache", _env_file=None)
        assert cfg.host == "0.0.0.0"
        assert cfg.port == 9000
        assert cfg.cache_dir == Path("cache")

    def test_does_not_create_cache_dir(self, temp_dir: Path):
        """Directory creation is the blob store's job, not the config's."""
        StockpileConfig(host="h", port=1, cache_dir=str(temp_dir / "later"), _env_file=None)
        assert not (temp_dir / "later").exists()


class TestEnvironment:
    """Verify STOCKPILE_* environment variables are honoured."""

    def test_loads_from_env(self, monkeypatch):
        monkeypatch.setenv("STOCKPILE_HOST", "localhost")
        monkeypatch.setenv("STOCKPILE_PORT", "8123")
        monkeypatch.setenv("STOCKPILE_CACHE_DIR", "/tmp/stockpile")
        cfg = StockpileConfig(_env_file=None)
        assert cfg.host == "localhost"
        assert cfg.port == 8123
        assert cfg.cache_dir == Path("/tmp/stockpile")

    def test_kwargs_override_env(self, monkeypatch):
        monkeypatch.setenv("STOCKPILE_PORT", "8123")
        cfg = StockpileConfig(host="h", port=9999, cache_dir="c", _env_file=None)
        assert cfg.port == 9999


class TestDefaultsAndValidation:
    """Verify optional defaults and field constraints."""

    def test_optional_defaults(self):
        cfg = StockpileConfig(host="h", port=80, cache_dir="c", _env_file=None)
        assert cfg.max_photo_bytes == DEFAULT_MAX_PHOTO_BYTES == 10 * 1024 * 1024
        assert cfg.templates_dir == DEFAULT_TEMPLATES_DIR
        assert cfg.log_level == "INFO"

    def test_bundled_templates_exist(self):
        assert (DEFAULT_TEMPLATES_DIR / "RegisterForm.html").is_file()
        assert (DEFAULT_TEMPLATES_DIR / "SearchForm.html").is_file()

    @pytest.mark.parametrize("port", [0, 65536, -1])
    def test_port_out_of_range(self, port):
        with pytest.raises(ValidationError):
            StockpileConfig(host="h", port=port, cache_dir="c", _env_file=None)

    def test_max_photo_bytes_must_be_positive(self):
        with pytest.raises(ValidationError):
            StockpileConfig(host="h", port=80, cache_dir="c", max_photo_bytes=0, _env_file=None)

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_standard_log_levels_accepted(self, level):
        cfg = StockpileConfig(host="h", port=80, cache_dir="c", log_level=level, _env_file=None)
        assert cfg.log_level == level

    @pytest.mark.parametrize("level", ["foo", "", "VERBOSE"])
    def test_unknown_log_level_rejected(self, level):
        """Anything logging.basicConfig would choke on fails validation here."""
        with pytest.raises(ValidationError):
            StockpileConfig(host="h", port=80, cache_dir="c", log_level=level, _env_file=None)

    def test_log_level_from_env_is_validated(self, monkeypatch):
        monkeypatch.setenv("STOCKPILE_LOG_LEVEL", "loud")
        with pytest.raises(ValidationError):
            StockpileConfig(host="h", port=80, cache_dir="c", _env_file=None)
