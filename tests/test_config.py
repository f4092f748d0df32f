# ============================================================================
# CONFIGURATION TESTS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Tests - Environment-driven defaults
# PURPOSE: Verify LeaseDefaults/ServerDefaults parsing and validation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Tests

Run with:
    pytest tests/test_config.py -v
"""

import pytest

from core.config import LeaseDefaults, ServerDefaults, get_defaults, reset_defaults
from repositories.database import get_connection_string, mask_conninfo


ENV_VARS = [
    "PM_PORT_MIN", "PM_PORT_MAX", "PM_DEFAULT_TTL", "PM_SWEEP_INTERVAL",
    "PM_HOST", "PM_LISTEN_PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_defaults()
    yield monkeypatch
    reset_defaults()


class TestLeaseDefaults:
    """Tests for LeaseDefaults."""

    def test_builtin_defaults(self, clean_env):
        config = LeaseDefaults.from_env()

        assert config.min_port == 8000
        assert config.max_port == 9000
        assert config.default_ttl_seconds == 300
        assert config.sweep_interval_seconds == 10.0
        assert config.capacity == 1001

    def test_env_overrides(self, clean_env):
        clean_env.setenv("PM_PORT_MIN", "20000")
        clean_env.setenv("PM_PORT_MAX", "20010")
        clean_env.setenv("PM_DEFAULT_TTL", "45")
        clean_env.setenv("PM_SWEEP_INTERVAL", "2.5")

        config = LeaseDefaults.from_env()

        assert (config.min_port, config.max_port) == (20000, 20010)
        assert config.default_ttl_seconds == 45
        assert config.sweep_interval_seconds == 2.5

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            LeaseDefaults(min_port=9000, max_port=8000)

    @pytest.mark.parametrize("min_port,max_port", [(0, 10), (1, 70000)])
    def test_out_of_bounds_rejected(self, min_port, max_port):
        with pytest.raises(ValueError):
            LeaseDefaults(min_port=min_port, max_port=max_port)

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValueError):
            LeaseDefaults(default_ttl_seconds=0)

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError):
            LeaseDefaults(sweep_interval_seconds=0)

    def test_contains(self):
        config = LeaseDefaults(min_port=10, max_port=20)

        assert config.contains(10)
        assert config.contains(20)
        assert not config.contains(9)
        assert not config.contains(21)


class TestServerDefaults:
    """Tests for ServerDefaults and the global container."""

    def test_builtin_defaults(self, clean_env):
        server = ServerDefaults.from_env()

        assert server.host == "127.0.0.1"
        assert server.port == 3030

    def test_global_defaults_cached(self, clean_env):
        clean_env.setenv("PM_LISTEN_PORT", "4040")

        first = get_defaults()
        clean_env.setenv("PM_LISTEN_PORT", "5050")

        assert get_defaults() is first
        assert first.server.port == 4040


class TestConnectionString:
    """Tests for database connection settings."""

    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/leases")
        monkeypatch.setenv("POSTGRES_HOST", "ignored")

        assert get_connection_string() == "postgresql://u:p@db:5432/leases"

    def test_built_from_postgres_vars(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("POSTGRES_HOST", "db")
        monkeypatch.setenv("POSTGRES_DB", "leases")
        monkeypatch.setenv("POSTGRES_USER", "pm")
        monkeypatch.setenv("POSTGRES_PASSWORD", "secret")
        monkeypatch.delenv("POSTGRES_PORT", raising=False)
        monkeypatch.delenv("POSTGRES_SSLMODE", raising=False)

        conninfo = get_connection_string()

        assert conninfo == "postgresql://pm:secret@db:5432/leases?sslmode=prefer"

    @pytest.mark.parametrize("conninfo", [
        "postgresql://pm:secret@db:5432/leases",
        "host=db dbname=leases password=secret user=pm",
    ])
    def test_mask_hides_password(self, conninfo):
        masked = mask_conninfo(conninfo)

        assert "secret" not in masked
        assert "db" in masked
