import logging

import pytest

from fastapi_tenant_rbac import PolicySettings, configure_logging


class TestPolicySettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("RBAC_CACHE_ENABLED", "RBAC_CACHE_TTL_SECONDS", "RBAC_LOOKUP_TIMEOUT_SECONDS"):
            monkeypatch.delenv(name, raising=False)
        settings = PolicySettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.cache_enabled is True
        assert settings.cache_ttl_seconds == 30.0
        assert settings.lookup_timeout_seconds == 2.0
        assert settings.default_application == "*"

    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RBAC_CACHE_TTL_SECONDS", "5")
        monkeypatch.setenv("RBAC_CACHE_ENABLED", "false")
        monkeypatch.setenv("RBAC_LOOKUP_TIMEOUT_SECONDS", "0.25")
        settings = PolicySettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.cache_ttl_seconds == 5.0
        assert settings.cache_enabled is False
        assert settings.lookup_timeout_seconds == 0.25

    def test_rejects_non_positive_ttl(self) -> None:
        with pytest.raises(ValueError):
            PolicySettings(cache_ttl_seconds=0)

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValueError):
            PolicySettings(lookup_timeout_seconds=-1)


class TestConfigureLogging:
    def test_sets_package_logger_level(self) -> None:
        package_logger = logging.getLogger("fastapi_tenant_rbac")
        previous = package_logger.level
        try:
            configure_logging(PolicySettings(log_level="debug"))
            assert package_logger.level == logging.DEBUG
        finally:
            package_logger.setLevel(previous)
