"""
MovieGo API: Configuration Tests
================================

Covers:
    ✅ Environment variables override defaults
    ✅ Log level normalization and rejection of unknown levels
    ✅ CORS origin list parsing
    ✅ Production-only startup checks
    ✅ Entry point builds a single app from CLI settings
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from moviego.config import Settings


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_environment_overrides_defaults(self, monkeypatch):
        monkeypatch.setenv("LIMITER_RPS", "5")
        monkeypatch.setenv("STORE_BACKEND", "sql")

        settings = make_settings()

        assert settings.limiter_rps == 5.0
        assert settings.store_backend == "sql"
        assert settings.authentication_token_ttl == timedelta(hours=24)

    def test_log_level_is_normalized(self):
        assert make_settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_is_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(log_level="chatty")

    @pytest.mark.parametrize("port", [80, 70000])
    def test_port_range(self, port):
        with pytest.raises(ValidationError):
            make_settings(port=port)

    def test_trusted_origins_accept_spaces_and_commas(self):
        settings = make_settings(cors_trusted_origins="https://a.example, https://b.example  https://c.example")

        assert settings.cors_trusted_origins_list == [
            "https://a.example",
            "https://b.example",
            "https://c.example",
        ]


class TestProductionChecks:
    def test_development_skips_checks(self):
        make_settings(env="development", store_backend="memory").validate_required_for_production()

    def test_production_lists_every_problem(self):
        settings = make_settings(env="production", store_backend="memory", cors_trusted_origins="")

        with pytest.raises(ValueError) as exc_info:
            settings.validate_required_for_production()

        message = str(exc_info.value)
        assert "CORS_TRUSTED_ORIGINS" in message
        assert "STORE_BACKEND=memory" in message
        assert "SMTP_USERNAME" in message

    def test_complete_production_config_passes(self):
        make_settings(
            env="production",
            store_backend="sql",
            cors_trusted_origins="https://moviego.example",
            smtp_username="mailer",
        ).validate_required_for_production()


class TestEntryPoint:
    def test_importing_main_builds_no_application(self):
        import moviego.main

        assert not hasattr(moviego.main, "app")

    def test_main_builds_exactly_one_application_from_cli_settings(self):
        import moviego.main

        settings = make_settings(store_backend="memory", port=4001)
        with patch.object(moviego.main.Settings, "from_cli", return_value=settings), \
                patch.object(moviego.main, "setup_logging"), \
                patch.object(moviego.main, "create_app") as create_app, \
                patch.object(moviego.main.uvicorn, "run") as run:
            moviego.main.main()

        create_app.assert_called_once_with(settings)
        run.assert_called_once()
        assert run.call_args.args[0] is create_app.return_value
        assert run.call_args.kwargs["port"] == 4001
