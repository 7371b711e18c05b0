"""Tests for the CLI entry point."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from slacktapped.__main__ import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_SUCCESS,
    build_processor,
    build_store,
    check_components,
    configure_logging,
    create_parser,
    main,
    print_banner,
    run_config_check,
    run_poller,
    validate_config,
)
from slacktapped.checkins.models import ProcessResult, ProcessStatus
from slacktapped.storage.markers import InMemoryMarkerStore, RedisMarkerStore

WEBHOOK_URL = "https://hooks.slack.com/services/T/B/X"


@pytest.fixture
def base_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide a complete, valid environment."""
    monkeypatch.setenv("INSTANCE_NAME", "homebrewchat")
    monkeypatch.setenv("UNTAPPD_ACCESS_TOKEN", "token")
    monkeypatch.setenv("SLACK_WEBHOOK_URL", WEBHOOK_URL)
    monkeypatch.setenv("STORE_BACKEND", "memory")


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_parser_has_version(self):
        """Parser should have version flag."""
        parser = create_parser()
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_parser_flags(self):
        parser = create_parser()
        args = parser.parse_args(["--config-check", "--dry-run", "--once"])
        assert args.config_check is True
        assert args.dry_run is True
        assert args.once is True

    def test_parser_log_level(self):
        parser = create_parser()
        args = parser.parse_args(["--log-level", "DEBUG"])
        assert args.log_level == "DEBUG"

    def test_parser_poll_interval(self):
        parser = create_parser()
        args = parser.parse_args(["--poll-interval", "120"])
        assert args.poll_interval == 120

    def test_parser_default_values(self):
        parser = create_parser()
        args = parser.parse_args([])
        assert args.config_check is False
        assert args.log_level is None
        assert args.dry_run is False
        assert args.once is False
        assert args.poll_interval is None


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_logging_info(self):
        configure_logging("INFO")
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_debug(self):
        configure_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_noisy_libraries_quieted(self):
        configure_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestPrintBanner:
    """Tests for banner printing."""

    def test_banner_contains_name_and_version(self, capsys):
        print_banner()
        captured = capsys.readouterr()
        assert "Slacktapped" in captured.out
        assert "v0.1.0" in captured.out


class TestValidateConfig:
    """Tests for configuration validation."""

    def test_validate_config_success(self, base_env):
        settings = validate_config()
        assert settings is not None
        assert settings.instance_name == "homebrewchat"

    def test_validate_config_failure(self, monkeypatch, capsys):
        monkeypatch.delenv("INSTANCE_NAME", raising=False)

        settings = validate_config()
        assert settings is None

        captured = capsys.readouterr()
        assert "Configuration validation failed" in captured.err


class TestCheckComponents:
    """Tests for run readiness checks."""

    def test_ready(self, base_env):
        settings = validate_config()
        assert check_components(settings, dry_run=False) == []

    def test_missing_webhook(self, base_env, monkeypatch):
        monkeypatch.delenv("SLACK_WEBHOOK_URL")
        settings = validate_config()

        assert check_components(settings, dry_run=False) == ["SLACK_WEBHOOK_URL is not set"]
        assert check_components(settings, dry_run=True) == []

    def test_missing_token(self, base_env, monkeypatch):
        monkeypatch.delenv("UNTAPPD_ACCESS_TOKEN")
        settings = validate_config()

        assert "UNTAPPD_ACCESS_TOKEN is not set" in check_components(settings, dry_run=True)


class TestRunConfigCheck:
    """Tests for config check mode."""

    def test_config_check_prints_summary(self, base_env, capsys):
        settings = validate_config()
        assert settings is not None

        result = run_config_check(settings)
        assert result == EXIT_SUCCESS

        captured = capsys.readouterr()
        assert "Configuration is valid!" in captured.out
        assert "Instance: homebrewchat" in captured.out

    def test_config_check_incomplete(self, base_env, monkeypatch):
        monkeypatch.delenv("UNTAPPD_ACCESS_TOKEN")
        settings = validate_config()

        assert run_config_check(settings) == EXIT_CONFIG_ERROR


class TestBuildComponents:
    """Tests for component wiring."""

    def test_memory_store(self, base_env):
        store, redis = build_store(validate_config())
        assert isinstance(store, InMemoryMarkerStore)
        assert redis is None

    def test_redis_store(self, base_env, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "redis")
        store, redis = build_store(validate_config())
        assert isinstance(store, RedisMarkerStore)
        assert redis is not None

    def test_build_processor(self, base_env):
        settings = validate_config()
        processor = build_processor(settings, InMemoryMarkerStore(), dry_run=True)

        assert processor.dry_run is True
        assert processor.reporter.instance_name == "homebrewchat"
        assert processor.channel.webhook_url == WEBHOOK_URL


class TestRunPoller:
    """Tests for the poller runner."""

    @pytest.mark.asyncio
    async def test_once_success(self, base_env):
        settings = validate_config()

        with patch("slacktapped.__main__.CheckinPoller") as mock_poller_class:
            mock_poller = MagicMock()
            mock_poller.poll_once = AsyncMock(
                return_value=[ProcessResult(checkin_id=1, status=ProcessStatus.POSTED)]
            )
            mock_poller_class.return_value = mock_poller

            exit_code = await run_poller(settings, dry_run=False, once=True)

        assert exit_code == EXIT_SUCCESS
        assert mock_poller_class.call_args.kwargs["poll_interval_seconds"] == 60

    @pytest.mark.asyncio
    async def test_once_with_failed_delivery(self, base_env):
        settings = validate_config()

        with patch("slacktapped.__main__.CheckinPoller") as mock_poller_class:
            mock_poller = MagicMock()
            mock_poller.poll_once = AsyncMock(
                return_value=[ProcessResult(checkin_id=1, status=ProcessStatus.FAILED)]
            )
            mock_poller_class.return_value = mock_poller

            exit_code = await run_poller(settings, dry_run=False, once=True)

        assert exit_code == EXIT_ERROR

    @pytest.mark.asyncio
    async def test_poller_error(self, base_env):
        settings = validate_config()

        with patch("slacktapped.__main__.CheckinPoller") as mock_poller_class:
            mock_poller = MagicMock()
            mock_poller.poll_once = AsyncMock(side_effect=RuntimeError("boom"))
            mock_poller_class.return_value = mock_poller

            exit_code = await run_poller(settings, dry_run=False, once=True)

        assert exit_code == EXIT_ERROR


class TestMain:
    """Tests for main entry point."""

    def test_main_with_config_check(self, base_env):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config-check"])

        assert exc_info.value.code == EXIT_SUCCESS

    def test_main_with_invalid_config(self, monkeypatch):
        monkeypatch.delenv("INSTANCE_NAME", raising=False)

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == EXIT_CONFIG_ERROR

    def test_main_with_incomplete_config(self, base_env, monkeypatch):
        monkeypatch.delenv("SLACK_WEBHOOK_URL")

        with pytest.raises(SystemExit) as exc_info:
            main(["--once"])

        assert exc_info.value.code == EXIT_CONFIG_ERROR

    def test_main_runs_poller(self, base_env):
        with (
            patch("slacktapped.__main__.run_poller", new=AsyncMock(return_value=EXIT_SUCCESS)),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--once", "--dry-run"])

        assert exc_info.value.code == EXIT_SUCCESS
