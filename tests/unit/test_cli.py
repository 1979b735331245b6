"""
Unit tests for CLI argument handling.
"""

import pytest

import taskpilot.config
from taskpilot.main import build_browser, build_options, main, parse_args


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(taskpilot.config, "_environment_loaded", True)
    for name in ("MAX_STEPS", "ENABLE_PLANNER", "USE_VISION", "BROWSER_HEADLESS", "BROWSER_KEEP_ALIVE", "NAVIGATOR_MODEL"):
        monkeypatch.delenv(name, raising=False)


class TestArguments:
    """Flags map onto run options and browser settings."""

    def test_defaults(self):
        args = parse_args([])

        assert args.task is None
        assert args.start_url is None
        assert not args.headless

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("MAX_STEPS", "50")
        args = parse_args(["find it", "--max-steps", "5", "--no-planner", "--vision"])

        options = build_options(args)

        assert options.max_steps == 5
        assert options.enable_planner is False
        assert options.enable_validator is True
        assert options.use_vision and options.use_vision_for_planner

    def test_environment_used_without_flags(self, monkeypatch):
        monkeypatch.setenv("MAX_STEPS", "50")

        assert build_options(parse_args(["find it"])).max_steps == 50

    def test_headless_flag(self):
        browser = build_browser(parse_args(["t", "--headless", "-u", "example.com"]))

        assert browser.config.headless is True
        assert not browser.is_initialized

    def test_interactive_session_keeps_browser_alive(self):
        browser = build_browser(parse_args(["--headless"]))

        assert browser.config.headless is True
        assert browser.config.keep_alive is True

    def test_single_task_releases_browser(self):
        assert build_browser(parse_args(["t", "--headless"])).config.keep_alive is False

    def test_configuration_error_exit_code(self):
        assert main(["find it", "--max-steps", "0"]) == 2

    def test_missing_model_exit_code(self):
        assert main(["find it"]) == 2
