"""
Unit tests for the action registry and the built-in actions.
"""

import asyncio

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout
from pydantic import BaseModel

from taskpilot.actions import ActionErrorKind, ActionRegistry, ActionResult
from taskpilot.browser.page import normalize_url

BUILT_IN_ACTIONS = {
    "go_to_url",
    "search_google",
    "go_back",
    "open_tab",
    "switch_tab",
    "close_tab",
    "click_element",
    "input_text",
    "send_keys",
    "scroll",
    "extract_content",
    "wait",
    "done",
}


@pytest.fixture
def registry() -> ActionRegistry:
    return ActionRegistry.default()


class TestRegistryValidation:
    """Argument validation and failure typing."""

    def test_default_registry_has_the_closed_action_set(self, registry):
        assert set(registry.names) == BUILT_IN_ACTIONS

    @pytest.mark.asyncio
    async def test_unknown_action_is_invalid_argument(self, registry, browser):
        result = await registry.execute("hover", {}, browser)

        assert not result.success
        assert result.error_kind == ActionErrorKind.INVALID_ARGUMENT
        assert "Unknown action: hover" in result.error

    @pytest.mark.asyncio
    async def test_missing_required_argument(self, registry, browser):
        result = await registry.execute("go_to_url", {}, browser)

        assert result.error_kind == ActionErrorKind.INVALID_ARGUMENT
        assert "url" in result.error
        assert browser.navigations == []

    @pytest.mark.asyncio
    async def test_out_of_range_argument(self, registry, browser):
        result = await registry.execute("scroll", {"direction": "down", "amount": 0}, browser)

        assert result.error_kind == ActionErrorKind.INVALID_ARGUMENT
        assert "amount" in result.error

    @pytest.mark.asyncio
    async def test_wrong_enum_value(self, registry, browser):
        result = await registry.execute("scroll", {"direction": "sideways"}, browser)

        assert result.error_kind == ActionErrorKind.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, registry, browser):
        result = await registry.execute("go_to_url", ["https://example.com"], browser)

        assert result.error_kind == ActionErrorKind.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_null_arguments_mean_no_arguments(self, registry, browser):
        result = await registry.execute("go_back", None, browser)

        assert result.success

    @pytest.mark.asyncio
    async def test_timeouts_are_classified(self, browser):
        registry = ActionRegistry()

        async def slow(browser, params):
            raise PlaywrightTimeout("Timeout 30000ms exceeded")

        async def slower(browser, params):
            raise asyncio.TimeoutError()

        registry.register("slow", "times out in playwright", slow)
        registry.register("slower", "times out in asyncio", slower)

        assert (await registry.execute("slow", {}, browser)).error_kind == ActionErrorKind.TIMEOUT
        assert (await registry.execute("slower", {}, browser)).error_kind == ActionErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_handler_errors_are_execution_errors(self, registry, browser):
        result = await registry.execute("switch_tab", {"tab_id": 42}, browser)

        assert result.error_kind == ActionErrorKind.EXECUTION_ERROR
        assert "Tab 42 not found" in result.error

    @pytest.mark.asyncio
    async def test_custom_params_model_and_plain_return_value(self, browser):
        class Echo(BaseModel):
            word: str

        async def echo(browser, params: Echo):
            return {"echo": params.word}

        registry = ActionRegistry()
        registry.register("echo", "echo a word", echo, Echo)

        result = await registry.execute("echo", {"word": "hi"}, browser)

        assert result.success
        assert result.content == '{"echo": "hi"}'

    def test_describe_lists_arguments(self, registry):
        description = registry.describe()

        assert "- click_element:" in description
        assert '"element_description": "string"' in description
        assert '"role?": "string"' in description
        assert '"direction?": "up|down|left|right"' in description


class TestBuiltInActions:
    """Built-in actions against the fake browser."""

    @pytest.mark.asyncio
    async def test_go_to_url(self, registry, browser):
        result = await registry.execute("go_to_url", {"url": "https://example.com"}, browser)

        assert result.success
        assert browser.navigations == ["https://example.com"]
        assert "https://example.com" in result.content

    @pytest.mark.asyncio
    async def test_search_google_encodes_query(self, registry, browser):
        await registry.execute("search_google", {"query": "python asyncio & events"}, browser)

        assert browser.navigations == ["https://www.google.com/search?q=python+asyncio+%26+events"]

    @pytest.mark.asyncio
    async def test_tabs(self, registry, browser):
        opened = await registry.execute("open_tab", {"url": "https://docs.example"}, browser)
        switched = await registry.execute("switch_tab", {"tab_id": 1}, browser)
        closed = await registry.execute("close_tab", {"tab_id": 2}, browser)

        assert opened.success and "tab 2" in opened.content
        assert switched.success and browser.current_tab_id == 1
        assert closed.success and 2 not in browser.pages

    @pytest.mark.asyncio
    async def test_click_and_input(self, registry, browser):
        await registry.execute("click_element", {"element_description": "More information..."}, browser)
        result = await registry.execute(
            "input_text",
            {"element_description": "Search", "text": "playwright", "press_enter": True},
            browser,
        )

        assert browser.current.clicked == ["More information..."]
        assert browser.current.typed == [("Search", "playwright")]
        assert "pressed Enter" in result.content

    @pytest.mark.asyncio
    async def test_extract_content(self, registry, browser):
        result = await registry.execute("extract_content", {"goal": "the title"}, browser)

        assert result.success
        assert "looking for: the title" in result.content
        assert "Text of about:blank" in result.content

    @pytest.mark.asyncio
    async def test_done_marks_completion(self, registry, browser):
        result = await registry.execute("done", {"text": "The title is Example Domain"}, browser)

        assert result == ActionResult(success=True, content="The title is Example Domain", is_done=True)

    @pytest.mark.asyncio
    async def test_done_requires_text(self, registry, browser):
        result = await registry.execute("done", {"text": ""}, browser)

        assert result.error_kind == ActionErrorKind.INVALID_ARGUMENT


class TestNormalizeUrl:
    """Scheme handling for navigation targets."""

    @pytest.mark.parametrize("url,expected", [
        ("example.com", "https://example.com"),
        ("  example.com/path ", "https://example.com/path"),
        ("http://example.com", "http://example.com"),
        ("https://example.com", "https://example.com"),
        ("file:///tmp/page.html", "file:///tmp/page.html"),
        ("about:blank", "about:blank"),
        ("data:text/html,<h1>hi</h1>", "data:text/html,<h1>hi</h1>"),
    ])
    def test_normalize(self, url, expected):
        assert normalize_url(url) == expected
