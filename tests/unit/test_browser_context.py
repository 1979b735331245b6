"""
Unit tests for BrowserContext tab bookkeeping, driven by stub Playwright objects.
"""

import pytest

from conftest import StubPlaywrightPage, stub_browser_context


class TestSwitchTab:
    """switch_tab on contexts that have not handed out tab ids yet."""

    @pytest.mark.asyncio
    async def test_fresh_context_opens_first_tab(self):
        browser = stub_browser_context()

        page = await browser.switch_tab(1)

        assert page.tab_id == 1
        assert browser.current_tab_id == 1
        assert len(browser._context.pages) == 1

    @pytest.mark.asyncio
    async def test_existing_pages_get_ids_in_order(self):
        first, second = StubPlaywrightPage("https://a.test/"), StubPlaywrightPage("https://b.test/")
        browser = stub_browser_context(pages=(first, second))

        page = await browser.switch_tab(2)

        assert page.page is second
        assert len(browser._context.pages) == 2

    @pytest.mark.asyncio
    async def test_unknown_tab_still_rejected(self):
        browser = stub_browser_context()

        with pytest.raises(ValueError, match="Tab 7 not found"):
            await browser.switch_tab(7)

    @pytest.mark.asyncio
    async def test_state_after_switch(self):
        browser = stub_browser_context()
        await browser.switch_tab(1)

        state = await browser.get_state(include_text=False)

        assert "Welcome" in state.elements
        assert state.tabs == [{"tab_id": 1, "url": "about:blank", "title": ""}]


class TestClosedTabs:
    """Closed pages drop out of the id map."""

    @pytest.mark.asyncio
    async def test_close_tab_forgets_page(self):
        browser = stub_browser_context()
        await browser.switch_tab(1)

        await browser.close_tab(1)

        assert browser._tab_ids == {}
        assert browser.current_tab_id is None

    @pytest.mark.asyncio
    async def test_page_closed_outside_the_agent_is_forgotten(self):
        kept, closed = StubPlaywrightPage(), StubPlaywrightPage()
        browser = stub_browser_context(pages=(kept, closed))
        await browser.switch_tab(2)

        await closed.close()

        assert list(browser._tab_ids.values()) == [1]
        assert browser.current_tab_id is None

    @pytest.mark.asyncio
    async def test_ids_are_not_reused(self):
        browser = stub_browser_context()
        await browser.switch_tab(1)
        await browser.close_tab(1)

        page = await browser.get_current_page()

        assert page.tab_id == 2
        assert len(browser._tab_ids) == 1


class TestCleanup:
    """Whether cleanup() keeps the browser running."""

    @staticmethod
    def record_close(browser, monkeypatch):
        closes = []

        async def close():
            closes.append(True)

        monkeypatch.setattr(browser, "close", close)
        return closes

    @pytest.mark.asyncio
    async def test_headless_browser_shuts_down(self, monkeypatch):
        browser = stub_browser_context(headless=True)
        closes = self.record_close(browser, monkeypatch)
        await browser.switch_tab(1)

        await browser.cleanup()

        assert closes == [True]

    @pytest.mark.asyncio
    async def test_headless_keep_alive_detaches_only(self, monkeypatch):
        browser = stub_browser_context(headless=True, keep_alive=True)
        closes = self.record_close(browser, monkeypatch)
        await browser.switch_tab(1)

        await browser.cleanup()

        assert closes == []
        assert browser.current_tab_id is None
        assert (await browser.switch_tab(1)).tab_id == 1

    @pytest.mark.asyncio
    async def test_visible_browser_stays_open(self, monkeypatch):
        browser = stub_browser_context(headless=False)
        closes = self.record_close(browser, monkeypatch)
        await browser.switch_tab(1)

        await browser.cleanup()

        assert closes == []
        assert browser.is_initialized
