"""
Browser Context

Owns the Playwright browser and the set of tabs attached to the current task.
An executor is constructed with exactly one BrowserContext and releases it
through ``cleanup()``.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional

from playwright.async_api import (
    Browser,
    BrowserContext as PlaywrightContext,
    Page as PlaywrightPage,
    Playwright,
    async_playwright,
)

from ..config import env_bool, env_int, load_environment
from .page import Page, PageState

logger = logging.getLogger(__name__)

BrowserType = Literal["chromium", "firefox", "webkit"]


@dataclass
class BrowserConfig:
    """
    Configuration for the browser behind a BrowserContext.

    ``headless`` contexts are used for unattended runs; they are shut down
    completely on cleanup instead of being left open for the user, unless
    ``keep_alive`` is set so follow-up tasks can continue on the same pages.
    """

    browser_type: BrowserType = "chromium"
    headless: bool = False
    keep_alive: bool = False

    viewport_width: int = 1280
    viewport_height: int = 720

    # Slow motion delay in ms (useful for debugging)
    slow_mo: int = 0

    sessions_dir: Path = field(default_factory=lambda: Path(".browser-sessions"))
    persist_session: bool = False

    page_load_timeout: int = 30000
    navigation_timeout: int = 30000

    @classmethod
    def from_env(cls) -> "BrowserConfig":
        """
        Create BrowserConfig from environment variables.

        Environment variables:
            BROWSER_TYPE: chrome/chromium, firefox, webkit/safari (default: chromium)
            BROWSER_HEADLESS: true/false (default: false)
            BROWSER_KEEP_ALIVE: true/false, keep a headless browser open on cleanup (default: false)
            BROWSER_VIEWPORT_WIDTH / BROWSER_VIEWPORT_HEIGHT: int
            BROWSER_SLOW_MO: int in ms
            SESSIONS_DIR: path for persistent profiles
            SESSION_PERSIST: true/false (default: false)
            PAGE_LOAD_TIMEOUT / NAVIGATION_TIMEOUT: int in ms
        """
        load_environment()

        browser_type_map = {
            "chrome": "chromium",
            "chromium": "chromium",
            "firefox": "firefox",
            "webkit": "webkit",
            "safari": "webkit",
        }
        env_type = os.getenv("BROWSER_TYPE", "chromium").lower()

        return cls(
            browser_type=browser_type_map.get(env_type, "chromium"),
            headless=env_bool("BROWSER_HEADLESS", False),
            keep_alive=env_bool("BROWSER_KEEP_ALIVE", False),
            viewport_width=env_int("BROWSER_VIEWPORT_WIDTH", 1280),
            viewport_height=env_int("BROWSER_VIEWPORT_HEIGHT", 720),
            slow_mo=env_int("BROWSER_SLOW_MO", 0),
            sessions_dir=Path(os.getenv("SESSIONS_DIR", ".browser-sessions")),
            persist_session=env_bool("SESSION_PERSIST", False),
            page_load_timeout=env_int("PAGE_LOAD_TIMEOUT", 30000),
            navigation_timeout=env_int("NAVIGATION_TIMEOUT", 30000),
        )


class BrowserContext:
    """
    Set of browser tabs attached to a task.

    Tabs get small integer ids that stay stable for the lifetime of the
    underlying page. The browser is launched lazily on first use, so a
    context can be created cheaply and handed to an executor up front.

    Usage:
        >>> async with BrowserContext(BrowserConfig(headless=True)) as browser:
        ...     page = await browser.navigate_to("https://example.com")
        ...     state = await browser.get_state()
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        self.config = config or BrowserConfig.from_env()

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[PlaywrightContext] = None

        self._tab_ids: dict[PlaywrightPage, int] = {}
        self._attached: dict[int, Page] = {}
        self._current_tab_id: Optional[int] = None
        self._next_tab_id = 1

    @property
    def is_initialized(self) -> bool:
        return self._context is not None

    @property
    def current_tab_id(self) -> Optional[int]:
        return self._current_tab_id

    async def initialize(self) -> None:
        """Start Playwright and launch the browser (idempotent)."""
        if self._context is not None:
            return

        self._playwright = await async_playwright().start()
        launcher = {
            "chromium": self._playwright.chromium,
            "firefox": self._playwright.firefox,
            "webkit": self._playwright.webkit,
        }.get(self.config.browser_type, self._playwright.chromium)

        launch_options = {"headless": self.config.headless, "slow_mo": self.config.slow_mo}
        viewport = {"width": self.config.viewport_width, "height": self.config.viewport_height}

        if self.config.persist_session:
            self.config.sessions_dir.mkdir(parents=True, exist_ok=True)
            user_data_dir = str(self.config.sessions_dir / self.config.browser_type)
            self._context = await launcher.launch_persistent_context(
                user_data_dir, **launch_options, viewport=viewport
            )
        else:
            self._browser = await launcher.launch(**launch_options)
            self._context = await self._browser.new_context(viewport=viewport)

        self._context.set_default_timeout(self.config.page_load_timeout)
        self._context.set_default_navigation_timeout(self.config.navigation_timeout)
        logger.info(
            f"Browser started ({self.config.browser_type}, headless={self.config.headless})"
        )

    def _register(self, pw_page: PlaywrightPage) -> int:
        tab_id = self._tab_ids.get(pw_page)
        if tab_id is None:
            tab_id = self._next_tab_id
            self._next_tab_id += 1
            self._tab_ids[pw_page] = tab_id
            pw_page.on("close", self._forget)
        return tab_id

    def _forget(self, pw_page: PlaywrightPage) -> None:
        tab_id = self._tab_ids.pop(pw_page, None)
        if tab_id is not None:
            self.remove_attached_page(tab_id)

    def _attach(self, pw_page: PlaywrightPage) -> Page:
        tab_id = self._register(pw_page)
        page = self._attached.get(tab_id)
        if page is None:
            page = Page(tab_id, pw_page, navigation_timeout=self.config.navigation_timeout)
            self._attached[tab_id] = page
            logger.debug(f"Attached tab {tab_id}")
        return page

    async def _register_open_pages(self) -> None:
        """Give every open page a tab id, opening a first page in an empty browser."""
        open_pages = [p for p in self._context.pages if not p.is_closed()]
        if not open_pages:
            open_pages = [await self._context.new_page()]
        for pw_page in open_pages:
            self._register(pw_page)

    def _find_pw_page(self, tab_id: int) -> Optional[PlaywrightPage]:
        for pw_page, known_id in self._tab_ids.items():
            if known_id == tab_id and not pw_page.is_closed():
                return pw_page
        return None

    async def get_current_page(self) -> Page:
        """Return the current tab, attaching an open page or opening one if needed."""
        await self.initialize()

        if self._current_tab_id in self._attached:
            return self._attached[self._current_tab_id]

        open_pages = [p for p in self._context.pages if not p.is_closed()]
        pw_page = open_pages[-1] if open_pages else await self._context.new_page()
        page = self._attach(pw_page)
        self._current_tab_id = page.tab_id
        return page

    async def navigate_to(self, url: str) -> Page:
        page = await self.get_current_page()
        await page.navigate(url)
        return page

    async def open_tab(self, url: str) -> Page:
        await self.initialize()
        page = self._attach(await self._context.new_page())
        self._current_tab_id = page.tab_id
        await page.navigate(url)
        return page

    async def switch_tab(self, tab_id: int) -> Page:
        """
        Make ``tab_id`` the current tab.

        Raises:
            ValueError: If no open tab has this id
        """
        await self.initialize()
        page = self._attached.get(tab_id)
        if page is None:
            pw_page = self._find_pw_page(tab_id)
            if pw_page is None:
                await self._register_open_pages()
                pw_page = self._find_pw_page(tab_id)
            if pw_page is None:
                raise ValueError(f"Tab {tab_id} not found")
            page = self._attach(pw_page)

        await page.page.bring_to_front()
        self._current_tab_id = tab_id
        return page

    async def close_tab(self, tab_id: int) -> None:
        pw_page = self._find_pw_page(tab_id)
        if pw_page is None:
            raise ValueError(f"Tab {tab_id} not found")
        await pw_page.close()
        self._forget(pw_page)

    def remove_attached_page(self, tab_id: int) -> None:
        """Forget a tab (it was closed, or the task released it)."""
        self._attached.pop(tab_id, None)
        if self._current_tab_id == tab_id:
            self._current_tab_id = None

    async def take_screenshot(self) -> str:
        page = await self.get_current_page()
        return await page.take_screenshot()

    async def list_tabs(self) -> list[dict[str, Any]]:
        if self._context is None:
            return []
        tabs = []
        for pw_page in self._context.pages:
            if pw_page.is_closed():
                continue
            page = self._attach(pw_page)
            tabs.append({"tab_id": page.tab_id, "url": pw_page.url, "title": await pw_page.title()})
        return tabs

    async def get_state(self, include_text: bool = True) -> PageState:
        """Snapshot the current tab plus the list of open tabs."""
        page = await self.get_current_page()
        state = await page.get_state(include_text=include_text)
        state.tabs = await self.list_tabs()
        return state

    async def cleanup(self) -> None:
        """
        Release the tabs held for the current task.

        Visible browsers stay open for the user and are re-attached on next
        use; headless browsers are shut down unless ``keep_alive`` is set.
        Safe to call repeatedly.
        """
        if self._attached:
            logger.debug(f"Detaching {len(self._attached)} tab(s)")
        self._attached.clear()
        self._current_tab_id = None

        if self.config.headless and not self.config.keep_alive:
            await self.close()

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        self._attached.clear()
        self._tab_ids.clear()
        self._current_tab_id = None

        if self._context:
            try:
                await self._context.close()
            except Exception as e:
                logger.debug(f"Ignoring error closing browser context: {e}")
            self._context = None

        if self._browser:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"Ignoring error closing browser: {e}")
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"Ignoring error stopping playwright: {e}")
            self._playwright = None

    async def __aenter__(self) -> "BrowserContext":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_browser_context(config: Optional[BrowserConfig] = None) -> BrowserContext:
    """
    Factory function to create a (not yet launched) browser context.

    Args:
        config: Browser configuration (uses env if None)
    """
    return BrowserContext(config)
