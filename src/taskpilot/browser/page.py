"""
Attached Page

Wraps a Playwright page that belongs to a BrowserContext tab. Actions go
through these methods; failures surface as Playwright exceptions and are
classified by the action registry.
"""

import base64
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from playwright.async_api import Locator, Page as PlaywrightPage

logger = logging.getLogger(__name__)

# Roles tried, in order, when resolving an element by its accessible name
COMMON_ROLES = ("button", "link", "textbox", "searchbox", "checkbox", "radio", "combobox", "tab", "menuitem")

URL_SCHEMES = ("http://", "https://", "file://", "about:", "data:")

MAX_TEXT_CHARS = 4000
MAX_SNAPSHOT_LINES = 150


def normalize_url(url: str) -> str:
    """Prefix bare hosts with https:// (``example.com`` -> ``https://example.com``)."""
    url = url.strip()
    if url.startswith(URL_SCHEMES):
        return url
    return f"https://{url}"


def clean_text(text: str) -> str:
    """Strip blank lines and surrounding whitespace from extracted text."""
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    return "\n".join(lines)


@dataclass
class PageState:
    """
    Snapshot of a tab handed to the agents.

    ``elements`` is the page's ARIA snapshot (one ``- role "name"`` per line),
    which is what the navigator uses to describe elements it wants to act on.
    """

    tab_id: int
    url: str
    title: str
    text: str = ""
    elements: str = ""
    tabs: list[dict[str, Any]] = field(default_factory=list)

    def to_prompt(self, include_text: bool = True) -> str:
        parts = [
            f"Current tab: {self.tab_id}",
            f"URL: {self.url}",
            f"Title: {self.title}",
        ]
        if self.tabs:
            tab_lines = [f"- [{t['tab_id']}] {t['title']} ({t['url']})" for t in self.tabs]
            parts.append("Open tabs:\n" + "\n".join(tab_lines))
        if self.elements:
            parts.append(f"Interactive elements:\n{self.elements}")
        if include_text and self.text:
            parts.append(f"Visible text:\n{self.text}")
        return "\n".join(parts)


class Page:
    """
    A browser tab attached to a BrowserContext.

    Element lookup follows the accessibility-first strategy: role + name,
    then text, label, placeholder, title and alt text, and finally a fuzzy
    match over the ARIA snapshot.
    """

    def __init__(self, tab_id: int, page: PlaywrightPage, navigation_timeout: int = 30000):
        self.tab_id = tab_id
        self.page = page
        self.navigation_timeout = navigation_timeout

    @property
    def url(self) -> str:
        return self.page.url

    async def title(self) -> str:
        return await self.page.title()

    async def navigate(self, url: str, wait_until: str = "load") -> dict[str, Any]:
        """
        Navigate this tab to a URL.

        Raises:
            RuntimeError: If the server answered with an error status
        """
        target = normalize_url(url)
        response = await self.page.goto(target, wait_until=wait_until, timeout=self.navigation_timeout)

        status = response.status if response else None
        if response is not None and not response.ok:
            raise RuntimeError(f"Navigation to {target} failed with HTTP {status}")

        return {"url": self.page.url, "title": await self.page.title(), "status": status}

    async def go_back(self) -> dict[str, Any]:
        await self.page.go_back(timeout=self.navigation_timeout)
        return {"url": self.page.url, "title": await self.page.title()}

    async def find_element(self, description: str, role: Optional[str] = None) -> Locator:
        """
        Resolve a natural-language description to a single element.

        Raises:
            LookupError: If nothing on the page matches
        """
        roles = (role,) if role else COMMON_ROLES
        candidates = [self.page.get_by_role(r, name=description) for r in roles]
        candidates += [
            self.page.get_by_text(description, exact=False),
            self.page.get_by_label(description),
            self.page.get_by_placeholder(description),
            self.page.get_by_title(description),
            self.page.get_by_alt_text(description),
        ]

        for locator in candidates:
            if await locator.count() > 0:
                return locator.first

        # Partial match against names in the ARIA snapshot
        snapshot = await self.page.locator("body").aria_snapshot()
        needle = description.lower()
        for name in re.findall(r'"([^"]+)"', snapshot or ""):
            if needle not in name.lower():
                continue
            for r in roles:
                locator = self.page.get_by_role(r, name=name)
                if await locator.count() > 0:
                    return locator.first

        raise LookupError(f"Could not find element matching: '{description}'")

    async def click(self, description: str, role: Optional[str] = None) -> dict[str, Any]:
        locator = await self.find_element(description, role)
        await locator.scroll_into_view_if_needed()
        await locator.click()
        return {"clicked": description, "url": self.page.url}

    async def input_text(self, description: str, text: str, press_enter: bool = False) -> dict[str, Any]:
        locator = await self.find_element(description)
        await locator.fill(text)
        if press_enter:
            await locator.press("Enter")
        return {"typed": text, "into": description, "pressed_enter": press_enter}

    async def send_keys(self, keys: str) -> dict[str, Any]:
        await self.page.keyboard.press(keys)
        return {"keys": keys}

    async def scroll(self, direction: str = "down", amount: int = 500) -> dict[str, Any]:
        dx, dy = {
            "up": (0, -amount),
            "down": (0, amount),
            "left": (-amount, 0),
            "right": (amount, 0),
        }[direction]
        await self.page.evaluate(f"window.scrollBy({dx}, {dy})")
        position = await self.page.evaluate("() => ({ x: window.scrollX, y: window.scrollY })")
        return {"direction": direction, "amount": amount, "scroll_to": position}

    async def get_text(self, max_chars: int = MAX_TEXT_CHARS) -> str:
        """Visible body text, whitespace-normalized and truncated."""
        text = clean_text(await self.page.locator("body").inner_text())
        if len(text) > max_chars:
            text = text[:max_chars] + f"\n... ({len(text) - max_chars} more chars)"
        return text

    async def take_screenshot(self, full_page: bool = False) -> str:
        """Capture the viewport as a base64-encoded JPEG."""
        image = await self.page.screenshot(type="jpeg", quality=70, full_page=full_page)
        return base64.b64encode(image).decode("utf-8")

    async def get_state(self, include_text: bool = True) -> PageState:
        snapshot = ""
        try:
            snapshot = await self.page.locator("body").aria_snapshot()
        except Exception as e:
            # about:blank and some documents have no body to snapshot
            logger.debug(f"ARIA snapshot unavailable for tab {self.tab_id}: {e}")
        lines = [line for line in (snapshot or "").split("\n") if line.strip()]

        return PageState(
            tab_id=self.tab_id,
            url=self.page.url,
            title=await self.page.title(),
            text=await self.get_text() if include_text and snapshot else "",
            elements="\n".join(lines[:MAX_SNAPSHOT_LINES]),
        )
