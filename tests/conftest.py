"""
Shared test doubles.

ScriptedProvider replays canned LLM replies; FakeBrowserContext stands in
for the Playwright-backed context so the engine can be driven without a
browser. The StubPlaywright* classes let the real BrowserContext keep its
tab bookkeeping without launching Chromium.
"""

import inspect
import json
from typing import Any, Optional

import pytest

from taskpilot.browser.page import PageState
from taskpilot.llm import ChatModel, LLMConfig, LLMProvider, LLMResponse, Message


class ScriptedProvider(LLMProvider):
    """
    Replays replies in order; the last one repeats once the script runs out.

    A reply may be a string, an exception instance (raised), or a callable
    taking the message list (sync or async) that returns a string.
    """

    def __init__(self, replies: list[Any]):
        super().__init__(LLMConfig(api_key="test-key", provider_type="scripted"))
        self.replies = list(replies)
        self.calls: list[list[Message]] = []
        self.closed = False

    async def initialize(self) -> None:
        pass

    async def complete(self, messages: list[Message], model: Optional[str] = None, **kwargs: Any) -> LLMResponse:
        self.calls.append(messages)
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]

        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(messages)
            if inspect.isawaitable(reply):
                reply = await reply
        return LLMResponse(content=reply, model=self.resolve_model(model))

    async def close(self) -> None:
        self.closed = True


def scripted_model(*replies: Any) -> ChatModel:
    return ChatModel(provider=ScriptedProvider(list(replies)), model="scripted")


def nav_reply(*actions: dict[str, Any], next_goal: str = "") -> str:
    """Navigator JSON reply proposing ``actions`` ({name: args} dicts)."""
    return json.dumps({
        "current_state": {
            "evaluation_previous_goal": "Unknown",
            "memory": "",
            "next_goal": next_goal,
        },
        "action": list(actions),
    })


def plan_reply(status: str, next_steps: str = "", final_answer: str = "", reasoning: str = "") -> str:
    return json.dumps({
        "observation": "looked at the page",
        "status": status,
        "reasoning": reasoning,
        "next_steps": next_steps,
        "final_answer": final_answer,
    })


def verdict_reply(is_valid: bool, reason: str = "", answer: str = "") -> str:
    return json.dumps({"is_valid": is_valid, "reason": reason, "answer": answer})


class FakePage:
    def __init__(self, tab_id: int, url: str = "about:blank", title: str = ""):
        self.tab_id = tab_id
        self.url = url
        self.page_title = title
        self.clicked: list[str] = []
        self.typed: list[tuple[str, str]] = []

    async def navigate(self, url: str) -> dict[str, Any]:
        self.url = url
        return {"url": url, "title": self.page_title, "status": 200}

    async def go_back(self) -> dict[str, Any]:
        return {"url": self.url, "title": self.page_title}

    async def click(self, description: str, role: Optional[str] = None) -> dict[str, Any]:
        self.clicked.append(description)
        return {"clicked": description, "url": self.url}

    async def input_text(self, description: str, text: str, press_enter: bool = False) -> dict[str, Any]:
        self.typed.append((description, text))
        return {"typed": text, "into": description, "pressed_enter": press_enter}

    async def send_keys(self, keys: str) -> dict[str, Any]:
        return {"keys": keys}

    async def scroll(self, direction: str = "down", amount: int = 500) -> dict[str, Any]:
        return {"direction": direction, "amount": amount, "scroll_to": {"x": 0, "y": amount}}

    async def get_text(self) -> str:
        return f"Text of {self.url}"

    async def take_screenshot(self) -> str:
        return "ZmFrZS1zY3JlZW5zaG90"


class FakeBrowserContext:
    """In-memory BrowserContext with the same coroutine surface."""

    def __init__(self):
        self.pages: dict[int, FakePage] = {1: FakePage(1)}
        self.current_tab_id = 1
        self.navigations: list[str] = []
        self.cleanup_calls = 0
        self.closed = False
        self.fail_navigation: Optional[Exception] = None

    @property
    def current(self) -> FakePage:
        return self.pages[self.current_tab_id]

    async def get_current_page(self) -> FakePage:
        return self.current

    async def navigate_to(self, url: str) -> FakePage:
        if self.fail_navigation is not None:
            raise self.fail_navigation
        self.navigations.append(url)
        await self.current.navigate(url)
        return self.current

    async def open_tab(self, url: str) -> FakePage:
        tab_id = max(self.pages) + 1
        self.pages[tab_id] = FakePage(tab_id, url)
        self.current_tab_id = tab_id
        return self.pages[tab_id]

    async def switch_tab(self, tab_id: int) -> FakePage:
        if tab_id not in self.pages:
            raise ValueError(f"Tab {tab_id} not found")
        self.current_tab_id = tab_id
        return self.pages[tab_id]

    async def close_tab(self, tab_id: int) -> None:
        if tab_id not in self.pages:
            raise ValueError(f"Tab {tab_id} not found")
        del self.pages[tab_id]
        self.remove_attached_page(tab_id)

    def remove_attached_page(self, tab_id: int) -> None:
        if self.current_tab_id == tab_id:
            self.current_tab_id = min(self.pages) if self.pages else None

    async def take_screenshot(self) -> str:
        return await self.current.take_screenshot()

    async def get_state(self, include_text: bool = True) -> PageState:
        page = self.current
        return PageState(
            tab_id=page.tab_id,
            url=page.url,
            title=page.page_title,
            text=await page.get_text() if include_text else "",
            elements='- heading "Example Domain" [level=1]\n- link "More information..."',
        )

    async def cleanup(self) -> None:
        self.cleanup_calls += 1

    async def close(self) -> None:
        self.closed = True


class EventLog:
    """Async listener that keeps every event it receives."""

    def __init__(self):
        self.events = []

    async def __call__(self, event) -> None:
        self.events.append(event)

    @property
    def states(self) -> list[tuple[str, str]]:
        return [(e.actor.value, e.state.value) for e in self.events]

    def count(self, state, actor=None) -> int:
        return sum(1 for e in self.events if e.state == state and (actor is None or e.actor == actor))


@pytest.fixture
def browser() -> FakeBrowserContext:
    return FakeBrowserContext()


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


class StubLocator:
    async def aria_snapshot(self) -> str:
        return '- heading "Welcome" [level=1]\n- link "Docs"'

    async def inner_text(self) -> str:
        return "Welcome\nDocs"


class StubPlaywrightPage:
    """Just enough of a Playwright page for BrowserContext bookkeeping."""

    def __init__(self, url: str = "about:blank", title: str = ""):
        self.url = url
        self.page_title = title
        self.closed = False
        self.handlers: dict[str, list] = {}

    def on(self, event: str, handler) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def is_closed(self) -> bool:
        return self.closed

    async def title(self) -> str:
        return self.page_title

    async def bring_to_front(self) -> None:
        pass

    def locator(self, selector: str) -> StubLocator:
        return StubLocator()

    async def close(self) -> None:
        self.closed = True
        for handler in self.handlers.get("close", []):
            handler(self)


class StubPlaywrightContext:
    def __init__(self, pages: tuple = ()):
        self._pages = list(pages)
        self.closed = False

    @property
    def pages(self) -> list[StubPlaywrightPage]:
        return [p for p in self._pages if not p.closed]

    async def new_page(self) -> StubPlaywrightPage:
        page = StubPlaywrightPage()
        self._pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


def stub_browser_context(pages: tuple = (), **config: Any):
    """A real BrowserContext already "launched" on a stub Playwright context."""
    from taskpilot.browser import BrowserConfig, BrowserContext

    context = BrowserContext(BrowserConfig(**config))
    context._context = StubPlaywrightContext(pages)
    return context
