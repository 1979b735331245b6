"""
Browser Module

Playwright-backed browser context for the agent: the set of tabs a task
works in, page state snapshots, and screenshots.
"""

from .context import BrowserConfig, BrowserContext, create_browser_context
from .page import Page, PageState, normalize_url

__all__ = [
    "BrowserConfig",
    "BrowserContext",
    "create_browser_context",
    "Page",
    "PageState",
    "normalize_url",
]
