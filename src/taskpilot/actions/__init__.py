"""
Navigator Actions

Closed set of browser actions the navigator can request:
- Navigation and tabs (go_to_url, search_google, go_back, open_tab, switch_tab, close_tab)
- Interactions (click_element, input_text, send_keys, scroll)
- Content and control (extract_content, wait, done)
"""

from .base import (
    ActionErrorKind,
    ActionRegistry,
    ActionResult,
    NoParams,
    RegisteredAction,
    action,
)

# Imported for their @action registrations
from . import navigation, interactions, content  # noqa: F401

__all__ = [
    "ActionErrorKind",
    "ActionRegistry",
    "ActionResult",
    "NoParams",
    "RegisteredAction",
    "action",
]
