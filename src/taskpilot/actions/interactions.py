"""
Interaction Actions

Click, type, key presses and scrolling on the current tab. Elements are
referenced by natural-language description (usually the accessible name
shown in the page state).
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .base import action


class ClickParams(BaseModel):
    element_description: str = Field(min_length=1)
    role: Optional[str] = Field(default=None, description="ARIA role, e.g. 'button' or 'link'")


class InputTextParams(BaseModel):
    element_description: str = Field(min_length=1)
    text: str
    press_enter: bool = False


class SendKeysParams(BaseModel):
    keys: str = Field(min_length=1, description="Key or chord, e.g. 'Enter', 'Escape', 'Control+A'")


class ScrollParams(BaseModel):
    direction: Literal["up", "down", "left", "right"] = "down"
    amount: int = Field(default=500, ge=1, le=10000)


@action(
    name="click_element",
    description="Click an element described by its visible text or accessible name.",
    params_model=ClickParams,
)
async def click_element(browser, params: ClickParams) -> str:
    page = await browser.get_current_page()
    info = await page.click(params.element_description, params.role)
    return f"Clicked '{params.element_description}' (now at {info['url']})"


@action(
    name="input_text",
    description="Fill a text field with text, optionally pressing Enter afterwards.",
    params_model=InputTextParams,
)
async def input_text(browser, params: InputTextParams) -> str:
    page = await browser.get_current_page()
    await page.input_text(params.element_description, params.text, params.press_enter)
    suffix = " and pressed Enter" if params.press_enter else ""
    return f"Typed '{params.text}' into '{params.element_description}'{suffix}"


@action(
    name="send_keys",
    description="Press a key or key chord on the current page.",
    params_model=SendKeysParams,
)
async def send_keys(browser, params: SendKeysParams) -> str:
    page = await browser.get_current_page()
    await page.send_keys(params.keys)
    return f"Pressed {params.keys}"


@action(
    name="scroll",
    description="Scroll the current page.",
    params_model=ScrollParams,
)
async def scroll(browser, params: ScrollParams) -> str:
    page = await browser.get_current_page()
    info = await page.scroll(params.direction, params.amount)
    return f"Scrolled {params.direction} by {params.amount}px to {info['scroll_to']}"
