"""
Content and Control Actions

Reading page text, waiting, and declaring the task complete.
"""

import asyncio
from typing import Optional

from pydantic import BaseModel, Field

from .base import ActionResult, action


class ExtractParams(BaseModel):
    goal: Optional[str] = Field(default=None, description="What to look for in the page text")


class WaitParams(BaseModel):
    seconds: float = Field(default=1.0, gt=0, le=30)


class DoneParams(BaseModel):
    text: str = Field(min_length=1, description="Final answer for the user")


@action(
    name="extract_content",
    description="Read the visible text of the current page.",
    params_model=ExtractParams,
)
async def extract_content(browser, params: ExtractParams) -> str:
    page = await browser.get_current_page()
    text = await page.get_text()
    header = f"Page {page.url}"
    if params.goal:
        header += f" (looking for: {params.goal})"
    return f"{header}\n{text}"


@action(
    name="wait",
    description="Wait for the page to settle, in seconds.",
    params_model=WaitParams,
)
async def wait(browser, params: WaitParams) -> str:
    await asyncio.sleep(params.seconds)
    return f"Waited {params.seconds}s"


@action(
    name="done",
    description="Finish the task and report the answer. Use only when the task is complete.",
    params_model=DoneParams,
)
async def done(browser, params: DoneParams) -> ActionResult:
    return ActionResult(success=True, content=params.text, is_done=True)
