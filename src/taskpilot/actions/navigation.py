"""
Navigation Actions

URL navigation, search and tab management for the navigator.
"""

from urllib.parse import quote_plus

from pydantic import BaseModel, Field

from .base import action


class GoToUrlParams(BaseModel):
    url: str = Field(min_length=1, description="URL to open, e.g. 'https://example.com'")


class SearchParams(BaseModel):
    query: str = Field(min_length=1)


class TabParams(BaseModel):
    tab_id: int = Field(ge=1)


@action(
    name="go_to_url",
    description="Navigate the current tab to a URL.",
    params_model=GoToUrlParams,
)
async def go_to_url(browser, params: GoToUrlParams) -> str:
    page = await browser.navigate_to(params.url)
    return f"Navigated to {page.url}"


@action(
    name="search_google",
    description="Search Google in the current tab. Use concrete queries, like a human would.",
    params_model=SearchParams,
)
async def search_google(browser, params: SearchParams) -> str:
    page = await browser.navigate_to(f"https://www.google.com/search?q={quote_plus(params.query)}")
    return f"Searched for '{params.query}' ({page.url})"


@action(
    name="go_back",
    description="Go back to the previous page in the current tab.",
)
async def go_back(browser, params) -> str:
    page = await browser.get_current_page()
    info = await page.go_back()
    return f"Went back to {info['url']}"


@action(
    name="open_tab",
    description="Open a URL in a new tab and make it current.",
    params_model=GoToUrlParams,
)
async def open_tab(browser, params: GoToUrlParams) -> str:
    page = await browser.open_tab(params.url)
    return f"Opened tab {page.tab_id} at {page.url}"


@action(
    name="switch_tab",
    description="Make an open tab current, by the id shown in the tab list.",
    params_model=TabParams,
)
async def switch_tab(browser, params: TabParams) -> str:
    page = await browser.switch_tab(params.tab_id)
    return f"Switched to tab {page.tab_id} ({page.url})"


@action(
    name="close_tab",
    description="Close an open tab by id.",
    params_model=TabParams,
)
async def close_tab(browser, params: TabParams) -> str:
    await browser.close_tab(params.tab_id)
    return f"Closed tab {params.tab_id}"
