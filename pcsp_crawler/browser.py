from contextlib import asynccontextmanager
from typing import Iterable, List, Optional, Tuple
import logging

from playwright.async_api import ElementHandle, Page, Route, async_playwright

from .config import HEADLESS, PLATFORM_URL, SELECTORS, TIMEOUT, NAVIGATION_TIMEOUT
from .document import DocumentAccess, Element

logger = logging.getLogger(__name__)

_POSITION_PATH_JS = """(el, scope) => {
    const path = [];
    for (let node = el; node && node.parentElement; node = node.parentElement) {
        if (scope && !node.matches(scope)) continue;
        const siblings = Array.from(node.parentElement.children)
            .filter(s => !scope || s.matches(scope));
        path.unshift(siblings.indexOf(node));
    }
    return path;
}"""


class PlaywrightElement(Element):
    def __init__(self, handle: ElementHandle):
        self.handle = handle

    async def query(self, selector: str) -> Optional[Element]:
        found = await self.handle.query_selector(selector)
        return PlaywrightElement(found) if found else None

    async def query_all(self, selector: str) -> List[Element]:
        return [PlaywrightElement(h) for h in await self.handle.query_selector_all(selector)]

    async def text(self) -> str:
        return await self.handle.text_content() or ""

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self.handle.get_attribute(name)

    async def click(self) -> None:
        await self.handle.click(timeout=TIMEOUT)

    async def is_visible(self) -> bool:
        return await self.handle.is_visible()

    async def position_path(self, scope: Optional[str] = None) -> Tuple[int, ...]:
        return tuple(await self.handle.evaluate(_POSITION_PATH_JS, scope))


class PlaywrightDocument(DocumentAccess):
    """Document Access over a live Playwright page."""

    def __init__(self, page: Page):
        self.page = page
        self._blocked_types: Tuple[str, ...] = ()

    @property
    def url(self) -> str:
        return self.page.url

    async def goto(self, url: str, wait_until: str = "load", timeout: Optional[float] = None) -> None:
        logger.info(f"Navigating to {url}...")
        await self.page.goto(url, wait_until=wait_until, timeout=timeout or NAVIGATION_TIMEOUT)

    async def query(self, selector: str) -> Optional[Element]:
        found = await self.page.query_selector(selector)
        return PlaywrightElement(found) if found else None

    async def query_all(self, selector: str) -> List[Element]:
        return [PlaywrightElement(h) for h in await self.page.query_selector_all(selector)]

    async def wait_for(self, selector: str, state: str = "visible", timeout: Optional[float] = None) -> Element:
        found = await self.page.wait_for_selector(selector, state=state, timeout=timeout or TIMEOUT)
        return PlaywrightElement(found) if found else None

    async def select_option(self, selector: str, label: str) -> None:
        await self.page.select_option(selector, label=label)

    async def pause(self, seconds: float) -> None:
        await self.page.wait_for_timeout(seconds * 1000)

    async def block_resources(self, resource_types: Iterable[str]) -> None:
        if self._blocked_types:
            return
        self._blocked_types = tuple(resource_types)
        await self.page.route("**/*", self._route_handler)
        logger.info(f"Blocking resource types: {', '.join(self._blocked_types)}")

    async def _route_handler(self, route: Route) -> None:
        if route.request.resource_type in self._blocked_types:
            await route.abort()
        else:
            await route.continue_()


@asynccontextmanager
async def open_page(headless: bool = HEADLESS):
    """Launch Chromium and yield a ready PlaywrightDocument."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=headless,
            args=[
                '--disable-blink-features=AutomationControlled',
                '--no-sandbox',
                '--disable-setuid-sandbox',
                '--window-size=1920,1080',
            ],
        )
        context = await browser.new_context(
            viewport={'width': 1920, 'height': 1080},
            locale='es-ES',
            timezone_id='Europe/Madrid',
        )
        try:
            page = await context.new_page()
            yield PlaywrightDocument(page)
        finally:
            await browser.close()


async def open_cpv_selector(document: PlaywrightDocument):
    """Walk the portal menus from the platform home to the CPV tree."""
    page = document.page
    await document.goto(PLATFORM_URL, wait_until="networkidle")
    for name in SELECTORS["cpv"]["menu_links"]:
        logger.info(f"Clicking '{name}'...")
        await page.get_by_role("link", name=name).click(timeout=TIMEOUT)
    await document.wait_for(SELECTORS["cpv"]["node"], state="attached")
    logger.info("✓ CPV tree loaded.")
