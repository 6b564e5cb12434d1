import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .document import DocumentAccess, Element
from .errors import DocumentTimeoutError, ReadOnlyDocumentError

logger = logging.getLogger(__name__)

ClickHandler = Callable[["SoupDocument", "SoupElement"], Awaitable[None]]


def _is_hidden(tag: Tag) -> bool:
    if tag.has_attr('hidden'):
        return True
    style = (tag.get('style') or '').replace(' ', '').lower()
    return 'display:none' in style or 'visibility:hidden' in style


class SoupElement(Element):
    def __init__(self, tag: Tag, document: "SoupDocument"):
        self.tag = tag
        self.document = document

    async def query(self, selector: str) -> Optional[Element]:
        found = self.tag.select_one(selector)
        return SoupElement(found, self.document) if found else None

    async def query_all(self, selector: str) -> List[Element]:
        return [SoupElement(t, self.document) for t in self.tag.select(selector)]

    async def text(self) -> str:
        return self.tag.get_text()

    async def get_attribute(self, name: str) -> Optional[str]:
        value = self.tag.get(name)
        if isinstance(value, list):  # multi-valued attributes such as class
            return " ".join(value)
        return value

    async def click(self) -> None:
        await self.document.dispatch_click(self)

    async def is_visible(self) -> bool:
        if self.tag.decomposed or not self.document.contains(self.tag):
            return False
        node = self.tag
        while isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
            if _is_hidden(node):
                return False
            node = node.parent
        return True

    async def position_path(self, scope: Optional[str] = None) -> Tuple[int, ...]:
        path = []
        node = self.tag
        while node.parent is not None and not isinstance(node.parent, BeautifulSoup):
            if scope is None or node.css.match(scope):
                siblings = [
                    s for s in node.parent.find_all(recursive=False)
                    if scope is None or s.css.match(scope)
                ]
                path.append(next(i for i, s in enumerate(siblings) if s is node))
            node = node.parent
        return tuple(reversed(path))


class SoupDocument(DocumentAccess):
    """
    Document Access over static HTML parsed with BeautifulSoup.

    Used to read saved page snapshots offline. Clicks are forwarded to
    ``on_click`` which may mutate the soup or ``load()`` new HTML, so a
    scripted widget can stand in for the live portal.
    """

    def __init__(self, html: str, url: str = "", on_click: Optional[ClickHandler] = None):
        self._url = url
        self.on_click = on_click
        self.clicks = 0
        self.load(html)

    @classmethod
    def from_file(cls, filename: str, url: str = "") -> "SoupDocument":
        with open(filename, 'r', encoding='utf-8') as f:
            return cls(f.read(), url=url)

    def load(self, html: str, url: Optional[str] = None):
        self.soup = BeautifulSoup(html, 'lxml')
        if url is not None:
            self._url = url

    def contains(self, tag: Tag) -> bool:
        return any(parent is self.soup for parent in tag.parents)

    @property
    def url(self) -> str:
        return self._url

    async def goto(self, url: str, wait_until: str = "load", timeout: Optional[float] = None) -> None:
        # A snapshot is already loaded; only the reported URL changes.
        logger.debug(f"Snapshot goto {url} ignored")
        self._url = url

    async def query(self, selector: str) -> Optional[Element]:
        found = self.soup.select_one(selector)
        return SoupElement(found, self) if found else None

    async def query_all(self, selector: str) -> List[Element]:
        return [SoupElement(t, self) for t in self.soup.select(selector)]

    async def wait_for(self, selector: str, state: str = "visible", timeout: Optional[float] = None) -> Element:
        element = await self.query(selector)
        if element is None:
            if state in ("hidden", "detached"):
                return None
            raise DocumentTimeoutError(selector, state, timeout)
        visible = await element.is_visible()
        if (state == "visible" and not visible) or (state == "hidden" and visible) or state == "detached":
            raise DocumentTimeoutError(selector, state, timeout)
        return element

    async def select_option(self, selector: str, label: str) -> None:
        select = self.soup.select_one(selector)
        if select is None:
            raise DocumentTimeoutError(selector, "attached")
        options = select.find_all('option')
        if not any(o.get_text(strip=True) == label for o in options):
            raise ValueError(f"No option labelled '{label}' in '{selector}'")
        for option in options:
            if option.get_text(strip=True) == label:
                option['selected'] = 'selected'
            elif option.has_attr('selected'):
                del option['selected']

    async def pause(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

    async def dispatch_click(self, element: SoupElement) -> None:
        if self.on_click is None:
            raise ReadOnlyDocumentError(f"Cannot click <{element.tag.name}> on a read-only snapshot")
        self.clicks += 1
        await self.on_click(self, element)
