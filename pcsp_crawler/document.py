"""
Document Access interface.

Harvesting, expansion and reconstruction only talk to these two classes.
Each rendering backend (a live Playwright page, a saved HTML snapshot)
implements them once; nothing above this layer knows which one it is using.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple


class Element(ABC):
    """A handle to one element of the rendered document."""

    @abstractmethod
    async def query(self, selector: str) -> Optional["Element"]:
        """First descendant matching ``selector``, or None."""

    @abstractmethod
    async def query_all(self, selector: str) -> List["Element"]:
        """All descendants matching ``selector`` in document order."""

    @abstractmethod
    async def text(self) -> str:
        """Text content of the element and its descendants (untrimmed)."""

    @abstractmethod
    async def get_attribute(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    async def click(self) -> None:
        pass

    @abstractmethod
    async def is_visible(self) -> bool:
        pass

    @abstractmethod
    async def position_path(self, scope: Optional[str] = None) -> Tuple[int, ...]:
        """
        Sibling indices from the document root down to this element.

        With ``scope`` only the element and ancestors matching that selector
        contribute, each indexed among its siblings that also match it. This
        turns nested tree-widget wrappers into paths like (0, 2, 1).
        """


class DocumentAccess(ABC):
    """A navigable, queryable rendered document."""

    @property
    @abstractmethod
    def url(self) -> str:
        pass

    @abstractmethod
    async def goto(self, url: str, wait_until: str = "load", timeout: Optional[float] = None) -> None:
        pass

    @abstractmethod
    async def query(self, selector: str) -> Optional[Element]:
        pass

    @abstractmethod
    async def query_all(self, selector: str) -> List[Element]:
        pass

    @abstractmethod
    async def wait_for(self, selector: str, state: str = "visible", timeout: Optional[float] = None) -> Element:
        """Wait until ``selector`` is attached/visible and return it."""

    @abstractmethod
    async def select_option(self, selector: str, label: str) -> None:
        pass

    @abstractmethod
    async def pause(self, seconds: float) -> None:
        pass

    async def click(self, selector: str, timeout: Optional[float] = None) -> None:
        element = await self.wait_for(selector, state="visible", timeout=timeout)
        await element.click()

    async def block_resources(self, resource_types: Iterable[str]) -> None:
        """Stop loading non-essential sub-resources. Optional for backends."""
        return None
