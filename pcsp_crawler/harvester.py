from dataclasses import replace
from typing import AsyncIterator, Awaitable, Callable, List, Optional
import logging

from .config import (
    BLOCKED_RESOURCE_TYPES, LIST_URL, MAX_PAGES, MAX_RETRIES, NAVIGATION_TIMEOUT,
    PAGE_SETTLE_DELAY, RETRY_DELAY, SELECTORS, TIMEOUT,
)
from .document import DocumentAccess
from .errors import NavigationError
from .extractor import extract_page
from .model import HarvestState, ListingRecord
from .retry import retry_operation

logger = logging.getLogger(__name__)

Prepare = Callable[[DocumentAccess], Awaitable[None]]


async def wait_for_results(document: DocumentAccess):
    """Ready check for a document already showing the results table."""
    await document.wait_for(SELECTORS['list']['table'], state="attached", timeout=TIMEOUT)


async def open_search_results(document: DocumentAccess):
    """Load the listing search, filter on published notices and submit it."""
    selectors = SELECTORS['list']
    await document.block_resources(BLOCKED_RESOURCE_TYPES)
    await document.goto(LIST_URL, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT)

    logger.info("Opening search form...")
    await document.click(selectors['search_form_link'], timeout=TIMEOUT)

    await document.wait_for(selectors['status_select'], state="attached", timeout=TIMEOUT)
    await document.select_option(selectors['status_select'], selectors['status_label'])

    logger.info("Clicking Search Button to load data...")
    await document.click(selectors['search_btn'], timeout=TIMEOUT)
    await wait_for_results(document)
    logger.info("✓ Results table loaded.")


class ListingHarvester:
    """
    Walks the paginated results table, page by page, until the 'next'
    control disappears (or the optional cap / predicate says stop).
    """

    def __init__(
        self,
        prepare: Prepare = open_search_results,
        max_pages: Optional[int] = MAX_PAGES,
        should_continue: Optional[Callable[[HarvestState], bool]] = None,
        max_attempts: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        settle_delay: float = PAGE_SETTLE_DELAY,
    ):
        self.prepare = prepare
        self.max_pages = max_pages
        self.should_continue = should_continue
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.settle_delay = settle_delay

    async def _ensure_ready(self, document: DocumentAccess):
        try:
            await retry_operation(
                lambda: self.prepare(document),
                max_attempts=self.max_attempts,
                base_delay=self.retry_delay,
                description="Open listing view",
            )
        except Exception as e:
            raise NavigationError("Open listing view", self.max_attempts, e) from e

    async def _next_page(self, document: DocumentAccess) -> bool:
        """Activate the next-page control if it is there and enabled."""
        next_btn = await document.query(SELECTORS['list']['pagination']['next_btn'])
        if next_btn is None:
            return False

        logger.info("Clicking 'Next' button...")
        await next_btn.click()
        await document.wait_for(SELECTORS['list']['table'], state="visible", timeout=TIMEOUT)
        await document.pause(self.settle_delay)
        return True

    def _stop_reason(self, state: HarvestState) -> Optional[str]:
        if self.max_pages is not None and state.page_num >= self.max_pages:
            return f"page cap {self.max_pages} reached"
        if self.should_continue is not None and not self.should_continue(state):
            return "stop condition met"
        return None

    async def iter_states(self, document: DocumentAccess) -> AsyncIterator[HarvestState]:
        """
        Fold the pages into successive HarvestState values.

        One state is yielded per page, after the next-page control has been
        probed; the last one carries the stop reason. If moving to the next
        page fails, the state holding the page just read is yielded first and
        the error is raised on the following step.
        """
        await self._ensure_ready(document)

        state = HarvestState()
        while state.stop_reason is None:
            logger.info(f"Processing Page {state.page_num + 1}...")
            page_records = await extract_page(document)
            state = state.with_page(page_records)
            logger.info(f"✓ Page {state.page_num}: {len(page_records)} records ({state.record_count} total)")

            reason = self._stop_reason(state)
            if reason is None:
                try:
                    has_next = await self._next_page(document)
                except Exception as e:
                    yield replace(state, has_next=False, stop_reason=f"next page failed: {e}")
                    raise
                state = replace(state, has_next=has_next)
                if not has_next:
                    reason = "no next page"
            state = replace(state, stop_reason=reason)
            yield state

    async def harvest(self, document: DocumentAccess) -> List[ListingRecord]:
        final = HarvestState()
        async for state in self.iter_states(document):
            final = state

        logger.info(f"Harvest finished after {final.page_num} pages ({final.stop_reason}). Collected {final.record_count} items.")
        return final.records
