import logging

from .config import EXPAND_MAX_ITERATIONS, EXPAND_SETTLE_DELAY, SELECTORS
from .document import DocumentAccess

logger = logging.getLogger(__name__)


class TreeExpander:
    """Clicks every 'expand' control of the CPV tree until none are left."""

    def __init__(
        self,
        max_iterations: int = EXPAND_MAX_ITERATIONS,
        settle_delay: float = EXPAND_SETTLE_DELAY,
        expand_selector: str = SELECTORS['cpv']['expand_btn'],
    ):
        self.max_iterations = max_iterations
        self.settle_delay = settle_delay
        self.expand_selector = expand_selector

    async def expand_all(self, document: DocumentAccess) -> None:
        """
        Expand the tree to a fixpoint or until ``max_iterations`` rounds.

        Hitting the ceiling is not an error: whatever is rendered by then is
        still worth reconstructing.
        """
        clicked = 0
        for iteration in range(1, self.max_iterations + 1):
            buttons = [b for b in await document.query_all(self.expand_selector) if await b.is_visible()]
            if not buttons:
                logger.info(f"✓ Tree fully expanded after {iteration - 1} rounds ({clicked} nodes opened).")
                return

            logger.debug(f"Round {iteration}: {len(buttons)} expand controls")
            for button in buttons:
                # Expanding a parent can re-render or hide a control found above
                if not await button.is_visible():
                    logger.debug("Skipping expand control that is no longer visible")
                    continue
                await button.click()
                clicked += 1
            await document.pause(self.settle_delay)

        logger.warning(f"Stopped expanding after {self.max_iterations} rounds ({clicked} nodes opened); tree may be partial.")
