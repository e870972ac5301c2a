"""
Content reveal protocol: scroll or click until a page stops growing.

Both routines walk the same state machine::

    IDLE -> REVEALING -> STABLE | MAX_ATTEMPTS_REACHED | ERROR

IDLE and REVEALING are the in-flight states; a returned RevealOutcome always
carries one of the three terminal states. All three are completions from the
caller's point of view: an ERROR outcome only means links are extracted from
whatever is loaded.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..errors import RevealError, describe_error
from ..renderers.base import Renderer

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_SETTLE_DELAY = 1.0
DEFAULT_CLICK_SETTLE_DELAY = 3.0


class RevealState(str, enum.Enum):
    IDLE = "idle"
    REVEALING = "revealing"
    STABLE = "stable"
    MAX_ATTEMPTS_REACHED = "max_attempts_reached"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (RevealState.STABLE, RevealState.MAX_ATTEMPTS_REACHED, RevealState.ERROR)


@dataclass(frozen=True)
class RevealOutcome:
    state: RevealState
    # Scrolls or clicks actually issued.
    attempts: int = 0
    error: Optional[RevealError] = None


class ContentRevealer:
    """
    Drives scroll / "load more" reveals against a Renderer.

    ``settle_delay`` is waited after each scroll and after scrolling a control
    into view; ``click_settle_delay`` after each click. ``sleep`` is injectable
    so tests can run the loops without real waits.
    """

    def __init__(
        self,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        click_settle_delay: float = DEFAULT_CLICK_SETTLE_DELAY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settle_delay = settle_delay
        self.click_settle_delay = click_settle_delay
        self._sleep = sleep

    def _finish(self, state: RevealState, attempts: int, error: Optional[RevealError] = None) -> RevealOutcome:
        return RevealOutcome(state=state, attempts=attempts, error=error)

    def _fail(self, what: str, attempts: int, exc: Exception) -> RevealOutcome:
        error = exc if isinstance(exc, RevealError) else RevealError(describe_error(exc))
        logger.warning("[Reveal] %s failed after %d attempt(s): %s", what, attempts, error)
        return self._finish(RevealState.ERROR, attempts, error)

    async def scroll_reveal(self, renderer: Renderer, max_attempts: int) -> RevealOutcome:
        """Scroll to the bottom until the scroll extent stops changing."""
        attempts = 0
        try:
            previous = await renderer.measure_scroll_extent()
            while attempts < max_attempts:
                attempts += 1
                logger.debug("[Reveal] Scroll #%d, scrolling to bottom", attempts)
                await renderer.scroll_to_bottom()
                await self._sleep(self.settle_delay)
                current = await renderer.measure_scroll_extent()
                if current == previous:
                    return self._finish(RevealState.STABLE, attempts)
                previous = current
        except Exception as exc:
            return self._fail("scroll reveal", attempts, exc)

        logger.warning("[Reveal] Reached max scroll attempts (%d)", max_attempts)
        return self._finish(RevealState.MAX_ATTEMPTS_REACHED, attempts)

    async def click_reveal(
        self,
        renderer: Renderer,
        selector: str,
        expected_label: Optional[str],
        max_attempts: int,
    ) -> RevealOutcome:
        """
        Click the control matching ``selector`` while it exists and still reads
        ``expected_label``. A ``None`` label skips the label check.
        """
        wanted = expected_label.strip() if expected_label is not None else None
        clicks = 0
        try:
            for _ in range(max_attempts):
                control = await renderer.find_element(selector)
                if control is None:
                    logger.debug("[Reveal] No control matches %s, stopping", selector)
                    return self._finish(RevealState.STABLE, clicks)

                if wanted is not None:
                    label = (await renderer.read_label(control)).strip()
                    if label != wanted:
                        logger.debug("[Reveal] Control label changed to %r, stopping", label)
                        return self._finish(RevealState.STABLE, clicks)

                if not await renderer.is_in_viewport(control):
                    await renderer.scroll_into_view(control)
                    await self._sleep(self.settle_delay)

                clicks += 1
                logger.debug("[Reveal] Clicking %s #%d", selector, clicks)
                await renderer.click(control)
                await self._sleep(self.click_settle_delay)
        except Exception as exc:
            return self._fail("click reveal", clicks, exc)

        logger.warning("[Reveal] Reached max click attempts (%d) for %s", max_attempts, selector)
        return self._finish(RevealState.MAX_ATTEMPTS_REACHED, clicks)
