"""Grab window timer for the seat-rush game engine.

A grab window opens when seats are free after a station transition.
For GRAB_WINDOW_MS the player may tap one open seat; when the window
elapses the competition is resolved exactly once and the results are
handed to the owner.

The timer is cooperative: it never sleeps or spawns threads. The owner
calls update() once per frame and the timer compares the clock against
its deadline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from core.constants import GRAB_WINDOW_MS
from core.game_state import StandingCompetitor
from .clock import Clock, monotonic_ms
from .grab_competition import GrabResult, resolve_many

logger = logging.getLogger(__name__)


@dataclass
class GrabSession:
    """State of the current grab window.

    Attributes:
        is_active: Whether the window is open.
        open_seat_ids: Seats up for grabs, in resolution order.
        window_duration_ms: Length of the window.
        elapsed_ms: Time since the window opened, as of the last update.
        player_tapped_seat_id: Seat the player tapped, if any.
        player_tap_time_ms: Time from window start to the tap, if any.
        started_at_ms: Clock reading when the window opened.
    """

    is_active: bool = False
    open_seat_ids: tuple[int, ...] = field(default_factory=tuple)
    window_duration_ms: float = GRAB_WINDOW_MS
    elapsed_ms: float = 0.0
    player_tapped_seat_id: Optional[int] = None
    player_tap_time_ms: Optional[float] = None
    started_at_ms: float = 0.0

    @property
    def remaining_ms(self) -> float:
        if not self.is_active:
            return 0.0
        return max(0.0, self.window_duration_ms - self.elapsed_ms)

    @property
    def has_tapped(self) -> bool:
        return self.player_tapped_seat_id is not None


@dataclass(frozen=True)
class GrabContext:
    """Player position and competitors at the moment a window resolves."""

    player_slot: int
    player_watched_seat_id: Optional[int]
    competitors: tuple[StandingCompetitor, ...]


class GrabTimer:
    """Owns the grab window countdown and the player's single tap.

    Args:
        context_provider: Called at resolution time for the player's
            position and the competitors still standing.
        on_complete: Receives the grab results once per window.
        clock: Millisecond clock.
        window_ms: Window length.
        on_tick: Receives the remaining time on every update while open.
    """

    def __init__(
        self,
        context_provider: Callable[[], GrabContext],
        on_complete: Callable[[list[GrabResult]], None],
        clock: Clock = monotonic_ms,
        window_ms: float = GRAB_WINDOW_MS,
        on_tick: Optional[Callable[[float], None]] = None,
    ):
        self._context_provider = context_provider
        self._on_complete = on_complete
        self._clock = clock
        self._window_ms = window_ms
        self._on_tick = on_tick
        self._session = GrabSession(window_duration_ms=window_ms)

    @property
    def session(self) -> GrabSession:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session.is_active

    @property
    def remaining_ms(self) -> float:
        return self._session.remaining_ms

    def start(self, open_seat_ids: Sequence[int], now: Optional[float] = None) -> bool:
        """Open a grab window over the given seats.

        Args:
            open_seat_ids: Seats up for grabs.
            now: Opening time (default: read the clock).

        Returns:
            True if a window was opened. Nothing happens for an empty
            seat list or while another window is open.
        """
        if not open_seat_ids:
            return False
        if self._session.is_active:
            logger.warning("Grab window already open; ignoring start")
            return False

        self._session = GrabSession(
            is_active=True,
            open_seat_ids=tuple(open_seat_ids),
            window_duration_ms=self._window_ms,
            started_at_ms=self._clock() if now is None else now,
        )
        logger.debug("Grab window opened for seats %s", list(open_seat_ids))
        return True

    def tap(self, seat_id: int) -> bool:
        """Record the player's tap on an open seat.

        Only the first tap of a window counts. Taps on seats that are not
        open, taps with no window, and taps after the deadline are ignored.

        Returns:
            True if the tap was recorded.
        """
        session = self._session
        if not session.is_active:
            return False

        now = self._clock()
        if now - session.started_at_ms >= session.window_duration_ms:
            self.update(now)
            return False

        if seat_id not in session.open_seat_ids or session.has_tapped:
            return False

        session.player_tapped_seat_id = seat_id
        session.player_tap_time_ms = now - session.started_at_ms
        session.elapsed_ms = session.player_tap_time_ms
        logger.debug("Player tapped seat %d after %.0f ms", seat_id, session.player_tap_time_ms)
        return True

    def update(self, now: Optional[float] = None) -> Optional[list[GrabResult]]:
        """Advance the countdown; resolve the window once it has elapsed.

        Returns:
            The grab results if the window resolved on this call.
        """
        session = self._session
        if not session.is_active:
            return None

        if now is None:
            now = self._clock()
        session.elapsed_ms = min(now - session.started_at_ms, session.window_duration_ms)

        if session.elapsed_ms >= session.window_duration_ms:
            return self._finish()

        if self._on_tick is not None:
            self._on_tick(session.remaining_ms)
        return None

    def cancel(self) -> None:
        """Close the window without resolving it. Safe to call repeatedly."""
        if self._session.is_active:
            logger.debug("Grab window cancelled")
        self._session.is_active = False

    def _finish(self) -> list[GrabResult]:
        session = self._session
        session.is_active = False

        context = self._context_provider()
        results = resolve_many(
            session.open_seat_ids,
            session.player_tap_time_ms,
            session.player_tapped_seat_id,
            context.player_slot,
            context.player_watched_seat_id,
            context.competitors,
        )
        logger.debug(
            "Grab window resolved: %s",
            [(r.seat_id, r.winner_id) for r in results],
        )
        self._on_complete(results)
        return results
