"""Menu/view state machine behind ``hexcore-cli start``.

The controller never draws anything itself. It drives a display surface
(``HexcoreConsoleApp`` in production, a recording fake in the tests) and is fed
two kinds of messages: ``KeyEvent`` from the terminal and ``TimerTick`` from
the two refresh timers. ``handle`` is synchronous; anything that has to wait
on the network is handed to ``spawn`` and runs as its own task on the event
loop.

Input ownership: while ``session.view`` is ``View.MENU`` keys go through the
menu dispatch table, otherwise every key except the quit keys is queued on
the surface's ``InputChannel`` for the active view to read.

Every result that arrives after an await is applied only if the session is
still in the menu. Nothing is cancelled; stale results are dropped.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from hexcore_cli.config import FULL_REFRESH_INTERVAL, STATUS_POLL_INTERVAL
from hexcore_cli.models import SystemStatus
from hexcore_cli.services.api import ApiClient, ApiError
from hexcore_cli.session import (
    DIGIT_KEYS,
    DOWN_KEYS,
    MENU_ITEMS,
    QUIT_KEYS,
    SELECT_KEYS,
    UP_KEYS,
    KeyEvent,
    Session,
    TimerTick,
    View,
    clamp_selection,
)
from hexcore_cli.views import VIEW_ACTIONS, ViewAction
from hexcore_cli.views.common import call_api

logger = logging.getLogger(__name__)

EXIT_MESSAGE = "✓ CLI exited (processes continue)"
RETRY_DELAY = 2.0


class DashboardController:
    def __init__(
        self,
        surface: Any,
        api: ApiClient,
        *,
        spawn: Callable[[Awaitable[None]], Any],
        views: dict[int, ViewAction] | None = None,
        full_refresh_interval: float = FULL_REFRESH_INTERVAL,
        status_poll_interval: float = STATUS_POLL_INTERVAL,
        retry_delay: float = RETRY_DELAY,
    ) -> None:
        self.surface = surface
        self.api = api
        self.session = Session()
        self.views = views if views is not None else VIEW_ACTIONS
        self.full_refresh_interval = full_refresh_interval
        self.status_poll_interval = status_poll_interval
        self.retry_delay = retry_delay
        self._spawn = spawn
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        await self.render_menu()
        if not self._closed:
            self.start_timers()

    def start_timers(self) -> None:
        self.session.full_refresh_timer = self.surface.set_interval(
            self.full_refresh_interval, lambda: self.handle(TimerTick.FULL_REFRESH)
        )
        self.session.status_poll_timer = self.surface.set_interval(
            self.status_poll_interval, lambda: self.handle(TimerTick.STATUS_POLL)
        )

    def shutdown(self, return_code: int = 0, message: str | None = EXIT_MESSAGE) -> None:
        if self._closed:
            return
        self._closed = True
        session = self.session
        for timer in (session.full_refresh_timer, session.status_poll_timer):
            if timer is not None:
                timer.stop()
        session.full_refresh_timer = None
        session.status_poll_timer = None
        logger.info("Dashboard closing (return code %d)", return_code)
        self.surface.exit(return_code=return_code, message=message)

    def handle(self, message: KeyEvent | TimerTick) -> None:
        if self._closed:
            return
        if isinstance(message, KeyEvent):
            self._handle_key(message.key)
        elif message is TimerTick.FULL_REFRESH:
            self._on_full_refresh()
        elif message is TimerTick.STATUS_POLL:
            self._on_status_poll()

    # keyboard

    def _handle_key(self, key: str) -> None:
        if key in QUIT_KEYS:
            self.shutdown()
            return
        if not self.session.in_menu:
            self.surface.input.put(key)
            return
        action = self._menu_action(key)
        if action is None:
            return
        if self.session.consume_suppression():
            logger.debug("Swallowed %r after returning from a view", key)
            return
        action()

    def _menu_action(self, key: str) -> Callable[[], None] | None:
        if key in UP_KEYS:
            return lambda: self._navigate(-1)
        if key in DOWN_KEYS:
            return lambda: self._navigate(1)
        if key in SELECT_KEYS:
            return lambda: self.select(self.session.selection)
        if key in DIGIT_KEYS:
            return lambda: self._select_digit(int(key))
        return None

    def _navigate(self, delta: int) -> None:
        self.session.selection = clamp_selection(self.session.selection + delta)
        self.surface.update_selection(self.session.selection)

    def _select_digit(self, selection: int) -> None:
        self.session.selection = clamp_selection(selection)
        self.surface.update_selection(self.session.selection)
        self.select(self.session.selection)

    # view transitions

    def select(self, selection: int) -> bool:
        """Enter the view for selection; refused unless the menu is idle."""
        session = self.session
        if not session.in_menu or self._closed:
            return False
        action = self.views.get(selection)
        if action is None:
            return False
        _, view = MENU_ITEMS[selection]
        session.view = view
        logger.debug("Menu selection %d -> %s", selection, view.value)
        self.surface.clear()
        self._spawn(self._run_view(selection, action))
        return True

    async def _run_view(self, selection: int, action: ViewAction) -> None:
        try:
            await action(self.surface, self.api)
        except Exception:
            logger.exception("View for menu item %d raised", selection)
            self.surface.show_error("Unexpected error, see the log for details")
        finally:
            self._return_to_menu()
        await self.render_menu()

    def _return_to_menu(self) -> None:
        session = self.session
        session.suppress_next = True
        session.view = View.MENU
        # hide the dismissed view before the refetch
        self.surface.show_menu_screen(session.last_snapshot, session.selection, session.last_update)
        for key in self.surface.input.drain():
            self._handle_key(key)

    # rendering

    async def render_menu(self, quiet: bool = False) -> None:
        """Fetch the status and redraw the whole menu.

        The loading indicator wraps exactly the fetch. The very first failure ends the
        session; later ones show an overlay and retry after ``retry_delay`` unless quiet.
        """
        while self.session.in_menu and not self._closed:
            try:
                with self.surface.loading("Fetching system status..."):
                    status = await call_api(self.api.get_system_status)
            except ApiError as exc:
                if quiet:
                    logger.debug("Background refresh failed: %s", exc)
                    return
                if not self.session.menu_rendered:
                    logger.error("Initial status fetch failed: %s", exc)
                    self.surface.show_error(exc.message)
                    self.shutdown(return_code=1, message=f"Error: {exc.message}")
                    return
                logger.warning("Status fetch failed, retrying in %.1fs: %s", self.retry_delay, exc)
                self.surface.show_error(exc.message)
                await asyncio.sleep(self.retry_delay)
                continue
            if not self.session.in_menu or self._closed:
                logger.debug("Dropping status that arrived after leaving the menu")
                return
            self._apply_full(status)
            return

    def _apply_full(self, status: SystemStatus) -> None:
        session = self.session
        session.last_update = datetime.now(timezone.utc)
        session.last_snapshot = status
        self.surface.render_menu(status, session.selection, session.last_update)

    # timers

    def _on_full_refresh(self) -> None:
        if not self.session.in_menu:
            return
        self._spawn(self.render_menu(quiet=True))

    def _on_status_poll(self) -> None:
        session = self.session
        if not session.in_menu or session.poll_in_flight or not session.menu_rendered:
            return
        session.poll_in_flight = True
        self._spawn(self._poll_status())

    async def _poll_status(self) -> None:
        try:
            status = await call_api(self.api.get_system_status)
        except ApiError as exc:
            logger.debug("Status poll failed: %s", exc)
            return
        finally:
            self.session.poll_in_flight = False
        self.apply_polled_status(status)

    def apply_polled_status(self, status: SystemStatus) -> bool:
        """Patch the status regions if the snapshot changed; True when something was redrawn."""
        session = self.session
        if not session.in_menu or self._closed:
            logger.debug("Dropping poll result that arrived after leaving the menu")
            return False
        if status == session.last_snapshot:
            return False
        session.last_update = datetime.now(timezone.utc)
        session.last_snapshot = status
        self.surface.update_status(status, session.last_update)
        return True
