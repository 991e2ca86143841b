import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from hexcore_cli.models import SystemStatus

MIN_SELECTION = 1
MAX_SELECTION = 6

QUIT_KEYS = frozenset({"escape", "q", "ctrl+c"})
UP_KEYS = frozenset({"up", "k"})
DOWN_KEYS = frozenset({"down", "j"})
SELECT_KEYS = frozenset({"enter", "space"})
DIGIT_KEYS = frozenset(str(n) for n in range(MIN_SELECTION, MAX_SELECTION + 1))


class View(str, Enum):
    MENU = "menu"
    HEADS = "heads"
    ACCOUNTS = "accounts"
    NODES = "nodes"
    STATUS = "status"


# selection -> (label, view the controller reports while the action runs)
MENU_ITEMS: dict[int, tuple[str, View]] = {
    1: ("Create New Head", View.HEADS),
    2: ("Heads Management", View.HEADS),
    3: ("Stop Head", View.HEADS),
    4: ("Wallet Accounts", View.ACCOUNTS),
    5: ("Nodes List", View.NODES),
    6: ("Health Status", View.STATUS),
}


@dataclass(frozen=True)
class KeyEvent:
    key: str


class TimerTick(str, Enum):
    FULL_REFRESH = "full_refresh"
    STATUS_POLL = "status_poll"


def clamp_selection(selection: int) -> int:
    return max(MIN_SELECTION, min(MAX_SELECTION, selection))


@dataclass
class Session:
    view: View = View.MENU
    selection: int = MIN_SELECTION
    last_snapshot: SystemStatus | None = None
    last_update: datetime | None = None
    suppress_next: bool = False
    poll_in_flight: bool = False
    full_refresh_timer: Any = None
    status_poll_timer: Any = None

    @property
    def in_menu(self) -> bool:
        return self.view is View.MENU

    @property
    def menu_rendered(self) -> bool:
        return self.last_snapshot is not None

    def consume_suppression(self) -> bool:
        """Clear the one-shot flag; True when the current event must be swallowed."""
        if self.suppress_next:
            self.suppress_next = False
            return True
        return False


class InputChannel:
    """Key events owned by whichever view is active."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue()

    def put(self, key: str) -> None:
        self._queue.put_nowait(key)

    async def get(self, timeout: float | None = None) -> str | None:
        if timeout is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def drain(self) -> list[str]:
        keys: list[str] = []
        while not self._queue.empty():
            keys.append(self._queue.get_nowait())
        return keys
