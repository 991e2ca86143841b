import asyncio
import functools
from typing import Any, Callable, TypeVar

from hexcore_cli.session import DOWN_KEYS, UP_KEYS

T = TypeVar("T")

# seconds an error stays up when nobody acknowledges it
ERROR_PAUSE = 5.0

BACK_FOOTER = "Press any key to return..."

Column = tuple[str, int]


async def call_api(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking client call in the default executor so the UI keeps drawing."""
    return await asyncio.get_event_loop().run_in_executor(None, functools.partial(func, *args))


async def report_error(surface: Any, message: str) -> None:
    surface.show_error(message)
    await surface.wait_for_key(timeout=ERROR_PAUSE)


async def choose(
    surface: Any,
    title: str,
    columns: list[Column],
    rows: list[list[str]],
    footer: str,
) -> int | None:
    """Let the operator move a cursor over rows; Enter returns the index, any other key None."""
    index = 0
    while True:
        surface.show_table(title, columns, rows, footer=footer, highlight=index)
        key = await surface.wait_for_key()
        if key in UP_KEYS:
            index = max(0, index - 1)
        elif key in DOWN_KEYS:
            index = min(len(rows) - 1, index + 1)
        elif key == "enter":
            return index
        else:
            return None
