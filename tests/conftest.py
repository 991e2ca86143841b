import asyncio
import json
from contextlib import contextmanager
from typing import Any, Callable

import pytest
import requests

from hexcore_cli.config import ConsoleConfig
from hexcore_cli.controller import DashboardController
from hexcore_cli.models import STATUS_ERROR, STATUS_HEALTHY, SystemStatus
from hexcore_cli.session import InputChannel, KeyEvent

BASE_URL = "http://hexcore.test"

HEALTHY = SystemStatus(running_nodes=2, running_heads=1, total_heads=3, status=STATUS_HEALTHY)
DEGRADED = SystemStatus(running_nodes=0, running_heads=0, total_heads=3, status=STATUS_ERROR)


def make_response(status: int = 200, body: Any = None, url: str = BASE_URL) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body if body is not None else {}).encode()
    response.headers["Content-Type"] = "application/json"
    response.url = url
    return response


class FakeTimer:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.stopped = False

    def fire(self) -> None:
        self.callback()

    def stop(self) -> None:
        self.stopped = True


class FakeSurface:
    """Records every drawing call the controller and views make."""

    def __init__(self) -> None:
        self.input = InputChannel()
        self.calls: list[tuple[str, tuple]] = []
        self.loading_events: list[tuple[str, str]] = []
        self.timers: list[FakeTimer] = []
        self.exit_args: tuple[int, str | None] | None = None

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def called(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]

    def render_menu(self, status, selection, last_update):
        self._record("render_menu", status, selection, last_update)

    def show_menu_screen(self, status, selection, last_update):
        self._record("show_menu_screen", status, selection, last_update)

    def update_status(self, status, last_update):
        self._record("update_status", status, last_update)

    def update_selection(self, selection):
        self._record("update_selection", selection)

    @contextmanager
    def loading(self, message):
        self.loading_events.append(("attach", message))
        try:
            yield
        finally:
            self.loading_events.append(("detach", message))

    def show_error(self, message):
        self._record("show_error", message)

    def show_message(self, message):
        self._record("show_message", message)

    def clear(self):
        self._record("clear")

    def show_table(self, title, columns, rows, footer="", highlight=None):
        self._record("show_table", title, rows, footer, highlight)

    def show_text(self, title, body, footer=""):
        self._record("show_text", title, body, footer)

    def set_footer(self, text):
        self._record("set_footer", text)

    async def wait_for_key(self, timeout=None):
        return await self.input.get(timeout)

    def set_interval(self, interval, callback):
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    def exit(self, return_code=0, message=None):
        self.exit_args = (return_code, message)


class FakeApi:
    """Serves queued system statuses; an exception in the queue is raised instead."""

    def __init__(self, *statuses: Any) -> None:
        self.config = ConsoleConfig(url=BASE_URL)
        self.statuses = list(statuses) or [HEALTHY]
        self.status_calls = 0
        self.on_status: Callable[[], None] | None = None

    def get_system_status(self) -> SystemStatus:
        self.status_calls += 1
        if self.on_status is not None:
            self.on_status()
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, Exception):
            raise item
        return item


class Harness:
    """A controller wired to a FakeSurface whose spawned work is tracked as tasks."""

    def __init__(self, api: FakeApi, views: dict | None = None, retry_delay: float = 0.0) -> None:
        self.surface = FakeSurface()
        self.api = api
        self.tasks: list[asyncio.Task] = []
        self.controller = DashboardController(
            self.surface,
            api,
            spawn=self.spawn,
            views=views,
            retry_delay=retry_delay,
        )

    @property
    def session(self):
        return self.controller.session

    def spawn(self, work):
        task = asyncio.ensure_future(work)
        self.tasks.append(task)
        return task

    def press(self, *keys: str) -> None:
        for key in keys:
            self.controller.handle(KeyEvent(key))

    async def settle(self, timeout: float = 2.0) -> None:
        """Wait until every spawned task, including ones spawned meanwhile, has finished."""
        while True:
            pending = [t for t in self.tasks if not t.done()]
            if not pending:
                break
            done, _ = await asyncio.wait(pending, timeout=timeout)
            assert done, "spawned work did not finish"
        for task in self.tasks:
            if task.exception() is not None:
                raise task.exception()

    async def until(self, predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            assert loop.time() < deadline, "condition never became true"
            await asyncio.sleep(0.01)

    async def cancel(self) -> None:
        pending = [t for t in self.tasks if not t.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
async def make_harness():
    harnesses: list[Harness] = []

    def build(*statuses: Any, views: dict | None = None, retry_delay: float = 0.0) -> Harness:
        harness = Harness(FakeApi(*statuses), views=views, retry_delay=retry_delay)
        harnesses.append(harness)
        return harness

    yield build
    for harness in harnesses:
        await harness.cancel()
