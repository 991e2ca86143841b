import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Awaitable, Iterator

from rich.table import Table
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Header, Static

from hexcore_cli.config import ConsoleConfig
from hexcore_cli.controller import DashboardController
from hexcore_cli.models import SystemStatus
from hexcore_cli.services.api import ApiClient
from hexcore_cli.session import QUIT_KEYS, InputChannel, KeyEvent
from hexcore_cli.views import ViewAction
from hexcore_cli.views.common import ERROR_PAUSE, Column
from hexcore_cli.views.menu import TITLE, menu_text, overview_text, status_bar_text

logger = logging.getLogger(__name__)


class StatusBar(Static):
    def __init__(self, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self.status: SystemStatus | None = None
        self.last_update: datetime | None = None

    def on_mount(self) -> None:
        # keeps "Last update: Ns ago" moving between polls
        self.set_interval(1.0, self.refresh)

    def set_status(self, status: SystemStatus, last_update: datetime) -> None:
        self.status = status
        self.last_update = last_update
        self.set_class(status.healthy, "healthy")
        self.set_class(not status.healthy, "unhealthy")
        self.refresh()

    def render(self) -> str:
        return status_bar_text(self.status, self.last_update, datetime.now(timezone.utc))


class LoadingBar(Static):
    def __init__(self, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self.depth = 0

    def attach(self, message: str) -> None:
        self.depth += 1
        self.update(f"⟳ {message}")
        self.display = True

    def detach(self) -> None:
        self.depth = max(0, self.depth - 1)
        if self.depth == 0:
            self.display = False


class HexcoreConsoleApp(App):
    BINDINGS = [
        Binding("escape,q,ctrl+c", "quit_console", "Quit", priority=True),
    ]

    AUTO_FOCUS = None

    CSS = """
    Screen {
        layout: vertical;
    }
    #body {
        height: 1fr;
    }
    #menu-screen {
        layout: vertical;
        height: 1fr;
    }
    #overview {
        height: 4;
        padding: 1 1 0 1;
        border-bottom: solid $panel;
    }
    #menu {
        height: auto;
        padding: 1 2;
    }
    #view-screen {
        display: none;
        height: 1fr;
        overflow-y: auto;
        padding: 0 1;
    }
    #view-title {
        text-style: bold;
        padding: 1 0;
    }
    #view-body {
        height: auto;
    }
    #view-body.error {
        color: $error;
    }
    #view-body.message {
        color: $warning;
    }
    #footer-bar {
        display: none;
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    #loading-bar {
        display: none;
        height: 1;
        color: $warning;
        padding: 0 1;
    }
    StatusBar {
        height: 1;
        padding: 0 1;
    }
    StatusBar.healthy {
        background: $success;
        color: $text;
    }
    StatusBar.unhealthy {
        background: $error;
        color: $text;
    }
    """

    def __init__(
        self,
        api: ApiClient,
        config: ConsoleConfig,
        views: dict[int, ViewAction] | None = None,
    ) -> None:
        super().__init__()
        self.api = api
        self.config = config
        self.title = TITLE
        self.input = InputChannel()
        self.controller = DashboardController(
            self,
            api,
            spawn=self._spawn,
            views=views,
            full_refresh_interval=config.full_refresh_interval,
            status_poll_interval=config.status_poll_interval,
        )

    def compose(self) -> ComposeResult:
        self.overview = Static("⭐ OVERVIEW\n... loading", id="overview")
        self.menu = Static(menu_text(self.controller.session.selection), id="menu")
        self.menu_screen = Container(self.overview, self.menu, id="menu-screen")
        self.view_title = Static("", id="view-title")
        self.view_body = Static("", id="view-body")
        self.view_screen = Container(self.view_title, self.view_body, id="view-screen")
        self.loading_bar = LoadingBar(id="loading-bar")
        self.footer_bar = Static("", id="footer-bar")
        self.status_bar = StatusBar(id="status-bar")

        yield Header(show_clock=True)
        with Container(id="body"):
            yield self.menu_screen
            yield self.view_screen
        yield self.loading_bar
        yield self.footer_bar
        yield self.status_bar

    async def on_mount(self) -> None:
        logger.info("Dashboard started against %s", self.config.base_url)
        self._spawn(self.controller.start())

    def _spawn(self, work: Awaitable[None]) -> Any:
        return self.run_worker(work, group="dashboard")

    def on_key(self, event: events.Key) -> None:
        if event.key in QUIT_KEYS:
            return
        event.stop()
        self.controller.handle(KeyEvent(event.key))

    def action_quit_console(self) -> None:
        self.controller.handle(KeyEvent("q"))

    # menu regions

    def render_menu(self, status: SystemStatus, selection: int, last_update: datetime) -> None:
        self.show_menu_screen(status, selection, last_update)

    def show_menu_screen(
        self, status: SystemStatus | None, selection: int, last_update: datetime | None
    ) -> None:
        self.view_screen.display = False
        self.footer_bar.display = False
        self.menu_screen.display = True
        self.menu.update(menu_text(selection))
        if status is not None and last_update is not None:
            self.update_status(status, last_update)

    def update_status(self, status: SystemStatus, last_update: datetime) -> None:
        self.overview.update(overview_text(status))
        self.status_bar.set_status(status, last_update)

    def update_selection(self, selection: int) -> None:
        self.menu.update(menu_text(selection))

    # view regions

    def clear(self) -> None:
        self.menu_screen.display = False
        self.view_screen.display = True
        self.view_title.update("")
        self.view_body.update("")
        self.view_body.set_classes([])
        self.footer_bar.display = False

    def set_footer(self, text: str) -> None:
        self.footer_bar.update(Text(text))
        self.footer_bar.display = True

    def show_table(
        self,
        title: str,
        columns: list[Column],
        rows: list[list[str]],
        footer: str = "Press any key to return...",
        highlight: int | None = None,
    ) -> None:
        table = Table(box=None, show_edge=False, header_style="bold", pad_edge=False)
        for label, width in columns:
            table.add_column(label, min_width=width, no_wrap=True)
        for index, row in enumerate(rows):
            style = "reverse" if index == highlight else None
            table.add_row(*(Text(str(cell)) for cell in row), style=style)
        self.view_title.update(Text(title))
        self.view_body.set_classes([])
        self.view_body.update(table if rows else Text("(none)"))
        self.set_footer(footer)

    def show_text(self, title: str, body: str, footer: str = "Press any key to return...") -> None:
        self.view_title.update(Text(title))
        self.view_body.set_classes([])
        self.view_body.update(body)
        self.set_footer(footer)

    def show_message(self, message: str) -> None:
        self.view_body.set_classes(["message"])
        self.view_body.update(Text(message))
        self.set_footer("Press any key to continue...")

    def show_error(self, message: str) -> None:
        self.notify(message, title="Error", severity="error", timeout=ERROR_PAUSE, markup=False)
        if self.view_screen.display:
            self.view_body.set_classes(["error"])
            self.view_body.update(Text(f"✗ {message}"))
            self.set_footer("Press any key to continue...")

    @contextmanager
    def loading(self, message: str) -> Iterator[None]:
        self.loading_bar.attach(message)
        try:
            yield
        finally:
            self.loading_bar.detach()

    async def wait_for_key(self, timeout: float | None = None) -> str | None:
        return await self.input.get(timeout)


def run(api: ApiClient, config: ConsoleConfig) -> int:
    app = HexcoreConsoleApp(api, config)
    app.run()
    return app.return_code or 0
