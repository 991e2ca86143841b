"""hexcore-cli - manage Hydra heads, wallet accounts and nodes on a Hexcore server."""

import functools
import logging
import sys
from typing import Any, Callable

import click
from rich.console import Console
from rich.table import Table

from hexcore_cli import __version__
from hexcore_cli.config import ConsoleConfig, configure_logging
from hexcore_cli.formatting import format_ada, format_id, format_status, format_time
from hexcore_cli.models import Head
from hexcore_cli.services.api import ApiClient, ApiError
from hexcore_cli.validators import normalize_mnemonic, validate_bip39_mnemonic
from hexcore_cli.views.status import status_text

logger = logging.getLogger(__name__)

console = Console()


def fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def server_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """--url plus optional credentials; either credential triggers a login."""

    @click.option("--url", required=True, envvar="HEXCORE_URL", help="Hexcore API base URL")
    @click.option("-u", "--username", envvar="HEXCORE_USERNAME", default=None, help="Login username")
    @click.option("-p", "--password", envvar="HEXCORE_PASSWORD", default=None, help="Login password")
    @functools.wraps(func)
    def wrapper(*args: Any, url: str, username: str | None, password: str | None, **kwargs: Any) -> Any:
        config = ConsoleConfig(
            url=url,
            username=username,
            password=password,
            blockfrost_api_key=kwargs.pop("blockfrost_api_key", None),
        )
        return func(*args, config=config, **kwargs)

    return wrapper


def connect(config: ConsoleConfig) -> ApiClient:
    api = ApiClient(config)
    if config.has_credentials:
        api.login()
    return api


def handle_api_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ApiError as exc:
            logger.debug("Command failed: %s", exc)
            fail(exc.message)

    return wrapper


@click.group()
@click.version_option(__version__, prog_name="hexcore-cli")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write logs to this file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_file: str | None) -> None:
    """hexcore-cli - Hydra Node Manager."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["log_file"] = log_file
    configure_logging(verbose=verbose, log_file=log_file)


@cli.command()
@click.option("-bf", "--blockfrost-api-key", envvar="BLOCKFROST_API_KEY", default=None, help="Blockfrost project id")
@server_options
@click.pass_context
@handle_api_errors
def start(ctx: click.Context, config: ConsoleConfig) -> None:
    """Open the interactive dashboard."""
    from hexcore_cli.app import run

    api = connect(config)
    configure_logging(verbose=ctx.obj["verbose"], log_file=ctx.obj["log_file"], tui=True)
    code = run(api, config)
    if code:
        sys.exit(code)


# heads


def _heads_table(heads: list[Head]) -> Table:
    table = Table(title="Heads")
    table.add_column("HeadID")
    table.add_column("Description")
    table.add_column("Nodes", justify="right")
    table.add_column("Status")
    table.add_column("Created Time")
    for head in heads:
        table.add_row(head.id, head.description or "-", str(head.nodes), format_status(head.status), format_time(head.created_at))
    return table


@cli.group()
def head() -> None:
    """Create, list and stop Hydra heads."""


@head.command("create")
@click.option("--accounts", required=True, help="Comma separated account ids, e.g. 1,2")
@server_options
@handle_api_errors
def head_create(accounts: str, config: ConsoleConfig) -> None:
    """Create a new head."""
    account_ids = [a.strip() for a in accounts.split(",") if a.strip()]
    if not account_ids:
        fail("At least one account id is required")
    api = connect(config)
    created = api.create_head(account_ids)
    console.print(f"[green]✓[/] Head created: {created.id}")


@head.command("list")
@server_options
@handle_api_errors
def head_list(config: ConsoleConfig) -> None:
    """List heads."""
    heads = connect(config).get_heads()
    if not heads:
        console.print("No heads found.")
        return
    console.print(_heads_table(heads))


head.add_command(head_list, "ls")


@head.command("stop")
@click.argument("head_id")
@click.option("--force", is_flag=True, help="Do not ask for confirmation")
@server_options
@handle_api_errors
def head_stop(head_id: str, force: bool, config: ConsoleConfig) -> None:
    """Stop a running head."""
    if not force and not click.confirm(f"Stop head {head_id}?", default=False):
        console.print("Aborted.")
        return
    connect(config).stop_head(head_id)
    console.print(f"[green]✓[/] Head '{head_id}' stopped")


@head.command("info")
@click.argument("head_id")
@server_options
@handle_api_errors
def head_info(head_id: str, config: ConsoleConfig) -> None:
    """Show a head and its hydra nodes."""
    info = connect(config).get_head_info(head_id)
    console.print(_heads_table([info]))
    if not info.hydra_nodes:
        return
    nodes = Table(title="Hydra Nodes")
    nodes.add_column("Node ID")
    nodes.add_column("Port", justify="right")
    nodes.add_column("Status")
    nodes.add_column("Account")
    for node in info.hydra_nodes:
        address = node.cardano_account.base_address if node.cardano_account else "-"
        nodes.add_row(node.id, str(node.port or "-"), format_status(node.status), format_id(address, 8, 8))
    console.print(nodes)


# accounts


@cli.group()
def account() -> None:
    """Manage wallet accounts."""


@account.command("add")
@click.option("--mnemonic", required=True, help="BIP39 mnemonic phrase, quoted")
@server_options
@handle_api_errors
def account_add(mnemonic: str, config: ConsoleConfig) -> None:
    """Register a wallet account from its mnemonic."""
    if not validate_bip39_mnemonic(mnemonic):
        fail("Invalid mnemonic phrase")
    created = connect(config).add_account(normalize_mnemonic(mnemonic))
    console.print(f"[green]✓[/] Account added: {created.id}")
    if created.base_address:
        console.print(f"  Base address: {created.base_address}")


@account.command("list")
@server_options
@handle_api_errors
def account_list(config: ConsoleConfig) -> None:
    """List wallet accounts."""
    accounts = connect(config).get_accounts()
    if not accounts:
        console.print("No accounts found.")
        return
    table = Table(title="Accounts")
    table.add_column("Account ID")
    table.add_column("Base Address")
    table.add_column("Pointer Address")
    table.add_column("Ada", justify="right")
    table.add_column("Created")
    for acct in accounts:
        table.add_row(
            acct.id,
            format_id(acct.base_address, 8, 8),
            format_id(acct.pointer_address, 8, 8),
            format_ada(acct.lovelace),
            format_time(acct.created_at),
        )
    console.print(table)


account.add_command(account_list, "ls")


# nodes


@cli.group()
def node() -> None:
    """Inspect hydra nodes."""


@node.command("list")
@server_options
@handle_api_errors
def node_list(config: ConsoleConfig) -> None:
    """List hydra nodes."""
    nodes = connect(config).get_nodes()
    if not nodes:
        console.print("No nodes found.")
        return
    table = Table(title="Nodes")
    table.add_column("Node ID")
    table.add_column("Description")
    table.add_column("Port", justify="right")
    table.add_column("Account")
    table.add_column("Status")
    for n in nodes:
        address = n.cardano_account.base_address if n.cardano_account else "-"
        table.add_row(n.id, n.description, str(n.port or "-"), format_id(address, 8, 8), format_status(n.status))
    console.print(table)


node.add_command(node_list, "ls")


@cli.command()
@server_options
@handle_api_errors
def status(config: ConsoleConfig) -> None:
    """Show aggregated system status."""
    current = connect(config).get_system_status()
    console.print("📊 System Status", style="bold")
    console.print(status_text(current))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
