import logging
from typing import Any

from rich.markup import escape

from hexcore_cli.formatting import format_id, format_time, truncate
from hexcore_cli.models import Account, Head
from hexcore_cli.services.api import ApiClient, ApiError
from hexcore_cli.views.common import BACK_FOOTER, Column, call_api, choose, report_error

logger = logging.getLogger(__name__)

HEAD_COLUMNS: list[Column] = [
    ("HeadID", 10),
    ("Description", 24),
    ("Nodes", 6),
    ("Status", 10),
    ("Created Time", 22),
]
ACCOUNT_COLUMNS: list[Column] = [
    ("Account ID", 12),
    ("Base Address", 24),
    ("Created", 22),
]
NODE_COLUMNS: list[Column] = [
    ("Node ID", 10),
    ("Port", 8),
    ("Status", 10),
    ("Account", 24),
]


def _head_row(head: Head) -> list[str]:
    return [head.id, truncate(head.description, 24) or "-", str(head.nodes), head.status, format_time(head.created_at)]


def _account_row(account: Account) -> list[str]:
    return [account.id, format_id(account.base_address, 8, 8), format_time(account.created_at)]


def head_detail_text(head: Head) -> str:
    lines = [
        f"Description: {escape(head.description) or '-'}",
        f"Status:      {head.status}",
        f"Nodes:       {head.nodes}",
        f"Created:     {format_time(head.created_at)}",
        "",
    ]
    if not head.hydra_nodes:
        lines.append("No hydra nodes attached.")
        return "\n".join(lines)
    header = " ".join(label.ljust(width) for label, width in NODE_COLUMNS)
    lines.append(header)
    lines.append(" ".join("─" * width for _, width in NODE_COLUMNS))
    for node in head.hydra_nodes:
        address = node.cardano_account.base_address if node.cardano_account else "-"
        cells = [node.id, str(node.port or "-"), node.status, format_id(address, 8, 8)]
        lines.append(" ".join(cell.ljust(width) for cell, (_, width) in zip(cells, NODE_COLUMNS)))
    return "\n".join(lines)


async def create_head_flow(surface: Any, api: ApiClient) -> None:
    try:
        with surface.loading("Fetching accounts..."):
            accounts = await call_api(api.get_accounts)
        if not accounts:
            await report_error(surface, "No accounts available. Go to [4] Wallet Accounts")
            return
        index = await choose(
            surface,
            "Create New Head: choose the funding account",
            ACCOUNT_COLUMNS,
            [_account_row(a) for a in accounts],
            footer="↑/↓ select | Enter: create head | any other key: cancel",
        )
        if index is None:
            return
        account = accounts[index]
        with surface.loading(f"Creating head from account {account.id}..."):
            head = await call_api(api.create_head, [account.id])
        logger.info("Created head %s from account %s", head.id, account.id)
        surface.show_message(f"✓ Head created: {head.id}")
        await surface.wait_for_key()
    except ApiError as exc:
        await report_error(surface, exc.message)


async def heads_list(surface: Any, api: ApiClient) -> None:
    try:
        with surface.loading("Fetching heads..."):
            heads = await call_api(api.get_heads)
        if not heads:
            surface.show_table("Heads List", HEAD_COLUMNS, [], footer=BACK_FOOTER)
            await surface.wait_for_key()
            return
        rows = [_head_row(h) for h in heads]
        while True:
            index = await choose(
                surface,
                "Heads List",
                HEAD_COLUMNS,
                rows,
                footer="↑/↓ select | Enter: details | any other key: back to menu",
            )
            if index is None:
                return
            head = heads[index]
            surface.show_text(f"Head {head.id}", head_detail_text(head), footer="Press any key to return to the list...")
            await surface.wait_for_key()
    except ApiError as exc:
        await report_error(surface, exc.message)


async def stop_head_flow(surface: Any, api: ApiClient) -> None:
    try:
        with surface.loading("Fetching heads..."):
            heads = await call_api(api.get_heads)
        if not heads:
            await report_error(surface, "No heads available")
            return
        index = await choose(
            surface,
            "Stop Head: choose the head to stop",
            HEAD_COLUMNS,
            [_head_row(h) for h in heads],
            footer="↑/↓ select | Enter: stop | any other key: cancel",
        )
        if index is None:
            return
        head = heads[index]
        surface.show_message(f"Stop head {head.id}? (y/n)")
        if await surface.wait_for_key() != "y":
            return
        with surface.loading(f"Stopping head {head.id}..."):
            await call_api(api.stop_head, head.id)
        logger.info("Stopped head %s", head.id)
        surface.show_message(f"✓ Head '{head.id}' stopped")
        await surface.wait_for_key()
    except ApiError as exc:
        await report_error(surface, exc.message)
