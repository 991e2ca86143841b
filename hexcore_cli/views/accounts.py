import asyncio
import logging
from typing import Any

from hexcore_cli.formatting import format_ada, format_id, format_time
from hexcore_cli.models import Account
from hexcore_cli.services.api import ApiClient, ApiError
from hexcore_cli.services.blockfrost import BlockfrostClient
from hexcore_cli.views.common import Column, call_api, report_error

logger = logging.getLogger(__name__)

ACCOUNT_COLUMNS: list[Column] = [
    ("Account ID", 12),
    ("Base Address", 24),
    ("Pointer Address", 64),
    ("Ada", 16),
    ("Created", 22),
]
FOOTER = "Press 'u' to fetch UTxO | Any other key to return..."
COMPLETION_PAUSE = 1.0


def _sort_key(account: Account) -> tuple[int, str]:
    try:
        return (int(account.id), account.id)
    except ValueError:
        return (0, account.id)


def account_rows(accounts: list[Account]) -> list[list[str]]:
    ordered = sorted(accounts, key=_sort_key, reverse=True)
    return [
        [
            a.id,
            format_id(a.base_address, 8, 8),
            a.pointer_address,
            format_ada(a.lovelace),
            format_time(a.created_at),
        ]
        for a in ordered
    ]


async def fetch_balances(surface: Any, blockfrost: BlockfrostClient, accounts: list[Account]) -> None:
    """Fill in each account's lovelace, redrawing the table and progress footer as results land."""

    async def fetch(account: Account) -> tuple[Account, int | None, ApiError | None]:
        address = account.pointer_address or account.base_address
        try:
            return account, await call_api(blockfrost.fetch_lovelace, address), None
        except ApiError as exc:
            return account, None, exc

    total = len(accounts)
    surface.set_footer("[0%] Fetching UTxO from blockchain...")
    for done, pending in enumerate(asyncio.as_completed([fetch(a) for a in accounts]), start=1):
        account, lovelace, error = await pending
        if error is None:
            account.lovelace = lovelace
            message = f"Fetched UTxO for account {account.id} ({format_ada(lovelace)} ADA)"
        else:
            logger.warning("UTxO fetch for account %s failed: %s", account.id, error)
            message = f"Failed to fetch UTxO for account {account.id}: {error.message}"
        percent = done * 100 // total
        surface.show_table("Accounts", ACCOUNT_COLUMNS, account_rows(accounts), footer=f"[{percent}%] {message}")
    await asyncio.sleep(COMPLETION_PAUSE)


async def accounts_flow(surface: Any, api: ApiClient) -> None:
    try:
        with surface.loading("Fetching accounts..."):
            accounts = await call_api(api.get_accounts)
        while True:
            surface.show_table("Accounts", ACCOUNT_COLUMNS, account_rows(accounts), footer=FOOTER)
            key = await surface.wait_for_key()
            if key != "u":
                return
            if not accounts:
                continue
            blockfrost = BlockfrostClient(api.config.blockfrost_api_key or "")
            await fetch_balances(surface, blockfrost, accounts)
    except ApiError as exc:
        await report_error(surface, exc.message)
