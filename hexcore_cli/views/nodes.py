from typing import Any

from hexcore_cli.formatting import truncate
from hexcore_cli.services.api import ApiClient, ApiError
from hexcore_cli.views.common import BACK_FOOTER, Column, call_api, report_error

NODE_COLUMNS: list[Column] = [
    ("Node ID", 12),
    ("Description", 36),
    ("Port", 8),
    ("Account", 44),
    ("Status", 10),
]


async def nodes_list(surface: Any, api: ApiClient) -> None:
    try:
        with surface.loading("Fetching nodes..."):
            nodes = await call_api(api.get_nodes)
        rows = [
            [
                n.id,
                truncate(n.description, 36),
                str(n.port) if n.port is not None else "-",
                n.cardano_account.base_address if n.cardano_account else "-",
                n.status,
            ]
            for n in nodes
        ]
        surface.show_table("Nodes List", NODE_COLUMNS, rows, footer=BACK_FOOTER)
        await surface.wait_for_key()
    except ApiError as exc:
        await report_error(surface, exc.message)
