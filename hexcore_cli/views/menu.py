from datetime import datetime, timezone

from hexcore_cli.formatting import time_since_update
from hexcore_cli.models import SystemStatus
from hexcore_cli.session import MENU_ITEMS

TITLE = "hexcore-cli - Hydra Node Manager"


def overview_text(status: SystemStatus) -> str:
    return (
        "⭐ OVERVIEW\n"
        f"Running Nodes: {status.running_nodes} | "
        f"Running Heads: {status.running_heads} | "
        f"Total: {status.total_heads}"
    )


def menu_text(selection: int) -> str:
    lines = ["⚡ QUICK ACTIONS", ""]
    for number, (label, _) in MENU_ITEMS.items():
        if number == selection:
            lines.append(f"[reverse] >[{number}] {label} [/reverse]")
        else:
            lines.append(f"  [{number}] {label}")
    lines.extend(["", f"Enter selection (1-{len(MENU_ITEMS)}), ↑/↓ to move, q to quit"])
    return "\n".join(lines)


def status_bar_text(status: SystemStatus | None, last_update: datetime | None, now: datetime | None = None) -> str:
    if status is None or last_update is None:
        return "… connecting"
    now = now or datetime.now(timezone.utc)
    age = time_since_update((now - last_update).total_seconds())
    if status.healthy:
        return f"✓ All systems operational | Last update: {age}"
    return f"✗ Connection failed | Last update: {age}"
