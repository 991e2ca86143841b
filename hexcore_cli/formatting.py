from datetime import datetime
from decimal import ROUND_DOWN, Decimal

LOVELACE_PER_ADA = Decimal(1_000_000)

STATUS_MARKUP = {
    "running": "[green]✓ running[/]",
    "stopped": "[red]✗ stopped[/]",
    "error": "[red]✗ error[/]",
    "active": "[green]✓ active[/]",
    "inactive": "[yellow]⚠ inactive[/]",
}


def format_id(value: str | None, begin: int = 5, last: int = 5) -> str:
    if not value:
        return ""
    if len(value) <= begin + last:
        return value
    return f"{value[:begin]}...{value[-last:]}"


def _parse_iso(value: str) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def format_time(value: str) -> str:
    """Render an ISO timestamp as MM/DD/YYYY, HH:MM:SS; unparseable input is returned unchanged."""
    parsed = _parse_iso(value)
    if parsed is None:
        return value
    return parsed.strftime("%m/%d/%Y, %H:%M:%S")


def format_status(status: str) -> str:
    return STATUS_MARKUP.get(status.lower(), status) if isinstance(status, str) else "-"


def time_since_update(seconds: float) -> str:
    if seconds < 2:
        return "now"
    if seconds < 60:
        return f"{int(seconds)}s ago"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    return f"{int(seconds // 3600)}h ago"


def truncate(value: str, length: int) -> str:
    return value[: length - 3] + "..." if len(value) > length else value


def format_ada(lovelace: int | None) -> str:
    if lovelace is None:
        return "-"
    ada = (Decimal(lovelace) / LOVELACE_PER_ADA).quantize(Decimal("0.000001"), rounding=ROUND_DOWN)
    return f"{ada:,.6f}"
