from typing import Any

from hexcore_cli.models import SystemStatus
from hexcore_cli.services.api import ApiClient, ApiError
from hexcore_cli.views.common import call_api, report_error


def status_text(status: SystemStatus) -> str:
    health = "[green]✓ Healthy[/]" if status.healthy else "[red]✗ Error[/]"
    return (
        f"Running Nodes:    {status.running_nodes}\n"
        f"Running Heads:    {status.running_heads}\n"
        f"Total Heads:      {status.total_heads}\n"
        "\n"
        f"Status: {health}"
    )


async def status_view(surface: Any, api: ApiClient) -> None:
    try:
        with surface.loading("Fetching system status..."):
            status = await call_api(api.get_system_status)
        surface.show_text("📊 System Status", status_text(status), footer="Press any key to return to menu...")
        await surface.wait_for_key()
    except ApiError as exc:
        await report_error(surface, exc.message)
