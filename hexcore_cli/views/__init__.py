from typing import Any, Awaitable, Callable

from hexcore_cli.views.accounts import accounts_flow
from hexcore_cli.views.heads import create_head_flow, heads_list, stop_head_flow
from hexcore_cli.views.nodes import nodes_list
from hexcore_cli.views.status import status_view

ViewAction = Callable[[Any, Any], Awaitable[None]]

VIEW_ACTIONS: dict[int, ViewAction] = {
    1: create_head_flow,
    2: heads_list,
    3: stop_head_flow,
    4: accounts_flow,
    5: nodes_list,
    6: status_view,
}
