from dataclasses import dataclass, field
from typing import Any

STATUS_HEALTHY = "healthy"
STATUS_ERROR = "error"


def _int_or_none(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _str(value: Any, empty: str = "") -> str:
    if value is None:
        return empty
    return str(value)


@dataclass(frozen=True)
class SystemStatus:
    running_nodes: int
    running_heads: int
    total_heads: int
    status: str

    @property
    def healthy(self) -> bool:
        return self.status == STATUS_HEALTHY


@dataclass
class Account:
    id: str
    base_address: str
    pointer_address: str
    created_at: str
    lovelace: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        return cls(
            id=_str(data.get("id"), "-"),
            base_address=_str(data.get("baseAddress") or data.get("address")),
            pointer_address=_str(data.get("pointerAddress")),
            created_at=_str(data.get("createdAt")),
        )


@dataclass(frozen=True)
class Node:
    id: str
    description: str
    port: int | None
    status: str
    created_at: str
    cardano_account: Account | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        account = data.get("cardanoAccount")
        return cls(
            id=_str(data.get("id"), "-"),
            description=_str(data.get("description")),
            port=_int_or_none(data.get("port")),
            status=_str(data.get("status"), "UNKNOWN"),
            created_at=_str(data.get("createdAt")),
            cardano_account=Account.from_dict(account) if isinstance(account, dict) else None,
        )


@dataclass(frozen=True)
class Head:
    id: str
    description: str
    nodes: int
    status: str
    created_at: str
    hydra_nodes: list[Node] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Head":
        raw_nodes = data.get("hydraNodes")
        raw_nodes = raw_nodes if isinstance(raw_nodes, list) else []
        hydra_nodes = [Node.from_dict(n) for n in raw_nodes if isinstance(n, dict)]
        node_count = _int_or_none(data.get("nodes"))
        return cls(
            id=_str(data.get("id"), "-"),
            description=_str(data.get("description")),
            nodes=node_count if node_count is not None else len(hydra_nodes),
            status=_str(data.get("status"), "UNKNOWN"),
            created_at=_str(data.get("createdAt")),
            hydra_nodes=hydra_nodes,
        )


@dataclass(frozen=True)
class ActiveNode:
    hydra_node_id: str
    is_active: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActiveNode":
        return cls(
            hydra_node_id=_str(data.get("hydraNodeId")),
            is_active=bool(data.get("isActive")),
        )
