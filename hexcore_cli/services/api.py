import logging
from typing import Any

import requests

from hexcore_cli.config import ConsoleConfig
from hexcore_cli.models import (
    STATUS_ERROR,
    STATUS_HEALTHY,
    Account,
    ActiveNode,
    Head,
    Node,
    SystemStatus,
)

logger = logging.getLogger(__name__)

NAME_RESOLUTION_MARKERS = (
    "NameResolutionError",
    "Name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "Temporary failure in name resolution",
    "No address associated with hostname",
)


class ApiError(Exception):
    """An API call failed; the message is safe to show to an operator."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiConnectionError(ApiError):
    pass


class AuthError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class BadRequestError(ApiError):
    pass


def _server_message(response: requests.Response | None) -> str | None:
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, list):
        message = "; ".join(str(m) for m in message if m)
    if isinstance(message, str) and message.strip():
        return message.strip()
    return None


def translate_error(exc: Exception, base_url: str, timeout: float, default_message: str) -> ApiError:
    """Map a transport or HTTP failure onto the operator-facing error taxonomy."""
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, requests.Timeout):
        return ApiConnectionError(f"Operation timed out ({timeout:g}s)")
    if isinstance(exc, requests.ConnectionError):
        text = str(exc)
        if any(marker in text for marker in NAME_RESOLUTION_MARKERS):
            return ApiConnectionError(f"Cannot connect to {base_url} (host not found)")
        return ApiConnectionError(f"Cannot connect to {base_url}")
    if isinstance(exc, requests.HTTPError):
        response = exc.response
        status = response.status_code if response is not None else None
        if status == 400:
            return BadRequestError(_server_message(response) or default_message, status)
        if status == 401:
            return AuthError("Invalid credentials", status)
        if status == 403:
            return AuthError("Access denied", status)
        if status == 404:
            return NotFoundError(default_message, status)
        return ApiError(default_message, status)
    return ApiError(default_message)


def _unwrap_list(body: Any) -> list:
    """Accept `{data: [...]}`, `{data: {data: [...]}}` or a bare list."""
    data = body.get("data") if isinstance(body, dict) else body
    if isinstance(data, dict):
        data = data.get("data")
    return data if isinstance(data, list) else []


def _unwrap_object(body: Any) -> dict:
    data = body.get("data") if isinstance(body, dict) else None
    return data if isinstance(data, dict) else {}


class ApiClient:
    def __init__(self, config: ConsoleConfig) -> None:
        self.config = config
        self.base_url = config.base_url
        self.timeout = config.timeout
        self.username = config.username or ""
        self.password = config.password or ""
        self.access_token = ""
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, path: str, default_message: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            error = translate_error(exc, self.base_url, self.timeout, default_message)
            logger.debug("%s %s failed: %s", method, url, error)
            raise error from exc
        try:
            return response.json()
        except ValueError:
            return {}

    def login(self) -> None:
        if not self.username or not self.password:
            raise AuthError("Username and password required for login")
        body = self._request(
            "POST",
            "/hydra-main/login",
            "Login failed",
            json={"username": self.username, "password": self.password},
        )
        token = _unwrap_object(body).get("accessToken")
        if not isinstance(token, str) or not token:
            raise AuthError("No access token in response")
        self.access_token = token
        self.session.headers["Authorization"] = f"Bearer {token}"
        logger.info("Logged in to %s as %s", self.base_url, self.username)

    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def get_heads(self) -> list[Head]:
        body = self._request("GET", "/hydra-main/list-party", "Failed to fetch heads")
        return [Head.from_dict(item) for item in _unwrap_list(body) if isinstance(item, dict)]

    def get_head_info(self, head_id: str) -> Head:
        body = self._request("GET", f"/hydra-main/hydra-node/{head_id}", f"Head '{head_id}' not found")
        return Head.from_dict(_unwrap_object(body))

    def create_head(self, account_ids: list[str]) -> Head:
        from_account = account_ids[0] if account_ids else 1
        body = self._request(
            "POST",
            "/hydra-main/create-node",
            "Failed to create head",
            json={"fromAccountId": from_account, "description": "Hydra Node"},
        )
        return Head.from_dict(_unwrap_object(body))

    def stop_head(self, head_id: str) -> None:
        self._request("POST", f"/hydra-main/hydra-node/{head_id}/stop", f"Failed to stop head '{head_id}'")

    def get_accounts(self) -> list[Account]:
        body = self._request("GET", "/hydra-main/list-account", "Failed to fetch accounts")
        return [Account.from_dict(item) for item in _unwrap_list(body) if isinstance(item, dict)]

    def add_account(self, mnemonic: str) -> Account:
        body = self._request(
            "POST", "/hydra-main/create-account", "Failed to add account", json={"mnemonic": mnemonic}
        )
        return Account.from_dict(_unwrap_object(body))

    def get_nodes(self) -> list[Node]:
        body = self._request(
            "GET", "/hydra-main/hydra-nodes", "Failed to fetch nodes", params={"page": 1, "limit": 50}
        )
        return [Node.from_dict(item) for item in _unwrap_list(body) if isinstance(item, dict)]

    def get_active_nodes(self) -> list[ActiveNode]:
        body = self._request("GET", "/hydra-main/active-nodes", "Failed to fetch active nodes")
        return [ActiveNode.from_dict(item) for item in _unwrap_list(body) if isinstance(item, dict)]

    def get_system_status(self) -> SystemStatus:
        """Aggregate node, active-node and head counts.

        The three fetches run one after another on the caller's thread, sharing
        ``self.session``. Each may fail on its own; a failed fetch counts as empty.
        Status is healthy only when the nodes and active-nodes fetches both succeeded.
        When every fetch fails to reach the server the first connectivity error is raised.
        """
        nodes_body, nodes_error = self._try_request(
            "GET", "/hydra-main/hydra-nodes", "Failed to fetch nodes", params={"page": 1, "limit": 1000}
        )
        active_body, active_error = self._try_request(
            "GET", "/hydra-main/active-nodes", "Failed to fetch active nodes"
        )
        heads_body, heads_error = self._try_request("GET", "/hydra-main/list-party", "Failed to fetch heads")

        errors = [e for e in (nodes_error, active_error, heads_error) if e is not None]
        if len(errors) == 3 and all(isinstance(e, ApiConnectionError) for e in errors):
            raise errors[0]
        for error in errors:
            logger.debug("System status sub-fetch failed: %s", error)

        nodes = [Node.from_dict(n) for n in _unwrap_list(nodes_body) if isinstance(n, dict)]
        active_nodes = [ActiveNode.from_dict(a) for a in _unwrap_list(active_body) if isinstance(a, dict)]
        heads = _unwrap_list(heads_body)

        head_ids: list[str] = []
        for active in active_nodes:
            if active.is_active and active.hydra_node_id not in head_ids:
                head_ids.append(active.hydra_node_id)
        running_nodes = sum(1 for node in nodes if node.status == "ACTIVE")
        healthy = nodes_error is None and active_error is None
        return SystemStatus(
            running_nodes=running_nodes,
            running_heads=len(head_ids),
            total_heads=len(heads),
            status=STATUS_HEALTHY if healthy else STATUS_ERROR,
        )

    def _try_request(self, method: str, path: str, default_message: str, **kwargs: Any) -> tuple[Any, ApiError | None]:
        try:
            return self._request(method, path, default_message, **kwargs), None
        except ApiError as exc:
            return None, exc
