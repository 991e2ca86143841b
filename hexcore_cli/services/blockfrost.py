import logging
from typing import Any

import requests

from hexcore_cli.services.api import ApiError, translate_error

logger = logging.getLogger(__name__)

BLOCKFROST_URLS = {
    "mainnet": "https://cardano-mainnet.blockfrost.io/api/v0",
    "preprod": "https://cardano-preprod.blockfrost.io/api/v0",
    "preview": "https://cardano-preview.blockfrost.io/api/v0",
}
PAGE_SIZE = 100


def network_from_key(api_key: str) -> str:
    """Blockfrost project ids are prefixed with the network they belong to."""
    for network in BLOCKFROST_URLS:
        if api_key.startswith(network):
            return network
    return "preprod"


def _lovelace_in(utxo: Any) -> int:
    if not isinstance(utxo, dict):
        return 0
    amounts = utxo.get("amount")
    amounts = amounts if isinstance(amounts, list) else []
    total = 0
    for amount in amounts:
        if not isinstance(amount, dict) or amount.get("unit") != "lovelace":
            continue
        try:
            total += int(amount.get("quantity", 0))
        except (TypeError, ValueError):
            continue
    return total


class BlockfrostClient:
    def __init__(self, api_key: str, timeout: float = 10.0) -> None:
        if not api_key:
            raise ApiError("Blockfrost API key not configured (start with -bf <key>)")
        self.api_key = api_key
        self.network = network_from_key(api_key)
        self.base_url = BLOCKFROST_URLS[self.network]
        self.timeout = timeout

    def fetch_lovelace(self, address: str) -> int:
        """Sum the lovelace held in every UTxO at address; an address never seen on chain holds 0."""
        total = 0
        page = 1
        while True:
            url = f"{self.base_url}/addresses/{address}/utxos"
            try:
                response = requests.get(
                    url,
                    headers={"project_id": self.api_key},
                    params={"page": page, "count": PAGE_SIZE},
                    timeout=self.timeout,
                )
                if response.status_code == 404:
                    return total
                response.raise_for_status()
                utxos = response.json()
            except requests.RequestException as exc:
                raise translate_error(exc, self.base_url, self.timeout, f"Failed to fetch UTxO for {address}") from exc
            except ValueError as exc:
                raise ApiError(f"Invalid UTxO response for {address}") from exc
            utxos = utxos if isinstance(utxos, list) else []
            total += sum(_lovelace_in(utxo) for utxo in utxos)
            logger.debug("Fetched %d UTxOs for %s (page %d)", len(utxos), address, page)
            if len(utxos) < PAGE_SIZE:
                return total
            page += 1
