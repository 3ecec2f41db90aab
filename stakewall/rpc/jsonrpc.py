from __future__ import annotations

import itertools
from typing import Any, Optional

import requests


class RpcError(RuntimeError):
    """JSON-RPC call failed: transport, HTTP status or an `error` object in the reply."""


class JsonRpcClient:
    """Minimal JSON-RPC 2.0 client for a cluster RPC node."""

    def __init__(
        self,
        rpc_url: str,
        api_key: Optional[str] = None,
        *,
        timeout_s: float = 30.0,
    ) -> None:
        self.rpc_url = rpc_url
        self.api_key = api_key
        self.timeout_s = timeout_s
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[list] = None) -> Any:
        payload: dict = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        if params is not None:
            payload["params"] = params

        headers = {}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key

        try:
            r = requests.post(self.rpc_url, json=payload, headers=headers, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise RpcError(f"{method} request failed: {e}") from e

        if not r.ok:
            raise RpcError(f"{method} failed with status {r.status_code}: {r.text}")

        try:
            data = r.json()
        except ValueError as e:
            raise RpcError(f"{method} returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RpcError(f"{method} returned a non-object reply")
        if data.get("error") is not None:
            raise RpcError(f"{method} returned error: {data['error']}")
        if "result" not in data:
            raise RpcError(f"{method} reply has no result")
        return data["result"]
