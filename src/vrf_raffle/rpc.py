from __future__ import annotations

from typing import Any, Dict, List, Optional
import httpx


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RuntimeError(f"RPC error: {data['error']}")
        return data

    def request_random_words(
        self,
        gas_lane: str,
        subscription_id: int,
        confirmations: int,
        callback_gas_limit: int,
        num_words: int,
    ) -> int:
        """Submits a randomness request; returns the coordinator's request id."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "vrf_requestRandomWords",
            "params": [
                {
                    "keyHash": gas_lane,
                    "subId": subscription_id,
                    "requestConfirmations": confirmations,
                    "callbackGasLimit": callback_gas_limit,
                    "numWords": num_words,
                }
            ],
        }
        data = self._post(payload)
        result = data.get("result")
        if result is None:
            raise RuntimeError("vrf_requestRandomWords returned no request id.")
        return int(result, 0) if isinstance(result, str) else int(result)

    def get_fulfillment(self, request_id: int) -> Optional[List[int]]:
        """
        Returns the random words for a request, or None while it is pending.
        Words may come back as hex strings or integers.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "vrf_getFulfillment",
            "params": [request_id],
        }
        data = self._post(payload)
        result = data.get("result")
        if not result or result.get("randomWords") is None:
            return None
        out: List[int] = []
        for w in result["randomWords"]:
            out.append(int(w, 0) if isinstance(w, str) else int(w))
        return out

    def send_transfer(self, recipient: str, amount: int) -> str:
        """Moves `amount` base units from the pool to `recipient`; returns tx hash."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "pool_transfer",
            "params": [{"to": recipient, "value": hex(amount)}],
        }
        data = self._post(payload)
        tx_hash = data.get("result")
        if not tx_hash:
            raise RuntimeError(f"Transfer to {recipient}: no transaction hash returned.")
        return tx_hash
