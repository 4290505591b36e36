from __future__ import annotations

import logging
from itertools import count
from typing import Any, Dict, List, Optional

import httpx

from .errors import UpstreamUnavailable
from .project_constants import ACCOUNT_MINT_OFFSET, DEFAULT_RPC_TIMEOUT_S, TOKEN_ACCOUNT_SIZE

log = logging.getLogger("rpc")


class RpcClient:
    """Minimal Solana JSON-RPC client. One instance may be shared across threads."""

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = DEFAULT_RPC_TIMEOUT_S,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = client or httpx.Client(timeout=timeout_s)
        self._ids = count(1)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _post(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        log.debug("-> %s", method)
        try:
            resp = self.client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"RPC {method} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"RPC {method} failed: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailable(f"RPC {method} returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"RPC {method} returned unexpected payload.")
        if "error" in data:
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise UpstreamUnavailable(f"RPC error: {message}")
        return data.get("result")

    def get_account_info(self, address: str, commitment: str = "confirmed") -> Optional[Dict[str, Any]]:
        """
        Returns the account's ``value`` object or None when the account does not exist.
        ``value['data']`` is ``[base64_str, "base64"]``.
        """
        result = self._post(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": commitment}],
        )
        if not isinstance(result, dict):
            raise UpstreamUnavailable(f"getAccountInfo({address}) returned no result.")
        return result.get("value")

    def get_program_accounts_base64(
        self,
        program_id: str,
        mint: str,
        classic_token_program: bool,
    ) -> List[str]:
        """
        Returns base64 strings for account data.
        Note: For classic SPL Token accounts, we enforce dataSize=165.
        Token-2022 accounts can vary due to extensions.
        """
        filters: List[Dict[str, Any]] = [
            {"memcmp": {"offset": ACCOUNT_MINT_OFFSET, "bytes": mint}}
        ]
        if classic_token_program:
            filters.append({"dataSize": TOKEN_ACCOUNT_SIZE})

        results = self._post(
            "getProgramAccounts",
            [program_id, {"encoding": "base64", "filters": filters}],
        )
        if not isinstance(results, list):
            raise UpstreamUnavailable("getProgramAccounts returned no account list.")
        try:
            return [item["account"]["data"][0] for item in results]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamUnavailable(f"getProgramAccounts returned malformed item: {e}") from e

    def get_latest_blockhash(self, commitment: str = "finalized") -> str:
        result = self._post("getLatestBlockhash", [{"commitment": commitment}])
        try:
            return result["value"]["blockhash"]
        except (KeyError, TypeError) as e:
            raise UpstreamUnavailable("getLatestBlockhash returned no blockhash.") from e
