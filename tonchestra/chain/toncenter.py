"""
Toncenter client - chain boundary over the toncenter v2 JSON-RPC API.

Each call is one JSON-RPC request POSTed to the configured endpoint.

Error classification:
- requests Timeout/ConnectionError -> TransientError (safe to retry)
- HTTP 429 and 5xx -> TransientError
- Other HTTP errors, non-JSON bodies, "ok": false -> PermanentError
"""

import base64
import logging
import uuid
from typing import Any, Optional

import requests

from tonchestra.errors import PermanentError, TransientError

logger = logging.getLogger(__name__)


class ToncenterClient:
    """
    ChainClient backed by toncenter's JSON-RPC endpoint.

    Usage:
        client = ToncenterClient("https://toncenter.com/api/v2/jsonRPC", api_key="...")
        balance = client.get_balance("-1:7a1f...")
    """

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _call(self, method: str, params: dict[str, Any]) -> Any:
        """
        Issue one JSON-RPC call and return its result.

        Raises:
            TransientError: Timeouts, connection failures, 429, 5xx
            PermanentError: Any other failure
        """
        request = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params,
        }
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["X-API-Key"] = self._api_key

        logger.debug(f"toncenter {method} {params.get('address', '')}")
        try:
            response = self._session.post(
                self._endpoint, json=request, headers=headers, timeout=self._timeout
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientError(f"{method}: {e}") from e
        except requests.RequestException as e:
            raise PermanentError(f"{method}: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientError(f"{method}: HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise PermanentError(
                f"{method}: invalid JSON response (HTTP {response.status_code})"
            ) from e

        if not isinstance(body, dict):
            raise PermanentError(f"{method}: unexpected response {body!r}")

        if not body.get("ok", False) or response.status_code >= 400:
            error = body.get("error") or body.get("result") or "unknown error"
            code = body.get("code", response.status_code)
            if code == 429:
                raise TransientError(f"{method}: {error}")
            raise PermanentError(f"{method}: {error} (code {code})")

        return body.get("result")

    def get_balance(self, address: str) -> int:
        result = self._call("getAddressBalance", {"address": address})
        try:
            return int(result)
        except (TypeError, ValueError) as e:
            raise PermanentError(f"getAddressBalance: unexpected result {result!r}") from e

    def get_account_state(self, address: str) -> str:
        """Return the account state: 'active', 'uninitialized' or 'frozen'."""
        return str(self._call("getAddressState", {"address": address}))

    def is_contract_deployed(self, address: str) -> bool:
        return self.get_account_state(address) == "active"

    def get_seqno(self, address: str) -> int:
        result = self._call(
            "runGetMethod", {"address": address, "method": "seqno", "stack": []}
        )
        # Non-zero exit code: wallet code is not deployed yet, so seqno is 0
        if not isinstance(result, dict) or result.get("exit_code", 0) != 0:
            return 0
        stack = result.get("stack") or []
        try:
            kind, value = stack[0][0], stack[0][1]
        except (IndexError, KeyError, TypeError) as e:
            raise PermanentError(f"runGetMethod seqno: unexpected stack {stack!r}") from e
        if kind != "num":
            raise PermanentError(f"runGetMethod seqno: unexpected stack entry {stack[0]!r}")
        try:
            return int(value, 16) if isinstance(value, str) else int(value)
        except (TypeError, ValueError) as e:
            raise PermanentError(f"runGetMethod seqno: unexpected value {value!r}") from e

    def send_boc(self, boc: bytes) -> None:
        self._call("sendBoc", {"boc": base64.b64encode(bytes(boc)).decode("ascii")})
