from __future__ import annotations

import base64
import json
import struct
from typing import Any, Dict, List, Optional

import base58
import httpx
import pytest
import respx

from random_holder.project_constants import TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID
from random_holder.rpc import RpcClient

RPC_URL = "https://rpc.test.invalid"
BLOCKHASH = base58.b58encode(bytes(range(32))).decode("ascii")


def key(n: int) -> bytes:
    return bytes([n]) * 32


def address(n: int) -> str:
    return base58.b58encode(key(n)).decode("ascii")


def borsh_str(value: str, pad_to: int = 0) -> bytes:
    raw = value.encode("utf-8").ljust(pad_to, b"\x00")
    return struct.pack("<I", len(raw)) + raw


def mint_data(decimals: int, supply: int = 10**15, initialized: bool = True) -> bytes:
    return (
        b"\x00" * 36
        + struct.pack("<Q", supply)
        + bytes([decimals, 1 if initialized else 0])
        + b"\x00" * 36
    )


def token2022_mint_data(decimals: int, name: Optional[str] = None, symbol: str = "") -> bytes:
    data = mint_data(decimals).ljust(165, b"\x00") + bytes([1])
    # A harmless extension first so the TLV walk has to skip something.
    data += struct.pack("<HH", 18, 64) + b"\x00" * 64
    if name is not None:
        value = key(9) + key(10) + borsh_str(name) + borsh_str(symbol) + borsh_str("https://x/y.json") + struct.pack("<I", 0)
        data += struct.pack("<HH", 19, len(value)) + value
    return data


def metaplex_data(name: str, symbol: str) -> bytes:
    return (
        bytes([4])
        + key(7)
        + key(8)
        + borsh_str(name, 32)
        + borsh_str(symbol, 10)
        + borsh_str("https://example.invalid/meta.json", 200)
    )


def token_account_data(mint: int, owner: int, amount: int, extended: bool = False) -> bytes:
    data = key(mint) + key(owner) + struct.pack("<Q", amount)
    data = data.ljust(165, b"\x00")
    if extended:
        # AccountType::Account followed by an ImmutableOwner extension.
        data += bytes([2]) + struct.pack("<HH", 7, 0)
    return data


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class RpcStub:
    """Answers Solana JSON-RPC calls from in-memory accounts."""

    def __init__(self) -> None:
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.program_accounts: Dict[str, List[bytes]] = {}
        self.calls: List[Dict[str, Any]] = []
        self.fail_methods: Dict[str, Any] = {}
        self.fail_accounts: Dict[str, Exception] = {}

    def add_account(self, addr: str, owner: str, data: bytes) -> None:
        self.accounts[addr] = {
            "owner": owner,
            "data": [b64(data), "base64"],
            "lamports": 1461600,
            "executable": False,
            "rentEpoch": 0,
        }

    def add_holders(self, program_id: str, blobs: List[bytes]) -> None:
        self.program_accounts.setdefault(program_id, []).extend(blobs)

    def methods(self) -> List[str]:
        return [c["method"] for c in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        method, params = body["method"], body["params"]

        if method in self.fail_methods:
            failure = self.fail_methods[method]
            if isinstance(failure, Exception):
                raise failure
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": failure})

        if method == "getAccountInfo":
            if params[0] in self.fail_accounts:
                raise self.fail_accounts[params[0]]
            result: Any = {"context": {"slot": 1}, "value": self.accounts.get(params[0])}
        elif method == "getProgramAccounts":
            blobs = self.program_accounts.get(params[0], [])
            result = [
                {"pubkey": address(200 + i), "account": {"data": [b64(blob), "base64"], "owner": params[0]}}
                for i, blob in enumerate(blobs)
            ]
        elif method == "getLatestBlockhash":
            result = {"context": {"slot": 1}, "value": {"blockhash": BLOCKHASH, "lastValidBlockHeight": 100}}
        else:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "Method not found"}})

        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


@pytest.fixture
def rpc_stub():
    stub = RpcStub()
    with respx.mock(assert_all_called=False) as router:
        router.post(RPC_URL).mock(side_effect=stub)
        yield stub


@pytest.fixture
def rpc(rpc_stub):
    client = RpcClient(RPC_URL, timeout_s=2.0)
    yield client
    client.close()


@pytest.fixture
def legacy_mint(rpc_stub):
    """Classic SPL mint with 6 decimals and holders of 500, 2,000,000 and 50 tokens."""
    mint = address(1)
    rpc_stub.add_account(mint, TOKEN_PROGRAM_ID, mint_data(6))
    rpc_stub.add_holders(
        TOKEN_PROGRAM_ID,
        [
            token_account_data(1, 21, 500 * 10**6),
            token_account_data(1, 22, 2_000_000 * 10**6),
            token_account_data(1, 23, 50 * 10**6),
        ],
    )
    return mint


@pytest.fixture
def token2022_mint(rpc_stub):
    mint = address(2)
    rpc_stub.add_account(mint, TOKEN_2022_PROGRAM_ID, token2022_mint_data(9, "Shiny", "SHNY"))
    rpc_stub.add_holders(
        TOKEN_2022_PROGRAM_ID,
        [
            token_account_data(2, 31, 5 * 10**9, extended=True),
            token_account_data(2, 32, 3 * 10**9),
            token_account_data(2, 33, 10**8, extended=True),
        ],
    )
    return mint
