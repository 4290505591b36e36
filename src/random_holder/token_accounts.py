from __future__ import annotations

import base64
import binascii
import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

import base58

from .errors import MalformedAccountData, UpstreamUnavailable
from .project_constants import (
    ACCOUNT_AMOUNT_OFFSET,
    ACCOUNT_OWNER_OFFSET,
    ACCOUNT_TYPE_ACCOUNT,
    ACCOUNT_TYPE_OFFSET,
    PUBKEY_LEN,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from .rpc import RpcClient

log = logging.getLogger("holders")


class ProgramVariant(Enum):
    """Token program owning a mint. The value is the label shown to clients."""

    LEGACY = "SPL_TOKEN"
    EXTENDED = "TOKEN_2022"

    @property
    def program_id(self) -> str:
        return TOKEN_2022_PROGRAM_ID if self is ProgramVariant.EXTENDED else TOKEN_PROGRAM_ID

    @property
    def fixed_account_size(self) -> bool:
        # Token-2022 accounts grow with extensions; classic accounts are always 165 bytes.
        return self is ProgramVariant.LEGACY


@dataclass(frozen=True)
class HolderAccount:
    owner: str
    raw_amount: int
    decimals: int

    @property
    def adjusted_amount(self) -> float:
        return self.raw_amount / (10**self.decimals)


def parse_owner_and_amount(account_data: bytes, variant: ProgramVariant) -> Tuple[str, int]:
    """
    Token account layout shared by both programs:
    Mint(0-32) | Owner(32-64) | Amount(64-72)

    Token-2022 accounts longer than the base layout must be tagged as Account
    at byte 165, otherwise the offsets above do not apply.
    """
    end = ACCOUNT_AMOUNT_OFFSET + 8
    if len(account_data) < end:
        raise MalformedAccountData(
            f"Token account data is {len(account_data)} bytes, need at least {end}."
        )
    if variant is ProgramVariant.EXTENDED and len(account_data) > ACCOUNT_TYPE_OFFSET:
        account_type = account_data[ACCOUNT_TYPE_OFFSET]
        if account_type != ACCOUNT_TYPE_ACCOUNT:
            raise MalformedAccountData(
                f"Token-2022 account type is {account_type}, expected {ACCOUNT_TYPE_ACCOUNT}."
            )

    owner_bytes = account_data[ACCOUNT_OWNER_OFFSET : ACCOUNT_OWNER_OFFSET + PUBKEY_LEN]
    owner = base58.b58encode(owner_bytes).decode("ascii")
    amount = struct.unpack_from("<Q", account_data, ACCOUNT_AMOUNT_OFFSET)[0]
    return owner, amount


def decode_account_b64(b64_str: str, variant: ProgramVariant) -> Tuple[str, int]:
    try:
        raw = base64.b64decode(b64_str, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedAccountData(f"Account data is not valid base64: {e}") from e
    return parse_owner_and_amount(raw, variant)


def classify_program(rpc: RpcClient, mint: str) -> ProgramVariant:
    account = rpc.get_account_info(mint)
    if not account:
        raise UpstreamUnavailable(f"Mint account {mint} not found.")

    owner = account.get("owner")
    if owner == TOKEN_2022_PROGRAM_ID:
        return ProgramVariant.EXTENDED
    return ProgramVariant.LEGACY


def filter_eligible(
    accounts: Iterable[Tuple[str, int]],
    decimals: int,
    min_tokens: int,
) -> List[HolderAccount]:
    """Keep accounts whose balance is at least min_tokens whole tokens, in scan order."""
    min_raw_balance = int(min_tokens) * (10**decimals)
    return [
        HolderAccount(owner=owner, raw_amount=amount, decimals=decimals)
        for owner, amount in accounts
        if amount >= min_raw_balance
    ]


def scan_holders(
    rpc: RpcClient,
    mint: str,
    variant: ProgramVariant,
    decimals: int,
    min_tokens: int,
) -> List[HolderAccount]:
    b64_items = rpc.get_program_accounts_base64(
        program_id=variant.program_id,
        mint=mint,
        classic_token_program=variant.fixed_account_size,
    )
    log.info("Accounts fetched  : %d", len(b64_items))

    decoded: List[Tuple[str, int]] = []
    for b64_str in b64_items:
        try:
            decoded.append(decode_account_b64(b64_str, variant))
        except MalformedAccountData as e:
            log.warning("Skipping token account: %s", e)

    eligible = filter_eligible(decoded, decimals, min_tokens)
    log.info("Eligible holders  : %d", len(eligible))
    return eligible
