from __future__ import annotations

import base64
import binascii
import logging
import struct
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, TypeVar

from solders.pubkey import Pubkey

from .errors import MetadataUnavailable, UpstreamUnavailable
from .project_constants import (
    ACCOUNT_TYPE_MINT,
    ACCOUNT_TYPE_OFFSET,
    EXTENSION_TOKEN_METADATA,
    METADATA_KEY_V1,
    METADATA_NAME_OFFSET,
    METADATA_PROGRAM_ID,
    MINT_DECIMALS_OFFSET,
    MINT_INITIALIZED_OFFSET,
    MINT_SIZE,
    PUBKEY_LEN,
)
from .rpc import RpcClient
from .token_accounts import ProgramVariant

log = logging.getLogger("metadata")

T = TypeVar("T")

UNKNOWN_NAMES: Dict[ProgramVariant, Tuple[str, str]] = {
    ProgramVariant.LEGACY: ("Unknown SPL Token", "UNK"),
    ProgramVariant.EXTENDED: ("Unknown Token-2022", "UNK"),
}


@dataclass(frozen=True)
class MintInfo:
    decimals: int
    variant: ProgramVariant
    name: str
    symbol: str


def _account_bytes(account: Dict) -> bytes:
    try:
        return base64.b64decode(account["data"][0], validate=True)
    except (KeyError, IndexError, TypeError, binascii.Error, ValueError) as e:
        raise UpstreamUnavailable(f"Account data could not be decoded: {e}") from e


def _read_borsh_string(data: bytes, offset: int) -> Tuple[str, int]:
    try:
        (length,) = struct.unpack_from("<I", data, offset)
    except struct.error as e:
        raise MetadataUnavailable("Metadata string length is truncated.") from e
    offset += 4
    if offset + length > len(data):
        raise MetadataUnavailable("Metadata string runs past the end of the account.")
    value = data[offset : offset + length].decode("utf-8", errors="ignore")
    return value.replace("\x00", "").strip(), offset + length


def fetch_mint_account(rpc: RpcClient, mint: str, variant: ProgramVariant) -> bytes:
    account = rpc.get_account_info(mint)
    if not account:
        raise UpstreamUnavailable(f"Mint account {mint} not found.")
    if account.get("owner") != variant.program_id:
        raise UpstreamUnavailable(
            f"Mint account {mint} is not owned by {variant.program_id}."
        )
    return _account_bytes(account)


def parse_decimals(mint_data: bytes) -> int:
    if len(mint_data) < MINT_SIZE:
        raise UpstreamUnavailable(
            f"Mint account data is {len(mint_data)} bytes, need at least {MINT_SIZE}."
        )
    if not mint_data[MINT_INITIALIZED_OFFSET]:
        raise UpstreamUnavailable("Mint account is not initialized.")
    return mint_data[MINT_DECIMALS_OFFSET]


def metadata_pda(mint: str) -> str:
    program = Pubkey.from_string(METADATA_PROGRAM_ID)
    pda, _ = Pubkey.find_program_address(
        [b"metadata", bytes(program), bytes(Pubkey.from_string(mint))],
        program,
    )
    return str(pda)


def parse_metaplex_metadata(data: bytes) -> Tuple[str, str]:
    """
    Metaplex metadata account:
    Key(0) | UpdateAuthority(1-33) | Mint(33-65) | Name | Symbol | Uri
    where each string is a u32 length followed by NUL-padded utf-8.
    """
    if not data or data[0] != METADATA_KEY_V1:
        raise MetadataUnavailable("Not a Metaplex metadata account.")
    name, offset = _read_borsh_string(data, METADATA_NAME_OFFSET)
    symbol, _ = _read_borsh_string(data, offset)
    return name, symbol


def find_extension(mint_data: bytes, extension_type: int) -> Optional[bytes]:
    """Return the raw value of a Token-2022 mint extension, or None if absent."""
    if len(mint_data) <= ACCOUNT_TYPE_OFFSET:
        return None
    if mint_data[ACCOUNT_TYPE_OFFSET] != ACCOUNT_TYPE_MINT:
        raise MetadataUnavailable("Token-2022 account is not tagged as a mint.")

    offset = ACCOUNT_TYPE_OFFSET + 1
    while offset + 4 <= len(mint_data):
        ext_type, ext_len = struct.unpack_from("<HH", mint_data, offset)
        offset += 4
        if ext_type == 0 and ext_len == 0:
            break
        if offset + ext_len > len(mint_data):
            raise MetadataUnavailable(f"Extension {ext_type} runs past the end of the mint.")
        if ext_type == extension_type:
            return mint_data[offset : offset + ext_len]
        offset += ext_len
    return None


def parse_token_metadata_extension(mint_data: bytes) -> Tuple[str, str]:
    """
    TokenMetadata extension value:
    UpdateAuthority(0-32) | Mint(32-64) | Name | Symbol | Uri | AdditionalMetadata
    """
    value = find_extension(mint_data, EXTENSION_TOKEN_METADATA)
    if value is None:
        raise MetadataUnavailable("Mint has no TokenMetadata extension.")
    name, offset = _read_borsh_string(value, 2 * PUBKEY_LEN)
    symbol, _ = _read_borsh_string(value, offset)
    return name, symbol


def resolve_or_default(fetch: Callable[[], T], default: T) -> T:
    """Best-effort lookup: metadata and RPC failures collapse into ``default``."""
    try:
        return fetch()
    except (MetadataUnavailable, UpstreamUnavailable) as e:
        log.info("Token metadata unavailable, using %r: %s", default, e)
        return default


def fetch_metaplex_names(rpc: RpcClient, mint: str) -> Tuple[str, str]:
    address = metadata_pda(mint)
    account = rpc.get_account_info(address)
    if not account:
        raise MetadataUnavailable(f"No Metaplex metadata account at {address}.")
    return parse_metaplex_metadata(_account_bytes(account))


def resolve_mint(rpc: RpcClient, mint: str, variant: ProgramVariant) -> MintInfo:
    mint_data = fetch_mint_account(rpc, mint, variant)
    decimals = parse_decimals(mint_data)

    default = UNKNOWN_NAMES[variant]
    if variant is ProgramVariant.EXTENDED:
        name, symbol = resolve_or_default(lambda: parse_token_metadata_extension(mint_data), default)
    else:
        name, symbol = resolve_or_default(lambda: fetch_metaplex_names(rpc, mint), default)

    log.debug("Mint %s: decimals=%d name=%r symbol=%r", mint, decimals, name, symbol)
    return MintInfo(decimals=decimals, variant=variant, name=name, symbol=symbol)
