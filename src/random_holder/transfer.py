"""
Unsigned SOL transfer used to gate a draw behind a wallet payment.

The server only builds the transaction. Signing and submission happen in the
client wallet, never here.
"""

from __future__ import annotations

import base64
from decimal import Decimal

from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from .addresses import is_valid_address
from .errors import InvalidAddress
from .project_constants import LAMPORTS_PER_SOL
from .rpc import RpcClient


def sol_to_lamports(amount_sol: Decimal) -> int:
    return int((Decimal(amount_sol) * LAMPORTS_PER_SOL).to_integral_value())


def build_transfer_transaction(
    payer: str,
    recipient: str,
    amount_sol: Decimal,
    recent_blockhash: str,
) -> Transaction:
    if not is_valid_address(payer):
        raise InvalidAddress("Invalid wallet address format")
    if not is_valid_address(recipient):
        raise InvalidAddress("Invalid recipient address format")

    payer_key = Pubkey.from_string(payer)
    ix = transfer(
        TransferParams(
            from_pubkey=payer_key,
            to_pubkey=Pubkey.from_string(recipient),
            lamports=sol_to_lamports(amount_sol),
        )
    )
    msg = Message.new_with_blockhash([ix], payer_key, Hash.from_string(recent_blockhash))
    return Transaction.new_unsigned(msg)


def build_transfer_base64(rpc: RpcClient, payer: str, recipient: str, amount_sol: Decimal) -> str:
    # Checked before the blockhash request.
    if not is_valid_address(payer):
        raise InvalidAddress("Invalid wallet address format")
    blockhash = rpc.get_latest_blockhash()
    tx = build_transfer_transaction(payer, recipient, amount_sol, blockhash)
    return base64.b64encode(bytes(tx)).decode("ascii")
