from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .addresses import is_valid_address
from .errors import InvalidAddress, NoEligibleHolders
from .metadata import MintInfo, resolve_mint
from .rpc import RpcClient
from .token_accounts import HolderAccount, ProgramVariant, classify_program, scan_holders

log = logging.getLogger("draw")


@dataclass(frozen=True)
class SelectionResult:
    owner_address: str
    adjusted_balance: float
    program_type: ProgramVariant
    token_name: str
    token_symbol: str
    eligible_holders: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ownerAddress": self.owner_address,
            "adjustedBalance": self.adjusted_balance,
            "programType": self.program_type.value,
            "tokenName": self.token_name,
            "tokenSymbol": self.token_symbol,
            "eligibleHolders": self.eligible_holders,
        }


def pick_holder(eligible: List[HolderAccount], rng: Optional[random.Random] = None) -> HolderAccount:
    """Uniform pick. Not a security mechanism, so the default PRNG is fine."""
    if not eligible:
        raise NoEligibleHolders()
    return (rng or random).choice(eligible)


def assemble_result(winner: HolderAccount, mint_info: MintInfo, eligible_holders: int) -> SelectionResult:
    return SelectionResult(
        owner_address=winner.owner,
        adjusted_balance=winner.adjusted_amount,
        program_type=mint_info.variant,
        token_name=mint_info.name,
        token_symbol=mint_info.symbol,
        eligible_holders=eligible_holders,
    )


def get_random_token_holder(
    rpc: RpcClient,
    mint: str,
    min_tokens: int,
    rng: Optional[random.Random] = None,
) -> SelectionResult:
    if not is_valid_address(mint):
        raise InvalidAddress("Invalid Solana address format")

    variant = classify_program(rpc, mint)
    log.info("Program type      : %s", variant.value)

    mint_info = resolve_mint(rpc, mint, variant)
    log.info("Token             : %s (%s), %d decimals", mint_info.name, mint_info.symbol, mint_info.decimals)

    eligible = scan_holders(rpc, mint, variant, mint_info.decimals, min_tokens)
    winner = pick_holder(eligible, rng)
    log.info("Winner            : %s", winner.owner)
    return assemble_result(winner, mint_info, len(eligible))
