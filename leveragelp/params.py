"""
============================================================================
Leveraged LP Module - Risk Parameter Set
============================================================================

Reliability Level: L6 Critical (Sovereign Tier)
Decimal Integrity: All ratio/fraction fields are 18-place decimal.Decimal
Side Effects: None (pure data + constructors)

This module defines the governing parameter set of the leveraged-LP
module:
- Params: the candidate/committed parameter set
- new_params / default_params: genesis baseline constructor
- Extended-precision views consumed by position and liquidation math

ABSENT DECIMALS:
    A decimal field set to None is "absent" (never populated). Zero is a
    populated value. The validator rejects absent required fields.

LIFECYCLE:
    Built once at genesis via default_params(), then only ever replaced as
    a whole after validate_params() succeeds on the candidate.

============================================================================
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from leveragelp.decimal_gateway import (
    big_dec_from_dec,
    format_dec,
    must_new_dec_from_str,
    new_dec,
    new_dec_with_prec,
)


# =============================================================================
# Constants
# =============================================================================

# Page-size ceiling for positions processed per maintenance cycle
MAX_PAGE_LIMIT = 10000

# Pool ids are unsigned 64-bit integers
MAX_POOL_ID = 2 ** 64 - 1

# Decimal fields, in persisted record order
DECIMAL_FIELDS = (
    "leverage_max",
    "pool_open_threshold",
    "safety_factor",
    "exit_buffer",
    "liabilities_factor",
)


# =============================================================================
# Params
# =============================================================================

@dataclass
class Params:
    """
    Leveraged-LP risk and operational parameters.

    A bare Params() is the zero-value candidate: every decimal absent,
    integers zero, flags off, no enabled pools. It does not validate; use
    default_params() for the genesis set.

    Attributes:
        leverage_max: Maximum position leverage (> 1)
        epoch_length: Maintenance cadence in blocks (> 0)
        max_open_positions: Global cap on open positions
        pool_open_threshold: Minimum pool liquidity ratio to accept new positions (> 0)
        safety_factor: Margin-of-safety multiplier (> 0)
        whitelisting_enabled: Restrict eligibility to an explicit allow-list
        fallback_enabled: Enable the fallback liquidation path
        number_per_block: Positions processed per cycle, within [0, MAX_PAGE_LIMIT]
        enabled_pools: Pool ids eligible for leverage (no duplicates)
        exit_buffer: Buffer applied when exiting a position
        stop_loss_enabled: Enable automatic stop-loss closing
        liabilities_factor: Liabilities scaling for solvency checks, within (0, 1]
    """
    leverage_max: Optional[Decimal] = None
    epoch_length: int = 0
    max_open_positions: int = 0
    pool_open_threshold: Optional[Decimal] = None
    safety_factor: Optional[Decimal] = None
    whitelisting_enabled: bool = False
    fallback_enabled: bool = False
    number_per_block: int = 0
    enabled_pools: List[int] = field(default_factory=list)
    exit_buffer: Optional[Decimal] = None
    stop_loss_enabled: bool = False
    liabilities_factor: Optional[Decimal] = None

    def get_big_dec_safety_factor(self) -> Optional[Decimal]:
        """Safety factor at extended precision."""
        return big_dec_from_dec(self.safety_factor)

    def get_big_dec_pool_open_threshold(self) -> Optional[Decimal]:
        """Pool-open threshold at extended precision."""
        return big_dec_from_dec(self.pool_open_threshold)

    def get_big_dec_exit_buffer(self) -> Optional[Decimal]:
        """Exit buffer at extended precision."""
        return big_dec_from_dec(self.exit_buffer)

    def to_dict(self) -> Dict[str, Any]:
        """
        Flat record view for logging and persistence.

        Decimals are rendered as 18-place strings, absent decimals as None.

        Returns:
            Dictionary with every field in persisted order
        """
        return {
            "leverage_max": format_dec(self.leverage_max),
            "epoch_length": self.epoch_length,
            "max_open_positions": self.max_open_positions,
            "pool_open_threshold": format_dec(self.pool_open_threshold),
            "safety_factor": format_dec(self.safety_factor),
            "whitelisting_enabled": self.whitelisting_enabled,
            "fallback_enabled": self.fallback_enabled,
            "number_per_block": self.number_per_block,
            "enabled_pools": list(self.enabled_pools),
            "exit_buffer": format_dec(self.exit_buffer),
            "stop_loss_enabled": self.stop_loss_enabled,
            "liabilities_factor": format_dec(self.liabilities_factor),
        }


# =============================================================================
# Genesis Constructor
# =============================================================================

def new_params() -> Params:
    """
    Create the genesis parameter set.

    Every call returns a fresh instance; there is no shared default object
    to mutate.

    Reliability Level: SOVEREIGN TIER
    Input Constraints: None
    Side Effects: None

    Returns:
        Params populated with the genesis baseline values
    """
    return Params(
        leverage_max=new_dec(10),
        epoch_length=1,
        max_open_positions=9999,
        pool_open_threshold=new_dec_with_prec(2, 1),   # 0.2
        safety_factor=new_dec_with_prec(11, 1),        # 1.1
        whitelisting_enabled=False,
        fallback_enabled=True,
        number_per_block=1000,
        enabled_pools=[],
        exit_buffer=must_new_dec_from_str("0.05"),
        stop_loss_enabled=True,
        liabilities_factor=must_new_dec_from_str("1.0"),
    )


def default_params() -> Params:
    """Default parameter set used at genesis."""
    return new_params()


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "Params",
    "MAX_PAGE_LIMIT",
    "MAX_POOL_ID",
    "DECIMAL_FIELDS",
    "new_params",
    "default_params",
]
