"""
============================================================================
Leveraged LP Module - Genesis Configuration
============================================================================

Reliability Level: L6 Critical (Sovereign Tier)
Decimal Integrity: All decimal overrides pass through the Decimal Gateway
Traceability: Loaded values are logged

This module builds the genesis parameter set from the baseline defaults
plus operator overrides taken from the environment:
- Environment variable parsing with type safety
- Optional .env file loading (python-dotenv)
- Fail-closed behavior on malformed overrides or invalid results (LLP-040)

ENVIRONMENT VARIABLES (all optional):
    - LEVERAGELP_LEVERAGE_MAX: Decimal (default: 10)
    - LEVERAGELP_EPOCH_LENGTH: Integer blocks (default: 1)
    - LEVERAGELP_MAX_OPEN_POSITIONS: Integer (default: 9999)
    - LEVERAGELP_POOL_OPEN_THRESHOLD: Decimal (default: 0.2)
    - LEVERAGELP_SAFETY_FACTOR: Decimal (default: 1.1)
    - LEVERAGELP_WHITELISTING_ENABLED: Boolean (default: false)
    - LEVERAGELP_FALLBACK_ENABLED: Boolean (default: true)
    - LEVERAGELP_NUMBER_PER_BLOCK: Integer (default: 1000)
    - LEVERAGELP_ENABLED_POOLS: Comma-separated pool ids (default: none)
    - LEVERAGELP_EXIT_BUFFER: Decimal (default: 0.05)
    - LEVERAGELP_STOP_LOSS_ENABLED: Boolean (default: true)
    - LEVERAGELP_LIABILITIES_FACTOR: Decimal (default: 1.0)

An empty value is treated as unset.

ERROR CODES:
    - LLP-040: Genesis configuration rejected

============================================================================
"""

from typing import Callable, Dict, List, Mapping, Optional
import logging
import os

from dotenv import load_dotenv

from leveragelp.decimal_gateway import must_new_dec_from_str
from leveragelp.params import Params, default_params
from leveragelp.validator import (
    ParamsErrorCode,
    ParamsValidationError,
    validate_params,
)

# Configure module logger
logger = logging.getLogger(__name__)


ENV_PREFIX = "LEVERAGELP_"

TRUTHY_VALUES = ("true", "1", "yes", "on")
FALSY_VALUES = ("false", "0", "no", "off")


# =============================================================================
# Configuration Exception
# =============================================================================

class ParamsConfigurationError(Exception):
    """
    Raised when the genesis configuration is malformed or unsafe.

    Genesis is fail-closed: the node must not start with a parameter set
    that was silently patched back to defaults.
    """

    def __init__(self, message: str, error_code: str = ParamsErrorCode.CONFIG_REJECTED):
        self.error_code = error_code
        self.message = message
        super().__init__(f"[{error_code}] {message}")


# =============================================================================
# Value Parsers
# =============================================================================

def _parse_bool(raw: str) -> bool:
    value = raw.lower()
    if value in TRUTHY_VALUES:
        return True
    if value in FALSY_VALUES:
        return False
    raise ValueError(f"expected one of {TRUTHY_VALUES + FALSY_VALUES}, got '{raw}'")


def _parse_pools(raw: str) -> List[int]:
    """Comma-separated pool ids. Order and repeats are kept for the validator."""
    pools: List[int] = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        pool_id = int(item)
        if pool_id < 0:
            raise ValueError(f"pool id must be unsigned, got {pool_id}")
        pools.append(pool_id)
    return pools


# Params attribute -> parser for its environment value
FIELD_PARSERS: Dict[str, Callable[[str], object]] = {
    "leverage_max": must_new_dec_from_str,
    "epoch_length": int,
    "max_open_positions": int,
    "pool_open_threshold": must_new_dec_from_str,
    "safety_factor": must_new_dec_from_str,
    "whitelisting_enabled": _parse_bool,
    "fallback_enabled": _parse_bool,
    "number_per_block": int,
    "enabled_pools": _parse_pools,
    "exit_buffer": must_new_dec_from_str,
    "stop_loss_enabled": _parse_bool,
    "liabilities_factor": must_new_dec_from_str,
}


def env_var_name(field_name: str) -> str:
    """Environment variable carrying the override for a Params field."""
    return f"{ENV_PREFIX}{field_name.upper()}"


# =============================================================================
# Loader
# =============================================================================

def load_genesis_params(
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
    validate: bool = True,
) -> Params:
    """
    Build the genesis parameter set from defaults and environment overrides.

    Args:
        environ: Mapping to read overrides from (default: os.environ)
        dotenv_path: Optional .env file loaded into os.environ first.
            Variables already set in the environment win.
        validate: Whether to validate the resulting set (default: True)

    Returns:
        Genesis Params

    Raises:
        ParamsConfigurationError: If an override is malformed or the
            resulting set fails validation (LLP-040)

    Reliability Level: SOVEREIGN TIER
    Side Effects: Reads the environment, optionally loads a .env file, logs
    """
    if dotenv_path is not None:
        load_dotenv(dotenv_path, override=False)

    if environ is None:
        environ = os.environ

    params = default_params()
    overridden: List[str] = []

    for field_name, parser in FIELD_PARSERS.items():
        var = env_var_name(field_name)
        raw = environ.get(var)
        if raw is None or not raw.strip():
            continue

        try:
            value = parser(raw.strip())
        except ValueError as e:
            logger.error(
                f"[{ParamsErrorCode.CONFIG_REJECTED}] Invalid {var} value: {raw} | error={e}"
            )
            raise ParamsConfigurationError(f"invalid {var} value '{raw}': {e}") from e

        setattr(params, field_name, value)
        overridden.append(field_name)

    logger.info(
        f"[LLP-CONFIG] Genesis params loaded | "
        f"overrides={overridden or 'none'} | "
        f"params={params.to_dict()}"
    )

    if validate:
        try:
            validate_params(params, correlation_id="genesis")
        except ParamsValidationError as e:
            logger.error(
                f"[{ParamsErrorCode.CONFIG_REJECTED}] Genesis params rejected | "
                f"field={e.field} | {e.message}"
            )
            raise ParamsConfigurationError(
                f"genesis params rejected: {e.message}"
            ) from e

    return params


__all__ = [
    "ENV_PREFIX",
    "FIELD_PARSERS",
    "ParamsConfigurationError",
    "env_var_name",
    "load_genesis_params",
]
