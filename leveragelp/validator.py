"""
============================================================================
Leveraged LP Module - Parameter Validator
============================================================================

Reliability Level: SOVEREIGN TIER (Mission-Critical)
Input Constraints: Any Params candidate, including absent/malformed decimals
Side Effects: Logging and metrics only (no state is read or written)

PURPOSE
-------
Every proposed parameter set passes through validate_params() before it
may be committed. Position, liquidation and interest logic trust committed
values unconditionally, so anything that could destabilise the risk model
is rejected here.

EVALUATION ORDER (Short-Circuit)
--------------------------------
1. leverage_max        present, > 1
2. epoch_length        > 0
3. pool_open_threshold present, > 0
4. safety_factor       present, > 0
5. number_per_block    >= 0 and <= max_page_limit
6. enabled_pools       uint64 ids, no duplicate ids
7. exit_buffer         present
8. liabilities_factor  present, > 0, <= 1

Decimal fields must be 18-place fixed-point values within MAX_DEC_MAGNITUDE
and integer fields must be ints. A malformed value is rejected at its own
step, so anything accepted here can be persisted and widened.

The first violation raises ParamsValidationError. Later checks do not run.

DETERMINISM
-----------
No environment, clock or module state is consulted. The same candidate
always produces the same outcome.

============================================================================
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional
import logging

from leveragelp.decimal_gateway import (
    DECIMAL_CONVERSION_FAILED,
    MAX_DEC_MAGNITUDE,
    PRECISION,
    is_standard_precision,
)
from leveragelp.metrics import RESULT_ACCEPTED, RESULT_REJECTED, record_validation
from leveragelp.params import MAX_PAGE_LIMIT, MAX_POOL_ID, Params

# Configure module logger
logger = logging.getLogger(__name__)


ONE = Decimal(1)
ZERO = Decimal(0)


# =============================================================================
# Error Codes
# =============================================================================

class ParamsErrorCode:
    """Leveraged-LP parameter error codes for audit logging."""
    DECIMAL_CONVERSION = DECIMAL_CONVERSION_FAILED
    DECIMAL_ABSENT = "LLP-010"
    DECIMAL_MALFORMED = "LLP-011"
    INTEGER_MALFORMED = "LLP-012"
    OUT_OF_BOUNDS = "LLP-020"
    DUPLICATE_POOL = "LLP-030"
    CONFIG_REJECTED = "LLP-040"
    RECORD_MALFORMED = "LLP-050"


class ParamsConstraint(str, Enum):
    """Machine-readable constraint identifiers reported to proposers."""
    NOT_NIL = "NOT_NIL"
    DECIMAL = "DECIMAL"
    INTEGER = "INTEGER"
    GREATER_THAN_ONE = "GREATER_THAN_ONE"
    POSITIVE = "POSITIVE"
    NON_NEGATIVE = "NON_NEGATIVE"
    MAX_PAGE_LIMIT = "MAX_PAGE_LIMIT"
    UINT64 = "UINT64"
    UNIQUE = "UNIQUE"
    AT_MOST_ONE = "AT_MOST_ONE"


# =============================================================================
# Validation Exception
# =============================================================================

class ParamsValidationError(ValueError):
    """
    Raised for the first constraint a parameter set violates.

    Attributes:
        field: Params attribute name that failed
        constraint: ParamsConstraint that was violated
        value: Observed value, when informative
        error_code: LLP-0xx code
        message: Human-readable description
    """

    def __init__(
        self,
        field: str,
        constraint: ParamsConstraint,
        message: str,
        value: Any = None,
        error_code: str = ParamsErrorCode.OUT_OF_BOUNDS,
    ):
        self.field = field
        self.constraint = constraint
        self.value = value
        self.error_code = error_code
        self.message = message
        super().__init__(f"[{error_code}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Structured failure for the proposer."""
        return {
            "field": self.field,
            "constraint": self.constraint.value,
            "value": None if self.value is None else str(self.value),
            "error_code": self.error_code,
            "message": self.message,
        }


# =============================================================================
# Duplicate Detection
# =============================================================================

def first_duplicate(values: Iterable[int]) -> Optional[int]:
    """
    Return the first identifier seen twice, in iteration order.

    Single pass: each id is inserted into a working set and a collision on
    insertion is the duplicate.
    """
    seen = set()
    for value in values:
        if value in seen:
            return value
        seen.add(value)
    return None


def contains_duplicates(values: Iterable[int]) -> bool:
    """True if any identifier appears more than once."""
    return first_duplicate(values) is not None


# =============================================================================
# Checks
# =============================================================================

def _require_dec(field: str, label: str, value: Any) -> Decimal:
    """Presence and shape check shared by every decimal field."""
    if value is None:
        raise ParamsValidationError(
            field,
            ParamsConstraint.NOT_NIL,
            f"{label} must be not nil",
            error_code=ParamsErrorCode.DECIMAL_ABSENT,
        )
    if not is_standard_precision(value):
        raise ParamsValidationError(
            field,
            ParamsConstraint.DECIMAL,
            f"{label} must be a finite Decimal with at most {PRECISION} decimal "
            f"places and magnitude <= {MAX_DEC_MAGNITUDE}, "
            f"got {type(value).__name__}: {value}",
            value=value,
            error_code=ParamsErrorCode.DECIMAL_MALFORMED,
        )
    return value


def _require_int(field: str, label: str, value: Any) -> int:
    # bool is an int subclass but never a valid count
    if not isinstance(value, int) or isinstance(value, bool):
        raise ParamsValidationError(
            field,
            ParamsConstraint.INTEGER,
            f"{label} must be an integer, got {type(value).__name__}: {value}",
            value=value,
            error_code=ParamsErrorCode.INTEGER_MALFORMED,
        )
    return value


def _check_pool_ids(pools: Any) -> None:
    if not isinstance(pools, (list, tuple)):
        raise ParamsValidationError(
            "enabled_pools",
            ParamsConstraint.INTEGER,
            f"enabled pools must be a list of pool ids, got {type(pools).__name__}",
            value=pools,
            error_code=ParamsErrorCode.INTEGER_MALFORMED,
        )
    for pool_id in pools:
        _require_int("enabled_pools", "enabled pool id", pool_id)
        if pool_id < 0 or pool_id > MAX_POOL_ID:
            raise ParamsValidationError(
                "enabled_pools",
                ParamsConstraint.UINT64,
                f"enabled pool id out of uint64 range: {pool_id}",
                value=pool_id,
            )


def _require_positive(field: str, label: str, value: Decimal) -> None:
    if not value > ZERO:
        raise ParamsValidationError(
            field,
            ParamsConstraint.POSITIVE,
            f"{label} must be positive: {value}",
            value=value,
        )


def _check(params: Params, max_page_limit: int) -> None:
    leverage_max = _require_dec("leverage_max", "leverage max", params.leverage_max)
    if not leverage_max > ONE:
        raise ParamsValidationError(
            "leverage_max",
            ParamsConstraint.GREATER_THAN_ONE,
            f"leverage max must be greater than 1: {leverage_max}",
            value=leverage_max,
        )

    epoch_length = _require_int("epoch_length", "epoch length", params.epoch_length)
    if epoch_length <= 0:
        raise ParamsValidationError(
            "epoch_length",
            ParamsConstraint.POSITIVE,
            f"epoch length should be positive: {epoch_length}",
            value=epoch_length,
        )

    pool_open_threshold = _require_dec(
        "pool_open_threshold", "pool open threshold", params.pool_open_threshold
    )
    _require_positive("pool_open_threshold", "pool open threshold", pool_open_threshold)

    safety_factor = _require_dec("safety_factor", "safety factor", params.safety_factor)
    _require_positive("safety_factor", "safety factor", safety_factor)

    number_per_block = _require_int(
        "number_per_block", "number of positions per block", params.number_per_block
    )
    if number_per_block < 0:
        raise ParamsValidationError(
            "number_per_block",
            ParamsConstraint.NON_NEGATIVE,
            f"number of positions per block must not be negative: {number_per_block}",
            value=number_per_block,
        )
    if number_per_block > max_page_limit:
        raise ParamsValidationError(
            "number_per_block",
            ParamsConstraint.MAX_PAGE_LIMIT,
            f"number of positions per block should not exceed page limit: "
            f"{max_page_limit}, number of positions: {number_per_block}",
            value=number_per_block,
        )

    _check_pool_ids(params.enabled_pools)
    duplicate = first_duplicate(params.enabled_pools)
    if duplicate is not None:
        raise ParamsValidationError(
            "enabled_pools",
            ParamsConstraint.UNIQUE,
            f"enabled pools must not contain duplicate values: pool {duplicate}",
            value=duplicate,
            error_code=ParamsErrorCode.DUPLICATE_POOL,
        )

    _require_dec("exit_buffer", "exit buffer", params.exit_buffer)

    liabilities_factor = _require_dec(
        "liabilities_factor", "liabilities factor", params.liabilities_factor
    )
    _require_positive("liabilities_factor", "liabilities factor", liabilities_factor)
    if liabilities_factor > ONE:
        raise ParamsValidationError(
            "liabilities_factor",
            ParamsConstraint.AT_MOST_ONE,
            f"liabilities factor must be less than or equal to 1: {liabilities_factor}",
            value=liabilities_factor,
        )


# =============================================================================
# Public Entry Point
# =============================================================================

def validate_params(
    params: Params,
    max_page_limit: int = MAX_PAGE_LIMIT,
    correlation_id: Optional[str] = None
) -> None:
    """
    Validate a candidate parameter set before it is committed.

    Reliability Level: SOVEREIGN TIER (Mission-Critical)
    Input Constraints: Any Params instance
    Side Effects: Logs the outcome, increments the validation counter

    Args:
        params: Candidate parameter set
        max_page_limit: Ceiling for number_per_block
        correlation_id: Audit trail identifier (e.g. proposal id)

    Raises:
        ParamsValidationError: On the first violated constraint
    """
    try:
        _check(params, max_page_limit)
    except ParamsValidationError as e:
        logger.warning(
            "[%s] Params REJECTED | field=%s | constraint=%s | %s | correlation_id=%s",
            e.error_code, e.field, e.constraint.value, e.message, correlation_id
        )
        record_validation(RESULT_REJECTED, e.field)
        raise

    logger.debug("Params ACCEPTED | correlation_id=%s", correlation_id)
    record_validation(RESULT_ACCEPTED)


__all__ = [
    "ParamsErrorCode",
    "ParamsConstraint",
    "ParamsValidationError",
    "first_duplicate",
    "contains_duplicates",
    "validate_params",
]
