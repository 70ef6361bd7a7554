"""
============================================================================
Leveraged LP Module - Persisted Params Record
============================================================================

Reliability Level: SOVEREIGN TIER (Mission-Critical)
Input Constraints: 18-place fixed-point decimals, zero floats
Side Effects: None (pure encode/decode)

The committed parameter set is persisted as a flat JSON record. Decimal
fields are strings with exactly 18 fractional digits; an absent decimal is
JSON null, which is never confused with "0.000000000000000000".

This schema checks SHAPE only. Semantic bounds (leverage > 1, ...) belong
to leveragelp.validator and are not applied on decode, so a stored record
is always read back exactly as written.

============================================================================
"""

from decimal import Decimal
from typing import Any, List, Optional, Union
import json
import logging

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from leveragelp.decimal_gateway import PRECISION, format_dec, to_dec
from leveragelp.params import DECIMAL_FIELDS, MAX_POOL_ID, Params
from leveragelp.validator import ParamsErrorCode

# Configure module logger
logger = logging.getLogger(__name__)


class ParamsRecordError(ValueError):
    """Raised when a persisted params record cannot be decoded (LLP-050)."""

    def __init__(self, message: str, error_code: str = ParamsErrorCode.RECORD_MALFORMED):
        self.error_code = error_code
        self.message = message
        super().__init__(f"[{error_code}] {message}")


def validate_fixed_point(value: Any, field_name: str) -> Optional[Decimal]:
    """
    Check a persisted decimal and return it at standard precision.

    Raises:
        ValueError: On float input, non-finite values or more than 18
            fractional digits
    """
    if value is None:
        return None

    if isinstance(value, (float, bool)):
        raise ValueError(
            f"[{ParamsErrorCode.RECORD_MALFORMED}] {field_name} received "
            f"{type(value).__name__} type. Decimals are persisted as strings. "
            f"Received: {value}"
        )

    if not isinstance(value, (str, int, Decimal)):
        raise ValueError(
            f"[{ParamsErrorCode.RECORD_MALFORMED}] {field_name} must be a "
            f"decimal string. Received: {type(value).__name__}"
        )

    try:
        raw = Decimal(str(value).strip())
    except ArithmeticError:
        raise ValueError(
            f"[{ParamsErrorCode.RECORD_MALFORMED}] {field_name} is not a valid "
            f"decimal number. Received: {value}"
        )

    if not raw.is_finite():
        raise ValueError(
            f"[{ParamsErrorCode.RECORD_MALFORMED}] {field_name} must be a finite "
            f"number. Received: {value}"
        )

    exponent = raw.as_tuple().exponent
    if exponent < 0 and abs(exponent) > PRECISION and raw != to_dec(raw):
        raise ValueError(
            f"[{ParamsErrorCode.RECORD_MALFORMED}] {field_name} exceeds maximum "
            f"{PRECISION} decimal places. Received: {value}"
        )

    return to_dec(raw)


class ParamsRecord(BaseModel):
    """
    Flat persisted layout of the leveraged-LP parameter set.

    Field order matches the on-disk record.
    """

    model_config = ConfigDict(
        # Strict mode: reject unknown fields
        extra="forbid",
    )

    leverage_max: Optional[Decimal] = None
    epoch_length: int = 0
    max_open_positions: int = 0
    pool_open_threshold: Optional[Decimal] = None
    safety_factor: Optional[Decimal] = None
    whitelisting_enabled: bool = False
    fallback_enabled: bool = False
    number_per_block: int = 0
    enabled_pools: List[int] = Field(default_factory=list)
    exit_buffer: Optional[Decimal] = None
    stop_loss_enabled: bool = False
    liabilities_factor: Optional[Decimal] = None

    @field_validator(*DECIMAL_FIELDS, mode="before")
    @classmethod
    def validate_decimal_fields(cls, v: Any, info: ValidationInfo) -> Optional[Decimal]:
        """Fixed-point shape check for every decimal field."""
        return validate_fixed_point(v, info.field_name)

    @field_validator("enabled_pools")
    @classmethod
    def validate_pool_ids(cls, v: List[int]) -> List[int]:
        """Pool ids are unsigned 64-bit integers. Duplicates are left to the validator."""
        for pool_id in v:
            if pool_id < 0 or pool_id > MAX_POOL_ID:
                raise ValueError(
                    f"[{ParamsErrorCode.RECORD_MALFORMED}] pool id out of uint64 "
                    f"range: {pool_id}"
                )
        return v

    @classmethod
    def from_params(cls, params: Params) -> "ParamsRecord":
        """Build the persisted record from a Params instance."""
        return cls(
            leverage_max=params.leverage_max,
            epoch_length=params.epoch_length,
            max_open_positions=params.max_open_positions,
            pool_open_threshold=params.pool_open_threshold,
            safety_factor=params.safety_factor,
            whitelisting_enabled=params.whitelisting_enabled,
            fallback_enabled=params.fallback_enabled,
            number_per_block=params.number_per_block,
            enabled_pools=list(params.enabled_pools),
            exit_buffer=params.exit_buffer,
            stop_loss_enabled=params.stop_loss_enabled,
            liabilities_factor=params.liabilities_factor,
        )

    def to_params(self) -> Params:
        """Rebuild a Params candidate from the record."""
        return Params(
            leverage_max=self.leverage_max,
            epoch_length=self.epoch_length,
            max_open_positions=self.max_open_positions,
            pool_open_threshold=self.pool_open_threshold,
            safety_factor=self.safety_factor,
            whitelisting_enabled=self.whitelisting_enabled,
            fallback_enabled=self.fallback_enabled,
            number_per_block=self.number_per_block,
            enabled_pools=list(self.enabled_pools),
            exit_buffer=self.exit_buffer,
            stop_loss_enabled=self.stop_loss_enabled,
            liabilities_factor=self.liabilities_factor,
        )


def encode_params(params: Params) -> str:
    """
    Serialize a parameter set to its persisted JSON record.

    Decimals are written as 18-place strings, absent decimals as null.

    Raises:
        ParamsRecordError: If a field cannot be represented (e.g. a float
            decimal on an unvalidated candidate)
    """
    try:
        record = ParamsRecord.from_params(params)
    except ValidationError as e:
        raise ParamsRecordError(f"params cannot be encoded: {e}") from e

    payload = record.model_dump()
    for name in DECIMAL_FIELDS:
        payload[name] = format_dec(payload[name])
    return json.dumps(payload)


def decode_params(raw: Union[str, bytes]) -> Params:
    """
    Parse a persisted JSON record into a Params candidate.

    Raises:
        ParamsRecordError: If the record is not valid JSON or has the wrong
            shape (LLP-050)
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.error(
            "[%s] Params record is not valid JSON | error=%s",
            ParamsErrorCode.RECORD_MALFORMED, str(e)
        )
        raise ParamsRecordError(f"params record is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParamsRecordError(
            f"params record must be a JSON object, got {type(data).__name__}"
        )

    try:
        record = ParamsRecord.model_validate(data)
    except ValidationError as e:
        logger.error(
            "[%s] Params record rejected | errors=%d | detail=%s",
            ParamsErrorCode.RECORD_MALFORMED, e.error_count(), str(e)
        )
        raise ParamsRecordError(f"params record has invalid shape: {e}") from e

    return record.to_params()


__all__ = [
    "ParamsRecord",
    "ParamsRecordError",
    "MAX_POOL_ID",
    "validate_fixed_point",
    "encode_params",
    "decode_params",
]
