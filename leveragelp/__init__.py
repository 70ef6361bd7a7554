"""
Leveraged LP Module - risk parameter definition, defaults and validation.
"""

from leveragelp.params import MAX_PAGE_LIMIT, Params, default_params, new_params
from leveragelp.validator import (
    ParamsConstraint,
    ParamsErrorCode,
    ParamsValidationError,
    validate_params,
)

__all__ = [
    "MAX_PAGE_LIMIT",
    "Params",
    "default_params",
    "new_params",
    "ParamsConstraint",
    "ParamsErrorCode",
    "ParamsValidationError",
    "validate_params",
]
