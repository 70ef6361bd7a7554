"""
Unit Tests for Leveraged LP Params and Validator

Reliability Level: SOVEREIGN TIER

Tests the parameter set module:
- Genesis defaults and their validity
- Every validator rejection, in evaluation order
- Structured failures and the validation counter
"""

import os
import sys
from dataclasses import replace
from decimal import Decimal

import pytest
from prometheus_client import REGISTRY

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from leveragelp.decimal_gateway import (
    BIG_DEC_PRECISION,
    DECIMAL_CONVERSION_FAILED,
    FIXED_POINT_CONTEXT,
    MAX_DEC_MAGNITUDE,
    must_new_dec_from_str,
)
from leveragelp.params import (
    MAX_PAGE_LIMIT,
    MAX_POOL_ID,
    Params,
    default_params,
    new_params,
)
from leveragelp.validator import (
    ParamsConstraint,
    ParamsErrorCode,
    ParamsValidationError,
    contains_duplicates,
    first_duplicate,
    validate_params,
)


def D(value: str) -> Decimal:
    return must_new_dec_from_str(value)


def rejection(params: Params, **kwargs) -> ParamsValidationError:
    with pytest.raises(ParamsValidationError) as exc_info:
        validate_params(params, **kwargs)
    return exc_info.value


def counter_value(result: str, field: str) -> float:
    value = REGISTRY.get_sample_value(
        "leveragelp_params_validations_total",
        {"result": result, "field": field},
    )
    return value or 0.0


# =============================================================================
# Genesis Defaults
# =============================================================================

class TestDefaultParams:

    def test_default_values(self) -> None:
        params = default_params()

        assert params.leverage_max == Decimal("10")
        assert params.epoch_length == 1
        assert params.max_open_positions == 9999
        assert params.pool_open_threshold == Decimal("0.2")
        assert params.safety_factor == Decimal("1.1")
        assert params.whitelisting_enabled is False
        assert params.fallback_enabled is True
        assert params.number_per_block == 1000
        assert params.enabled_pools == []
        assert params.exit_buffer == Decimal("0.05")
        assert params.stop_loss_enabled is True
        assert params.liabilities_factor == Decimal("1.0")

    def test_defaults_validate(self) -> None:
        validate_params(default_params())

    def test_default_params_matches_new_params(self) -> None:
        assert default_params() == new_params()

    def test_each_call_returns_fresh_instance(self) -> None:
        """Mutating one genesis set never leaks into the next."""
        first = default_params()
        first.enabled_pools.append(7)
        first.leverage_max = D("3")

        second = default_params()

        assert second.enabled_pools == []
        assert second.leverage_max == Decimal("10")

    def test_bare_params_is_all_absent(self) -> None:
        params = Params()

        assert params.leverage_max is None
        assert params.pool_open_threshold is None
        assert params.safety_factor is None
        assert params.exit_buffer is None
        assert params.liabilities_factor is None
        assert params.enabled_pools == []

    def test_bare_params_fails_on_leverage_first(self) -> None:
        error = rejection(Params())

        assert error.field == "leverage_max"
        assert error.constraint == ParamsConstraint.NOT_NIL


# =============================================================================
# Extended-Precision Views
# =============================================================================

class TestBigDecViews:

    def test_views_equal_source_values(self) -> None:
        params = default_params()

        assert params.get_big_dec_safety_factor() == params.safety_factor
        assert params.get_big_dec_pool_open_threshold() == params.pool_open_threshold
        assert params.get_big_dec_exit_buffer() == params.exit_buffer

    def test_views_use_extended_precision(self) -> None:
        params = default_params()

        for view in (
            params.get_big_dec_safety_factor(),
            params.get_big_dec_pool_open_threshold(),
            params.get_big_dec_exit_buffer(),
        ):
            assert view.as_tuple().exponent == -BIG_DEC_PRECISION

    def test_views_do_not_validate(self) -> None:
        params = replace(default_params(), safety_factor=None, exit_buffer=D("-1"))

        assert params.get_big_dec_safety_factor() is None
        assert params.get_big_dec_exit_buffer() == Decimal("-1")


# =============================================================================
# Validator Rejections
# =============================================================================

class TestLeverageMax:

    def test_absent(self) -> None:
        error = rejection(replace(default_params(), leverage_max=None))

        assert error.field == "leverage_max"
        assert error.constraint == ParamsConstraint.NOT_NIL
        assert error.error_code == ParamsErrorCode.DECIMAL_ABSENT
        assert "leverage max must be not nil" in str(error)

    def test_exactly_one(self) -> None:
        error = rejection(replace(default_params(), leverage_max=D("1")))

        assert error.field == "leverage_max"
        assert error.constraint == ParamsConstraint.GREATER_THAN_ONE
        assert error.value == Decimal("1")

    def test_below_one(self) -> None:
        for raw in ["0.5", "0", "-3"]:
            error = rejection(replace(default_params(), leverage_max=D(raw)))
            assert error.field == "leverage_max"

    def test_just_above_one(self) -> None:
        validate_params(replace(default_params(), leverage_max=D("1.000000000000000001")))

    def test_float_is_malformed_not_crash(self) -> None:
        error = rejection(replace(default_params(), leverage_max=2.5))

        assert error.field == "leverage_max"
        assert error.constraint == ParamsConstraint.DECIMAL
        assert error.error_code == ParamsErrorCode.DECIMAL_MALFORMED

    def test_nan_is_malformed_not_crash(self) -> None:
        error = rejection(replace(default_params(), leverage_max=Decimal("NaN")))

        assert error.constraint == ParamsConstraint.DECIMAL


class TestFixedPointShape:
    """Accepted decimals must fit the 18-place fixed-point type exactly."""

    @pytest.mark.parametrize("field_name", [
        "leverage_max",
        "pool_open_threshold",
        "safety_factor",
        "exit_buffer",
        "liabilities_factor",
    ])
    def test_excess_places_rejected(self, field_name: str) -> None:
        value = Decimal("1.0000000000000000001")

        error = rejection(replace(default_params(), **{field_name: value}))

        assert error.field == field_name
        assert error.constraint == ParamsConstraint.DECIMAL
        assert error.error_code == ParamsErrorCode.DECIMAL_MALFORMED

    def test_trailing_zeros_beyond_precision_accepted(self) -> None:
        validate_params(replace(
            default_params(),
            pool_open_threshold=Decimal("0.20000000000000000000000"),
        ))

    def test_magnitude_above_bound_rejected(self) -> None:
        huge = Decimal("1" + "0" * 90)

        error = rejection(replace(default_params(), safety_factor=huge))

        assert error.field == "safety_factor"
        assert error.constraint == ParamsConstraint.DECIMAL

    def test_magnitude_bound_validates_and_widens(self) -> None:
        params = replace(default_params(), safety_factor=MAX_DEC_MAGNITUDE)

        validate_params(params)

        assert params.get_big_dec_safety_factor() == MAX_DEC_MAGNITUDE

    def test_just_above_bound_rejected(self) -> None:
        above = FIXED_POINT_CONTEXT.add(MAX_DEC_MAGNITUDE, Decimal("0.000000000000000001"))

        error = rejection(replace(default_params(), exit_buffer=above))

        assert error.field == "exit_buffer"
        assert error.constraint == ParamsConstraint.DECIMAL

    def test_flat_view_does_not_round_unvalidated_candidate(self) -> None:
        params = replace(default_params(), exit_buffer=Decimal("0.0500000000000000005"))

        assert params.to_dict()["exit_buffer"] == "0.0500000000000000005"

    def test_conversion_code_shared_with_gateway(self) -> None:
        assert ParamsErrorCode.DECIMAL_CONVERSION == DECIMAL_CONVERSION_FAILED == "LLP-001"


class TestEpochLength:

    @pytest.mark.parametrize("epoch_length", [0, -1, -100])
    def test_non_positive(self, epoch_length: int) -> None:
        error = rejection(replace(default_params(), epoch_length=epoch_length))

        assert error.field == "epoch_length"
        assert error.constraint == ParamsConstraint.POSITIVE
        assert error.value == epoch_length
        assert f"epoch length should be positive: {epoch_length}" in str(error)

    @pytest.mark.parametrize("epoch_length", [None, "5", 1.5, True])
    def test_non_integer_is_malformed_not_crash(self, epoch_length) -> None:
        error = rejection(replace(default_params(), epoch_length=epoch_length))

        assert error.field == "epoch_length"
        assert error.constraint == ParamsConstraint.INTEGER
        assert error.error_code == ParamsErrorCode.INTEGER_MALFORMED


class TestPoolOpenThresholdAndSafetyFactor:

    @pytest.mark.parametrize("field_name", ["pool_open_threshold", "safety_factor"])
    def test_absent(self, field_name: str) -> None:
        error = rejection(replace(default_params(), **{field_name: None}))

        assert error.field == field_name
        assert error.constraint == ParamsConstraint.NOT_NIL

    @pytest.mark.parametrize("field_name", ["pool_open_threshold", "safety_factor"])
    @pytest.mark.parametrize("raw", ["0", "-0.1"])
    def test_non_positive(self, field_name: str, raw: str) -> None:
        error = rejection(replace(default_params(), **{field_name: D(raw)}))

        assert error.field == field_name
        assert error.constraint == ParamsConstraint.POSITIVE


class TestNumberPerBlock:

    def test_negative(self) -> None:
        error = rejection(replace(default_params(), number_per_block=-1))

        assert error.field == "number_per_block"
        assert error.constraint == ParamsConstraint.NON_NEGATIVE

    def test_zero_is_allowed(self) -> None:
        validate_params(replace(default_params(), number_per_block=0))

    def test_page_limit_is_inclusive(self) -> None:
        validate_params(replace(default_params(), number_per_block=MAX_PAGE_LIMIT))

    def test_above_page_limit(self) -> None:
        error = rejection(replace(default_params(), number_per_block=MAX_PAGE_LIMIT + 1))

        assert error.field == "number_per_block"
        assert error.constraint == ParamsConstraint.MAX_PAGE_LIMIT

    def test_custom_page_limit(self) -> None:
        """10000 positions against a 9999 ceiling is rejected."""
        params = replace(default_params(), number_per_block=10000)

        error = rejection(params, max_page_limit=9999)

        assert error.field == "number_per_block"
        assert "page limit: 9999, number of positions: 10000" in str(error)

    @pytest.mark.parametrize("number_per_block", [None, "10", 2.0])
    def test_non_integer_is_malformed_not_crash(self, number_per_block) -> None:
        error = rejection(replace(default_params(), number_per_block=number_per_block))

        assert error.field == "number_per_block"
        assert error.constraint == ParamsConstraint.INTEGER


class TestEnabledPools:

    def test_unique_pools(self) -> None:
        validate_params(replace(default_params(), enabled_pools=[1, 2, 3]))

    def test_duplicate_pools(self) -> None:
        error = rejection(replace(default_params(), enabled_pools=[1, 2, 1]))

        assert error.field == "enabled_pools"
        assert error.constraint == ParamsConstraint.UNIQUE
        assert error.error_code == ParamsErrorCode.DUPLICATE_POOL
        assert error.value == 1

    def test_uint64_bounds_are_inclusive(self) -> None:
        validate_params(replace(default_params(), enabled_pools=[0, MAX_POOL_ID]))

    @pytest.mark.parametrize("pool_id", [-1, MAX_POOL_ID + 1])
    def test_pool_id_outside_uint64(self, pool_id: int) -> None:
        error = rejection(replace(default_params(), enabled_pools=[1, pool_id]))

        assert error.field == "enabled_pools"
        assert error.constraint == ParamsConstraint.UINT64
        assert error.value == pool_id

    @pytest.mark.parametrize("pools", [None, [1, "2"], [1, None]])
    def test_malformed_pools_not_crash(self, pools) -> None:
        error = rejection(replace(default_params(), enabled_pools=pools))

        assert error.field == "enabled_pools"
        assert error.constraint == ParamsConstraint.INTEGER

    def test_range_checked_before_duplicates(self) -> None:
        error = rejection(replace(default_params(), enabled_pools=[-1, -1]))

        assert error.constraint == ParamsConstraint.UINT64

    def test_first_duplicate_in_iteration_order(self) -> None:
        assert first_duplicate([5, 9, 9, 5]) == 9
        assert first_duplicate([5, 9, 5, 9]) == 5
        assert first_duplicate([1, 2, 3]) is None
        assert first_duplicate([]) is None

    def test_contains_duplicates(self) -> None:
        assert contains_duplicates([4, 4]) is True
        assert contains_duplicates([4]) is False


class TestExitBuffer:

    def test_absent(self) -> None:
        error = rejection(replace(default_params(), exit_buffer=None))

        assert error.field == "exit_buffer"
        assert error.constraint == ParamsConstraint.NOT_NIL

    def test_zero_and_negative_are_present(self) -> None:
        """Only presence is enforced for the exit buffer."""
        validate_params(replace(default_params(), exit_buffer=D("0")))
        validate_params(replace(default_params(), exit_buffer=D("-0.01")))


class TestLiabilitiesFactor:

    def test_absent(self) -> None:
        error = rejection(replace(default_params(), liabilities_factor=None))

        assert error.field == "liabilities_factor"
        assert error.constraint == ParamsConstraint.NOT_NIL

    @pytest.mark.parametrize("raw", ["0", "-1"])
    def test_non_positive(self, raw: str) -> None:
        error = rejection(replace(default_params(), liabilities_factor=D(raw)))

        assert error.field == "liabilities_factor"
        assert error.constraint == ParamsConstraint.POSITIVE

    def test_one_is_inclusive(self) -> None:
        validate_params(replace(default_params(), liabilities_factor=D("1.0")))

    def test_above_one(self) -> None:
        error = rejection(replace(default_params(), liabilities_factor=D("1.0000001")))

        assert error.field == "liabilities_factor"
        assert error.constraint == ParamsConstraint.AT_MOST_ONE


# =============================================================================
# Ordering And Reporting
# =============================================================================

class TestFailFastOrdering:

    def test_first_violation_wins(self) -> None:
        params = replace(
            default_params(),
            epoch_length=0,
            safety_factor=None,
            enabled_pools=[3, 3],
            liabilities_factor=D("2"),
        )

        assert rejection(params).field == "epoch_length"

        params.epoch_length = 5
        assert rejection(params).field == "safety_factor"

        params.safety_factor = D("1.5")
        assert rejection(params).field == "enabled_pools"

        params.enabled_pools = [3]
        assert rejection(params).field == "liabilities_factor"

        params.liabilities_factor = D("0.9")
        validate_params(params)

    def test_max_open_positions_is_unbounded(self) -> None:
        validate_params(replace(default_params(), max_open_positions=-5))


class TestStructuredFailure:

    def test_to_dict(self) -> None:
        error = rejection(replace(default_params(), leverage_max=D("0.5")))

        assert error.to_dict() == {
            "field": "leverage_max",
            "constraint": "GREATER_THAN_ONE",
            "value": "0.500000000000000000",
            "error_code": "LLP-020",
            "message": "leverage max must be greater than 1: 0.500000000000000000",
        }

    def test_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            validate_params(replace(default_params(), epoch_length=0))

    def test_rejection_is_logged_with_correlation_id(self, caplog) -> None:
        with caplog.at_level("WARNING"):
            with pytest.raises(ParamsValidationError):
                validate_params(
                    replace(default_params(), epoch_length=0),
                    correlation_id="proposal-42",
                )

        assert "[LLP-020] Params REJECTED" in caplog.text
        assert "field=epoch_length" in caplog.text
        assert "correlation_id=proposal-42" in caplog.text


class TestValidationMetrics:

    def test_accepted_increments_counter(self) -> None:
        before = counter_value("accepted", "none")

        validate_params(default_params())

        assert counter_value("accepted", "none") == before + 1

    def test_rejected_increments_counter_for_field(self) -> None:
        before = counter_value("rejected", "exit_buffer")

        with pytest.raises(ParamsValidationError):
            validate_params(replace(default_params(), exit_buffer=None))

        assert counter_value("rejected", "exit_buffer") == before + 1
