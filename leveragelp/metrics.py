"""
============================================================================
Leveraged LP Module - Prometheus Metrics
============================================================================

Reliability Level: STANDARD
Side Effects: Updates Prometheus metrics registry

METRICS EXPOSED
---------------
- leveragelp_params_validations_total: Counter of parameter validations,
  labelled by result (accepted/rejected) and the rejecting field

============================================================================
"""

import logging

from prometheus_client import Counter

# Configure module logger
logger = logging.getLogger(__name__)


RESULT_ACCEPTED = "accepted"
RESULT_REJECTED = "rejected"

# Label value for accepted validations (no field rejected)
NO_FIELD = "none"


PARAMS_VALIDATIONS = Counter(
    "leveragelp_params_validations_total",
    "Total number of leveraged-LP parameter set validations",
    ["result", "field"]
)


def record_validation(result: str, field: str = NO_FIELD) -> None:
    """
    Record a parameter validation outcome.

    Reliability Level: STANDARD
    Input Constraints: result is RESULT_ACCEPTED or RESULT_REJECTED
    Side Effects: Increments Prometheus counter

    Args:
        result: Validation outcome label
        field: Field that rejected the candidate (NO_FIELD when accepted)
    """
    try:
        PARAMS_VALIDATIONS.labels(result=result, field=field).inc()
    except Exception as e:
        logger.error(
            "[OBS-001] Failed to record params validation metric | error=%s",
            str(e)
        )
