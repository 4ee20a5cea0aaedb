"""Pipeline contracts: fail-fast enforcement of stage invariants.

Contracts fail immediately and loudly when pipeline stages don't produce
their promised invariants.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- Algorithms handle data edge cases (sentinels, empty years)
"""

from snowfree.contracts.failure import ContractViolation, FailurePolicy, GridMismatch
from snowfree.contracts.base import require
from snowfree.contracts.grid import assert_same_grid
from snowfree.contracts.phenology import (
    assert_cover_series,
    assert_event_series,
    assert_year_summary,
    assert_stacks_aligned,
)

__all__ = [
    "ContractViolation",
    "FailurePolicy",
    "GridMismatch",
    "require",
    "assert_same_grid",
    "assert_cover_series",
    "assert_event_series",
    "assert_year_summary",
    "assert_stacks_aligned",
]
