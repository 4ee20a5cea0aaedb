"""Recoverable per-year error conditions.

These are data conditions, not pipeline bugs: the processor reports them
as per-year diagnostics and keeps the melt/accumulation stacks aligned.
Pipeline bugs raise ContractViolation instead (see snowfree.contracts).
"""


class SnowfreeError(Exception):
    """Base class for recoverable snowfree errors."""

    def __init__(self, message: str, year: int | None = None):
        super().__init__(message)
        self.year = year


class EmptyYear(SnowfreeError):
    """A year's fused series has zero days (e.g. the catalog returned nothing)."""


class AcquisitionError(SnowfreeError):
    """Querying a year's sensor series from the provider failed."""
