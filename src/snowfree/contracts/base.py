"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all contracts.
"""

from snowfree.contracts.failure import ContractViolation


def require(condition: bool, message: str, exc_type: type = ContractViolation) -> None:
    """Enforce a pipeline contract.

    This is called at stage boundaries to verify the preceding stage
    produced the guaranteed invariants. It is fail-fast: no recovery,
    no fallback, no silence.

    Parameters
    ----------
    condition : bool
        The invariant that must be true.

    message : str
        Error message explaining the contract violation (for debugging).

    exc_type : type, optional
        ContractViolation subclass to raise (default ContractViolation).

    Raises
    ------
    ContractViolation
        If condition is False. This indicates a bug in pipeline logic.

    Examples
    --------
    >>> require("time" in ds.dims, "Series contract: missing 'time' dimension")
    >>> require(len(years) > 0, "Stack contract: at least one year expected")
    """
    if not condition:
        raise exc_type(message)
