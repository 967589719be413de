"""
POS Bootstrap - System Errors
=============================
A ledger that boots on a broken schema is worse than one that refuses to.
"""


class SystemBootstrapError(Exception):
    """Raised when a startup invariant does not hold. No warning-only mode."""

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"POS BOOTSTRAP FAILURE - {invariant}: {detail}")
