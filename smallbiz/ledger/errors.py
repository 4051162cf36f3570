"""Ledger exceptions."""


class EmptySelectionError(ValueError):
    """A bulk action was requested with nothing selected."""
    pass
