"""
Ledger error taxonomy.

Row-level problems (MalformedRowError, ParseError) are raised inside the
codec and converted to LedgerIssue records on the result; they never escape
an engine operation. LedgerFormatError is raised for whole documents that
cannot be read at all.
"""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class MalformedRowError(LedgerError):
    """A CSV record does not have the expected number of fields."""

    def __init__(self, message: str, row: int, field_count: int):
        super().__init__(message)
        self.row = row
        self.field_count = field_count


class ParseError(LedgerError):
    """A CSV field could not be converted to its typed value."""

    def __init__(self, message: str, row: int, field: str, value: str):
        super().__init__(message)
        self.row = row
        self.field = field
        self.value = value


class AmountParseError(ParseError):
    """The Amount column is not a finite decimal number."""
    pass


class LedgerFormatError(LedgerError):
    """A persisted JSON document is not valid."""
    pass
