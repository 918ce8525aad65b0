"""Exception types raised by the journal engine.

Input errors abort an operation before any state is touched. Inference
errors wrap any failure of a delegated model call. Persistence errors are
never raised; the journal logs them and keeps its in-memory copy.
"""


class JournalError(Exception):
    """Base class for all journal errors."""


class JournalInputError(JournalError, ValueError):
    """The user supplied input the operation cannot work with."""


class EmptyImportError(JournalInputError):
    """The file is empty or could not be read into any rows."""

    def __init__(self, message: str = "The file is empty or could not be read."):
        super().__init__(message)


class WorkbookReadError(JournalInputError):
    """The spreadsheet could not be parsed."""


class InsufficientTradesError(JournalInputError):
    """Too few trades to run an analysis."""

    def __init__(self, minimum: int, actual: int):
        self.minimum = minimum
        self.actual = actual
        super().__init__(
            f"Please add at least {minimum} trades to run analysis "
            f"(journal has {actual})."
        )


class NoAnalysisError(JournalInputError):
    """An export was requested before any analysis was run."""

    def __init__(self, message: str = "Please run the analysis first to generate a report."):
        super().__init__(message)


class MissingApiKeyError(JournalInputError):
    """A model-backed engine was selected without an API key."""


class NothingToImportError(JournalError):
    """Rows were read but none of them could be turned into a trade."""

    def __init__(self, rows_read: int):
        self.rows_read = rows_read
        super().__init__(
            f"Could not find any valid trades in the file ({rows_read} rows read). "
            "Please check the file content and try again."
        )


class InferenceError(JournalError, RuntimeError):
    """The external model call failed or returned unusable output."""


class OperationInProgressError(JournalError, RuntimeError):
    """An operation was triggered while another one is still running."""


class DuplicateTradeError(JournalError, ValueError):
    """A trade id is already present in the journal."""
