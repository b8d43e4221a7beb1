"""Exceptions raised by the statement ingestion pipeline.

Row-level problems never surface here: adapters count and skip bad rows.
These exceptions cover whole-file failures and lookups of unknown entities.
"""


class IngestionError(Exception):
    """Base class for ingestion failures."""


class FormatValidationError(IngestionError):
    """The file does not match the expected bank statement layout."""


class UnsupportedFileTypeError(FormatValidationError):
    """The file extension is not accepted by the selected bank."""


class NoTransactionsError(IngestionError):
    """Parsing finished without a single usable transaction."""


class PasswordRequiredError(IngestionError):
    """The workbook is encrypted and no password was supplied."""


class DecryptionError(IngestionError):
    """The workbook could not be decrypted with the supplied password."""


class UnsupportedBankError(IngestionError):
    """No adapter is registered for the requested bank."""


class TransactionNotFoundError(IngestionError):
    """A transaction id referenced by the caller does not exist."""
