"""Custom exception classes shared by every tier of CrudFs."""

from typing import Optional


class CrudFsError(Exception):
    """
    Base exception class for all CrudFs-related errors.
    """
    pass


class LocalIOError(CrudFsError):
    """
    Raised when a local file cannot be read or written.
    """
    pass


class LocalFileNotFoundError(LocalIOError):
    """
    Raised when a local file to be tracked or hashed does not exist.
    """
    pass


class MalformedIdentifierError(CrudFsError):
    """
    Raised when a content identifier string cannot be parsed.
    """
    pass


class DecodeError(CrudFsError):
    """
    Raised when ledger data or a stored key cannot be decoded into a record.
    """
    pass


class LedgerError(CrudFsError):
    """
    Base class for failures reported by the remote ledger tier.
    """
    pass


class LedgerRejectedError(LedgerError):
    """
    Raised when the ledger refuses a write (revert, failed receipt, RPC error).
    """
    pass


class LedgerUnavailableError(LedgerError):
    """
    Raised when the ledger cannot be reached.
    """
    pass


class LedgerTimeoutError(LedgerError):
    """
    Raised when a submitted transaction is not confirmed within the timeout.
    """
    pass


class EventNotFoundError(LedgerError):
    """
    Raised when a transaction is confirmed but its confirmation event is missing.
    """
    pass


class LedgerInconsistencyError(LedgerError):
    """
    Raised when a confirmation event does not match the request it confirms.
    """
    pass


class RecordNotFoundError(LedgerError):
    """
    Raised when the ledger has no entry for a key.
    """
    pass


class StoreError(CrudFsError):
    """
    Base class for failures reported by the remote blob store tier.
    """
    pass


class StoreRejectedError(StoreError):
    """
    Raised when the blob store answers with a non-success HTTP status.
    """

    def __init__(self, status: int, detail: Optional[str] = None):
        self.status = status
        self.detail = detail
        message = f"Blob store rejected request with status {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StoreUnavailableError(StoreError):
    """
    Raised when the blob store cannot be reached or times out.
    """
    pass


class AlreadyExistsError(CrudFsError):
    """
    Raised when creating a path that the manifest already tracks.
    """
    pass


class NotTrackedError(CrudFsError):
    """
    Raised when reading, updating or deleting a path the manifest does not track.
    """
    pass


class InvalidLedgerAddressError(CrudFsError):
    """
    Raised when a ledger contract address is not a 0x-prefixed 20-byte hex string.
    """
    pass


class ManifestNotFoundError(CrudFsError):
    """
    Raised when no manifest file exists at the requested path.
    """
    pass


class ManifestParseError(CrudFsError):
    """
    Raised when a manifest file is not valid JSON matching the manifest schema.
    """
    pass


class ManifestLockedError(CrudFsError):
    """
    Raised when another process holds the manifest lock file.
    """
    pass


class RecordConflictError(CrudFsError):
    """
    Raised when the local manifest and the ledger disagree about a record.
    """

    def __init__(self, message: str, local=None, remote=None):
        super().__init__(message)
        self.local = local
        self.remote = remote


class ContentMismatchError(CrudFsError):
    """
    Raised when downloaded bytes do not hash to the requested content identifier.
    """
    pass


class ConfigError(CrudFsError):
    """
    Raised when required configuration is missing or invalid.
    """
    pass
