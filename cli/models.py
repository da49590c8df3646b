"""Command request and response data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class CreateCommand:
    """Start tracking a file."""

    path: str
    metadata: tuple[tuple[str, str], ...] | None = None
    manifest: str | None = None
    command: Literal["create"] = "create"


@dataclass(frozen=True)
class ReadCommand:
    """Show the tracked record of a file."""

    path: str
    reconcile: bool = False
    manifest: str | None = None
    command: Literal["read"] = "read"


@dataclass(frozen=True)
class UpdateCommand:
    """Push new content or metadata for a tracked file."""

    path: str
    metadata: tuple[tuple[str, str], ...] | None = None
    manifest: str | None = None
    command: Literal["update"] = "update"


@dataclass(frozen=True)
class DeleteCommand:
    """Stop tracking a file."""

    path: str
    manifest: str | None = None
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class FetchCommand:
    """Download the tracked content of a file."""

    path: str
    output: str
    manifest: str | None = None
    command: Literal["fetch"] = "fetch"


@dataclass(frozen=True)
class ListCommand:
    """List tracked files."""

    manifest: str | None = None
    command: Literal["list"] = "list"


@dataclass(frozen=True)
class VerifyCommand:
    """Compare the manifest with the ledger."""

    apply: bool = False
    manifest: str | None = None
    command: Literal["verify"] = "verify"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a command: printed as-is on success, as 'Error: ...' otherwise."""

    success: bool
    message: str


CommandRequest = (
    CreateCommand
    | ReadCommand
    | UpdateCommand
    | DeleteCommand
    | FetchCommand
    | ListCommand
    | VerifyCommand
)
