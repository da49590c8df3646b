"""Command parser for CLI input."""

import json
import shlex

from cli.models import (
    CommandRequest,
    CreateCommand,
    DeleteCommand,
    FetchCommand,
    ListCommand,
    ReadCommand,
    UpdateCommand,
    VerifyCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Create/Read/Update/Delete/Fetch/List/Verify)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    return parse_tokens(tokens)


def parse_tokens(tokens: list[str]) -> CommandRequest:
    """Parse an already split argument list (e.g. sys.argv[1:])."""
    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "create":
        return _parse_create(tokens[1:])
    elif command_name == "read":
        return _parse_read(tokens[1:])
    elif command_name == "update":
        return _parse_update(tokens[1:])
    elif command_name == "delete":
        return _parse_delete(tokens[1:])
    elif command_name == "fetch":
        return _parse_fetch(tokens[1:])
    elif command_name == "list":
        return _parse_list(tokens[1:])
    elif command_name == "verify":
        return _parse_verify(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_create(args: list[str]) -> CreateCommand:
    """Parse 'create --path <file> [--metadata <json>] [--manifest <path>]'."""
    values, _ = _parse_flags("create", args, ("--path", "--metadata", "--manifest"), ())
    return CreateCommand(
        path=_require(values, "create", "--path"),
        metadata=_parse_metadata(values.get("--metadata")),
        manifest=values.get("--manifest"),
    )


def _parse_read(args: list[str]) -> ReadCommand:
    """Parse 'read --path <file> [--reconcile] [--manifest <path>]'."""
    values, switches = _parse_flags("read", args, ("--path", "--manifest"), ("--reconcile",))
    return ReadCommand(
        path=_require(values, "read", "--path"),
        reconcile="--reconcile" in switches,
        manifest=values.get("--manifest"),
    )


def _parse_update(args: list[str]) -> UpdateCommand:
    """Parse 'update --path <file> [--metadata <json>] [--manifest <path>]'."""
    values, _ = _parse_flags("update", args, ("--path", "--metadata", "--manifest"), ())
    return UpdateCommand(
        path=_require(values, "update", "--path"),
        metadata=_parse_metadata(values.get("--metadata")),
        manifest=values.get("--manifest"),
    )


def _parse_delete(args: list[str]) -> DeleteCommand:
    """Parse 'delete --path <file> [--manifest <path>]'."""
    values, _ = _parse_flags("delete", args, ("--path", "--manifest"), ())
    return DeleteCommand(path=_require(values, "delete", "--path"), manifest=values.get("--manifest"))


def _parse_fetch(args: list[str]) -> FetchCommand:
    """Parse 'fetch --path <file> --output <dest> [--manifest <path>]'."""
    values, _ = _parse_flags("fetch", args, ("--path", "--output", "--manifest"), ())
    return FetchCommand(
        path=_require(values, "fetch", "--path"),
        output=_require(values, "fetch", "--output"),
        manifest=values.get("--manifest"),
    )


def _parse_list(args: list[str]) -> ListCommand:
    """Parse 'list [--manifest <path>]'."""
    values, _ = _parse_flags("list", args, ("--manifest",), ())
    return ListCommand(manifest=values.get("--manifest"))


def _parse_verify(args: list[str]) -> VerifyCommand:
    """Parse 'verify [--apply] [--manifest <path>]'."""
    values, switches = _parse_flags("verify", args, ("--manifest",), ("--apply",))
    return VerifyCommand(apply="--apply" in switches, manifest=values.get("--manifest"))


def _parse_flags(
    command: str,
    args: list[str],
    value_flags: tuple[str, ...],
    switch_flags: tuple[str, ...]
) -> tuple[dict[str, str], set[str]]:
    """Split args into flag values and boolean switches."""
    values: dict[str, str] = {}
    switches: set[str] = set()

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in switch_flags:
            switches.add(arg)
            i += 1
        elif arg in value_flags:
            if i + 1 >= len(args):
                raise ParseError(f"{command}: {arg} requires a value")
            if arg in values:
                raise ParseError(f"{command}: {arg} given more than once")
            values[arg] = args[i + 1]
            i += 2
        else:
            raise ParseError(f"{command}: unexpected argument '{arg}'")

    return values, switches


def _require(values: dict[str, str], command: str, flag: str) -> str:
    value = values.get(flag)
    if not value:
        raise ParseError(f"{command} requires {flag}")
    return value


def _parse_metadata(text: str | None) -> tuple[tuple[str, str], ...] | None:
    """Parse --metadata JSON into sorted (key, value) pairs."""
    if text is None:
        return None
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"--metadata is not valid JSON: {e}")
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ParseError("--metadata must be a JSON object of string values")
    return tuple(sorted(value.items()))
