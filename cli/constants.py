"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["create", "read", "update", "delete", "fetch", "list", "verify", "clear", "exit", "help"]

COMMAND_FLAGS = {
    "create": ["--path", "--metadata", "--manifest"],
    "read": ["--path", "--reconcile", "--manifest"],
    "update": ["--path", "--metadata", "--manifest"],
    "delete": ["--path", "--manifest"],
    "fetch": ["--path", "--output", "--manifest"],
    "list": ["--manifest"],
    "verify": ["--apply", "--manifest"],
}

PATH_FLAGS = ("--path", "--output", "--manifest")

STYLE = Style.from_dict(
    {
        "prompt": "#3FA7D6 bold",
        "command": "#0088ff bold",
    }
)

SKY_BLUE = "\033[38;2;63;167;214m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{SKY_BLUE}
  ██████╗██████╗ ██╗   ██╗██████╗ ███████╗███████╗
 ██╔════╝██╔══██╗██║   ██║██╔══██╗██╔════╝██╔════╝
 ██║     ██████╔╝██║   ██║██║  ██║█████╗  ███████╗
 ██║     ██╔══██╗██║   ██║██║  ██║██╔══╝  ╚════██║
 ╚██████╗██║  ██║╚██████╔╝██████╔╝██║     ███████║
  ╚═════╝╚═╝  ╚═╝ ╚═════╝ ╚═════╝ ╚═╝     ╚══════╝
{RESET}"""

WELCOME_TITLE = "CrudFs CLI - Content-addressed files on a ledger"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "crudfs> "

HELP_TEXT = """Available commands:
  create --path <file> [--metadata <json>]     Track a file: record on the ledger, upload, add to manifest
  read --path <file> [--reconcile]             Show the tracked record (--reconcile compares with the ledger)
  update --path <file> [--metadata <json>]     Push new content or metadata for a tracked file
  delete --path <file>                         Remove the record from the ledger and the manifest
  fetch --path <file> --output <dest>          Download the tracked content of a file
  list                                         List tracked files
  verify [--apply]                             Compare the manifest with the ledger (--apply repairs the manifest)
  clear                                        Clear screen and redisplay welcome message
  help                                         Show this help
  exit                                         Exit REPL

Every command accepts --manifest <path> (default: manifest.json or the configured manifest_path).
Metadata is a JSON object of strings, e.g. '{"owner": "alice"}'.
Examples:
  create --path notes/todo.txt --metadata '{"kind": "notes"}'
  read --path notes/todo.txt --reconcile
  update --path notes/todo.txt
  fetch --path notes/todo.txt --output restore/todo.txt
  verify --apply
  delete --path notes/todo.txt"""

MANIFEST_CREATED_TEXT = """Created empty manifest {path} for contract {address}.
Track files with:
  crudfs create --path <file> [--metadata <json>]"""
