"""Command handler functions for CLI operations."""

from typing import Awaitable, Callable, Optional

from common.exceptions import ConfigError, CrudFsError, ManifestNotFoundError
from common.logging_config import get_logger
from common.types import hash_file
from cli.config import Config
from cli.constants import MANIFEST_CREATED_TEXT
from cli.models import (
    CommandRequest,
    CommandResult,
    CreateCommand,
    DeleteCommand,
    FetchCommand,
    ListCommand,
    ReadCommand,
    UpdateCommand,
    VerifyCommand,
)
from cli.utils import format_record, format_record_line
from crudfs.crud_fs import CrudFs, ReconcileReport
from crudfs.locks import ManifestFileLock
from crudfs.manifest import Manifest
from crudfs.settings import Settings
from ledger.client import LedgerClient
from ledger.config import LedgerConfig
from ledger.eth import EthLedgerBackend
from store.client import StoreClient
from store.estuary import EstuaryBlobStore

logger = get_logger(__name__)


def build_clients(settings: Settings, config: Config) -> tuple[LedgerClient, StoreClient]:
    """
    Create the Ethereum ledger client and the Estuary store client.

    Args:
        settings: Credentials and endpoints from the environment
        config: CLI tunables

    Returns:
        Tuple of (LedgerClient, StoreClient)
    """
    ledger_settings = config.get_ledger_config()
    ledger_config = LedgerConfig(
        api_url=settings.api_url,
        api_key=settings.api_key,
        chain_id=settings.chain_id,
        private_key=settings.private_key,
        contract_address=settings.contract_address,
        gas_limit=ledger_settings['gas_limit'],
        gas_price=ledger_settings['gas_price'],
        poll_interval=ledger_settings['poll_interval'],
        confirmation_timeout=ledger_settings['confirmation_timeout'],
    )
    ledger = LedgerClient(EthLedgerBackend(ledger_config), ledger_config.confirmation_timeout)
    store = StoreClient(EstuaryBlobStore(
        settings.estuary_api_key,
        host=config.get_store_host(),
        timeout=config.get_timeout()
    ))
    return ledger, store


class CommandContext:
    """
    Shared state for a CLI session: settings, config and the ledger and
    store clients, created on first use and reused by every command.
    """

    def __init__(
        self,
        settings: Settings,
        config: Config,
        ledger: Optional[LedgerClient] = None,
        store: Optional[StoreClient] = None
    ):
        """
        Initialize command context.

        Args:
            settings: Credentials and endpoints from the environment
            config: CLI tunables
            ledger: Optional LedgerClient for dependency injection (testing)
            store: Optional StoreClient for dependency injection (testing)
        """
        self.settings = settings
        self.config = config
        self._ledger = ledger
        self._store = store

    def resolve_manifest_path(self, cmd: CommandRequest) -> str:
        return cmd.manifest or self.config.get_manifest_path()

    def open_fs(self, manifest_path: str) -> CrudFs:
        """
        Load the manifest and bind it to the session's clients.

        Raises:
            ManifestNotFoundError: If the manifest does not exist
            ConfigError: If the manifest belongs to another contract
        """
        manifest = Manifest.read(manifest_path)
        if manifest.ledger_address.lower() != self.settings.contract_address.lower():
            raise ConfigError(
                f"Manifest {manifest_path} tracks contract {manifest.ledger_address}, "
                f"but CRUDFS_CONTRACT_ADDRESS is {self.settings.contract_address}"
            )

        if self._ledger is None or self._store is None:
            logger.debug("Creating ledger and store clients")
            self._ledger, self._store = build_clients(self.settings, self.config)
        return CrudFs(self._ledger, self._store, manifest, manifest_path)

    async def close(self) -> None:
        if self._ledger is not None:
            await self._ledger.close()
        if self._store is not None:
            await self._store.close()


async def execute_command(cmd: CommandRequest, context: CommandContext) -> CommandResult:
    """
    Run one command under the manifest's file lock.

    A missing manifest is created empty for the configured contract and
    the command is not run.

    Returns:
        CommandResult; CrudFs errors become failed results
    """
    manifest_path = context.resolve_manifest_path(cmd)
    logger.info(f"Executing {cmd.command} command [manifest={manifest_path}]")

    try:
        with ManifestFileLock(manifest_path):
            try:
                fs = context.open_fs(manifest_path)
            except ManifestNotFoundError:
                return create_manifest_template(manifest_path, context.settings.contract_address)

            handler = HANDLERS[type(cmd)]
            result = await handler(cmd, fs)
            logger.debug(f"{cmd.command} command completed")
            return result
    except CrudFsError as e:
        logger.warning(f"{cmd.command} failed: {e}")
        return CommandResult(False, str(e))
    except Exception as e:
        logger.error(f"Unexpected error during {cmd.command}: {e}", exc_info=True)
        return CommandResult(False, f"Unexpected error during {cmd.command}: {e}")


def create_manifest_template(manifest_path: str, contract_address: str) -> CommandResult:
    """Write an empty manifest bound to contract_address."""
    manifest = Manifest.new(contract_address)
    manifest.write(manifest_path)
    logger.info(f"Created empty manifest {manifest_path}")
    return CommandResult(True, MANIFEST_CREATED_TEXT.format(path=manifest_path, address=contract_address))


async def handle_create(cmd: CreateCommand, fs: CrudFs) -> CommandResult:
    """
    Handle 'create' command.

    Args:
        cmd: CreateCommand with path and optional metadata
        fs: CrudFs bound to the command's manifest

    Returns:
        Result describing the confirmed record
    """
    metadata = dict(cmd.metadata) if cmd.metadata else None
    record = await fs.create(cmd.path, metadata)
    return CommandResult(True, f"Created {record.path}\n{format_record(record)}")


async def handle_read(cmd: ReadCommand, fs: CrudFs) -> CommandResult:
    """
    Handle 'read' command.

    Args:
        cmd: ReadCommand with path and reconcile flag
        fs: CrudFs bound to the command's manifest

    Returns:
        Result describing the tracked record
    """
    record = await fs.read(cmd.path, reconcile=cmd.reconcile)
    suffix = "\nLedger record matches." if cmd.reconcile else ""
    return CommandResult(True, format_record(record) + suffix)


async def handle_update(cmd: UpdateCommand, fs: CrudFs) -> CommandResult:
    """
    Handle 'update' command.

    The file is re-hashed; metadata is replaced only when --metadata is
    given, otherwise the tracked metadata is kept.

    Args:
        cmd: UpdateCommand with path and optional metadata
        fs: CrudFs bound to the command's manifest

    Returns:
        Result describing the updated record
    """
    record = await hash_file(cmd.path)
    if cmd.metadata is not None:
        record.set_metadata(dict(cmd.metadata))
    else:
        current = fs.manifest.get(cmd.path)
        if current is not None:
            record.set_metadata(current.metadata)

    updated = await fs.update(record)
    return CommandResult(True, f"Updated {updated.path}\n{format_record(updated)}")


async def handle_delete(cmd: DeleteCommand, fs: CrudFs) -> CommandResult:
    """
    Handle 'delete' command.

    Args:
        cmd: DeleteCommand with path
        fs: CrudFs bound to the command's manifest

    Returns:
        Confirmation message
    """
    await fs.delete(cmd.path)
    return CommandResult(True, f"Deleted {cmd.path}")


async def handle_fetch(cmd: FetchCommand, fs: CrudFs) -> CommandResult:
    """
    Handle 'fetch' command.

    Args:
        cmd: FetchCommand with path and output destination
        fs: CrudFs bound to the command's manifest

    Returns:
        Confirmation message with the verified content id
    """
    fetched = await fs.fetch(cmd.path, cmd.output)
    return CommandResult(True, f"Fetched {cmd.path} into {fetched.path} [cid={fetched.content_id}]")


async def handle_list(cmd: ListCommand, fs: CrudFs) -> CommandResult:
    """
    Handle 'list' command.

    Args:
        cmd: ListCommand
        fs: CrudFs bound to the command's manifest

    Returns:
        One line per tracked file
    """
    records = fs.tracked()
    if not records:
        return CommandResult(True, "No tracked files.")
    lines = [format_record_line(r) for r in records]
    lines.append(f"{len(records)} tracked file(s)")
    return CommandResult(True, "\n".join(lines))


async def handle_verify(cmd: VerifyCommand, fs: CrudFs) -> CommandResult:
    """
    Handle 'verify' command.

    Args:
        cmd: VerifyCommand with apply flag
        fs: CrudFs bound to the command's manifest

    Returns:
        Report of the differences; fails when conflicts remain
    """
    report = await fs.verify(apply=cmd.apply)
    return CommandResult(not report.conflicts, format_report(report))


def format_report(report: ReconcileReport) -> str:
    if report.clean:
        return "Manifest matches the ledger."

    lines = []
    for record in report.missing_locally:
        action = "added" if report.applied else "missing locally"
        lines.append(f"  {action}: {record.path} [cid={record.content_id}]")
    for record in report.missing_remotely:
        action = "removed" if report.applied else "missing on ledger"
        lines.append(f"  {action}: {record.path} [cid={record.content_id}]")
    for local, remote in report.conflicts:
        lines.append(
            f"  conflict: {local.path} local cid={local.content_id} ts={local.timestamp}, "
            f"ledger cid={remote.content_id} ts={remote.timestamp}"
        )

    header = "Manifest repaired from the ledger:" if report.applied else "Manifest differs from the ledger:"
    if report.conflicts:
        header += f" {len(report.conflicts)} conflict(s) need manual resolution"
    return "\n".join([header] + lines)


HANDLERS: dict[type, Callable[..., Awaitable[CommandResult]]] = {
    CreateCommand: handle_create,
    ReadCommand: handle_read,
    UpdateCommand: handle_update,
    DeleteCommand: handle_delete,
    FetchCommand: handle_fetch,
    ListCommand: handle_list,
    VerifyCommand: handle_verify,
}
