"""CrudFs orchestration: manifest, locking and the CRUD verbs."""

from crudfs.crud_fs import CrudFs, ReconcileReport
from crudfs.locks import KeyLockArena, ManifestFileLock
from crudfs.manifest import Manifest
from crudfs.settings import Settings

__all__ = [
    "CrudFs",
    "ReconcileReport",
    "KeyLockArena",
    "ManifestFileLock",
    "Manifest",
    "Settings",
]
