"""Project-wide constants (digest block size, multiformat codes, defaults)."""

HASH_BLOCK_SIZE_BYTES: int = 1024  # digest input is read in 1 KiB blocks
PATH_KEY_SIZE_BYTES: int = 32
MAX_TIMESTAMP: int = 2 ** 64 - 1

CID_VERSION: int = 1
CID_V0_VERSION: int = 0
CODEC_RAW: int = 0x55
CODEC_DAG_PB: int = 0x70
MULTIHASH_SHA2_256: int = 0x12

MULTIBASE_BASE32: str = "b"
MULTIBASE_BASE58BTC: str = "z"

DEFAULT_MANIFEST_FILENAME: str = "manifest.json"
DEFAULT_STORE_HOST: str = "https://api.estuary.tech"
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 30.0
DEFAULT_CONFIRMATION_TIMEOUT_SECONDS: float = 120.0
DEFAULT_RECEIPT_POLL_INTERVAL_SECONDS: float = 1.0
DEFAULT_GAS_LIMIT: int = 1_000_000
DEFAULT_GAS_PRICE_WEI: int = 80_000_000_000  # 80 gwei

STREAM_CHUNK_SIZE_BYTES: int = 64 * 1024
