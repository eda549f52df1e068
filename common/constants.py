"""Project-wide constants (block size, retry delays, header keys)."""

BLOCK_SIZE: int = int(7.6 * 1024 * 1024)  # stays under the webhook's 8 MiB attachment limit

UPLOAD_RETRY_DELAY_SECONDS: float = 3.0
FETCH_RETRY_DELAY_SECONDS: float = 5.0
RATE_LIMIT_SAFETY_FACTOR: float = 1.2

DEFAULT_ATTACHMENT_BASE_URL: str = "https://cdn.discordapp.com/attachments/"
DEFAULT_DATA_FILE: str = "data.nfs"
DEFAULT_TIMEOUT_SECONDS: int = 30

PIECE_FILE_NAME: str = "chunk"
PIECE_INDEX_FILE_NAME: str = "meta"
SNAPSHOT_FILE_NAME: str = "sync.dat"

FILESYSTEM_VERSION: str = "1.2"
HEADER_VERSION: str = "Filesystem-Version"
HEADER_DESCRIPTION: str = "Description"
HEADER_AUTHOR: str = "Author"
HEADER_SYNC_MESSAGE: str = "Sync-Message"
