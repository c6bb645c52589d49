__all__ = [
    "EXAMPLE_URL",
    "EXAMPLE_ZIP_URL",
    "EXAMPLE_CONTENT",
    "EXAMPLE_FILE_LENGTH",
    "EXAMPLE_ETAG",
    "EXAMPLE_LAST_MODIFIED",
    "EXAMPLE_CONTENT_TYPE",
]

data_dir_URL = "https://example.com/data/"

EXAMPLE_URL = f"{data_dir_URL}example.bin"
EXAMPLE_ZIP_URL = f"{data_dir_URL}example.zip"

# Every byte value, so that any misplaced range shows up as a mismatch
EXAMPLE_CONTENT = bytes(range(256)) * 8
EXAMPLE_FILE_LENGTH = len(EXAMPLE_CONTENT)  # 2048

EXAMPLE_ETAG = '"5f3c-1a2b"'
EXAMPLE_LAST_MODIFIED = "Wed, 21 Oct 2015 07:28:00 GMT"
EXAMPLE_CONTENT_TYPE = "application/octet-stream"
