import logging

# Configure logging once for every module that imports the shared logger
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger("FluxBenc")

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def to_bytes(data) -> bytes:
    """
    Normalizes a key or payload to raw bytes.
    Text is encoded as UTF-8, bytes-like objects are copied.
    """
    if isinstance(data, str):
        return data.encode('utf-8')
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"Expected bytes or str, got {type(data).__name__}")


def hex_preview(data: bytes, width=16) -> str:
    """Short hex dump used when a byte string is not printable text."""
    preview = data[:width].hex(' ')
    if len(data) > width:
        preview += ' ...'
    return preview
