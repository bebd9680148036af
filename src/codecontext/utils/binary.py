"""Binary file detection for indexing candidates."""

from pathlib import Path

SAMPLE_SIZE = 8192
MAX_CONTROL_RATIO = 0.30

# Suffixes that never hold source text worth embedding
BINARY_EXTENSIONS = frozenset(
    {
        # Images
        ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".tiff", ".psd",
        # Office documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods",
        # Archives and packages
        ".zip", ".tar", ".gz", ".tgz", ".rar", ".7z", ".bz2", ".xz", ".jar", ".whl",
        # Native artifacts
        ".exe", ".dll", ".so", ".dylib", ".bin", ".a", ".lib", ".rlib", ".o", ".obj",
        # Bytecode
        ".pyc", ".pyo", ".class", ".wasm",
        # Audio and video
        ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flac", ".mkv", ".webm",
        # Fonts
        ".ttf", ".otf", ".woff", ".woff2", ".eot",
        # Databases and serialized arrays
        ".db", ".sqlite", ".sqlite3", ".parquet", ".npy", ".npz", ".pkl",
    }
)

# Backspace, tab, LF, form feed, CR and ESC appear in real text files
_ALLOWED_CONTROL = bytes([8, 9, 10, 12, 13, 27])
_CONTROL_BYTES = bytes(b for b in range(32) if b not in _ALLOWED_CONTROL) + b"\x7f"


def is_binary_extension(path: str | Path) -> bool:
    return Path(path).suffix.lower() in BINARY_EXTENSIONS


def is_binary_content(content: bytes, sample_size: int = SAMPLE_SIZE) -> bool:
    """Guess whether raw bytes are binary from a leading sample.

    A NUL byte decides immediately. Otherwise the sample is binary when
    more than 30% of it is control characters. High bytes (>= 0x80) are
    not counted, so UTF-8 sources pass; invalid UTF-8 is caught later by
    strict decoding.
    """
    sample = content[:sample_size]
    if not sample:
        return False
    if b"\x00" in sample:
        return True

    printable = sample.translate(None, _CONTROL_BYTES)
    return (len(sample) - len(printable)) / len(sample) > MAX_CONTROL_RATIO


def detect_binary(path: str | Path, content: bytes) -> bool:
    """True if the file's suffix or its leading bytes mark it as binary."""
    return is_binary_extension(path) or is_binary_content(content)
