from .fs import write_text_atomic
from .hashing import sha256_file
from .redact import redact, redact_url

__all__ = [
    "redact",
    "redact_url",
    "sha256_file",
    "write_text_atomic",
]
