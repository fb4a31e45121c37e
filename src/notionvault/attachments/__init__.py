"""Attachment naming, indexing, timestamps and download."""

from .index import INDEX_FILE_NAME, AttachmentIndex
from .materializer import PART_SUFFIX, AttachmentMaterializer
from .naming import attachment_extension, numbered_name, sanitize_file_name, source_key
from .timestamps import can_set_creation_time, set_file_timestamps

__all__ = [
    "INDEX_FILE_NAME",
    "PART_SUFFIX",
    "AttachmentIndex",
    "AttachmentMaterializer",
    "attachment_extension",
    "can_set_creation_time",
    "numbered_name",
    "sanitize_file_name",
    "set_file_timestamps",
    "source_key",
]
