"""
Storage key layout for documents.

Uploaded files are stored as ``<userId>[/private]/<timestamp>_<category>_<safeName>.<ext>``
and trashed files as ``<userId>/trash/<filename>``. Category and display name live
in the key itself, so decoding is lossy: any underscore in the stored name reads
back as a space.
"""

import re
import time
from typing import NamedTuple

DEFAULT_CATEGORY = "other"
PRIVATE_SEGMENT = "private"
TRASH_SEGMENT = "trash"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")
_EXTENSION = re.compile(r"\.\w+$")
# Categories sit between two delimiter underscores and must stay one path segment.
CATEGORY_PATTERN = r"^[A-Za-z0-9]+$"
_CATEGORY = re.compile(CATEGORY_PATTERN)


class ParsedFilename(NamedTuple):
    category: str
    display_name: str


def current_timestamp_ms() -> int:
    return int(time.time() * 1000)


def sanitize_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


def validate_category(category: str) -> str:
    if not _CATEGORY.fullmatch(category):
        raise ValueError(f"Invalid category {category!r}: only letters and digits are allowed")
    return category


def encode_filename(timestamp: int, category: str, display_name: str, extension: str) -> str:
    return f"{timestamp}_{category}_{sanitize_name(display_name)}.{extension}"


def decode_filename(filename: str) -> ParsedFilename:
    """
    Recovers category and display name from a stored filename.
    Names with fewer than three underscore segments are returned unchanged under "other".
    """
    parts = filename.split("_")
    if len(parts) < 3:
        return ParsedFilename(DEFAULT_CATEGORY, filename)

    name_with_ext = "_".join(parts[2:])
    display_name = _EXTENSION.sub("", name_with_ext).replace("_", " ")
    return ParsedFilename(parts[1], display_name)


def file_extension(filename: str) -> str:
    # No dot means the whole name is used as the extension.
    return filename.rsplit(".", 1)[-1]


def build_document_path(user_id: str, filename: str, private: bool = False) -> str:
    prefix = f"{user_id}/{PRIVATE_SEGMENT}" if private else user_id
    return f"{prefix}/{filename}"


def build_trash_path(user_id: str, filename: str) -> str:
    return f"{user_id}/{TRASH_SEGMENT}/{filename}"


def basename(path: str) -> str:
    return path.split("/")[-1]


def owner_of(path: str) -> str:
    return path.split("/")[0]
