import logging
from typing import Iterator, List, Optional, Tuple

from supabase import Client

from filename_codec import (
    PRIVATE_SEGMENT,
    TRASH_SEGMENT,
    build_document_path,
    build_trash_path,
    current_timestamp_ms,
    decode_filename,
    encode_filename,
    file_extension,
    validate_category,
)
from schemas import DocumentPage, DocumentRecord, TrashRecord, UploadResult

logger = logging.getLogger(__name__)

# Cursor scopes, walked in this order.
REGULAR_SCOPE = "regular"
PRIVATE_SCOPE = "private"
_SCOPES = (REGULAR_SCOPE, PRIVATE_SCOPE)


def _entry_size(obj: dict) -> int:
    return (obj.get("metadata") or {}).get("size") or 0


def _is_file(obj: dict) -> bool:
    # Folder placeholders have no extension and no size.
    name = obj.get("name") or ""
    return "." in name and _entry_size(obj) > 0


def parse_cursor(cursor: Optional[str]) -> Tuple[str, int]:
    if cursor is None:
        return REGULAR_SCOPE, 0
    scope, sep, offset = cursor.partition(":")
    if not sep or scope not in _SCOPES or not offset.isdigit():
        raise ValueError(f"Invalid cursor: {cursor!r}")
    return scope, int(offset)


class DocumentStore:
    """
    Upload and listing of a user's documents in the storage bucket.
    Every call goes straight to Supabase Storage; nothing is cached.
    """

    def __init__(self, client: Client, bucket: str = "documents", page_size: int = 100):
        self.client = client
        self.bucket = bucket
        self.page_size = page_size

    @property
    def storage(self):
        return self.client.storage.from_(self.bucket)

    def public_url(self, path: str) -> str:
        return self.storage.get_public_url(path)

    def list_prefix(self, prefix: str, offset: int = 0) -> List[dict]:
        return self.storage.list(prefix, {
            "limit": self.page_size,
            "offset": offset,
            "sortBy": {"column": "created_at", "order": "desc"},
        }) or []

    def upload_document(
        self,
        user_id: str,
        content: bytes,
        original_filename: str,
        name: str,
        category: str,
        is_private: bool = False,
        content_type: Optional[str] = None,
    ) -> UploadResult:
        validate_category(category)
        filename = encode_filename(current_timestamp_ms(), category, name, file_extension(original_filename))
        file_path = build_document_path(user_id, filename, private=is_private)

        file_options = {"cache-control": "3600", "upsert": "false"}
        if content_type:
            file_options["content-type"] = content_type

        self.storage.upload(file_path, content, file_options)
        logger.info(f"User {user_id} uploaded {file_path}")
        return UploadResult(path=file_path, public_url=self.public_url(file_path))

    def _to_record(self, obj: dict, prefix: str, private: bool) -> DocumentRecord:
        full_path = f"{prefix}/{obj['name']}"
        category, display_name = decode_filename(obj["name"])
        return DocumentRecord(
            name=display_name,
            path=full_path,
            public_url=self.public_url(full_path),
            size=_entry_size(obj),
            category=PRIVATE_SEGMENT if private else category,
            created_at=obj.get("created_at"),
        )

    def _prefix_for(self, user_id: str, scope: str) -> str:
        return f"{user_id}/{PRIVATE_SEGMENT}" if scope == PRIVATE_SCOPE else user_id

    def list_user_documents(self, user_id: str) -> List[DocumentRecord]:
        """
        First page of regular documents followed by the first page of private ones.
        Private entries always report the "private" category.
        """
        try:
            regular_data = self.list_prefix(user_id)
        except Exception as e:
            logger.error(f"Error listing regular documents for {user_id}: {e}")
            raise

        private_prefix = self._prefix_for(user_id, PRIVATE_SCOPE)
        try:
            private_data = self.list_prefix(private_prefix)
        except Exception as e:
            # Regular documents are still worth returning.
            logger.error(f"Error listing private documents for {user_id}: {e}")
            private_data = []

        regular_docs = [self._to_record(obj, user_id, private=False) for obj in regular_data if _is_file(obj)]
        private_docs = [self._to_record(obj, private_prefix, private=True) for obj in private_data if _is_file(obj)]
        return regular_docs + private_docs

    def list_documents_page(self, user_id: str, cursor: Optional[str] = None) -> DocumentPage:
        """
        One page of documents, regular first then private.
        Pass the returned next_cursor back in to continue; None means there is nothing left.
        """
        scope, offset = parse_cursor(cursor)
        prefix = self._prefix_for(user_id, scope)
        raw = self.list_prefix(prefix, offset)

        items = [self._to_record(obj, prefix, private=scope == PRIVATE_SCOPE) for obj in raw if _is_file(obj)]

        if len(raw) >= self.page_size:
            next_cursor = f"{scope}:{offset + len(raw)}"
        elif scope == REGULAR_SCOPE:
            next_cursor = f"{PRIVATE_SCOPE}:0"
        else:
            next_cursor = None
        return DocumentPage(items=items, next_cursor=next_cursor)

    def iter_user_documents(self, user_id: str, cursor: Optional[str] = None) -> Iterator[DocumentRecord]:
        while True:
            page = self.list_documents_page(user_id, cursor)
            yield from page.items
            if page.next_cursor is None:
                return
            cursor = page.next_cursor

    def list_user_trash(self, user_id: str) -> List[TrashRecord]:
        trash_prefix = f"{user_id}/{TRASH_SEGMENT}"
        data = self.list_prefix(trash_prefix)
        records = []
        for obj in data:
            path = build_trash_path(user_id, obj["name"])
            records.append(TrashRecord(
                name=obj["name"],
                path=path,
                public_url=self.public_url(path),
                size=_entry_size(obj),
                deleted_at=obj.get("created_at"),
            ))
        return records
