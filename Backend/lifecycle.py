"""
Trash workflow for stored documents: move to trash, restore, permanent delete, purge.

Storage mutations (copy, remove) raise on failure. Database bookkeeping
(folder assignments, shares, the deleted_documents tracking table) is best effort:
failures are logged and reported back in a CleanupResult instead of raised.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from supabase import Client

from documents import DocumentStore
from filename_codec import basename, build_document_path, build_trash_path, current_timestamp_ms, owner_of
from schemas import CleanupError, CleanupResult, RestoreResult, TrashMoveResult

logger = logging.getLogger(__name__)

DELETED_DOCUMENTS_TABLE = "deleted_documents"

# Tables holding rows keyed by (user_id, document_path), cleaned in this order.
REFERENCE_TABLES = ("smart_folder_assignments", "document_shares", DELETED_DOCUMENTS_TABLE)

MS_PER_DAY = 24 * 60 * 60 * 1000


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DocumentLifecycle:
    def __init__(self, client: Client, store: DocumentStore):
        self.client = client
        self.store = store

    def _delete_rows(self, table: str, user_id: str, document_path: str) -> None:
        self.client.table(table).delete().eq("user_id", user_id).eq("document_path", document_path).execute()

    def cleanup_document_references(self, user_id: str, document_path: str) -> CleanupResult:
        """Removes every row pointing at document_path. Never raises."""
        result = CleanupResult()
        for table in REFERENCE_TABLES:
            try:
                self._delete_rows(table, user_id, document_path)
            except Exception as e:
                logger.warning(f"Failed to clean up {table} for {document_path}: {e}")
                result.errors.append(CleanupError(table=table, message=str(e)))
        return result

    def move_to_trash(self, user_id: str, path: str) -> TrashMoveResult:
        filename = basename(path)
        dest = build_trash_path(user_id, filename)

        self.store.storage.copy(path, dest)
        # A failure here leaves the document both in place and in the trash.
        self.store.storage.remove([path])

        cleanup = self.cleanup_document_references(user_id, path)

        tracked = True
        try:
            self.client.table(DELETED_DOCUMENTS_TABLE).upsert({
                "user_id": user_id,
                "document_path": dest,
                "document_name": filename or "unknown",
            }).execute()
        except Exception as e:
            logger.warning(f"Failed to track deleted document {dest}: {e}")
            tracked = False

        logger.info(f"Moved {path} to trash for user {user_id}")
        return TrashMoveResult(trash_path=dest, cleanup=cleanup, tracked=tracked)

    def restore_from_trash(self, user_id: str, filename: str) -> RestoreResult:
        src = build_trash_path(user_id, filename)
        dest = build_document_path(user_id, f"{current_timestamp_ms()}_{filename}")

        self.store.storage.copy(src, dest)

        try:
            self.store.storage.remove([src])
        except Exception as e:
            logger.warning(f"Failed to remove {src} from trash after restore: {e}")

        tracking_cleared = True
        try:
            self._delete_rows(DELETED_DOCUMENTS_TABLE, user_id, src)
        except Exception as e:
            logger.warning(f"Failed to remove {src} from deleted documents tracking: {e}")
            tracking_cleared = False

        logger.info(f"Restored {src} to {dest}")
        return RestoreResult(path=dest, public_url=self.store.public_url(dest), tracking_cleared=tracking_cleared)

    def delete_permanent(self, path: str) -> CleanupResult:
        # Removing a key that does not exist is not an error.
        self.store.storage.remove([path])
        logger.info(f"Permanently deleted {path}")
        return self.cleanup_document_references(owner_of(path), path)

    def purge_old_trash(self, user_id: str, days: int = 30) -> List[str]:
        """
        Removes trash entries older than `days` in one batch and returns their paths.
        Zero-size entries are folder placeholders and are never purged.
        Tracking rows of purged entries are left in place.
        """
        threshold_ms = current_timestamp_ms() - days * MS_PER_DAY
        to_delete = []
        for entry in self.store.list_user_trash(user_id):
            deleted_at = _parse_timestamp(entry.deleted_at)
            if entry.size > 0 and deleted_at is not None and deleted_at.timestamp() * 1000 < threshold_ms:
                to_delete.append(entry.path)

        if to_delete:
            self.store.storage.remove(to_delete)
            logger.info(f"Purged {len(to_delete)} trash entries for user {user_id}")
        return to_delete
