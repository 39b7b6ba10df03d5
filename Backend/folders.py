import logging
from typing import List, Optional, Union

from supabase import Client

from schemas import FolderAssignment, SmartFolder

logger = logging.getLogger(__name__)

SMART_FOLDERS_TABLE = "smart_folders"
ASSIGNMENTS_TABLE = "smart_folder_assignments"


class SmartFolderService:
    """Smart folders and the documents assigned to them. Store errors propagate unchanged."""

    def __init__(self, client: Client):
        self.client = client

    def create_smart_folder(self, user_id: str, folder_name: str, description: str) -> SmartFolder:
        response = self.client.table(SMART_FOLDERS_TABLE).insert([{
            "user_id": user_id,
            "folder_name": folder_name,
            "folder_description": description,
        }]).execute()
        logger.info(f"User {user_id} created smart folder {folder_name!r}")
        return SmartFolder(**response.data[0])

    def get_user_smart_folders(self, user_id: str) -> List[SmartFolder]:
        response = self.client.table(SMART_FOLDERS_TABLE).select("*").eq("user_id", user_id).execute()
        return [SmartFolder(**row) for row in response.data]

    def get_document_folder_assignments(self, user_id: str) -> List[FolderAssignment]:
        response = self.client.table(ASSIGNMENTS_TABLE).select("*").eq("user_id", user_id).execute()
        return [FolderAssignment(**row) for row in response.data]

    def assign_document_to_folder(
        self,
        document_path: str,
        folder_id: Union[int, str],
        user_id: Optional[str] = None,
    ) -> List[FolderAssignment]:
        row = {"document_path": document_path, "folder_id": folder_id}
        if user_id is not None:
            row["user_id"] = user_id
        response = self.client.table(ASSIGNMENTS_TABLE).insert([row]).execute()
        return [FolderAssignment(**data) for data in response.data or []]

    def auto_assign_document_to_folder(
        self,
        user_id: str,
        document_path: str,
        document_name: str,
        document_category: str,
        document_type: str,
    ) -> None:
        # Automatic classification is not implemented.
        return None
