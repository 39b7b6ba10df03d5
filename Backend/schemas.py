from datetime import datetime
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# Records built from storage listings

class DocumentRecord(BaseModel):
    name: str
    path: str
    public_url: str
    size: int
    category: str
    created_at: Optional[str] = None

class TrashRecord(BaseModel):
    name: str
    path: str
    public_url: str
    size: int = 0
    deleted_at: Optional[str] = None

class DocumentPage(BaseModel):
    items: List[DocumentRecord]
    next_cursor: Optional[str] = None

class UploadResult(BaseModel):
    path: str
    public_url: str

# Lifecycle results

class CleanupError(BaseModel):
    table: str
    message: str

class CleanupResult(BaseModel):
    errors: List[CleanupError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

class TrashMoveResult(BaseModel):
    trash_path: str
    cleanup: CleanupResult
    tracked: bool

class RestoreResult(BaseModel):
    path: str
    public_url: str
    tracking_cleared: bool = True

class PurgeResult(BaseModel):
    purged: List[str]

# Smart folders

class SmartFolder(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    user_id: str
    folder_name: str
    folder_description: Optional[str] = None
    created_at: Optional[datetime] = None

class FolderAssignment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    document_path: str
    folder_id: Union[int, str]
    user_id: Optional[str] = None

# Request bodies

class SmartFolderIn(BaseModel):
    folder_name: str = Field(..., min_length=1)
    folder_description: str = ""

class TrashIn(BaseModel):
    path: str = Field(..., min_length=1)

class AssignmentIn(BaseModel):
    document_path: str = Field(..., min_length=1)
