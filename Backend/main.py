import logging
from typing import Optional, List, Union
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException, status, UploadFile, File, Form, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordBearer
from starlette.concurrency import run_in_threadpool
from jose import jwt, JWTError
from supabase import Client

from db import get_supabase
from config import settings
from documents import DocumentStore
from lifecycle import DocumentLifecycle
from folders import SmartFolderService
from filename_codec import CATEGORY_PATTERN, owner_of
from schemas import (
    AssignmentIn,
    CleanupResult,
    DocumentPage,
    DocumentRecord,
    FolderAssignment,
    PurgeResult,
    RestoreResult,
    SmartFolder,
    SmartFolderIn,
    TrashIn,
    TrashMoveResult,
    TrashRecord,
    UploadResult,
)

# Logging Setup
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Security Setup
# Tokens are issued by Supabase Auth; this service only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token")

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    logger.info("Application startup: Initializing resources...")
    logger.info(f"Storage bucket: {settings.storage_bucket}")

    if not settings.has_supabase_credentials():
        logger.warning("Supabase credentials missing; storage and table calls will fail until configured.")
    else:
        try:
            logger.info("Verifying Supabase connection...")
            get_supabase().storage.get_bucket(settings.storage_bucket)
            logger.info("Supabase connection verified.")
        except Exception as e:
            # Non-fatal: requests will surface the same error when they reach Supabase.
            logger.warning(f"Supabase connection check failed. Error: {e}")

    if not settings.supabase_jwt_secret:
        logger.warning("SUPABASE_JWT_SECRET is not set; every authenticated request will be rejected.")

    logger.info("Application startup complete.")
    yield
    logger.info("Application shutdown: Cleaning up resources...")

app = FastAPI(
    title="Document Vault",
    lifespan=lifespan,
    version="1.0.0"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Dependencies
def get_document_store(client: Client = Depends(get_supabase)) -> DocumentStore:
    return DocumentStore(client, bucket=settings.storage_bucket, page_size=settings.list_page_size)

def get_lifecycle(
    client: Client = Depends(get_supabase),
    store: DocumentStore = Depends(get_document_store),
) -> DocumentLifecycle:
    return DocumentLifecycle(client, store)

def get_folder_service(client: Client = Depends(get_supabase)) -> SmartFolderService:
    return SmartFolderService(client)

async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not settings.supabase_jwt_secret:
        raise credentials_exception
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.algorithm],
            audience=settings.jwt_audience,
        )
        user_id: Optional[str] = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    return user_id

# Utilities
def ensure_owner(user_id: str, path: str) -> None:
    if owner_of(path) != user_id:
        logger.warning(f"User {user_id} attempted to access {path}")
        raise HTTPException(status_code=403, detail="Document does not belong to the current user")

def internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error during {action}: {e}")
    return HTTPException(status_code=500, detail="Internal Server Error")

# Endpoints
@app.get("/health")
def health():
    return {"status": "ok"}

@app.post("/api/documents", response_model=UploadResult)
async def upload_document(
    file: UploadFile = File(...),
    name: str = Form(...),
    category: str = Form(..., pattern=CATEGORY_PATTERN),
    is_private: bool = Form(False),
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    if not file.filename:
        raise HTTPException(status_code=400, detail="A file name is required")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty files are not allowed")
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 10MB)")

    try:
        # Supabase storage calls block; keep them off the event loop.
        return await run_in_threadpool(
            store.upload_document,
            user_id,
            content,
            file.filename,
            name,
            category,
            is_private=is_private,
            content_type=file.content_type,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise internal_error("document upload", e)

@app.get("/api/documents", response_model=List[DocumentRecord])
def list_documents(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        return store.list_user_documents(user_id)
    except Exception as e:
        raise internal_error("document listing", e)

@app.get("/api/documents/page", response_model=DocumentPage)
def list_documents_page(
    cursor: Optional[str] = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        return store.list_documents_page(user_id, cursor)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise internal_error("document page listing", e)

@app.post("/api/documents/trash", response_model=TrashMoveResult)
def move_to_trash(
    body: TrashIn,
    user_id: str = Depends(get_current_user_id),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    ensure_owner(user_id, body.path)
    try:
        return lifecycle.move_to_trash(user_id, body.path)
    except Exception as e:
        raise internal_error("move to trash", e)

@app.delete("/api/documents", response_model=CleanupResult)
def delete_permanent(
    path: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    ensure_owner(user_id, path)
    try:
        return lifecycle.delete_permanent(path)
    except Exception as e:
        raise internal_error("permanent delete", e)

@app.get("/api/trash", response_model=List[TrashRecord])
def list_trash(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        return store.list_user_trash(user_id)
    except Exception as e:
        raise internal_error("trash listing", e)

@app.post("/api/trash/{filename}/restore", response_model=RestoreResult)
def restore_from_trash(
    filename: str,
    user_id: str = Depends(get_current_user_id),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    if "/" in filename:
        raise HTTPException(status_code=400, detail="Invalid filename")
    try:
        return lifecycle.restore_from_trash(user_id, filename)
    except Exception as e:
        raise internal_error("restore from trash", e)

@app.post("/api/trash/purge", response_model=PurgeResult)
def purge_trash(
    days: Optional[int] = Query(default=None, ge=0),
    user_id: str = Depends(get_current_user_id),
    lifecycle: DocumentLifecycle = Depends(get_lifecycle),
):
    if days is None:
        days = settings.trash_retention_days
    try:
        return PurgeResult(purged=lifecycle.purge_old_trash(user_id, days))
    except Exception as e:
        raise internal_error("trash purge", e)

@app.post("/api/folders", response_model=SmartFolder)
def create_folder(
    body: SmartFolderIn,
    user_id: str = Depends(get_current_user_id),
    folders: SmartFolderService = Depends(get_folder_service),
):
    try:
        return folders.create_smart_folder(user_id, body.folder_name, body.folder_description)
    except Exception as e:
        raise internal_error("smart folder creation", e)

@app.get("/api/folders", response_model=List[SmartFolder])
def list_folders(
    user_id: str = Depends(get_current_user_id),
    folders: SmartFolderService = Depends(get_folder_service),
):
    try:
        return folders.get_user_smart_folders(user_id)
    except Exception as e:
        raise internal_error("smart folder listing", e)

@app.get("/api/folders/assignments", response_model=List[FolderAssignment])
def list_assignments(
    user_id: str = Depends(get_current_user_id),
    folders: SmartFolderService = Depends(get_folder_service),
):
    try:
        return folders.get_document_folder_assignments(user_id)
    except Exception as e:
        raise internal_error("folder assignment listing", e)

@app.post("/api/folders/{folder_id}/assignments", response_model=List[FolderAssignment])
def assign_to_folder(
    folder_id: Union[int, str],
    body: AssignmentIn,
    user_id: str = Depends(get_current_user_id),
    folders: SmartFolderService = Depends(get_folder_service),
):
    ensure_owner(user_id, body.document_path)
    try:
        return folders.assign_document_to_folder(body.document_path, folder_id, user_id=user_id)
    except Exception as e:
        raise internal_error("folder assignment", e)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
