from fastapi import APIRouter, Depends, UploadFile, File
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from ..config import Settings, get_settings
from ..database import get_db
from .. import crud, schemas
from ..deps import get_current_user, require_admin
from ..errors import FileTooLargeError, StorageError, ValidationError
from ..spreadsheet import discard_file, is_excel_upload, parse_upload
import os, uuid, logging
from typing import List

router = APIRouter(prefix="/api/upload", tags=["upload"])

logger = logging.getLogger(__name__)


@router.post("/excel", response_model=schemas.UploadResult)
async def upload_excel(
    excel_file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """Parse the first sheet of an uploaded workbook and store its rows.

    The file is written to the upload directory under a generated name,
    parsed and saved off the event loop, and deleted again whatever the
    outcome.
    """
    logger.info("Upload request from user %s: %s", user.id, excel_file.filename)
    if not is_excel_upload(excel_file.filename, excel_file.content_type):
        raise ValidationError("Only Excel files are allowed!", code="unsupported_file_type")

    content = await excel_file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise FileTooLargeError(
            f"File exceeds the {settings.max_upload_bytes // (1024 * 1024)}MB limit"
        )

    ext = os.path.splitext(excel_file.filename)[1].lower()
    storage_name = f"{uuid.uuid4()}{ext}"
    os.makedirs(settings.upload_dir, exist_ok=True)
    path = os.path.join(settings.upload_dir, storage_name)
    try:
        try:
            with open(path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.exception("Failed to write upload %s", path)
            raise StorageError("Failed to store uploaded file", details=str(e)) from e

        rows = await run_in_threadpool(parse_upload, path)
        upload = await run_in_threadpool(
            crud.create_upload, db, rows, user, excel_file.filename, storage_name
        )
    finally:
        discard_file(path)
    logger.info("Stored upload %s (%d rows) for user %s", upload.id, upload.row_count, user.id)

    return {
        "success": True,
        "data": rows,
        "message": "Admin upload successful" if user.role == "admin" else "Upload successful",
        "upload_id": upload.id,
    }


@router.get("/excel", response_model=List[schemas.UploadOut])
def my_uploads(db: Session = Depends(get_db), user = Depends(get_current_user)):
    return crud.list_uploads(db, user)


@router.get("/excel/{id}", response_model=schemas.UploadDetailOut)
def get_upload(id: int, db: Session = Depends(get_db), user = Depends(get_current_user)):
    return crud.get_upload(db, id, user)


@router.delete("/excel/{id}", response_model=schemas.MessageOut, dependencies=[Depends(require_admin)])
def delete_upload(id: int, db: Session = Depends(get_db)):
    crud.delete_upload(db, id)
    return {"success": True, "message": "File deleted successfully"}
