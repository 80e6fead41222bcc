from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from ..database import get_db
from .. import crud, schemas
from ..deps import get_current_user, require_admin
import logging

router = APIRouter(prefix="/api/history", tags=["history"])

logger = logging.getLogger(__name__)


@router.post("", response_model=schemas.Envelope[schemas.HistoryOut], status_code=status.HTTP_201_CREATED)
def save_history(payload: schemas.HistoryIn, db: Session = Depends(get_db), user = Depends(get_current_user)):
    entry = crud.record_history(db, user, payload.file_name, payload.x_axis,
                                payload.y_axis, payload.chart_type)
    return {"success": True, "message": "History saved successfully", "data": entry}


@router.get("", response_model=schemas.ListEnvelope[schemas.HistoryOut])
def my_history(db: Session = Depends(get_db), user = Depends(get_current_user)):
    entries = crud.list_history(db, user)
    logger.debug("Found %d history records for user %s", len(entries), user.id)
    return {"success": True, "count": len(entries), "data": entries}


@router.get("/admin/all", response_model=schemas.ListEnvelope[schemas.HistoryWithOwnerOut],
            dependencies=[Depends(require_admin)])
def all_history(db: Session = Depends(get_db)):
    entries = crud.list_all_history(db)
    return {"success": True, "count": len(entries), "data": entries}
