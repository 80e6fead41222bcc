from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..database import get_db
from .. import crud, schemas, stats
from ..deps import require_admin

# every route in this module is admin-only
router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=schemas.Envelope[schemas.AdminStats])
def admin_stats(db: Session = Depends(get_db)):
    return {"success": True, "data": stats.compute_stats(db)}


@router.get("/users", response_model=schemas.UserPage)
def list_users(params: schemas.UserFilterParams = Depends(), db: Session = Depends(get_db)):
    """Accounts newest first, filtered by role, status and a name/email search."""
    page = stats.list_users(
        db,
        page=params.page,
        page_size=params.page_size,
        role=params.role,
        status=params.status,
        search=params.search,
    )
    return {
        "success": True,
        "data": page.items,
        "pagination": {"current": page.page, "pages": page.pages, "total": page.total},
    }


@router.get("/users/{id}", response_model=schemas.Envelope[schemas.UserDetail])
def user_detail(id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": stats.get_user_detail(db, id)}


@router.patch("/users/{id}/role", response_model=schemas.Envelope[schemas.UserOut])
def update_role(id: int, payload: schemas.RoleUpdateIn, db: Session = Depends(get_db),
                admin = Depends(require_admin)):
    user = crud.update_user_role(db, admin, id, payload.role)
    return {"success": True, "data": user, "message": "User role updated successfully"}


@router.patch("/users/{id}/status", response_model=schemas.Envelope[schemas.UserOut])
def update_status(id: int, payload: schemas.StatusUpdateIn, db: Session = Depends(get_db),
                  admin = Depends(require_admin)):
    user = crud.update_user_status(db, admin, id, payload.status)
    verb = "activated" if user.status == "active" else "deactivated"
    return {"success": True, "data": user, "message": f"User {verb} successfully"}


@router.delete("/users/{id}", response_model=schemas.MessageOut)
def delete_user(id: int, db: Session = Depends(get_db), admin = Depends(require_admin)):
    crud.delete_user(db, admin, id)
    return {"success": True, "message": "User deleted successfully"}


@router.get("/uploads", response_model=schemas.ListEnvelope[schemas.HistoryWithOwnerOut])
def list_uploads(db: Session = Depends(get_db)):
    entries = crud.list_all_history(db)
    return {"success": True, "count": len(entries), "data": entries}


@router.delete("/uploads/{id}", response_model=schemas.MessageOut)
def delete_upload(id: int, db: Session = Depends(get_db)):
    crud.delete_history(db, id)
    return {"success": True, "message": "Upload record deleted successfully"}
