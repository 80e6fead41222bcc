import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from .errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from .models import User, Upload, History, ROLES, STATUSES, CHART_TYPES

logger = logging.getLogger(__name__)


def _commit(db: Session, what: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to %s", what)
        raise StorageError(f"Failed to {what}", details=str(e)) from e


# ---------------- Accounts ----------------
def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()

def create_user(db: Session, *, name: str, email: str, role: str = "user",
                password_hash: Optional[str] = None, auth_provider: Optional[str] = None,
                provider_uid: Optional[str] = None, photo_url: Optional[str] = None) -> User:
    if not password_hash and not provider_uid:
        raise ValidationError("A password is required unless signing in with a provider")
    if role not in ROLES:
        raise ValidationError("Invalid role")
    user = User(
        name=name.strip(),
        email=email.strip().lower(),
        role=role,
        password_hash=password_hash,
        auth_provider=auth_provider,
        provider_uid=provider_uid,
        photo_url=photo_url,
    )
    db.add(user)
    _commit(db, "create user")
    db.refresh(user)
    return user

def link_provider(db: Session, user: User, provider: str, provider_uid: str,
                  photo_url: Optional[str], role: str) -> User:
    """Attach a provider identity to an existing password account.

    ``role`` must already come from ``roles.assign_role``; it can only raise
    the account to admin, never lower it.
    """
    user.auth_provider = provider
    user.provider_uid = provider_uid
    user.photo_url = photo_url
    if role == "admin":
        user.role = "admin"
    _commit(db, "link provider account")
    db.refresh(user)
    return user

def list_all_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def _get_target(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user

def update_user_role(db: Session, actor: User, user_id: int, role: Optional[str]) -> User:
    if role not in ROLES:
        raise ValidationError("Invalid role")
    if user_id == actor.id:
        raise AuthorizationError("Cannot change your own role", code="self_action_forbidden")
    user = _get_target(db, user_id)
    user.role = role
    _commit(db, "update user role")
    db.refresh(user)
    logger.info("Admin %s set role of user %s to %s", actor.id, user.id, role)
    return user

def update_user_status(db: Session, actor: User, user_id: int, status: Optional[str]) -> User:
    if status not in STATUSES:
        raise ValidationError("Invalid status")
    if user_id == actor.id:
        raise AuthorizationError("Cannot change your own status", code="self_action_forbidden")
    user = _get_target(db, user_id)
    user.status = status
    _commit(db, "update user status")
    db.refresh(user)
    logger.info("Admin %s set status of user %s to %s", actor.id, user.id, status)
    return user

def delete_user(db: Session, actor: User, user_id: int) -> None:
    """Delete an account together with its history entries and uploads.

    All three deletes share one transaction.
    """
    if user_id == actor.id:
        raise AuthorizationError("Cannot delete your own account", code="self_action_forbidden")
    user = _get_target(db, user_id)
    if user.role == "admin":
        raise AuthorizationError("Cannot delete admin users", code="admin_protected")
    db.query(History).filter(History.user_id == user_id).delete(synchronize_session=False)
    db.query(Upload).filter(Upload.uploaded_by == user_id).delete(synchronize_session=False)
    db.delete(user)
    _commit(db, "delete user")
    logger.info("Admin %s deleted user %s", actor.id, user_id)


# ---------------- Dataset uploads ----------------
def _column_union(rows: List[Dict[str, Any]]) -> List[str]:
    columns: Dict[str, None] = {}
    for row in rows:
        for key in row:
            columns.setdefault(key, None)
    return list(columns)

def create_upload(db: Session, rows: List[Dict[str, Any]], owner: User,
                  original_name: str, filename: str) -> Upload:
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise ValidationError("Rows must be a list of mappings")
    upload = Upload(
        filename=filename,
        original_name=original_name,
        data=rows,
        columns=_column_union(rows),
        row_count=len(rows),
        uploaded_by=owner.id,
    )
    db.add(upload)
    _commit(db, "save upload")
    db.refresh(upload)
    return upload

def list_uploads(db: Session, owner: User) -> List[Upload]:
    return (
        db.query(Upload)
        .filter(Upload.uploaded_by == owner.id)
        .order_by(Upload.created_at.desc(), Upload.id.desc())
        .all()
    )

def get_upload(db: Session, upload_id: int, viewer: User) -> Upload:
    upload = db.get(Upload, upload_id)
    # other users' uploads are reported as missing rather than forbidden
    if not upload or (viewer.role != "admin" and upload.uploaded_by != viewer.id):
        raise NotFoundError("Upload not found")
    return upload

def delete_upload(db: Session, upload_id: int) -> None:
    upload = db.get(Upload, upload_id)
    if not upload:
        raise NotFoundError("Upload not found")
    db.delete(upload)
    _commit(db, "delete upload")


# ---------------- History ledger ----------------
def record_history(db: Session, owner: User, file_name: Optional[str], x_axis: Optional[str],
                   y_axis: Optional[str], chart_type: Optional[str]) -> History:
    fields = {"file_name": file_name, "x_axis": x_axis, "y_axis": y_axis, "chart_type": chart_type}
    missing = [k for k, v in fields.items() if v is None or not str(v).strip()]
    if missing:
        raise ValidationError("Missing required fields", details={"missing": missing})
    if chart_type not in CHART_TYPES:
        raise ValidationError(f"chart_type must be one of {', '.join(CHART_TYPES)}")
    entry = History(user_id=owner.id, file_name=file_name, x_axis=x_axis,
                    y_axis=y_axis, chart_type=chart_type)
    db.add(entry)
    _commit(db, "save history")
    db.refresh(entry)
    return entry

def list_history(db: Session, owner: User) -> List[History]:
    return (
        db.query(History)
        .filter(History.user_id == owner.id)
        .order_by(History.created_at.desc(), History.id.desc())
        .all()
    )

def list_all_history(db: Session) -> List[History]:
    return (
        db.query(History)
        .options(joinedload(History.user))
        .order_by(History.created_at.desc(), History.id.desc())
        .all()
    )

def delete_history(db: Session, entry_id: int) -> None:
    entry = db.get(History, entry_id)
    if not entry:
        raise NotFoundError("History entry not found")
    db.delete(entry)
    _commit(db, "delete history entry")
