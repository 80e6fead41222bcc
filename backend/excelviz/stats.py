from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload
from .errors import NotFoundError
from .models import User, History, utcnow
from .utils.pagination import Paginator

RECENT_USERS = 10
RECENT_UPLOADS = 20
TOP_UPLOADERS = 10
USER_DETAIL_HISTORY = 10
WINDOW = timedelta(days=7)


def compute_stats(db: Session, now: Optional[datetime] = None) -> dict:
    """Summary figures for the admin dashboard.

    "uploads" here are history entries (one per generated chart). Each
    figure is its own query; there is no snapshot across them.
    """
    now = now or utcnow()
    week_ago = now - WINDOW

    total_users = db.query(func.count(User.id)).scalar() or 0
    total_uploads = db.query(func.count(History.id)).scalar() or 0

    recent_users = (
        db.query(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(RECENT_USERS)
        .all()
    )
    recent_uploads = (
        db.query(History)
        .options(joinedload(History.user))
        .order_by(History.created_at.desc(), History.id.desc())
        .limit(RECENT_UPLOADS)
        .all()
    )

    weekly_uploads = db.query(func.count(History.id)).filter(History.created_at >= week_ago).scalar() or 0
    weekly_users = db.query(func.count(User.id)).filter(User.created_at >= week_ago).scalar() or 0

    upload_count = func.count(History.id).label("count")
    top = (
        db.query(User.id, User.name, User.email, upload_count)
        .join(History, History.user_id == User.id)
        .group_by(User.id, User.name, User.email)
        .order_by(upload_count.desc(), User.id)
        .limit(TOP_UPLOADERS)
        .all()
    )

    return {
        "total_users": total_users,
        "total_uploads": total_uploads,
        "weekly_uploads": weekly_uploads,
        "weekly_users": weekly_users,
        "recent_users": recent_users,
        "recent_uploads": recent_uploads,
        "avg_uploads_per_user": round(total_uploads / total_users, 1) if total_users > 0 else 0,
        "top_uploaders": [
            {"id": uid, "name": name, "email": email, "count": count}
            for uid, name, email, count in top
        ],
    }


def _like_pattern(search: str) -> str:
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def list_users(db: Session, page: int = 1, page_size: int = 20, role: Optional[str] = None,
               status: Optional[str] = None, search: Optional[str] = None):
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    if status:
        q = q.filter(User.status == status)
    if search:
        pattern = _like_pattern(search)
        q = q.filter(or_(User.name.ilike(pattern, escape="\\"),
                         User.email.ilike(pattern, escape="\\")))
    return Paginator(
        query=q.order_by(User.created_at.desc(), User.id.desc()),
        page=page,
        page_size=page_size,
    ).execute()


def get_user_detail(db: Session, user_id: int) -> dict:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    uploads = (
        db.query(History)
        .filter(History.user_id == user_id)
        .order_by(History.created_at.desc(), History.id.desc())
        .limit(USER_DETAIL_HISTORY)
        .all()
    )
    upload_count = db.query(func.count(History.id)).filter(History.user_id == user_id).scalar() or 0
    return {
        "user": user,
        "uploads": uploads,
        "upload_count": upload_count,
        # updated_at stands in for last activity
        "last_active": user.updated_at,
    }
