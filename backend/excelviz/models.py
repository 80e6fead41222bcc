from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from .database import Base

ROLES = ("user", "admin")
STATUSES = ("active", "inactive")
CHART_TYPES = ("Bar", "Line", "Pie")


def utcnow():
    # naive UTC, the same on every backend (sqlite drops tzinfo)
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("password_hash IS NOT NULL OR provider_uid IS NOT NULL",
                        name="ck_users_credentials"),
    )
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    password_hash = Column(Text, nullable=True)  # null for provider-only accounts
    role = Column(String(20), nullable=False, default="user")  # 'admin' or 'user'
    status = Column(String(20), nullable=False, default="active")  # 'active' or 'inactive'
    auth_provider = Column(String(20), nullable=True)  # 'google' or null
    provider_uid = Column(String(128), nullable=True, index=True)
    photo_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Upload(Base):
    __tablename__ = "uploads"
    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)  # generated storage name
    original_name = Column(String(255), nullable=False)
    data = Column(JSON, nullable=False)  # [{column: value, ...}, ...]
    columns = Column(JSON, nullable=False)
    row_count = Column(Integer, nullable=False, default=0)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User")


class History(Base):
    __tablename__ = "history"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)  # free text, not a reference to uploads
    x_axis = Column(String(255), nullable=False)
    y_axis = Column(String(255), nullable=False)
    chart_type = Column(String(10), nullable=False)  # 'Bar', 'Line' or 'Pie'
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    user = relationship("User")
