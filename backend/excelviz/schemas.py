from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Any, Generic, TypeVar

T = TypeVar('T')

# Generic success envelope
class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T
    message: Optional[str] = None

class ListEnvelope(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]

class MessageOut(BaseModel):
    success: bool = True
    message: Optional[str] = None

# Accounts
class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    status: str = "active"
    photo_url: Optional[str] = None
    auth_provider: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    role: str
    created_at: datetime
    class Config:
        from_attributes = True

class OwnerOut(BaseModel):
    name: str
    email: str
    class Config:
        from_attributes = True

class AuthOut(BaseModel):
    token: str
    user: UserOut

class RegisterIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    role: Optional[str] = "user"
    admin_code: Optional[str] = None

class LoginIn(BaseModel):
    email: str
    password: str

class GoogleAuthIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    uid: str = Field(..., min_length=1)
    photo_url: Optional[str] = None
    requested_role: Optional[str] = "user"
    admin_code: Optional[str] = None

class AdminCodeIn(BaseModel):
    admin_code: Optional[str] = None

# Dataset uploads
class UploadOut(BaseModel):
    id: int
    filename: str
    original_name: str
    columns: List[str]
    row_count: int
    uploaded_by: int
    created_at: datetime
    class Config:
        from_attributes = True

class UploadDetailOut(UploadOut):
    data: List[Dict[str, Any]]

class UploadResult(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]
    message: str
    upload_id: int

# History
class HistoryIn(BaseModel):
    # presence is checked by the ledger so a missing field is a 400, not a 422
    file_name: Optional[str] = None
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None
    chart_type: Optional[str] = None

class HistoryOut(BaseModel):
    id: int
    file_name: str
    x_axis: str
    y_axis: str
    chart_type: str
    created_at: datetime
    class Config:
        from_attributes = True

class HistoryWithOwnerOut(HistoryOut):
    user: Optional[OwnerOut] = None

# Admin
class TopUploader(BaseModel):
    id: int
    name: str
    email: str
    count: int

class AdminStats(BaseModel):
    total_users: int
    total_uploads: int
    weekly_uploads: int
    weekly_users: int
    recent_users: List[UserSummary]
    recent_uploads: List[HistoryWithOwnerOut]
    avg_uploads_per_user: float
    top_uploaders: List[TopUploader] = []

class UserDetail(BaseModel):
    user: UserOut
    uploads: List[HistoryOut]
    upload_count: int
    last_active: Optional[datetime] = None

class RoleUpdateIn(BaseModel):
    role: Optional[str] = None

class StatusUpdateIn(BaseModel):
    status: Optional[str] = None

# Common query parameters
class PaginationParams(BaseModel):
    page: int = Field(1, ge=1, description="Page number, 1-based")
    page_size: int = Field(20, ge=1, le=100, description="Items per page")

class UserFilterParams(PaginationParams):
    role: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None

class PaginationOut(BaseModel):
    current: int
    pages: int
    total: int

class UserPage(BaseModel):
    success: bool = True
    data: List[UserOut]
    pagination: PaginationOut
