import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from ..config import Settings, get_settings
from ..database import get_db
from .. import crud
from ..errors import AuthenticationError, ValidationError
from ..roles import assign_role, verify_admin_code
from ..schemas import AuthOut, RegisterIn, LoginIn, GoogleAuthIn, AdminCodeIn, MessageOut
from ..utils import verify_password, hash_password, create_access_token

router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = logging.getLogger(__name__)


def _issue(user, settings: Settings) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role}, settings)
    return {"token": token, "user": user}


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    if crud.get_user_by_email(db, payload.email):
        raise ValidationError("User already exists", code="user_exists")
    role = assign_role(payload.role, payload.admin_code, settings)
    user = crud.create_user(
        db,
        name=payload.name,
        email=payload.email,
        role=role,
        password_hash=hash_password(payload.password, settings.bcrypt_rounds),
    )
    logger.info("Registered user %s with role %s", user.id, user.role)
    return _issue(user, settings)


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    user = crud.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise AuthenticationError("Invalid credentials", code="invalid_credentials")
    return _issue(user, settings)


@router.post("/google", response_model=AuthOut)
def google_sign_in(payload: GoogleAuthIn, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    """Finish an identity-provider sign-in that the client already completed.

    The admin role is only granted through ``assign_role``; a wrong or missing
    code for a claimed admin role is rejected before anything is written.
    """
    role = assign_role(payload.requested_role, payload.admin_code, settings)
    user = crud.get_user_by_email(db, payload.email)
    if user is None:
        user = crud.create_user(
            db,
            name=payload.name,
            email=payload.email,
            role=role,
            auth_provider="google",
            provider_uid=payload.uid,
            photo_url=payload.photo_url,
        )
        logger.info("Created provider account %s with role %s", user.id, user.role)
    elif not user.auth_provider:
        user = crud.link_provider(db, user, "google", payload.uid, payload.photo_url, role)
        logger.info("Linked provider sign-in to user %s", user.id)
    return _issue(user, settings)


@router.post("/verify-admin-code", response_model=MessageOut)
def check_admin_code(payload: AdminCodeIn, settings: Settings = Depends(get_settings)):
    verify_admin_code(payload.admin_code, settings)
    return {"success": True, "message": "Admin code verified"}
