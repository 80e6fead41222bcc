import logging
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, ExpiredSignatureError
from .config import Settings, get_settings
from .database import get_db
from .errors import AuthenticationError, AuthorizationError
from .models import User
from .schemas import UserOut
from .utils import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _resolve_account(db: Session, token: HTTPAuthorizationCredentials, settings: Settings) -> User:
    if token is None or not token.credentials:
        raise AuthenticationError("Authorization token required", code="token_required")
    try:
        payload = decode_access_token(token.credentials, settings)
    except ExpiredSignatureError:
        logger.debug("Rejected expired token")
        raise AuthenticationError("Token expired", code="token_expired")
    except JWTError as e:
        logger.warning("Rejected malformed token: %s", e)
        raise AuthenticationError("Malformed token", code="invalid_token")
    sub = payload.get("sub")
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise AuthenticationError("Malformed token", code="invalid_token")
    user = db.get(User, user_id)
    if not user:
        raise AuthenticationError("User not found or token invalid", code="account_not_found")
    if user.status != "active":
        raise AuthorizationError("Account is not active", code="account_inactive")
    return user


def _check_role(user: User, required_role: str) -> None:
    if required_role == "user":
        allowed = user.role in ("user", "admin")
    else:
        allowed = user.role == required_role
    if not allowed:
        raise AuthorizationError("Insufficient privileges", code="insufficient_privileges")


def require_role(required_role: str = "user"):
    """Build a dependency that admits active accounts holding ``required_role``.

    The token is re-validated and the account re-read on every request; the
    role stored in the token is never trusted. Admitted accounts are attached
    to ``request.state.user`` as a ``UserOut`` projection without the password
    hash; the ORM object itself is returned to the handler.
    """
    def dependency(request: Request,
                   db: Session = Depends(get_db),
                   token: HTTPAuthorizationCredentials = Depends(bearer_scheme),
                   settings: Settings = Depends(get_settings)) -> User:
        user = _resolve_account(db, token, settings)
        _check_role(user, required_role)
        request.state.user = UserOut.model_validate(user)
        return user
    return dependency


get_current_user = require_role("user")
require_admin = require_role("admin")
