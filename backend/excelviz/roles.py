"""Server-side decision on whether a claimed admin role is honoured.

Clients only collect the admin code; nothing they decide about roles is
trusted. ``assign_role`` is the single place an account gets ``admin``.
"""
import hmac
import logging
from typing import Optional

from .config import Settings
from .errors import AuthorizationError

logger = logging.getLogger(__name__)


def _codes_match(submitted_code: Optional[str], secret_code: Optional[str]) -> bool:
    if not submitted_code or not secret_code:
        return False
    return hmac.compare_digest(submitted_code.encode("utf-8"), secret_code.encode("utf-8"))


def decide_role(claimed_role: Optional[str], submitted_code: Optional[str],
                secret_code: Optional[str]) -> str:
    if claimed_role == "admin" and _codes_match(submitted_code, secret_code):
        return "admin"
    return "user"


def assign_role(claimed_role: Optional[str], submitted_code: Optional[str],
                settings: Settings) -> str:
    role = decide_role(claimed_role, submitted_code, settings.admin_code)
    if claimed_role == "admin" and role != "admin":
        logger.warning("Rejected admin elevation attempt (missing or invalid admin code)")
        raise AuthorizationError("Invalid admin code", code="invalid_admin_code")
    return role


def verify_admin_code(submitted_code: Optional[str], settings: Settings) -> None:
    if not _codes_match(submitted_code, settings.admin_code):
        raise AuthorizationError("Invalid admin code", code="invalid_admin_code")
