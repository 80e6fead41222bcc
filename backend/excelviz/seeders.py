import logging
from sqlalchemy.orm import Session
from .config import Settings
from . import crud
from .utils import hash_password

logger = logging.getLogger(__name__)


def seed_admin(db: Session, settings: Settings):
    """Create the bootstrap admin from SEED_ADMIN_* once, if configured."""
    if not settings.seed_admin_email or not settings.seed_admin_password:
        return None
    existing = crud.get_user_by_email(db, settings.seed_admin_email)
    if existing:
        return existing
    user = crud.create_user(
        db,
        name=settings.seed_admin_name,
        email=settings.seed_admin_email,
        role="admin",
        password_hash=hash_password(settings.seed_admin_password, settings.bcrypt_rounds),
    )
    logger.info("Seeded admin account %s", user.email)
    return user


def seed_all(db: Session, settings: Settings):
    seed_admin(db, settings)
