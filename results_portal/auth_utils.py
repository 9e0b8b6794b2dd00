"""Admin authentication utilities: password hashing and seeding."""

import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from results_portal.exceptions import StorageError
from results_portal.models import Admin

logger = logging.getLogger(__name__)

# Use "2b" ident to stay compatible with bcrypt 4.x
PWD_CONTEXT = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",
    bcrypt__rounds=12,
)


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password for storage."""
    return PWD_CONTEXT.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plaintext password against its hash."""
    return PWD_CONTEXT.verify(plain_password, password_hash)


def authenticate_admin(session: Session, username: str, password: str) -> Optional[Admin]:
    try:
        admin = session.exec(select(Admin).where(Admin.username == username.strip())).first()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Admin lookup failed for %s", username)
        raise StorageError() from exc
    if admin is None or not verify_password(password, admin.password_hash):
        return None
    return admin


def seed_default_admin(session: Session, username: str, password: str) -> bool:
    """Create the default admin if the table is empty; return True if one was created."""
    if session.exec(select(Admin)).first() is not None:
        logger.info("Admin table found, skipping seeding")
        return False
    session.add(Admin(username=username, password_hash=hash_password(password)))
    session.commit()
    logger.info("Seeded default admin user: %s", username)
    return True
