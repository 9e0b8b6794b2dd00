"""Shared FastAPI dependencies for admin authentication."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from results_portal.database import get_session
from results_portal.exceptions import StorageError
from results_portal.models import Admin

logger = logging.getLogger(__name__)


def get_current_admin(
    request: Request, session: Session = Depends(get_session)
) -> Optional[Admin]:
    """Return the logged-in admin based on the session cookie, if any."""
    admin_id = request.session.get("admin_id")
    if not admin_id:
        return None

    try:
        admin = session.get(Admin, admin_id)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Admin session lookup failed")
        raise StorageError() from exc
    if admin is None:
        # Clear any stale session
        request.session.clear()
        return None
    return admin


def require_admin(current_admin: Optional[Admin] = Depends(get_current_admin)) -> Admin:
    """Ensure an admin is logged in."""
    if current_admin is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return current_admin
