"""Access Grant Issuer and Validator.

A grant is an opaque bearer token bound to one result record. It stays valid,
for any number of reads, until ``expires_at``; a grant whose expiry equals the
current instant is already expired.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col

from results_portal.config import get_settings
from results_portal.exceptions import InvalidGrant, StorageError
from results_portal.logging_config import fingerprint
from results_portal.models import AccessGrant, ResultRecord, utcnow

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32  # 256 bits of entropy, 64 hex characters


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def issue(
    session: Session,
    result_id: int,
    ttl_seconds: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    """Mint and persist a grant for ``result_id`` and return its token.

    The caller must already have verified that the record exists.
    """
    if ttl_seconds is None:
        ttl_seconds = get_settings().grant_ttl_seconds
    if ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be positive")
    issued_at = now or utcnow()

    grant = AccessGrant(
        token=generate_token(),
        result_id=result_id,
        issued_at=issued_at,
        expires_at=issued_at + timedelta(seconds=ttl_seconds),
    )
    try:
        session.add(grant)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Could not persist access grant for result %s", result_id)
        raise StorageError() from exc

    logger.debug("Issued grant %s for result %s", fingerprint(grant.token), result_id)
    return grant.token


def validate(
    session: Session,
    token: Optional[str],
    expected_result_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AccessGrant:
    """Return the grant for ``token`` if it is usable right now.

    Every protected read must call this; nothing about a previous successful
    validation is remembered.

    Raises:
        InvalidGrant: with ``reason`` set to why the token was refused.
        StorageError: the database could not be reached.
    """
    if not token:
        raise _refuse(InvalidGrant.MISSING, None, expected_result_id)
    now = now or utcnow()

    try:
        grant = session.get(AccessGrant, token)
        if grant is None:
            raise _refuse(InvalidGrant.UNKNOWN, token, expected_result_id)
        if grant.is_expired(now):
            raise _refuse(InvalidGrant.EXPIRED, token, expected_result_id)
        if expected_result_id is not None and grant.result_id != expected_result_id:
            raise _refuse(InvalidGrant.SCOPE_MISMATCH, token, expected_result_id)
        if session.get(ResultRecord, grant.result_id) is None:
            raise _refuse(InvalidGrant.RECORD_MISSING, token, expected_result_id)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Grant lookup failed for %s", fingerprint(token))
        raise StorageError() from exc
    return grant


def _refuse(reason: str, token: Optional[str], expected_result_id: Optional[int]) -> InvalidGrant:
    logger.info(
        "Refused grant %s (reason=%s, requested result=%s)",
        fingerprint(token) if token else "-",
        reason,
        expected_result_id,
    )
    return InvalidGrant(reason)


def sweep_expired(session: Session, now: Optional[datetime] = None) -> int:
    """Delete grants that can no longer validate; return how many were removed."""
    now = now or utcnow()
    try:
        result = session.execute(delete(AccessGrant).where(col(AccessGrant.expires_at) <= now))
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Expired grant sweep failed")
        raise StorageError() from exc

    if result.rowcount:
        logger.info("Swept %d expired access grants", result.rowcount)
    return result.rowcount
