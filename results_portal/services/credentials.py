"""Credential Verifier: exchange an exam number + PIN for a result record."""

import logging
import secrets
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from results_portal.exceptions import InvalidRequest, ResultNotFound, StorageError
from results_portal.models import AccessLog, ResultRecord

logger = logging.getLogger(__name__)

# Compared against when no candidate row exists so both miss paths do the same work
_DUMMY_PIN = secrets.token_hex(16)


def _pins_match(stored: str, supplied: str) -> bool:
    return secrets.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


def verify(
    session: Session,
    exam_number: Optional[str],
    pin: Optional[str],
    ip_address: Optional[str] = None,
) -> ResultRecord:
    """Return the result record matching the credential pair.

    Duplicate (exam_number, pin) pairs resolve to the most recently uploaded
    record, with the higher id winning a timestamp tie.

    Raises:
        InvalidRequest: either field is missing or blank (no query is made).
        ResultNotFound: nothing matches; the same error whichever field is wrong.
        StorageError: the database could not be reached.
    """
    exam_number = (exam_number or "").strip()
    pin = (pin or "").strip()
    if not exam_number or not pin:
        raise InvalidRequest()

    try:
        candidates = session.exec(
            select(ResultRecord)
            .where(ResultRecord.exam_number == exam_number)
            .order_by(col(ResultRecord.created_at).desc(), col(ResultRecord.id).desc())
        ).all()

        match = None
        if not candidates:
            _pins_match(_DUMMY_PIN, pin)
        for record in candidates:
            # No early exit: every candidate is compared
            if _pins_match(record.pin, pin) and match is None:
                match = record

        if ip_address is not None:
            _record_attempt(session, exam_number, ip_address, match is not None)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Result lookup failed for exam number %s", exam_number)
        raise StorageError() from exc

    if match is None:
        logger.info("No result matched credentials for exam number %s", exam_number)
        raise ResultNotFound()
    return match


def _record_attempt(session: Session, exam_number: str, ip_address: str, succeeded: bool) -> None:
    session.add(AccessLog(exam_number=exam_number, ip_address=ip_address, succeeded=succeeded))
    session.commit()
