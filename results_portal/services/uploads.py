"""Admin upload handling: storing files and creating result records."""

import logging
import secrets
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Union

import bleach
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from results_portal.exceptions import StorageError
from results_portal.models import ResultRecord

logger = logging.getLogger(__name__)

RECENT_LIMIT = 20


def sanitize_student_name(text: str) -> str:
    """Strip any HTML from the name; it is rendered on the result page."""
    return bleach.clean(text, tags=[], strip=True).strip()


def storage_name(original_filename: str) -> str:
    """Random on-disk name that keeps the original extension."""
    suffix = Path(original_filename).suffix.lower()
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"


def save_upload(
    session: Session,
    upload_dir: Union[str, Path],
    stream: BinaryIO,
    original_filename: str,
    student_name: str,
    exam_number: str,
    pin: str,
) -> ResultRecord:
    """Write the uploaded file to disk and insert its ResultRecord."""
    root = Path(upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    key = storage_name(original_filename)
    target = root / key
    with target.open("wb") as out:
        shutil.copyfileobj(stream, out)

    record = ResultRecord(
        student_name=sanitize_student_name(student_name),
        exam_number=exam_number.strip(),
        pin=pin.strip(),
        file_path=key,
        original_filename=Path(original_filename).name,
    )
    try:
        session.add(record)
        session.commit()
        session.refresh(record)
    except SQLAlchemyError as exc:
        session.rollback()
        target.unlink(missing_ok=True)
        logger.exception("Could not save result record for exam number %s", exam_number)
        raise StorageError() from exc

    logger.info("Uploaded result %s for exam number %s", record.id, record.exam_number)
    return record


def list_recent(session: Session, limit: int = RECENT_LIMIT) -> list[ResultRecord]:
    try:
        return list(
            session.exec(
                select(ResultRecord)
                .order_by(col(ResultRecord.created_at).desc(), col(ResultRecord.id).desc())
                .limit(limit)
            ).all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Could not list results")
        raise StorageError() from exc
