"""Locate the stored file behind a validated grant."""

import logging
from pathlib import Path
from typing import Union

from results_portal.exceptions import FileMissing
from results_portal.models import ResultRecord

logger = logging.getLogger(__name__)


def resolve_result_file(record: ResultRecord, upload_dir: Union[str, Path]) -> Path:
    """Return the on-disk path of ``record``'s file.

    Raises FileMissing when the file is gone or the stored key points outside
    the upload directory.
    """
    root = Path(upload_dir).resolve()
    path = (root / record.file_path).resolve()
    if not path.is_relative_to(root) or not path.is_file():
        logger.warning(
            "Result %s has a valid grant but its file is missing: %s", record.id, record.file_path
        )
        raise FileMissing(record.id, record.file_path)
    return path
