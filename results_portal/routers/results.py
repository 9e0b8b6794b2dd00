"""Student-facing routes: credential check, result view and file download."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from results_portal.config import Settings, get_settings
from results_portal.database import get_session
from results_portal.models import ResultRecord
from results_portal.services import credentials, grants
from results_portal.services.delivery import resolve_result_file
from results_portal.templating import templates

router = APIRouter()


class VerifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    exam_number: Optional[str] = Field(default=None, alias="examNumber")
    pin: Optional[str] = None


class VerifyResponse(BaseModel):
    token: str


@router.post("/api/student/verify", response_model=VerifyResponse)
def verify_student(
    payload: VerifyRequest,
    request: Request,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Check exam number + PIN and hand back a short-lived access token."""
    client_ip = request.client.host if request.client else None
    record = credentials.verify(session, payload.exam_number, payload.pin, ip_address=client_ip)
    token = grants.issue(session, record.id, settings.grant_ttl_seconds)
    return VerifyResponse(token=token)


@router.get("/view-result")
def view_result(
    request: Request,
    token: Optional[str] = Query(None),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Render the result page for the record bound to ``token``."""
    grant = grants.validate(session, token)
    record = session.get(ResultRecord, grant.result_id)
    # The page links to the download, so the file must be there too
    resolve_result_file(record, settings.upload_dir)
    context = {
        "record": record,
        "token": token,
        "expires_at": grant.expires_at,
    }
    return templates.TemplateResponse(request, "view_result.html", context)


@router.get("/download/{result_id}")
def download_result(
    result_id: int,
    token: Optional[str] = Query(None),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Stream the stored file; the token must be bound to ``result_id``."""
    grant = grants.validate(session, token, expected_result_id=result_id)
    record = session.get(ResultRecord, grant.result_id)
    path = resolve_result_file(record, settings.upload_dir)
    return FileResponse(path, filename=record.original_filename)
