"""Admin routes: login, result upload, listing and grant maintenance."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from pydantic import BaseModel
from sqlmodel import Session

from results_portal.auth_utils import authenticate_admin
from results_portal.config import Settings, get_settings
from results_portal.database import get_session
from results_portal.deps import require_admin
from results_portal.models import Admin
from results_portal.services import grants, uploads

router = APIRouter()


class LoginRequest(BaseModel):
    username: str
    password: str


class ResultSummary(BaseModel):
    """Listing row; PINs are never returned."""

    id: int
    student_name: str
    exam_number: str
    original_filename: str
    created_at: datetime


@router.post("/login")
def login(
    payload: LoginRequest,
    request: Request,
    session: Session = Depends(get_session),
):
    admin = authenticate_admin(session, payload.username, payload.password)
    if admin is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    request.session["admin_id"] = admin.id
    return {"success": True, "message": "Login successful"}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"success": True, "message": "Logged out"}


@router.post("/upload")
def upload_result(
    student_name: Optional[str] = Form(None),
    exam_number: Optional[str] = Form(None),
    pin: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    current_admin: Admin = Depends(require_admin),
):
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    missing = [
        name
        for name, value in (("student_name", student_name), ("exam_number", exam_number), ("pin", pin))
        if not (value or "").strip()
    ]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing required fields: {', '.join(missing)}",
        )

    record = uploads.save_upload(
        session,
        settings.upload_dir,
        file.file,
        file.filename,
        student_name=student_name,
        exam_number=exam_number,
        pin=pin,
    )
    return {"success": True, "message": "Result uploaded successfully", "id": record.id}


@router.get("/list")
def list_results(
    session: Session = Depends(get_session),
    current_admin: Admin = Depends(require_admin),
):
    rows = uploads.list_recent(session)
    data = [ResultSummary.model_validate(row, from_attributes=True) for row in rows]
    return {"success": True, "data": data}


@router.post("/grants/sweep")
def sweep_grants(
    session: Session = Depends(get_session),
    current_admin: Admin = Depends(require_admin),
):
    """Delete expired access grants now instead of waiting for the sweeper."""
    return {"success": True, "deleted": grants.sweep_expired(session)}
