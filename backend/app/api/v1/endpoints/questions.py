"""Question bank endpoints."""

from datetime import date, datetime, time, timezone
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile, status
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.core.app_exceptions import AppError, MalformedPayload
from app.core.config import settings
from app.core.dependencies import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.question import ApprovalRequest, BatchReportOut, DeleteResponse, QuestionOut
from app.services.exporter import export_questions_csv
from app.services.importer import BulkImportReconciler, parse_rows
from app.services.media import MediaStore, UploadedImage, collect_image_uploads, get_media_store
from app.services.questions import normalize_question, normalize_question_patch
from app.services.questions import service as question_service

router = APIRouter(prefix="/questions", tags=["Questions"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_question_payload(request: Request) -> tuple[dict[str, Any], dict[str, UploadedImage]]:
    """Read a JSON body or a form (with image attachments) into raw fields."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        files = await collect_image_uploads(form)
        raw: dict[str, Any] = {}
        for key in form.keys():
            values = [v for v in form.getlist(key) if not isinstance(v, StarletteUploadFile)]
            if values:
                raw[key] = values[0] if len(values) == 1 else values
        return raw, files

    body = await request.body()
    if not body.strip():
        return {}, {}
    try:
        payload = await request.json()
    except ValueError as e:
        raise MalformedPayload("Request body must be valid JSON") from e
    if not isinstance(payload, dict):
        raise MalformedPayload("Request body must be a JSON object")
    return payload, {}


@router.get(
    "",
    response_model=list[QuestionOut],
    summary="List questions",
    description="All questions, newest first.",
)
async def list_questions(db: Session = Depends(get_db)) -> list[QuestionOut]:
    return [QuestionOut.model_validate(q) for q in question_service.list_questions(db)]


@router.post(
    "",
    response_model=QuestionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create question",
    description=(
        "Accepts a structured JSON body (title/options/explanation objects) or a "
        "multipart form with titleText, optionText0..3, explanationText and optional "
        "image attachments."
    ),
)
async def create_question(
    request: Request,
    db: Session = Depends(get_db),
    media_store: MediaStore = Depends(get_media_store),
) -> QuestionOut:
    raw, files = await read_question_payload(request)
    draft = normalize_question(raw, files)
    question = question_service.create_question(db, draft, media_store)
    return QuestionOut.model_validate(question)


@router.get(
    "/export",
    summary="Export questions",
    description="Download every question as CSV, in the column layout the importer reads.",
)
async def export_questions(db: Session = Depends(get_db)) -> Response:
    csv_content = export_questions_csv(db)
    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="questions.csv"'},
    )


@router.get(
    "/filter-by-date",
    response_model=list[QuestionOut],
    summary="Filter questions by creation date",
    description="Questions created between start and end (inclusive, UTC days).",
)
async def filter_questions_by_date(
    start: date | None = Query(None, description="First day, YYYY-MM-DD"),
    end: date | None = Query(None, description="Last day, YYYY-MM-DD"),
    db: Session = Depends(get_db),
) -> list[QuestionOut]:
    if start is None and end is None:
        raise AppError("Provide start and/or end date", code="INVALID_DATE_RANGE")
    if start is not None and end is not None and start > end:
        raise AppError("start must not be after end", code="INVALID_DATE_RANGE")

    start_at = datetime.combine(start, time.min, tzinfo=timezone.utc) if start else None
    end_at = datetime.combine(end, time.max, tzinfo=timezone.utc) if end else None
    questions = question_service.list_questions_by_date_range(db, start_at, end_at)
    return [QuestionOut.model_validate(q) for q in questions]


@router.get(
    "/category/{category_id}",
    response_model=list[QuestionOut],
    summary="Questions in a category",
)
async def list_questions_by_category(
    category_id: str,
    db: Session = Depends(get_db),
) -> list[QuestionOut]:
    questions = question_service.list_questions_by_category(db, category_id)
    return [QuestionOut.model_validate(q) for q in questions]


@router.get(
    "/tag/{tag}",
    response_model=list[QuestionOut],
    summary="Questions with a tag",
    description="Returns 404 when no question carries the tag.",
)
async def list_questions_by_tag(tag: str, db: Session = Depends(get_db)) -> list[QuestionOut]:
    questions = question_service.list_questions_by_tag(db, tag)
    return [QuestionOut.model_validate(q) for q in questions]


@router.post(
    "/upload-csv-questions",
    response_model=BatchReportOut,
    summary="Bulk import questions",
    description=(
        "Upload a .csv or .xlsx file. Rows are applied one by one; failures and "
        "duplicates are reported per row and never abort the batch."
    ),
)
async def upload_questions_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> BatchReportOut:
    content = await file.read()
    if len(content) > settings.IMPORT_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={
                "code": "PAYLOAD_TOO_LARGE",
                "message": "File too large",
                "details": {"limit": settings.IMPORT_MAX_BYTES},
            },
        )

    rows = parse_rows(file.filename, content)
    if len(rows) > settings.IMPORT_MAX_ROWS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "code": "TOO_MANY_ROWS",
                "message": f"File has {len(rows)} rows; the limit is {settings.IMPORT_MAX_ROWS}",
                "details": {"limit": settings.IMPORT_MAX_ROWS},
            },
        )

    report = BulkImportReconciler(db, actor=current_user).reconcile(rows)
    return BatchReportOut(**report.to_dict())


@router.get(
    "/{question_id}",
    response_model=QuestionOut,
    summary="Get question",
)
async def get_question(question_id: str, db: Session = Depends(get_db)) -> QuestionOut:
    return QuestionOut.model_validate(question_service.get_question(db, question_id))


@router.put(
    "/{question_id}",
    response_model=QuestionOut,
    summary="Update question",
    description="Partial update: only the fields sent are validated and changed.",
)
async def update_question(
    question_id: str,
    request: Request,
    db: Session = Depends(get_db),
    media_store: MediaStore = Depends(get_media_store),
) -> QuestionOut:
    # 404 before any image is uploaded
    question = question_service.get_question(db, question_id)
    raw, files = await read_question_payload(request)
    patch = normalize_question_patch(raw, files)
    question = question_service.update_question(db, question, patch, media_store)
    return QuestionOut.model_validate(question)


@router.patch(
    "/{question_id}/approval",
    response_model=QuestionOut,
    summary="Approve or unapprove question",
    description="Approving requires approvedBy to name an existing user (id or username).",
)
async def set_question_approval(
    question_id: str,
    approval: ApprovalRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> QuestionOut:
    question = question_service.set_question_approval(
        db, question_id, approval.is_approved, approval.approved_by
    )
    return QuestionOut.model_validate(question)


@router.delete(
    "/{question_id}",
    response_model=DeleteResponse,
    summary="Delete question",
)
async def delete_question(
    question_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> DeleteResponse:
    question_service.delete_question(db, question_id)
    return DeleteResponse(message="Question deleted successfully")
