# ceksenet/routers/import_router.py
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ceksenet.core.config import settings
from ceksenet.core.exceptions import FormatError, ValidationError
from ceksenet.routers.deps import get_actor_id
from ceksenet.schemas.import_schema import CommitRequest, CommitResult, ParseResult
from ceksenet.services.excel_import import (
    MAX_FILE_SIZE,
    commit_rows,
    create_import_template,
    import_info,
    parse_spreadsheet,
)
from ceksenet.services.validation import DbLookups
from ceksenet.utils.database import get_db

router = APIRouter(prefix="/import/evraklar", tags=["Import"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ALLOWED_EXTENSIONS = (".xlsx",)


@router.post("/parse", response_model=ParseResult)
def parse_upload(file: UploadFile = File(...), db: Session = Depends(get_db)):
    filename = (file.filename or "").lower()
    if not filename.endswith(ALLOWED_EXTENSIONS):
        raise FormatError("Sadece Excel dosyaları (.xlsx) yüklenebilir")

    content = file.file.read(MAX_FILE_SIZE + 1)
    if not content:
        raise ValidationError("Dosya yüklenmedi")
    if len(content) > MAX_FILE_SIZE:
        raise ValidationError("Dosya boyutu 5MB'dan büyük olamaz")

    return parse_spreadsheet(content, DbLookups(db), base_currency=settings.base_currency)


@router.post("/import", response_model=CommitResult)
def import_rows(
    payload: CommitRequest,
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return commit_rows(db, payload.satirlar, actor_id, base_currency=settings.base_currency)


@router.get("/template")
def download_template():
    return Response(
        content=create_import_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="evrak_import_sablonu.xlsx"'},
    )


@router.get("/info")
def get_import_info():
    return import_info()
