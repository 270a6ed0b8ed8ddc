# ceksenet/routers/raporlar_router.py
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ceksenet.routers.deps import evrak_filtreleri
from ceksenet.services.rapor import XLSX_MEDIA_TYPE, export_documents
from ceksenet.utils.clock import SystemClock, get_clock
from ceksenet.utils.database import get_db

router = APIRouter(prefix="/raporlar", tags=["Raporlar"])


@router.get("/excel")
def export_excel(
    filtreler: dict = Depends(evrak_filtreleri),
    db: Session = Depends(get_db),
    clock: SystemClock = Depends(get_clock),
):
    content, filename = export_documents(db, clock.today(), **filtreler)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
