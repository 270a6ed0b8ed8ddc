# ceksenet/routers/cariler_router.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ceksenet.models.enums import CariTipi
from ceksenet.schemas.cari_schema import CariCreate, CariDetayOut, CariListe, CariOut, CariUpdate
from ceksenet.services import cari_service
from ceksenet.utils.database import get_db

router = APIRouter(prefix="/cariler", tags=["Cariler"])


# =================================================
# LIST / CREATE
# =================================================
@router.get("", response_model=CariListe)
def list_cariler(
    tip: Optional[CariTipi] = Query(None),
    search: Optional[str] = Query(None),
    sayfa: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    rows, toplam = cari_service.list_customers(
        db, tip=tip.value if tip else None, search=search, sayfa=sayfa, limit=limit
    )
    return CariListe(
        data=[CariOut.model_validate(c) for c in rows],
        toplam=toplam,
        sayfa=sayfa,
        limit=limit,
    )


@router.post("", response_model=CariOut, status_code=status.HTTP_201_CREATED)
def create_cari(payload: CariCreate, db: Session = Depends(get_db)):
    return cari_service.create_customer(db, payload)


# =================================================
# DYNAMIC ROUTES
# =================================================
@router.get("/{cari_id}", response_model=CariDetayOut)
def get_cari(cari_id: int, db: Session = Depends(get_db)):
    cari = cari_service.get_customer(db, cari_id)
    base = CariOut.model_validate(cari).model_dump()
    return CariDetayOut(**base, evrak_sayisi=cari_service.count_documents(db, cari_id))


@router.put("/{cari_id}", response_model=CariOut)
def update_cari(cari_id: int, payload: CariUpdate, db: Session = Depends(get_db)):
    return cari_service.update_customer(db, cari_id, payload)


@router.delete("/{cari_id}")
def delete_cari(cari_id: int, db: Session = Depends(get_db)):
    cari_service.delete_customer(db, cari_id)
    return {"message": "Cari başarıyla silindi"}
