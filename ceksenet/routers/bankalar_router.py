# ceksenet/routers/bankalar_router.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ceksenet.schemas.banka_schema import BankaCreate, BankaDetayOut, BankaOut, BankaUpdate
from ceksenet.schemas.evrak_schema import BankaMini
from ceksenet.services import banka_service
from ceksenet.utils.database import get_db

router = APIRouter(prefix="/bankalar", tags=["Bankalar"])


# =================================================
# STATIC ROUTES
# =================================================
@router.get("", response_model=List[BankaOut])
def list_bankalar(
    aktif: bool = Query(True),
    tumu: bool = Query(False, alias="all"),
    db: Session = Depends(get_db),
):
    return banka_service.list_banks(db, aktif=None if tumu else aktif)


@router.get("/search", response_model=List[BankaMini])
def search_bankalar(
    q: Optional[str] = Query(None),
    limit: int = Query(10),
    db: Session = Depends(get_db),
):
    return banka_service.search_banks(db, q, limit)


@router.post("", response_model=BankaOut, status_code=status.HTTP_201_CREATED)
def create_banka(payload: BankaCreate, db: Session = Depends(get_db)):
    return banka_service.create_bank(db, payload)


# =================================================
# DYNAMIC ROUTES (LAST)
# =================================================
@router.get("/{banka_id}", response_model=BankaDetayOut)
def get_banka(banka_id: int, db: Session = Depends(get_db)):
    banka = banka_service.get_bank(db, banka_id)
    evrak, kredi = banka_service.usage(db, banka_id)
    base = BankaOut.model_validate(banka).model_dump()
    return BankaDetayOut(**base, evrak_kullanim=evrak, kredi_kullanim=kredi)


@router.put("/{banka_id}", response_model=BankaOut)
def update_banka(banka_id: int, payload: BankaUpdate, db: Session = Depends(get_db)):
    return banka_service.update_bank(db, banka_id, payload)


@router.delete("/{banka_id}")
def delete_banka(banka_id: int, db: Session = Depends(get_db)):
    banka_service.delete_bank(db, banka_id)
    return {"message": "Banka başarıyla silindi"}
