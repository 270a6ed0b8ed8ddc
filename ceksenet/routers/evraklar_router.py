# ceksenet/routers/evraklar_router.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ceksenet.routers.deps import evrak_filtreleri, get_actor_id
from ceksenet.schemas.evrak_schema import (
    DurumDegistir,
    DurumResult,
    EvrakCreate,
    EvrakOut,
    EvrakUpdate,
    GecmisOut,
    HareketOut,
)
from ceksenet.services import evrak_service
from ceksenet.services.evrak_durum import get_history, transition_document
from ceksenet.services.notifications import NotificationDispatcher, get_notifier
from ceksenet.utils.database import get_db

router = APIRouter(prefix="/evraklar", tags=["Evraklar"])


# =================================================
# LIST / CREATE
# =================================================
@router.get("", response_model=List[EvrakOut])
def list_evraklar(filtreler: dict = Depends(evrak_filtreleri), db: Session = Depends(get_db)):
    return evrak_service.list_documents(db, **filtreler)


@router.post("", response_model=EvrakOut, status_code=status.HTTP_201_CREATED)
def create_evrak(
    payload: EvrakCreate,
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return evrak_service.create_document(db, payload, actor_id)


# =================================================
# DYNAMIC ROUTES
# =================================================
@router.get("/{evrak_id}", response_model=EvrakOut)
def get_evrak(evrak_id: int, db: Session = Depends(get_db)):
    return evrak_service.get_document(db, evrak_id)


@router.put("/{evrak_id}", response_model=EvrakOut)
def update_evrak(evrak_id: int, payload: EvrakUpdate, db: Session = Depends(get_db)):
    return evrak_service.update_document(db, evrak_id, payload)


@router.delete("/{evrak_id}")
def delete_evrak(evrak_id: int, db: Session = Depends(get_db)):
    evrak_service.delete_document(db, evrak_id)
    return {"message": "Evrak silindi"}


@router.patch("/{evrak_id}/durum", response_model=DurumResult)
def change_durum(
    evrak_id: int,
    payload: DurumDegistir,
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    result = transition_document(
        db,
        evrak_id,
        payload.yeni_durum.value,
        aciklama=payload.aciklama,
        actor_id=actor_id,
        notifier=notifier,
    )
    return DurumResult(
        evrak=EvrakOut.model_validate(result.evrak),
        hareket=HareketOut.model_validate(result.hareket),
        mesaj=result.mesaj,
    )


@router.get("/{evrak_id}/gecmis", response_model=GecmisOut)
def evrak_gecmisi(evrak_id: int, db: Session = Depends(get_db)):
    evrak, hareketler = get_history(db, evrak_id)
    return GecmisOut(
        evrak_id=evrak.id,
        evrak_no=evrak.evrak_no,
        toplam=len(hareketler),
        hareketler=hareketler,
    )
