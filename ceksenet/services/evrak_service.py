# ceksenet/services/evrak_service.py
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ceksenet.core.config import CURRENCIES, settings
from ceksenet.core.exceptions import ConflictError, NotFoundError, ValidationError
from ceksenet.core.logging import get_logger
from ceksenet.models.banka_model import Banka
from ceksenet.models.cari_model import Cari
from ceksenet.models.evrak_hareketi_model import EvrakHareketi
from ceksenet.models.evrak_model import Evrak
from ceksenet.schemas.evrak_schema import EvrakCreate, EvrakUpdate
from ceksenet.utils.text import LIKE_ESCAPE, contains_pattern

logger = get_logger(__name__)

OLUSTURMA_NOTU = "Evrak oluşturuldu"


def _check_currency(para_birimi: str, doviz_kuru) -> None:
    if para_birimi not in CURRENCIES:
        raise ValidationError(f'Geçersiz para birimi: "{para_birimi}"')
    if para_birimi != settings.base_currency and not doviz_kuru:
        raise ValidationError(f"{para_birimi} için döviz kuru zorunludur")


def _check_refs(db: Session, cari_id: Optional[int], banka_id: Optional[int]) -> None:
    if cari_id is not None and not db.query(Cari.id).filter(Cari.id == cari_id).first():
        raise NotFoundError("Cari bulunamadı")
    if banka_id is not None and not db.query(Banka.id).filter(Banka.id == banka_id).first():
        raise NotFoundError("Banka bulunamadı")


def _evrak_no_taken(db: Session, evrak_no: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Evrak.id).filter(Evrak.evrak_no == evrak_no)
    if exclude_id is not None:
        q = q.filter(Evrak.id != exclude_id)
    return q.first() is not None


def create_document(db: Session, payload: EvrakCreate, actor_id: Optional[str] = None) -> Evrak:
    if _evrak_no_taken(db, payload.evrak_no):
        raise ConflictError(f'Evrak no "{payload.evrak_no}" zaten mevcut')

    _check_currency(payload.para_birimi, payload.doviz_kuru)
    _check_refs(db, payload.cari_id, payload.banka_id)

    data = payload.model_dump()
    data["evrak_tipi"] = payload.evrak_tipi.value
    data["durum"] = payload.durum.value
    if payload.para_birimi == settings.base_currency:
        data["doviz_kuru"] = None

    evrak = Evrak(**data, created_by=actor_id)
    db.add(evrak)
    db.flush()

    db.add(EvrakHareketi(
        evrak_id=evrak.id,
        eski_durum=None,
        yeni_durum=evrak.durum,
        aciklama=OLUSTURMA_NOTU,
        created_by=actor_id,
    ))
    db.commit()
    db.refresh(evrak)

    logger.info("Evrak created: %s (%s)", evrak.evrak_no, evrak.durum)
    return evrak


def list_documents(
        db: Session,
        durum: Optional[str] = None,
        evrak_tipi: Optional[str] = None,
        cari_id: Optional[int] = None,
        para_birimi: Optional[str] = None,
        vade_baslangic: Optional[date] = None,
        vade_bitis: Optional[date] = None,
        search: Optional[str] = None,
) -> List[Evrak]:
    q = db.query(Evrak)
    if durum:
        q = q.filter(Evrak.durum == durum)
    if evrak_tipi:
        q = q.filter(Evrak.evrak_tipi == evrak_tipi)
    if cari_id is not None:
        q = q.filter(Evrak.cari_id == cari_id)
    if para_birimi:
        q = q.filter(Evrak.para_birimi == para_birimi.strip().upper())
    if vade_baslangic:
        q = q.filter(Evrak.vade_tarihi >= vade_baslangic)
    if vade_bitis:
        q = q.filter(Evrak.vade_tarihi <= vade_bitis)
    if search and search.strip():
        pattern = contains_pattern(search)
        q = q.filter(or_(
            Evrak.evrak_no.ilike(pattern, escape=LIKE_ESCAPE),
            Evrak.kesideci.ilike(pattern, escape=LIKE_ESCAPE),
        ))
    return q.order_by(Evrak.vade_tarihi.asc(), Evrak.id.asc()).all()


def get_document(db: Session, evrak_id: int) -> Evrak:
    evrak = db.query(Evrak).filter(Evrak.id == evrak_id).first()
    if not evrak:
        raise NotFoundError("Evrak bulunamadı")
    return evrak


def update_document(db: Session, evrak_id: int, payload: EvrakUpdate) -> Evrak:
    """Apply field edits. Status is only changed by ``transition_document``."""
    evrak = get_document(db, evrak_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("Güncellenecek alan bulunamadı")

    if "evrak_no" in changes:
        changes["evrak_no"] = (changes["evrak_no"] or "").strip()
        if _evrak_no_taken(db, changes["evrak_no"], exclude_id=evrak.id):
            raise ConflictError(f'Evrak no "{changes["evrak_no"]}" zaten mevcut')

    if "evrak_tipi" in changes and changes["evrak_tipi"] is not None:
        changes["evrak_tipi"] = changes["evrak_tipi"].value

    if "para_birimi" in changes:
        changes["para_birimi"] = (changes["para_birimi"] or settings.base_currency).strip().upper()

    for required in ("evrak_tipi", "evrak_no", "tutar", "vade_tarihi", "para_birimi"):
        if required in changes and changes[required] is None:
            raise ValidationError(f"{required} boş bırakılamaz")

    para_birimi = changes.get("para_birimi", evrak.para_birimi)
    doviz_kuru = changes.get("doviz_kuru", evrak.doviz_kuru)
    _check_currency(para_birimi, doviz_kuru)
    if para_birimi == settings.base_currency:
        changes["doviz_kuru"] = None

    _check_refs(db, changes.get("cari_id"), changes.get("banka_id"))

    for field, value in changes.items():
        setattr(evrak, field, value)
    evrak.updated_at = datetime.now()

    db.commit()
    db.refresh(evrak)
    return evrak


def delete_document(db: Session, evrak_id: int) -> None:
    evrak = get_document(db, evrak_id)
    evrak_no = evrak.evrak_no
    db.delete(evrak)
    db.commit()
    logger.info("Evrak deleted: %s", evrak_no)
