# ceksenet/services/cari_service.py
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ceksenet.core.exceptions import NotFoundError, ValidationError
from ceksenet.core.logging import get_logger
from ceksenet.models.cari_model import Cari
from ceksenet.models.evrak_model import Evrak
from ceksenet.schemas.cari_schema import CariCreate, CariUpdate
from ceksenet.utils.text import LIKE_ESCAPE, contains_pattern

logger = get_logger(__name__)


def list_customers(
        db: Session,
        tip: Optional[str] = None,
        search: Optional[str] = None,
        sayfa: int = 1,
        limit: int = 20,
) -> Tuple[List[Cari], int]:
    """One page of customers, newest first, plus the unpaged total."""
    q = db.query(Cari)
    if tip:
        q = q.filter(Cari.tip == tip)
    if search and search.strip():
        pattern = contains_pattern(search)
        q = q.filter(or_(
            Cari.ad_soyad.ilike(pattern, escape=LIKE_ESCAPE),
            Cari.telefon.ilike(pattern, escape=LIKE_ESCAPE),
            Cari.email.ilike(pattern, escape=LIKE_ESCAPE),
            Cari.vergi_no.ilike(pattern, escape=LIKE_ESCAPE),
        ))

    toplam = q.count()
    rows = (
        q.order_by(Cari.created_at.desc(), Cari.id.desc())
        .offset((sayfa - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, toplam


def get_customer(db: Session, cari_id: int) -> Cari:
    cari = db.query(Cari).filter(Cari.id == cari_id).first()
    if not cari:
        raise NotFoundError("Cari bulunamadı")
    return cari


def count_documents(db: Session, cari_id: int) -> int:
    return db.query(Evrak.id).filter(Evrak.cari_id == cari_id).count()


def create_customer(db: Session, payload: CariCreate) -> Cari:
    data = payload.model_dump()
    data["tip"] = payload.tip.value
    cari = Cari(**data)
    db.add(cari)
    db.commit()
    db.refresh(cari)
    logger.info("Cari created: %s (%s)", cari.id, cari.tip)
    return cari


def update_customer(db: Session, cari_id: int, payload: CariUpdate) -> Cari:
    cari = get_customer(db, cari_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("Güncellenecek alan bulunamadı")

    if "ad_soyad" in changes and not changes["ad_soyad"]:
        raise ValidationError("Ad Soyad boş olamaz")
    if "tip" in changes:
        if changes["tip"] is None:
            raise ValidationError("Geçerli bir tip seçiniz (musteri/tedarikci)")
        changes["tip"] = changes["tip"].value

    for field, value in changes.items():
        setattr(cari, field, value)
    cari.updated_at = datetime.now()

    db.commit()
    db.refresh(cari)
    return cari


def delete_customer(db: Session, cari_id: int) -> None:
    cari = get_customer(db, cari_id)
    evrak_sayisi = count_documents(db, cari_id)
    if evrak_sayisi:
        raise ValidationError(
            f"Bu cariye ait {evrak_sayisi} adet evrak bulunmaktadır. "
            "Önce evrakları siliniz veya başka bir cariye aktarınız."
        )
    db.delete(cari)
    db.commit()
    logger.info("Cari deleted: %s", cari_id)
