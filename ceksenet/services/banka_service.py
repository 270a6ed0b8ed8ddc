# ceksenet/services/banka_service.py
from typing import List, Optional

from sqlalchemy.orm import Session

from ceksenet.core.exceptions import ConflictError, NotFoundError, ValidationError
from ceksenet.core.logging import get_logger
from ceksenet.models.banka_model import Banka
from ceksenet.models.evrak_model import Evrak
from ceksenet.models.kredi_model import Kredi
from ceksenet.schemas.banka_schema import BankaCreate, BankaUpdate
from ceksenet.utils.text import LIKE_ESCAPE, contains_pattern, escape_like

logger = get_logger(__name__)

ARAMA_MIN = 2
ARAMA_LIMIT_MAX = 20


def _name_taken(db: Session, ad: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Banka.id).filter(Banka.ad.ilike(escape_like(ad), escape=LIKE_ESCAPE))
    if exclude_id is not None:
        q = q.filter(Banka.id != exclude_id)
    return q.first() is not None


def list_banks(db: Session, aktif: Optional[bool] = True) -> List[Banka]:
    """Banks by name. ``aktif=None`` lists every bank."""
    q = db.query(Banka)
    if aktif is not None:
        q = q.filter(Banka.aktif == aktif)
    return q.order_by(Banka.ad.asc()).all()


def search_banks(db: Session, q: Optional[str], limit: int = 10) -> List[Banka]:
    term = (q or "").strip()
    if len(term) < ARAMA_MIN:
        raise ValidationError(f"Arama terimi en az {ARAMA_MIN} karakter olmalıdır")
    limit = max(1, min(ARAMA_LIMIT_MAX, limit))
    return (
        db.query(Banka)
        .filter(Banka.aktif.is_(True), Banka.ad.ilike(contains_pattern(term), escape=LIKE_ESCAPE))
        .order_by(Banka.ad.asc())
        .limit(limit)
        .all()
    )


def get_bank(db: Session, banka_id: int) -> Banka:
    banka = db.query(Banka).filter(Banka.id == banka_id).first()
    if not banka:
        raise NotFoundError("Banka bulunamadı")
    return banka


def usage(db: Session, banka_id: int):
    """(document count, loan count) referencing the bank."""
    evrak = db.query(Evrak.id).filter(Evrak.banka_id == banka_id).count()
    kredi = db.query(Kredi.id).filter(Kredi.banka_id == banka_id).count()
    return evrak, kredi


def create_bank(db: Session, payload: BankaCreate) -> Banka:
    if _name_taken(db, payload.ad):
        raise ConflictError("Bu isimde bir banka zaten mevcut")

    banka = Banka(ad=payload.ad, aktif=payload.aktif)
    db.add(banka)
    db.commit()
    db.refresh(banka)
    logger.info("Banka created: %s", banka.ad)
    return banka


def update_bank(db: Session, banka_id: int, payload: BankaUpdate) -> Banka:
    banka = get_bank(db, banka_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("Güncellenecek alan bulunamadı")

    if "ad" in changes:
        if not changes["ad"]:
            raise ValidationError("Banka adı boş olamaz")
        if _name_taken(db, changes["ad"], exclude_id=banka.id):
            raise ConflictError("Bu isimde bir banka zaten mevcut")
    if "aktif" in changes and changes["aktif"] is None:
        raise ValidationError("aktif boş bırakılamaz")

    for field, value in changes.items():
        setattr(banka, field, value)

    db.commit()
    db.refresh(banka)
    return banka


def delete_bank(db: Session, banka_id: int) -> None:
    """Delete an unused bank. Referenced banks should be deactivated instead."""
    banka = get_bank(db, banka_id)
    evrak, kredi = usage(db, banka_id)
    if evrak:
        raise ValidationError(
            f"Bu banka {evrak} adet evrakta kullanılmaktadır. Silmek yerine pasif yapabilirsiniz."
        )
    if kredi:
        raise ValidationError(
            f"Bu banka {kredi} adet kredide kullanılmaktadır. Silmek yerine pasif yapabilirsiniz."
        )
    db.delete(banka)
    db.commit()
    logger.info("Banka deleted: %s", banka_id)
