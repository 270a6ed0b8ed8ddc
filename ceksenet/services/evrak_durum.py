# ceksenet/services/evrak_durum.py
"""Document (evrak) status state machine and its audit trail."""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ceksenet.core.exceptions import ConflictError, NotFoundError, ValidationError
from ceksenet.core.logging import get_logger
from ceksenet.models.enums import DURUM_ISIMLERI, EvrakDurum
from ceksenet.models.evrak_hareketi_model import EvrakHareketi
from ceksenet.models.evrak_model import Evrak
from ceksenet.models.profile_model import Profile
from ceksenet.services.notifications import NotificationDispatcher, build_transition_message

logger = get_logger(__name__)

DURUM_GECISLERI: Dict[str, Tuple[str, ...]] = {
    EvrakDurum.IN_PORTFOLIO.value: (
        EvrakDurum.AT_BANK.value,
        EvrakDurum.ENDORSED.value,
    ),
    EvrakDurum.AT_BANK.value: (
        EvrakDurum.COLLECTED.value,
        EvrakDurum.BOUNCED.value,
        EvrakDurum.IN_PORTFOLIO.value,
    ),
    EvrakDurum.ENDORSED.value: (
        EvrakDurum.COLLECTED.value,
        EvrakDurum.BOUNCED.value,
        EvrakDurum.IN_PORTFOLIO.value,
    ),
    EvrakDurum.COLLECTED.value: (),
    EvrakDurum.BOUNCED.value: (
        EvrakDurum.IN_PORTFOLIO.value,
    ),
}


def durum_label(durum: str) -> str:
    return DURUM_ISIMLERI.get(durum, durum)


def allowed_transitions(durum: str) -> Tuple[str, ...]:
    return DURUM_GECISLERI.get(durum, ())


def check_transition(eski: str, yeni: str) -> None:
    """Raise ConflictError unless ``eski -> yeni`` is in the transition table."""
    if eski == yeni:
        raise ConflictError(f'Evrak zaten "{durum_label(eski)}" durumunda')

    izinli = allowed_transitions(eski)
    if not izinli:
        raise ConflictError(f'"{durum_label(eski)}" durumundaki evrakın durumu değiştirilemez')

    if yeni not in izinli:
        izinli_text = ", ".join(durum_label(d) for d in izinli)
        raise ConflictError(
            f'"{durum_label(eski)}" durumundan sadece şu durumlara geçilebilir: {izinli_text}'
        )


@dataclass
class TransitionResult:
    evrak: Evrak
    hareket: EvrakHareketi
    mesaj: str


def _actor_name(db: Session, actor_id: Optional[str]) -> Optional[str]:
    if not actor_id:
        return None
    profile = db.query(Profile).filter(Profile.id == actor_id).first()
    return profile.ad_soyad if profile else None


def _notify(notifier: NotificationDispatcher, db: Session, evrak: Evrak,
            eski: str, yeni: str, actor_id: Optional[str]) -> None:
    # the status change is already committed; delivery problems only get logged
    try:
        text = build_transition_message(
            evrak,
            eski,
            yeni,
            actor_name=_actor_name(db, actor_id),
            firma_adi=notifier.firma_adi,
            header=notifier.header,
            app_url=notifier.app_url,
        )
        notifier.dispatch(text)
    except Exception as exc:
        logger.warning("Status notification for evrak %s failed: %s", evrak.id, exc)


def transition_document(
        db: Session,
        evrak_id: int,
        yeni_durum: str,
        aciklama: Optional[str] = None,
        actor_id: Optional[str] = None,
        notifier: Optional[NotificationDispatcher] = None,
) -> TransitionResult:
    try:
        yeni = EvrakDurum(yeni_durum).value
    except ValueError:
        raise ValidationError("Geçerli bir durum seçiniz")

    evrak = db.query(Evrak).filter(Evrak.id == evrak_id).first()
    if not evrak:
        raise NotFoundError("Evrak bulunamadı")

    eski = evrak.durum
    check_transition(eski, yeni)

    evrak.durum = yeni
    evrak.updated_at = datetime.now()

    hareket = EvrakHareketi(
        evrak_id=evrak.id,
        eski_durum=eski,
        yeni_durum=yeni,
        aciklama=(aciklama or "").strip() or None,
        created_by=actor_id,
    )
    db.add(hareket)
    db.commit()
    db.refresh(evrak)
    db.refresh(hareket)

    logger.info("Evrak %s status %s -> %s", evrak.evrak_no, eski, yeni)

    if notifier is not None:
        _notify(notifier, db, evrak, eski, yeni, actor_id)

    mesaj = f'Durum "{durum_label(eski)}" → "{durum_label(yeni)}" olarak güncellendi'
    return TransitionResult(evrak=evrak, hareket=hareket, mesaj=mesaj)


def get_history(db: Session, evrak_id: int) -> Tuple[Evrak, List[dict]]:
    """Return the document and its movements, newest first, with actor names."""
    evrak = db.query(Evrak).filter(Evrak.id == evrak_id).first()
    if not evrak:
        raise NotFoundError("Evrak bulunamadı")

    hareketler = (
        db.query(EvrakHareketi)
        .filter(EvrakHareketi.evrak_id == evrak_id)
        .order_by(EvrakHareketi.created_at.desc(), EvrakHareketi.id.desc())
        .all()
    )

    actor_ids = {h.created_by for h in hareketler if h.created_by}
    names: Dict[str, str] = {}
    if actor_ids:
        rows = db.query(Profile.id, Profile.ad_soyad).filter(Profile.id.in_(actor_ids)).all()
        names = {row.id: row.ad_soyad for row in rows}

    items = [
        {
            "id": h.id,
            "evrak_id": h.evrak_id,
            "eski_durum": h.eski_durum,
            "yeni_durum": h.yeni_durum,
            "aciklama": h.aciklama,
            "created_at": h.created_at,
            "created_by": h.created_by,
            "created_by_name": names.get(h.created_by),
        }
        for h in hareketler
    ]
    return evrak, items
