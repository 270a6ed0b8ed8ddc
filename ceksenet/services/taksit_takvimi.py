# ceksenet/services/taksit_takvimi.py
"""Installment views across every active loan: overdue, upcoming, this month."""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session, joinedload

from ceksenet.models.enums import KrediDurum, TaksitDurum
from ceksenet.models.kredi_model import Kredi
from ceksenet.models.kredi_taksit_model import KrediTaksit
from ceksenet.utils.money import money

ACIK_DURUMLAR = (TaksitDurum.PENDING.value, TaksitDurum.OVERDUE.value)

YAKLASAN_VARSAYILAN_GUN = 7
YAKLASAN_MAX_GUN = 30


@dataclass
class TaksitListesi:
    taksitler: List[KrediTaksit]
    toplam_tutar: Decimal
    gun_sayisi: Optional[int] = None
    en_eski_gecikme: Optional[date] = None
    max_gecikme_gun: Optional[int] = None


def _active_installments(db: Session, durumlar: Sequence[str]):
    return (
        db.query(KrediTaksit)
        .join(Kredi, Kredi.id == KrediTaksit.kredi_id)
        .options(joinedload(KrediTaksit.kredi))
        .filter(Kredi.durum == KrediDurum.ACTIVE.value, KrediTaksit.durum.in_(durumlar))
    )


def _total(taksitler: List[KrediTaksit]) -> Decimal:
    return money(sum((Decimal(str(t.tutar)) for t in taksitler), Decimal("0")))


def overdue_installments(db: Session, today: date) -> TaksitListesi:
    taksitler = (
        _active_installments(db, ACIK_DURUMLAR)
        .filter(KrediTaksit.vade_tarihi < today)
        .order_by(KrediTaksit.vade_tarihi.asc(), KrediTaksit.id.asc())
        .all()
    )
    en_eski = taksitler[0].vade_tarihi if taksitler else None
    return TaksitListesi(
        taksitler=taksitler,
        toplam_tutar=_total(taksitler),
        en_eski_gecikme=en_eski,
        max_gecikme_gun=(today - en_eski).days if en_eski else 0,
    )


def pending_between(db: Session, start: date, end: date) -> List[KrediTaksit]:
    return (
        _active_installments(db, (TaksitDurum.PENDING.value,))
        .filter(KrediTaksit.vade_tarihi >= start, KrediTaksit.vade_tarihi <= end)
        .order_by(KrediTaksit.vade_tarihi.asc(), KrediTaksit.id.asc())
        .all()
    )


def clamp_days(gun: Optional[int]) -> int:
    if gun is None:
        return YAKLASAN_VARSAYILAN_GUN
    return max(1, min(YAKLASAN_MAX_GUN, gun))


def upcoming_installments(db: Session, today: date, gun: Optional[int] = None) -> TaksitListesi:
    """Pending installments due from today up to ``gun`` days ahead (1..30, default 7)."""
    gun = clamp_days(gun)
    taksitler = pending_between(db, today, today + timedelta(days=gun))
    return TaksitListesi(taksitler=taksitler, toplam_tutar=_total(taksitler), gun_sayisi=gun)


def month_bounds(today: date):
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def this_month_installments(db: Session, today: date) -> TaksitListesi:
    ay_basi, ay_sonu = month_bounds(today)
    taksitler = (
        _active_installments(db, ACIK_DURUMLAR)
        .filter(KrediTaksit.vade_tarihi >= ay_basi, KrediTaksit.vade_tarihi <= ay_sonu)
        .order_by(KrediTaksit.vade_tarihi.asc(), KrediTaksit.id.asc())
        .all()
    )
    return TaksitListesi(taksitler=taksitler, toplam_tutar=_total(taksitler))
