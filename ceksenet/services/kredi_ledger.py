# ceksenet/services/kredi_ledger.py
"""Loan (kredi) installment ledger.

Summary, pay, reversal and early payoff work on the ``kredi_taksitler``
rows of one loan. "Today" always comes from an injected clock.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ceksenet.core.config import CURRENCIES
from ceksenet.core.exceptions import NotFoundError, ValidationError
from ceksenet.core.logging import get_logger
from ceksenet.models.banka_model import Banka
from ceksenet.models.enums import KrediDurum, TaksitDurum
from ceksenet.models.kredi_model import Kredi
from ceksenet.models.kredi_taksit_model import KrediTaksit
from ceksenet.schemas.kredi_schema import KrediCreate, KrediUpdate
from ceksenet.utils.money import build_monthly_schedule, compute_monthly_installment, money

logger = get_logger(__name__)

ERKEN_ODEME_NOTU = "Erken ödeme"

ACIK_DURUMLAR = (TaksitDurum.PENDING.value, TaksitDurum.OVERDUE.value)
KAPALI_KREDI = (KrediDurum.CLOSED.value, KrediDurum.CLOSED_EARLY.value)


@dataclass
class LedgerSummary:
    toplam_taksit: int
    odenen_taksit: int
    kalan_taksit: int
    geciken_taksit: int
    odenen_tutar: Decimal
    kalan_borc: Decimal
    geciken_tutar: Decimal
    sonraki_taksit: Optional[KrediTaksit] = None


@dataclass
class TaksitIslem:
    taksit: KrediTaksit
    kredi_durumu: str


@dataclass
class ErkenOdeme:
    kredi: Kredi
    odenen_taksit_sayisi: int
    odenen_tutar: Decimal
    odeme_tarihi: date


def _is_overdue(taksit: KrediTaksit, today: date) -> bool:
    if taksit.durum == TaksitDurum.OVERDUE.value:
        return True
    return taksit.durum == TaksitDurum.PENDING.value and taksit.vade_tarihi < today


def compute_summary(taksitler: Iterable[KrediTaksit], today: date) -> LedgerSummary:
    """Partition installments into paid / overdue / pending and total them.

    ``sonraki_taksit`` is the first pending one in input order. Amounts are
    rounded once, after summing.
    """
    odenen = 0
    geciken = 0
    bekleyen = 0
    odenen_tutar = Decimal("0")
    kalan_borc = Decimal("0")
    geciken_tutar = Decimal("0")
    sonraki = None

    for t in taksitler:
        tutar = Decimal(str(t.tutar or 0))
        if t.durum == TaksitDurum.PAID.value:
            odenen += 1
            paid = t.odenen_tutar if t.odenen_tutar is not None else t.tutar
            odenen_tutar += Decimal(str(paid or 0))
        elif _is_overdue(t, today):
            geciken += 1
            kalan_borc += tutar
            geciken_tutar += tutar
        else:
            bekleyen += 1
            kalan_borc += tutar
            if sonraki is None and t.durum == TaksitDurum.PENDING.value:
                sonraki = t

    return LedgerSummary(
        toplam_taksit=odenen + geciken + bekleyen,
        odenen_taksit=odenen,
        kalan_taksit=bekleyen,
        geciken_taksit=geciken,
        odenen_tutar=money(odenen_tutar),
        kalan_borc=money(kalan_borc),
        geciken_tutar=money(geciken_tutar),
        sonraki_taksit=sonraki,
    )


# ---------------------------------------------------------
# Lookups
# ---------------------------------------------------------

def get_loan(db: Session, kredi_id: int) -> Kredi:
    kredi = db.query(Kredi).filter(Kredi.id == kredi_id).first()
    if not kredi:
        raise NotFoundError("Kredi bulunamadı")
    return kredi


def _loan_installments(db: Session, kredi_id: int) -> List[KrediTaksit]:
    return (
        db.query(KrediTaksit)
        .filter(KrediTaksit.kredi_id == kredi_id)
        .order_by(KrediTaksit.taksit_no.asc())
        .all()
    )


def _get_installment(db: Session, kredi_id: int, taksit_id: int) -> KrediTaksit:
    taksit = (
        db.query(KrediTaksit)
        .filter(KrediTaksit.id == taksit_id, KrediTaksit.kredi_id == kredi_id)
        .first()
    )
    if not taksit:
        raise NotFoundError("Taksit bulunamadı")
    return taksit


def compute_installment_summary(db: Session, kredi_id: int, today: date) -> LedgerSummary:
    get_loan(db, kredi_id)
    return compute_summary(_loan_installments(db, kredi_id), today)


def list_installments(db: Session, kredi_id: int, durum: Optional[str] = None) -> List[KrediTaksit]:
    get_loan(db, kredi_id)
    q = db.query(KrediTaksit).filter(KrediTaksit.kredi_id == kredi_id)
    if durum:
        q = q.filter(KrediTaksit.durum == durum)
    return q.order_by(KrediTaksit.taksit_no.asc()).all()


def get_loan_detail(db: Session, kredi_id: int, today: date):
    kredi = get_loan(db, kredi_id)
    taksitler = _loan_installments(db, kredi_id)
    return kredi, taksitler, compute_summary(taksitler, today)


# ---------------------------------------------------------
# Creation
# ---------------------------------------------------------

def create_loan(db: Session, payload: KrediCreate, actor_id: Optional[str] = None) -> Kredi:
    if payload.para_birimi not in CURRENCIES:
        raise ValidationError(f'Geçersiz para birimi: "{payload.para_birimi}"')
    if payload.banka_id is not None and not db.query(Banka.id).filter(Banka.id == payload.banka_id).first():
        raise NotFoundError("Banka bulunamadı")

    anapara = money(payload.anapara)
    faiz = Decimal(str(payload.faiz_orani))

    if payload.aylik_taksit is not None:
        aylik_taksit = money(payload.aylik_taksit)
    else:
        aylik_taksit = compute_monthly_installment(anapara, faiz, payload.vade_ay)

    kredi = Kredi(
        banka_id=payload.banka_id,
        kredi_turu=payload.kredi_turu.value,
        anapara=anapara,
        faiz_orani=faiz,
        vade_ay=payload.vade_ay,
        baslangic_tarihi=payload.baslangic_tarihi,
        aylik_taksit=aylik_taksit,
        toplam_odeme=money(aylik_taksit * payload.vade_ay),
        para_birimi=payload.para_birimi,
        notlar=payload.notlar,
        durum=KrediDurum.ACTIVE.value,
        created_by=actor_id,
    )

    try:
        db.add(kredi)
        db.flush()

        for no, vade, tutar in build_monthly_schedule(aylik_taksit, payload.vade_ay, payload.baslangic_tarihi):
            db.add(
                KrediTaksit(
                    kredi_id=kredi.id,
                    taksit_no=no,
                    vade_tarihi=vade,
                    tutar=tutar,
                    durum=TaksitDurum.PENDING.value,
                )
            )

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(kredi)
    logger.info("Kredi %s created: %s x %s", kredi.id, payload.vade_ay, aylik_taksit)
    return kredi


# ---------------------------------------------------------
# Listing / edits
# ---------------------------------------------------------

@dataclass
class KrediSatiri:
    kredi: Kredi
    odenen_taksit_sayisi: int = 0
    kalan_taksit_sayisi: int = 0
    geciken_taksit_sayisi: int = 0
    odenen_toplam: Decimal = Decimal("0")
    kalan_borc: Decimal = Decimal("0")


def list_loans(
        db: Session,
        today: date,
        durum: Optional[str] = None,
        kredi_turu: Optional[str] = None,
        banka_id: Optional[int] = None,
) -> List[KrediSatiri]:
    """Loans, latest start first, each with paid / open / overdue totals."""
    q = db.query(Kredi)
    if durum:
        q = q.filter(Kredi.durum == durum)
    if kredi_turu:
        q = q.filter(Kredi.kredi_turu == kredi_turu)
    if banka_id is not None:
        q = q.filter(Kredi.banka_id == banka_id)
    krediler = q.order_by(Kredi.baslangic_tarihi.desc(), Kredi.id.desc()).all()

    satirlar = OrderedDict((k.id, KrediSatiri(kredi=k)) for k in krediler)
    if not satirlar:
        return []

    taksitler = (
        db.query(
            KrediTaksit.kredi_id,
            KrediTaksit.durum,
            KrediTaksit.vade_tarihi,
            KrediTaksit.tutar,
            KrediTaksit.odenen_tutar,
        )
        .filter(KrediTaksit.kredi_id.in_(list(satirlar)))
        .all()
    )
    for t in taksitler:
        satir = satirlar[t.kredi_id]
        if t.durum == TaksitDurum.PAID.value:
            satir.odenen_taksit_sayisi += 1
            paid = t.odenen_tutar if t.odenen_tutar is not None else t.tutar
            satir.odenen_toplam += Decimal(str(paid or 0))
        else:
            satir.kalan_taksit_sayisi += 1
            satir.kalan_borc += Decimal(str(t.tutar or 0))
            if _is_overdue(t, today):
                satir.geciken_taksit_sayisi += 1

    for satir in satirlar.values():
        satir.odenen_toplam = money(satir.odenen_toplam)
        satir.kalan_borc = money(satir.kalan_borc)
    return list(satirlar.values())


def update_loan(db: Session, kredi_id: int, payload: KrediUpdate) -> Kredi:
    kredi = get_loan(db, kredi_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("Güncellenecek alan bulunamadı")

    banka_id = changes.get("banka_id")
    if banka_id is not None and not db.query(Banka.id).filter(Banka.id == banka_id).first():
        raise NotFoundError("Banka bulunamadı")

    for field, value in changes.items():
        setattr(kredi, field, value)
    kredi.updated_at = datetime.now()

    db.commit()
    db.refresh(kredi)
    return kredi


def delete_loan(db: Session, kredi_id: int) -> None:
    """Delete a loan with its schedule. Loans with recorded payments stay."""
    kredi = get_loan(db, kredi_id)
    odenmis = (
        db.query(KrediTaksit.id)
        .filter(KrediTaksit.kredi_id == kredi_id, KrediTaksit.durum == TaksitDurum.PAID.value)
        .first()
    )
    if odenmis:
        raise ValidationError("Ödemesi yapılmış kredi silinemez. Önce tüm ödemeleri iptal edin.")

    db.delete(kredi)
    db.commit()
    logger.info("Kredi %s deleted", kredi_id)


# ---------------------------------------------------------
# Payments
# ---------------------------------------------------------

def pay_installment(
        db: Session,
        kredi_id: int,
        taksit_id: int,
        today: date,
        odeme_tarihi: Optional[date] = None,
        odenen_tutar=None,
        notlar: Optional[str] = None,
) -> TaksitIslem:
    kredi = get_loan(db, kredi_id)
    taksit = _get_installment(db, kredi_id, taksit_id)

    if kredi.durum != KrediDurum.ACTIVE.value:
        raise ValidationError("Kredi aktif değil, ödeme yapılamaz")
    if taksit.durum == TaksitDurum.PAID.value:
        raise ValidationError("Bu taksit zaten ödenmiş")

    taksit.durum = TaksitDurum.PAID.value
    taksit.odeme_tarihi = odeme_tarihi or today
    taksit.odenen_tutar = money(odenen_tutar if odenen_tutar is not None else taksit.tutar)
    # keep the stored note when the request carries none
    taksit.notlar = (notlar or "").strip() or taksit.notlar
    db.flush()

    acik = (
        db.query(KrediTaksit.id)
        .filter(KrediTaksit.kredi_id == kredi_id, KrediTaksit.durum != TaksitDurum.PAID.value)
        .count()
    )
    if acik == 0:
        kredi.durum = KrediDurum.CLOSED.value
        kredi.updated_at = datetime.now()

    db.commit()
    db.refresh(taksit)
    db.refresh(kredi)

    logger.info("Kredi %s taksit %s paid (%s)", kredi_id, taksit.taksit_no, taksit.odenen_tutar)
    return TaksitIslem(taksit=taksit, kredi_durumu=kredi.durum)


def reverse_payment(db: Session, kredi_id: int, taksit_id: int, today: date) -> TaksitIslem:
    kredi = get_loan(db, kredi_id)
    taksit = _get_installment(db, kredi_id, taksit_id)

    if taksit.durum != TaksitDurum.PAID.value:
        raise ValidationError("Bu taksit zaten ödenmemiş durumda")

    if taksit.vade_tarihi >= today:
        taksit.durum = TaksitDurum.PENDING.value
    else:
        taksit.durum = TaksitDurum.OVERDUE.value
    taksit.odeme_tarihi = None
    taksit.odenen_tutar = None

    # a single reversal reopens a closed loan
    if kredi.durum in KAPALI_KREDI:
        kredi.durum = KrediDurum.ACTIVE.value
        kredi.updated_at = datetime.now()

    db.commit()
    db.refresh(taksit)
    db.refresh(kredi)

    logger.info("Kredi %s taksit %s payment reversed", kredi_id, taksit.taksit_no)
    return TaksitIslem(taksit=taksit, kredi_durumu=kredi.durum)


def early_payoff(
        db: Session,
        kredi_id: int,
        today: date,
        odeme_tarihi: Optional[date] = None,
        notlar: Optional[str] = None,
) -> ErkenOdeme:
    """Pay every open installment at its nominal amount and close the loan early."""
    kredi = get_loan(db, kredi_id)
    if kredi.durum != KrediDurum.ACTIVE.value:
        raise ValidationError("Kredi aktif değil, erken ödeme yapılamaz")

    acik = (
        db.query(KrediTaksit)
        .filter(KrediTaksit.kredi_id == kredi_id, KrediTaksit.durum.in_(ACIK_DURUMLAR))
        .order_by(KrediTaksit.taksit_no.asc())
        .all()
    )
    if not acik:
        raise ValidationError("Ödenmemiş taksit bulunamadı")

    tarih = odeme_tarihi or today
    notlar = notlar or ERKEN_ODEME_NOTU
    toplam = Decimal("0")

    try:
        for taksit in acik:
            taksit.durum = TaksitDurum.PAID.value
            taksit.odeme_tarihi = tarih
            taksit.odenen_tutar = taksit.tutar
            taksit.notlar = notlar
            toplam += Decimal(str(taksit.tutar))

        kredi.durum = KrediDurum.CLOSED_EARLY.value
        kredi.updated_at = datetime.now()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(kredi)
    logger.info("Kredi %s closed early: %s installments, %s", kredi_id, len(acik), money(toplam))
    return ErkenOdeme(
        kredi=kredi,
        odenen_taksit_sayisi=len(acik),
        odenen_tutar=money(toplam),
        odeme_tarihi=tarih,
    )


# ---------------------------------------------------------
# Portfolio overview
# ---------------------------------------------------------

def portfolio_overview(db: Session, today: date) -> dict:
    """Totals over active loans: open debt, this month's dues, overdue and kind split."""
    toplam_kredi = db.query(Kredi.id).count()
    aktif = (
        db.query(Kredi)
        .filter(Kredi.durum == KrediDurum.ACTIVE.value)
        .order_by(Kredi.id.asc())
        .all()
    )
    aktif_ids = [k.id for k in aktif]

    toplam_borc = Decimal("0")
    bu_ay = Decimal("0")
    geciken_sayi = 0
    geciken_tutar = Decimal("0")
    turler = OrderedDict()

    taksitler = []
    if aktif_ids:
        taksitler = (
            db.query(KrediTaksit)
            .filter(
                KrediTaksit.kredi_id.in_(aktif_ids),
                KrediTaksit.durum.in_(ACIK_DURUMLAR),
            )
            .all()
        )

    kalan_by_kredi = {}
    for t in taksitler:
        tutar = Decimal(str(t.tutar))
        toplam_borc += tutar
        kalan_by_kredi[t.kredi_id] = kalan_by_kredi.get(t.kredi_id, Decimal("0")) + tutar
        if t.vade_tarihi.year == today.year and t.vade_tarihi.month == today.month:
            bu_ay += tutar
        if _is_overdue(t, today):
            geciken_sayi += 1
            geciken_tutar += tutar

    for k in aktif:
        entry = turler.setdefault(k.kredi_turu, {"tur": k.kredi_turu, "adet": 0, "toplam": Decimal("0")})
        entry["adet"] += 1
        entry["toplam"] += kalan_by_kredi.get(k.id, Decimal("0"))

    return {
        "aktif_kredi_sayisi": len(aktif),
        "toplam_kredi_sayisi": toplam_kredi,
        "toplam_borc": float(money(toplam_borc)),
        "bu_ay_odeme": float(money(bu_ay)),
        "geciken_taksit_sayisi": geciken_sayi,
        "geciken_tutar": float(money(geciken_tutar)),
        "kredi_turleri": [
            {"tur": e["tur"], "adet": e["adet"], "toplam": float(money(e["toplam"]))}
            for e in turler.values()
        ],
    }
