# ceksenet/services/hatirlatma.py
"""Scheduled messages: due-date reminders and the daily activity report.

Both jobs are triggered from outside (cron hitting ``/cron/*``) and send
through the same ``NotificationDispatcher`` as status changes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List

from sqlalchemy.orm import Session, joinedload

from ceksenet.core.logging import get_logger
from ceksenet.models.enums import DURUM_ISIMLERI, EVRAK_TIPI_ISIMLERI
from ceksenet.models.evrak_hareketi_model import EvrakHareketi
from ceksenet.models.evrak_model import Evrak
from ceksenet.models.kredi_taksit_model import KrediTaksit
from ceksenet.services.dashboard import BEKLEYEN_DURUMLAR
from ceksenet.services.notifications import (
    NotificationDispatcher,
    format_amount,
    format_date,
)
from ceksenet.services.taksit_takvimi import pending_between

logger = get_logger(__name__)

HATIRLATMA_GUN = 3
RAPOR_GUN = 7

HATIRLATMA_KONU = "Vade hatırlatması"
RAPOR_KONU = "Günlük evrak raporu"


@dataclass
class VadeListesi:
    evraklar: List[Evrak] = field(default_factory=list)
    taksitler: List[KrediTaksit] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.evraklar or self.taksitler)


@dataclass
class GunlukRapor:
    tarih: date
    yeni_evraklar: List[Evrak]
    durum_degisiklikleri: List[EvrakHareketi]
    yaklasan: VadeListesi


def due_within(db: Session, today: date, gun: int) -> VadeListesi:
    """Open documents and pending installments due in ``[today, today + gun]``."""
    son_gun = today + timedelta(days=gun)
    evraklar = (
        db.query(Evrak)
        .filter(
            Evrak.durum.in_(BEKLEYEN_DURUMLAR),
            Evrak.vade_tarihi >= today,
            Evrak.vade_tarihi <= son_gun,
        )
        .order_by(Evrak.vade_tarihi.asc(), Evrak.id.asc())
        .all()
    )
    return VadeListesi(evraklar=evraklar, taksitler=pending_between(db, today, son_gun))


def _kalan(vade: date, today: date) -> str:
    gun = (vade - today).days
    return "bugün" if gun == 0 else f"{gun} gün kaldı"


def _evrak_line(evrak: Evrak, today: date) -> str:
    tip = EVRAK_TIPI_ISIMLERI.get(evrak.evrak_tipi, evrak.evrak_tipi)
    line = (
        f"- {tip} {evrak.evrak_no}: {format_amount(evrak.tutar, evrak.para_birimi)}, "
        f"vade {format_date(evrak.vade_tarihi)} ({_kalan(evrak.vade_tarihi, today)})"
    )
    if evrak.cari is not None:
        line += f", {evrak.cari.ad_soyad}"
    return line


def _taksit_line(taksit: KrediTaksit, today: date) -> str:
    kredi = taksit.kredi
    banka = f"{kredi.banka.ad} " if kredi.banka is not None else ""
    return (
        f"- {banka}kredi #{kredi.id} taksit {taksit.taksit_no}: "
        f"{format_amount(taksit.tutar, kredi.para_birimi)}, "
        f"vade {format_date(taksit.vade_tarihi)} ({_kalan(taksit.vade_tarihi, today)})"
    )


def _header(notifier: NotificationDispatcher, title: str) -> List[str]:
    lines = []
    if notifier.header:
        lines.append(notifier.header)
    if notifier.firma_adi:
        lines.append(notifier.firma_adi)
    lines.append(title)
    return lines


def build_reminder_message(vadeler: VadeListesi, today: date, gun: int,
                           notifier: NotificationDispatcher) -> str:
    lines = _header(notifier, f"Önümüzdeki {gun} gün içinde vadesi gelenler")
    if vadeler.evraklar:
        lines.append(f"Evraklar ({len(vadeler.evraklar)}):")
        lines.extend(_evrak_line(e, today) for e in vadeler.evraklar)
    if vadeler.taksitler:
        lines.append(f"Kredi taksitleri ({len(vadeler.taksitler)}):")
        lines.extend(_taksit_line(t, today) for t in vadeler.taksitler)
    if notifier.app_url:
        lines.append(notifier.app_url)
    return "\n".join(lines)


def send_due_reminders(db: Session, notifier: NotificationDispatcher, today: date,
                       gun: int = HATIRLATMA_GUN) -> dict:
    vadeler = due_within(db, today, gun)
    if not vadeler:
        logger.info("No due dates within %s days, reminder skipped", gun)
        return {"evrak_sayisi": 0, "taksit_sayisi": 0, "gonderilen": 0, "basarisiz": 0}

    result = notifier.dispatch(
        build_reminder_message(vadeler, today, gun, notifier),
        subject=HATIRLATMA_KONU,
    )
    logger.info(
        "Due reminder: %s evrak, %s taksit, sent=%s failed=%s",
        len(vadeler.evraklar), len(vadeler.taksitler), result.sent, result.failed,
    )
    return {
        "evrak_sayisi": len(vadeler.evraklar),
        "taksit_sayisi": len(vadeler.taksitler),
        "gonderilen": result.sent,
        "basarisiz": result.failed,
    }


def collect_daily_report(db: Session, today: date) -> GunlukRapor:
    """Yesterday's new documents and status changes, plus the next week's dues."""
    dun = today - timedelta(days=1)
    bas = datetime.combine(dun, time.min)
    bit = datetime.combine(today, time.min)

    yeni_evraklar = (
        db.query(Evrak)
        .filter(Evrak.created_at >= bas, Evrak.created_at < bit)
        .order_by(Evrak.id.asc())
        .all()
    )
    degisiklikler = (
        db.query(EvrakHareketi)
        .options(joinedload(EvrakHareketi.evrak))
        .filter(
            EvrakHareketi.eski_durum.isnot(None),
            EvrakHareketi.created_at >= bas,
            EvrakHareketi.created_at < bit,
        )
        .order_by(EvrakHareketi.id.asc())
        .all()
    )
    return GunlukRapor(
        tarih=dun,
        yeni_evraklar=yeni_evraklar,
        durum_degisiklikleri=degisiklikler,
        yaklasan=due_within(db, today, RAPOR_GUN),
    )


def build_daily_report_message(rapor: GunlukRapor, today: date,
                               notifier: NotificationDispatcher) -> str:
    lines = _header(notifier, f"Günlük rapor ({format_date(rapor.tarih)})")

    lines.append(f"Yeni evraklar: {len(rapor.yeni_evraklar)}")
    for e in rapor.yeni_evraklar:
        tip = EVRAK_TIPI_ISIMLERI.get(e.evrak_tipi, e.evrak_tipi)
        lines.append(f"- {tip} {e.evrak_no}: {format_amount(e.tutar, e.para_birimi)}")

    lines.append(f"Durum değişiklikleri: {len(rapor.durum_degisiklikleri)}")
    for h in rapor.durum_degisiklikleri:
        lines.append(
            f"- {h.evrak.evrak_no}: {DURUM_ISIMLERI.get(h.eski_durum, h.eski_durum)} → "
            f"{DURUM_ISIMLERI.get(h.yeni_durum, h.yeni_durum)}"
        )

    lines.append(f"Önümüzdeki {RAPOR_GUN} gün:")
    if not rapor.yaklasan:
        lines.append("- Vadesi gelen evrak veya taksit yok")
    lines.extend(_evrak_line(e, today) for e in rapor.yaklasan.evraklar)
    lines.extend(_taksit_line(t, today) for t in rapor.yaklasan.taksitler)
    return "\n".join(lines)


def send_daily_report(db: Session, notifier: NotificationDispatcher, today: date) -> dict:
    rapor = collect_daily_report(db, today)
    result = notifier.dispatch(
        build_daily_report_message(rapor, today, notifier),
        subject=RAPOR_KONU,
    )
    logger.info("Daily report sent=%s failed=%s", result.sent, result.failed)
    return {
        "tarih": rapor.tarih,
        "yeni_evrak": len(rapor.yeni_evraklar),
        "durum_degisikligi": len(rapor.durum_degisiklikleri),
        "yaklasan_evrak": len(rapor.yaklasan.evraklar),
        "yaklasan_taksit": len(rapor.yaklasan.taksitler),
        "gonderilen": result.sent,
        "basarisiz": result.failed,
    }
