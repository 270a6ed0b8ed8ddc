# ceksenet/services/dashboard.py
"""Home screen figures: document totals, status split, due dates, loan summary."""

from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from ceksenet.models.enums import EvrakDurum, EvrakTipi
from ceksenet.models.evrak_model import Evrak
from ceksenet.services.kredi_ledger import portfolio_overview
from ceksenet.utils.money import base_amount, money

YAKLASAN_GUN = 7
LISTE_LIMIT = 5

# still to be collected
BEKLEYEN_DURUMLAR = (EvrakDurum.IN_PORTFOLIO.value, EvrakDurum.AT_BANK.value)


def build_dashboard(db: Session, today: date) -> dict:
    evraklar = db.query(Evrak).all()

    toplam_tutar = Decimal("0")
    durumlar = {d.value: {"adet": 0, "tutar": Decimal("0")} for d in EvrakDurum}
    tipler = {t.value: {"adet": 0, "tutar": Decimal("0")} for t in EvrakTipi}
    vadesi_yaklasan = 0
    vadesi_gecen = 0
    son_gun = today + timedelta(days=YAKLASAN_GUN)

    for e in evraklar:
        tutar = base_amount(e.tutar, e.doviz_kuru)
        toplam_tutar += tutar
        durumlar[e.durum]["adet"] += 1
        durumlar[e.durum]["tutar"] += tutar
        tipler[e.evrak_tipi]["adet"] += 1
        tipler[e.evrak_tipi]["tutar"] += tutar
        if e.durum in BEKLEYEN_DURUMLAR:
            if today <= e.vade_tarihi <= son_gun:
                vadesi_yaklasan += 1
            elif e.vade_tarihi < today:
                vadesi_gecen += 1

    son_evraklar = (
        db.query(Evrak)
        .order_by(Evrak.created_at.desc(), Evrak.id.desc())
        .limit(LISTE_LIMIT)
        .all()
    )
    yaklasan_vadeler = (
        db.query(Evrak)
        .filter(
            Evrak.durum.in_(BEKLEYEN_DURUMLAR),
            Evrak.vade_tarihi >= today,
            Evrak.vade_tarihi <= son_gun,
        )
        .order_by(Evrak.vade_tarihi.asc(), Evrak.id.asc())
        .limit(LISTE_LIMIT)
        .all()
    )

    return {
        "ozet": {
            "toplam_evrak": len(evraklar),
            "toplam_tutar": float(money(toplam_tutar)),
            "portfoydeki": durumlar[EvrakDurum.IN_PORTFOLIO.value]["adet"],
            "vadesi_yaklasan": vadesi_yaklasan,
            "vadesi_gecen": vadesi_gecen,
        },
        "durum_dagilimi": [
            {"durum": k, "adet": v["adet"], "tutar": float(money(v["tutar"]))}
            for k, v in durumlar.items()
        ],
        "tip_dagilimi": [
            {"evrak_tipi": k, "adet": v["adet"], "tutar": float(money(v["tutar"]))}
            for k, v in tipler.items()
        ],
        "son_evraklar": son_evraklar,
        "yaklasan_vadeler": yaklasan_vadeler,
        "kredi_ozeti": portfolio_overview(db, today),
    }
