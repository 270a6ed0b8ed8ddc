# ceksenet/routers/krediler_router.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ceksenet.models.enums import KrediDurum, KrediTuru, TaksitDurum
from ceksenet.routers.deps import get_actor_id
from ceksenet.schemas.kredi_schema import (
    ErkenOdemeRequest,
    ErkenOdemeResult,
    KrediCreate,
    KrediDetayOut,
    KrediListeItem,
    KrediOut,
    KrediPortfoyOzet,
    KrediUpdate,
    TaksitDetay,
    TaksitTakvimi,
    TaksitIslemResult,
    TaksitOdeRequest,
    TaksitOut,
    TaksitOzet,
)
from ceksenet.services import kredi_ledger, taksit_takvimi
from ceksenet.utils.clock import get_clock
from ceksenet.utils.database import get_db

router = APIRouter(prefix="/krediler", tags=["Krediler"])


def _ozet_out(summary: kredi_ledger.LedgerSummary) -> TaksitOzet:
    return TaksitOzet(
        toplam_taksit=summary.toplam_taksit,
        odenen_taksit=summary.odenen_taksit,
        kalan_taksit=summary.kalan_taksit,
        geciken_taksit=summary.geciken_taksit,
        odenen_tutar=float(summary.odenen_tutar),
        kalan_borc=float(summary.kalan_borc),
        geciken_tutar=float(summary.geciken_tutar),
        sonraki_taksit=(
            TaksitOut.model_validate(summary.sonraki_taksit) if summary.sonraki_taksit else None
        ),
    )


def _takvim_out(liste: taksit_takvimi.TaksitListesi) -> TaksitTakvimi:
    return TaksitTakvimi(
        data=[TaksitDetay.model_validate(t) for t in liste.taksitler],
        toplam_tutar=float(liste.toplam_tutar),
        gun_sayisi=liste.gun_sayisi,
        en_eski_gecikme=liste.en_eski_gecikme,
        max_gecikme_gun=liste.max_gecikme_gun,
    )


# =================================================
# STATIC ROUTES
# =================================================
@router.get("", response_model=List[KrediListeItem])
def list_krediler(
    durum: Optional[KrediDurum] = Query(None),
    kredi_turu: Optional[KrediTuru] = Query(None),
    banka_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    satirlar = kredi_ledger.list_loans(
        db,
        clock.today(),
        durum=durum.value if durum else None,
        kredi_turu=kredi_turu.value if kredi_turu else None,
        banka_id=banka_id,
    )
    return [
        KrediListeItem(
            **KrediOut.model_validate(s.kredi).model_dump(),
            odenen_taksit_sayisi=s.odenen_taksit_sayisi,
            kalan_taksit_sayisi=s.kalan_taksit_sayisi,
            geciken_taksit_sayisi=s.geciken_taksit_sayisi,
            odenen_toplam=float(s.odenen_toplam),
            kalan_borc=float(s.kalan_borc),
        )
        for s in satirlar
    ]


@router.post("", response_model=KrediOut, status_code=status.HTTP_201_CREATED)
def create_kredi(
    payload: KrediCreate,
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return kredi_ledger.create_loan(db, payload, actor_id)


@router.get("/ozet", response_model=KrediPortfoyOzet)
def portfoy_ozeti(db: Session = Depends(get_db), clock=Depends(get_clock)):
    return kredi_ledger.portfolio_overview(db, clock.today())


@router.get("/taksitler/geciken", response_model=TaksitTakvimi)
def geciken_taksitler(db: Session = Depends(get_db), clock=Depends(get_clock)):
    return _takvim_out(taksit_takvimi.overdue_installments(db, clock.today()))


@router.get("/taksitler/yaklasan", response_model=TaksitTakvimi)
def yaklasan_taksitler(
    gun: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    return _takvim_out(taksit_takvimi.upcoming_installments(db, clock.today(), gun))


@router.get("/taksitler/bu-ay", response_model=TaksitTakvimi)
def bu_ay_taksitler(db: Session = Depends(get_db), clock=Depends(get_clock)):
    return _takvim_out(taksit_takvimi.this_month_installments(db, clock.today()))


# =================================================
# DYNAMIC ROUTES (LAST)
# =================================================
@router.get("/{kredi_id}", response_model=KrediDetayOut)
def kredi_detay(kredi_id: int, db: Session = Depends(get_db), clock=Depends(get_clock)):
    kredi, taksitler, summary = kredi_ledger.get_loan_detail(db, kredi_id, clock.today())
    base = KrediOut.model_validate(kredi).model_dump()
    return KrediDetayOut(
        **base,
        taksitler=[TaksitOut.model_validate(t) for t in taksitler],
        ozet=_ozet_out(summary),
    )


@router.put("/{kredi_id}", response_model=KrediOut)
def update_kredi(kredi_id: int, payload: KrediUpdate, db: Session = Depends(get_db)):
    return kredi_ledger.update_loan(db, kredi_id, payload)


@router.delete("/{kredi_id}")
def delete_kredi(kredi_id: int, db: Session = Depends(get_db)):
    kredi_ledger.delete_loan(db, kredi_id)
    return {"message": "Kredi başarıyla silindi"}


@router.get("/{kredi_id}/taksitler", response_model=List[TaksitOut])
def kredi_taksitleri(
    kredi_id: int,
    durum: Optional[TaksitDurum] = Query(None),
    db: Session = Depends(get_db),
):
    return kredi_ledger.list_installments(db, kredi_id, durum.value if durum else None)


@router.get("/{kredi_id}/taksitler/ozet", response_model=TaksitOzet)
def taksit_ozeti(kredi_id: int, db: Session = Depends(get_db), clock=Depends(get_clock)):
    return _ozet_out(kredi_ledger.compute_installment_summary(db, kredi_id, clock.today()))


# =================================================
# PAYMENTS
# =================================================
@router.patch("/{kredi_id}/taksitler/{taksit_id}/ode", response_model=TaksitIslemResult)
def taksit_ode(
    kredi_id: int,
    taksit_id: int,
    payload: Optional[TaksitOdeRequest] = None,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    payload = payload or TaksitOdeRequest()
    result = kredi_ledger.pay_installment(
        db,
        kredi_id,
        taksit_id,
        clock.today(),
        odeme_tarihi=payload.odeme_tarihi,
        odenen_tutar=payload.odenen_tutar,
        notlar=payload.notlar,
    )
    kapandi = result.kredi_durumu != KrediDurum.ACTIVE.value
    return TaksitIslemResult(
        taksit=TaksitOut.model_validate(result.taksit),
        kredi_durumu=result.kredi_durumu,
        message="Taksit ödendi ve kredi kapatıldı" if kapandi else "Taksit ödemesi kaydedildi",
    )


@router.patch("/{kredi_id}/taksitler/{taksit_id}/iptal", response_model=TaksitIslemResult)
def taksit_odeme_iptal(
    kredi_id: int,
    taksit_id: int,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    result = kredi_ledger.reverse_payment(db, kredi_id, taksit_id, clock.today())
    return TaksitIslemResult(
        taksit=TaksitOut.model_validate(result.taksit),
        kredi_durumu=result.kredi_durumu,
        message="Taksit ödemesi iptal edildi",
    )


@router.post("/{kredi_id}/erken-odeme", response_model=ErkenOdemeResult)
def erken_odeme(
    kredi_id: int,
    payload: Optional[ErkenOdemeRequest] = None,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    payload = payload or ErkenOdemeRequest()
    result = kredi_ledger.early_payoff(
        db,
        kredi_id,
        clock.today(),
        odeme_tarihi=payload.odeme_tarihi,
        notlar=payload.notlar,
    )
    return ErkenOdemeResult(
        kredi=KrediOut.model_validate(result.kredi),
        odenen_taksit_sayisi=result.odenen_taksit_sayisi,
        odenen_tutar=float(result.odenen_tutar),
        odeme_tarihi=result.odeme_tarihi,
        message="Erken ödeme tamamlandı, kredi kapatıldı",
    )
