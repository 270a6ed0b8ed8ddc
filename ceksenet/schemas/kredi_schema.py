from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List

from ceksenet.models.enums import KrediTuru
from ceksenet.schemas.evrak_schema import BankaMini


class KrediCreate(BaseModel):
    banka_id: Optional[int] = None
    kredi_turu: KrediTuru

    anapara: float = Field(gt=0)
    faiz_orani: float = Field(ge=0)
    vade_ay: int = Field(gt=0, le=600)
    baslangic_tarihi: date

    # computed from the annuity formula when omitted
    aylik_taksit: Optional[float] = Field(default=None, gt=0)
    para_birimi: str = "TRY"
    notlar: Optional[str] = None

    @field_validator("para_birimi", mode="before")
    def upper_currency(cls, v):
        return str(v or "TRY").strip().upper()

    @field_validator("notlar", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class TaksitOut(BaseModel):
    id: int
    kredi_id: int
    taksit_no: int
    vade_tarihi: date
    tutar: float
    odeme_tarihi: Optional[date] = None
    odenen_tutar: Optional[float] = None
    durum: str
    notlar: Optional[str] = None

    class Config:
        from_attributes = True


class KrediOut(BaseModel):
    id: int
    banka_id: Optional[int] = None
    kredi_turu: str
    anapara: float
    faiz_orani: float
    vade_ay: int
    baslangic_tarihi: date
    aylik_taksit: float
    toplam_odeme: Optional[float] = None
    para_birimi: str
    notlar: Optional[str] = None
    durum: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    banka: Optional[BankaMini] = None

    class Config:
        from_attributes = True


class TaksitOzet(BaseModel):
    toplam_taksit: int
    odenen_taksit: int
    kalan_taksit: int
    geciken_taksit: int
    odenen_tutar: float
    kalan_borc: float
    geciken_tutar: float
    sonraki_taksit: Optional[TaksitOut] = None


class KrediDetayOut(KrediOut):
    taksitler: List[TaksitOut]
    ozet: TaksitOzet


class TaksitOdeRequest(BaseModel):
    odeme_tarihi: Optional[date] = None
    odenen_tutar: Optional[float] = Field(default=None, gt=0)
    notlar: Optional[str] = None


class TaksitIslemResult(BaseModel):
    taksit: TaksitOut
    kredi_durumu: str
    message: str


class ErkenOdemeRequest(BaseModel):
    odeme_tarihi: Optional[date] = None
    notlar: Optional[str] = None


class ErkenOdemeResult(BaseModel):
    kredi: KrediOut
    odenen_taksit_sayisi: int
    odenen_tutar: float
    odeme_tarihi: date
    message: str


class KrediTuruDagilim(BaseModel):
    tur: str
    adet: int
    toplam: float


class KrediPortfoyOzet(BaseModel):
    aktif_kredi_sayisi: int
    toplam_kredi_sayisi: int
    toplam_borc: float
    bu_ay_odeme: float
    geciken_taksit_sayisi: int
    geciken_tutar: float
    kredi_turleri: List[KrediTuruDagilim]


class KrediUpdate(BaseModel):
    """Only the bank and the note are editable; amounts come from the schedule."""

    banka_id: Optional[int] = None
    notlar: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator("notlar", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class KrediListeItem(KrediOut):
    odenen_taksit_sayisi: int = 0
    kalan_taksit_sayisi: int = 0
    geciken_taksit_sayisi: int = 0
    odenen_toplam: float = 0
    kalan_borc: float = 0


class KrediMini(BaseModel):
    id: int
    kredi_turu: str
    para_birimi: str
    banka: Optional[BankaMini] = None

    class Config:
        from_attributes = True


class TaksitDetay(TaksitOut):
    kredi: KrediMini


class TaksitTakvimi(BaseModel):
    data: List[TaksitDetay]
    toplam_tutar: float
    gun_sayisi: Optional[int] = None
    en_eski_gecikme: Optional[date] = None
    max_gecikme_gun: Optional[int] = None
