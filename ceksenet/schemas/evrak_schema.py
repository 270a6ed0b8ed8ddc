# ceksenet/schemas/evrak_schema.py

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List

from ceksenet.models.enums import EvrakTipi, EvrakDurum


def _empty_to_none(v):
    if v is None:
        return None
    v = str(v).strip()
    return v or None


class CariMini(BaseModel):
    id: int
    ad_soyad: str
    tip: str

    class Config:
        from_attributes = True


class BankaMini(BaseModel):
    id: int
    ad: str

    class Config:
        from_attributes = True


class EvrakCreate(BaseModel):
    evrak_tipi: EvrakTipi
    evrak_no: str = Field(min_length=1, max_length=50)
    tutar: float = Field(gt=0)
    para_birimi: str = "TRY"
    doviz_kuru: Optional[float] = Field(default=None, gt=0)

    evrak_tarihi: Optional[date] = None
    vade_tarihi: date

    banka_id: Optional[int] = None
    banka_adi: Optional[str] = Field(default=None, max_length=100)
    kesideci: Optional[str] = Field(default=None, max_length=200)
    cari_id: Optional[int] = None
    durum: EvrakDurum = EvrakDurum.IN_PORTFOLIO
    notlar: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("banka_adi", "kesideci", "notlar", mode="before")
    def empty_to_none(cls, v):
        return _empty_to_none(v)

    @field_validator("evrak_no", mode="before")
    def strip_no(cls, v):
        return str(v).strip() if v is not None else v

    @field_validator("para_birimi", mode="before")
    def upper_currency(cls, v):
        return str(v or "TRY").strip().upper()


class EvrakUpdate(BaseModel):
    """Field edits only. ``durum`` is changed through the status endpoint."""

    evrak_tipi: Optional[EvrakTipi] = None
    evrak_no: Optional[str] = Field(default=None, min_length=1, max_length=50)
    tutar: Optional[float] = Field(default=None, gt=0)
    para_birimi: Optional[str] = None
    doviz_kuru: Optional[float] = Field(default=None, gt=0)
    evrak_tarihi: Optional[date] = None
    vade_tarihi: Optional[date] = None
    banka_id: Optional[int] = None
    banka_adi: Optional[str] = Field(default=None, max_length=100)
    kesideci: Optional[str] = Field(default=None, max_length=200)
    cari_id: Optional[int] = None
    notlar: Optional[str] = Field(default=None, max_length=1000)

    class Config:
        extra = "forbid"


class EvrakOut(BaseModel):
    id: int
    evrak_tipi: str
    evrak_no: str
    tutar: float
    para_birimi: str
    doviz_kuru: Optional[float] = None
    evrak_tarihi: Optional[date] = None
    vade_tarihi: date
    banka_id: Optional[int] = None
    banka_adi: Optional[str] = None
    kesideci: Optional[str] = None
    cari_id: Optional[int] = None
    notlar: Optional[str] = None
    durum: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None

    cari: Optional[CariMini] = None
    banka: Optional[BankaMini] = None

    class Config:
        from_attributes = True


class DurumDegistir(BaseModel):
    yeni_durum: EvrakDurum
    aciklama: Optional[str] = None

    @field_validator("aciklama", mode="before")
    def empty_to_none(cls, v):
        return _empty_to_none(v)


class HareketOut(BaseModel):
    id: int
    evrak_id: int
    eski_durum: Optional[str] = None
    yeni_durum: str
    aciklama: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None

    class Config:
        from_attributes = True


class DurumResult(BaseModel):
    evrak: EvrakOut
    hareket: HareketOut
    mesaj: str


class GecmisOut(BaseModel):
    evrak_id: int
    evrak_no: str
    toplam: int
    hareketler: List[HareketOut]
