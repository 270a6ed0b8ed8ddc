# ceksenet/schemas/cari_schema.py

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from ceksenet.models.enums import CariTipi


def _empty_to_none(v):
    if v is None:
        return None
    v = str(v).strip()
    return v or None


class CariCreate(BaseModel):
    ad_soyad: str = Field(min_length=1, max_length=200)
    tip: CariTipi
    telefon: Optional[str] = Field(default=None, max_length=30)
    email: Optional[str] = Field(default=None, max_length=200)
    adres: Optional[str] = None
    vergi_no: Optional[str] = Field(default=None, max_length=20)
    notlar: Optional[str] = None

    @field_validator("ad_soyad", mode="before")
    def strip_name(cls, v):
        return str(v).strip() if v is not None else v

    @field_validator("telefon", "email", "adres", "vergi_no", "notlar", mode="before")
    def empty_to_none(cls, v):
        return _empty_to_none(v)


class CariUpdate(BaseModel):
    ad_soyad: Optional[str] = Field(default=None, min_length=1, max_length=200)
    tip: Optional[CariTipi] = None
    telefon: Optional[str] = Field(default=None, max_length=30)
    email: Optional[str] = Field(default=None, max_length=200)
    adres: Optional[str] = None
    vergi_no: Optional[str] = Field(default=None, max_length=20)
    notlar: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator("ad_soyad", mode="before")
    def strip_name(cls, v):
        return str(v).strip() if v is not None else v

    @field_validator("telefon", "email", "adres", "vergi_no", "notlar", mode="before")
    def empty_to_none(cls, v):
        return _empty_to_none(v)


class CariOut(BaseModel):
    id: int
    ad_soyad: str
    tip: str
    telefon: Optional[str] = None
    email: Optional[str] = None
    adres: Optional[str] = None
    vergi_no: Optional[str] = None
    notlar: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CariDetayOut(CariOut):
    evrak_sayisi: int = 0


class CariListe(BaseModel):
    data: List[CariOut]
    toplam: int
    sayfa: int
    limit: int
