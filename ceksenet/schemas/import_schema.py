# ceksenet/schemas/import_schema.py

from pydantic import BaseModel, Field
from datetime import date
from typing import Optional, List


class ParsedRow(BaseModel):
    """One spreadsheet row after validation. Never persisted as-is."""

    satir: int
    evrak_tipi: Optional[str] = None
    evrak_no: Optional[str] = None
    tutar: Optional[float] = None
    para_birimi: Optional[str] = None
    doviz_kuru: Optional[float] = None
    evrak_tarihi: Optional[date] = None
    vade_tarihi: Optional[date] = None
    banka_adi: Optional[str] = None
    kesideci: Optional[str] = None
    cari_adi: Optional[str] = None
    cari_id: Optional[int] = None
    durum: Optional[str] = None
    notlar: Optional[str] = None

    hatalar: List[str] = Field(default_factory=list)
    uyarilar: List[str] = Field(default_factory=list)
    gecerli: bool = False


class ImportOzet(BaseModel):
    toplam: int
    gecerli: int
    hatali: int
    uyarili: int


class ParseResult(BaseModel):
    data: List[ParsedRow]
    ozet: ImportOzet


class CommitRequest(BaseModel):
    satirlar: List[ParsedRow]


class CommitHata(BaseModel):
    satir: int
    evrak_no: Optional[str] = None
    hata: str


class CommitResult(BaseModel):
    basarili: int = 0
    basarisiz: int = 0
    hatalar: List[CommitHata] = Field(default_factory=list)
