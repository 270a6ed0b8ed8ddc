"""Row validation for document (evrak) imports.

``validate_row`` turns one loosely typed input map (a spreadsheet row or a
JSON payload) into a normalized record plus Turkish error and warning
messages. The only I/O it performs is through the two read-only lookups on
the ``RowLookups`` collaborator.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Protocol

from dateutil import parser as date_parser
from sqlalchemy.orm import Session

from ceksenet.core.config import BASE_CURRENCY, CURRENCIES
from ceksenet.models.cari_model import Cari
from ceksenet.models.enums import EvrakDurum, EvrakTipi
from ceksenet.models.evrak_model import Evrak
from ceksenet.utils.text import LIKE_ESCAPE, escape_like

GECERLI_EVRAK_TIPLERI = tuple(t.value for t in EvrakTipi)
GECERLI_DURUMLAR = tuple(d.value for d in EvrakDurum)
VARSAYILAN_DURUM = EvrakDurum.IN_PORTFOLIO.value

EVRAK_NO_MAX = 50
BANKA_ADI_MAX = 100
KESIDECI_MAX = 200
NOTLAR_MAX = 1000

EXCEL_EPOCH = date(1899, 12, 30)

_CURRENCY_SYMBOLS = re.compile(r"[₺$€£¥]")
_WHITESPACE = re.compile(r"\s")
_DOTTED = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_SLASHED = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


class RowLookups(Protocol):
    def evrak_no_exists(self, evrak_no: str) -> bool: ...

    def find_cari_id(self, cari_adi: str) -> Optional[int]: ...


class DbLookups:
    """``RowLookups`` backed by the evraklar / cariler tables."""

    def __init__(self, db: Session):
        self.db = db

    def evrak_no_exists(self, evrak_no: str) -> bool:
        if not evrak_no:
            return False
        row = self.db.query(Evrak.id).filter(Evrak.evrak_no == evrak_no.strip()).first()
        return row is not None

    def find_cari_id(self, cari_adi: str) -> Optional[int]:
        if not cari_adi:
            return None
        # exact, case-insensitive match
        pattern = escape_like(cari_adi.strip())
        row = (
            self.db.query(Cari.id)
            .filter(Cari.ad_soyad.ilike(pattern, escape=LIKE_ESCAPE))
            .order_by(Cari.id.asc())
            .first()
        )
        return row.id if row else None


@dataclass
class RowValidation:
    data: Dict[str, Any] = field(default_factory=dict)
    hatalar: List[str] = field(default_factory=list)
    uyarilar: List[str] = field(default_factory=list)

    @property
    def gecerli(self) -> bool:
        return not self.hatalar


def _is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_amount(value) -> Optional[Decimal]:
    """Parse a positive amount.

    Numbers pass through. Strings use the Turkish convention: ``.`` groups
    thousands and ``,`` is the decimal mark, so ``"1.234,56 ₺"`` is 1234.56.
    Returns None for anything missing, unparseable, zero or negative.
    """
    if value is None or value == "":
        return None

    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        amount = Decimal(str(value))
        return amount if amount > 0 else None

    if isinstance(value, str):
        cleaned = _CURRENCY_SYMBOLS.sub("", value)
        cleaned = _WHITESPACE.sub("", cleaned)
        cleaned = cleaned.replace(".", "").replace(",", ".")
        if not cleaned:
            return None
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
        if not amount.is_finite():
            return None
        return amount if amount > 0 else None

    return None


def excel_serial_to_date(serial) -> Optional[date]:
    if not _is_number(serial) or serial < 1:
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=int(serial))
    except OverflowError:
        return None


def _build_date(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_date(value) -> Optional[date]:
    """Parse a calendar date from a cell or payload value.

    Tried in order: date/datetime objects, spreadsheet serial numbers
    (days since 1899-12-30), ``DD.MM.YYYY``, ``DD/MM/YYYY``, ``YYYY-MM-DD``
    and finally a generic parse.
    """
    if value is None or value == "" or value is False:
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if _is_number(value):
        return excel_serial_to_date(value)

    if not isinstance(value, str):
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    match = _DOTTED.match(trimmed) or _SLASHED.match(trimmed)
    if match:
        day, month, year = match.groups()
        parsed = _build_date(year, month, day)
        if parsed:
            return parsed

    match = _ISO.match(trimmed)
    if match:
        year, month, day = match.groups()
        parsed = _build_date(year, month, day)
        if parsed:
            return parsed

    try:
        return date_parser.parse(trimmed, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def validate_row(
        raw: Dict[str, Any],
        lookups: RowLookups,
        base_currency: str = BASE_CURRENCY,
) -> RowValidation:
    result = RowValidation()
    data = result.data
    hatalar = result.hatalar
    uyarilar = result.uyarilar

    # Evrak tipi
    tip_raw = raw.get("evrak_tipi")
    if not _text(tip_raw):
        hatalar.append("Evrak tipi zorunludur")
    else:
        tip = _text(tip_raw).lower()
        if tip not in GECERLI_EVRAK_TIPLERI:
            hatalar.append(f'Geçersiz evrak tipi: "{tip_raw}"')
        else:
            data["evrak_tipi"] = tip

    # Evrak no
    evrak_no = _text(raw.get("evrak_no"))
    if not evrak_no:
        hatalar.append("Evrak no zorunludur")
    elif len(evrak_no) > EVRAK_NO_MAX:
        hatalar.append(f"Evrak no en fazla {EVRAK_NO_MAX} karakter olabilir")
    else:
        data["evrak_no"] = evrak_no
        if lookups.evrak_no_exists(evrak_no):
            uyarilar.append(f'Evrak no "{evrak_no}" sistemde zaten mevcut')

    # Tutar
    tutar = parse_amount(raw.get("tutar"))
    if tutar is None:
        hatalar.append("Tutar zorunludur ve pozitif bir sayı olmalıdır")
    else:
        data["tutar"] = float(tutar)

    # Vade tarihi
    vade_tarihi = parse_date(raw.get("vade_tarihi"))
    if vade_tarihi is None:
        hatalar.append("Vade tarihi zorunludur")
    else:
        data["vade_tarihi"] = vade_tarihi

    # Para birimi
    para_raw = raw.get("para_birimi")
    if _text(para_raw):
        para_birimi = _text(para_raw).upper()
        if para_birimi not in CURRENCIES:
            hatalar.append(f'Geçersiz para birimi: "{para_raw}"')
        else:
            data["para_birimi"] = para_birimi
    else:
        data["para_birimi"] = base_currency

    # Döviz kuru
    if data.get("para_birimi") and data["para_birimi"] != base_currency:
        doviz_kuru = parse_amount(raw.get("doviz_kuru"))
        if doviz_kuru is None:
            hatalar.append(f"{data['para_birimi']} için döviz kuru zorunludur")
        else:
            data["doviz_kuru"] = float(doviz_kuru)
    else:
        data["doviz_kuru"] = None

    # Evrak tarihi
    evrak_tarihi_raw = raw.get("evrak_tarihi")
    if evrak_tarihi_raw not in (None, ""):
        evrak_tarihi = parse_date(evrak_tarihi_raw)
        if evrak_tarihi is None:
            uyarilar.append("Evrak tarihi geçersiz format, atlandı")
        else:
            data["evrak_tarihi"] = evrak_tarihi

    # Durum: unknown values fall back to portfoy with a warning
    durum_raw = raw.get("durum")
    if _text(durum_raw):
        durum = _text(durum_raw).lower()
        if durum not in GECERLI_DURUMLAR:
            uyarilar.append(
                f'Geçersiz durum: "{durum_raw}". "{VARSAYILAN_DURUM}" olarak ayarlandı'
            )
            data["durum"] = VARSAYILAN_DURUM
        else:
            data["durum"] = durum
    else:
        data["durum"] = VARSAYILAN_DURUM

    banka_adi = _text(raw.get("banka_adi"))
    if banka_adi:
        data["banka_adi"] = banka_adi[:BANKA_ADI_MAX]

    kesideci = _text(raw.get("kesideci"))
    if kesideci:
        data["kesideci"] = kesideci[:KESIDECI_MAX]

    # Cari eşleştirme
    cari_adi = _text(raw.get("cari_adi"))
    if cari_adi:
        data["cari_adi"] = cari_adi
        cari_id = lookups.find_cari_id(cari_adi)
        if cari_id:
            data["cari_id"] = cari_id
        else:
            uyarilar.append(f'Cari "{cari_adi}" sistemde bulunamadı')

    notlar = _text(raw.get("notlar"))
    if notlar:
        data["notlar"] = notlar[:NOTLAR_MAX]

    return result
