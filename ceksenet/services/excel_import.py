"""Spreadsheet import of documents (evrak).

Two separate steps:

* ``parse_spreadsheet`` reads an .xlsx buffer and validates every data row.
  Nothing is written to the database.
* ``commit_rows`` inserts the rows the user confirmed, one row at a time,
  collecting per-row failures instead of aborting.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ceksenet.core.config import BASE_CURRENCY, CURRENCIES
from ceksenet.core.exceptions import EmptyDataError, FormatError, ValidationError
from ceksenet.core.logging import get_logger
from ceksenet.models.evrak_hareketi_model import EvrakHareketi
from ceksenet.models.evrak_model import Evrak
from ceksenet.schemas.import_schema import (
    CommitHata,
    CommitResult,
    ImportOzet,
    ParsedRow,
    ParseResult,
)
from ceksenet.services.validation import (
    GECERLI_DURUMLAR,
    GECERLI_EVRAK_TIPLERI,
    VARSAYILAN_DURUM,
    DbLookups,
    RowLookups,
    validate_row,
)

logger = get_logger(__name__)

MAX_ROWS = 1000
MAX_FILE_SIZE = 5 * 1024 * 1024
IMPORT_NOTU = "Excel import ile oluşturuldu"

# (template header, field, required, description, column width)
KOLONLAR = [
    ("Evrak Tipi *", "evrak_tipi", True, "cek veya senet", 12),
    ("Evrak No *", "evrak_no", True, "Benzersiz evrak numarası", 15),
    ("Tutar *", "tutar", True, "Pozitif sayısal değer", 15),
    ("Para Birimi", "para_birimi", False, "TRY, USD, EUR, GBP, CHF (varsayılan: TRY)", 12),
    ("Döviz Kuru", "doviz_kuru", False, "TRY dışı para birimlerinde zorunlu", 12),
    ("Vade Tarihi *", "vade_tarihi", True, "GG.AA.YYYY veya YYYY-MM-DD", 15),
    ("Evrak Tarihi", "evrak_tarihi", False, "GG.AA.YYYY veya YYYY-MM-DD", 15),
    ("Banka Adı", "banka_adi", False, "Çekin bankası", 20),
    ("Keşideci", "kesideci", False, "Evrakı düzenleyen", 20),
    ("Cari Adı", "cari_adi", False, "Sistemde varsa eşleştirilir", 20),
    ("Durum", "durum", False, ", ".join(GECERLI_DURUMLAR), 12),
    ("Notlar", "notlar", False, "Ek açıklamalar", 30),
]

# fields a committed row is re-validated from
SATIR_ALANLARI = (
    "evrak_tipi", "evrak_no", "tutar", "para_birimi", "doviz_kuru", "evrak_tarihi",
    "vade_tarihi", "banka_adi", "kesideci", "cari_adi", "durum", "notlar",
)

# lower-cased header (without the "*" marker) -> field
KOLON_MAPPING = {
    "evrak tipi": "evrak_tipi",
    "evrak no": "evrak_no",
    "tutar": "tutar",
    "para birimi": "para_birimi",
    "döviz kuru": "doviz_kuru",
    "doviz kuru": "doviz_kuru",
    "evrak tarihi": "evrak_tarihi",
    "vade tarihi": "vade_tarihi",
    "banka adı": "banka_adi",
    "banka adi": "banka_adi",
    "keşideci": "kesideci",
    "kesideci": "kesideci",
    "cari adı": "cari_adi",
    "cari adi": "cari_adi",
    "durum": "durum",
    "notlar": "notlar",
}

ZORUNLU_KOLONLAR = [field for _, field, required, _, _ in KOLONLAR if required]
TARIH_KOLONLARI = ("evrak_tarihi", "vade_tarihi")

_REQUIRED_MARKER = re.compile(r"\s*\*$")


def clean_cell_value(value) -> str:
    """Render a cell as trimmed plain text.

    Rich text cells are flattened to their text. Non-integral numbers are
    written with a decimal comma so the Turkish amount parser reads them back
    unchanged.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value).replace(".", ",")
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return str(value.quantize(Decimal(1)))
        return str(value).replace(".", ",")
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def normalize_header(value) -> str:
    # "İ".lower() leaves a combining dot behind
    header = clean_cell_value(value).replace("İ", "i").lower()
    return _REQUIRED_MARKER.sub("", header).strip()


def map_header(header_cells: Iterable[Any]) -> Dict[int, str]:
    """Column index -> field for every recognized header cell."""
    mapping: Dict[int, str] = {}
    for col_idx, cell in enumerate(header_cells):
        field = KOLON_MAPPING.get(normalize_header(cell))
        if field:
            mapping[col_idx] = field
    return mapping


def _open_first_sheet(buffer: bytes):
    try:
        workbook = load_workbook(BytesIO(buffer), read_only=True, data_only=True)
    except Exception as exc:
        raise FormatError("Excel dosyası okunamadı") from exc

    if not workbook.worksheets:
        raise FormatError("Excel dosyasında sayfa bulunamadı")
    return workbook, workbook.worksheets[0]


def parse_spreadsheet(
        buffer: bytes,
        lookups: RowLookups,
        base_currency: str = BASE_CURRENCY,
) -> ParseResult:
    workbook, worksheet = _open_first_sheet(buffer)
    try:
        rows_iter = worksheet.iter_rows(values_only=True)

        header_mapping = map_header(next(rows_iter, None) or ())
        mevcut = set(header_mapping.values())
        eksik = [k for k in ZORUNLU_KOLONLAR if k not in mevcut]
        if eksik:
            raise FormatError(f"Eksik zorunlu kolonlar: {', '.join(eksik)}")

        rows: List[ParsedRow] = []
        # spreadsheet row numbers: the header is row 1
        for satir, cells in enumerate(rows_iter, start=2):
            if all(clean_cell_value(c) == "" for c in cells):
                continue

            if len(rows) >= MAX_ROWS:
                raise FormatError(f"Excel dosyası en fazla {MAX_ROWS} satır içerebilir")

            row_data: Dict[str, Any] = {}
            for col_idx, field in header_mapping.items():
                value = cells[col_idx] if col_idx < len(cells) else None
                if field in TARIH_KOLONLARI:
                    row_data[field] = value
                else:
                    row_data[field] = clean_cell_value(value)

            validation = validate_row(row_data, lookups, base_currency=base_currency)
            rows.append(
                ParsedRow(
                    satir=satir,
                    **validation.data,
                    hatalar=validation.hatalar,
                    uyarilar=validation.uyarilar,
                    gecerli=validation.gecerli,
                )
            )
    finally:
        workbook.close()

    if not rows:
        raise EmptyDataError("Excel dosyasında veri bulunamadı")

    ozet = summarize(rows)
    logger.info(
        "Spreadsheet parsed: %s rows, %s valid, %s invalid, %s with warnings",
        ozet.toplam, ozet.gecerli, ozet.hatali, ozet.uyarili,
    )
    return ParseResult(data=rows, ozet=ozet)


def summarize(rows: List[ParsedRow]) -> ImportOzet:
    return ImportOzet(
        toplam=len(rows),
        gecerli=sum(1 for r in rows if r.gecerli),
        hatali=sum(1 for r in rows if not r.gecerli),
        uyarili=sum(1 for r in rows if r.uyarilar),
    )


def recheck_row(satir: ParsedRow, lookups: RowLookups,
                base_currency: str = BASE_CURRENCY) -> Tuple[Dict[str, Any], List[str]]:
    """Validate a confirmed row again before it is written.

    Rows come back from the client, so neither ``gecerli`` nor the
    normalized values are trusted. A status outside the enumeration is an
    error here instead of the parse-time fallback.
    """
    raw = {field: getattr(satir, field) for field in SATIR_ALANLARI}
    validation = validate_row(raw, lookups, base_currency=base_currency)
    hatalar = list(validation.hatalar)

    durum = (satir.durum or "").strip().lower()
    if durum and durum not in GECERLI_DURUMLAR:
        hatalar.append(f'Geçersiz durum: "{satir.durum}"')

    data = dict(validation.data)
    if "cari_id" not in data and satir.cari_id:
        data["cari_id"] = satir.cari_id
    return data, hatalar


def _reject(sonuc: CommitResult, satir: ParsedRow, hata: str) -> None:
    sonuc.basarisiz += 1
    sonuc.hatalar.append(CommitHata(satir=satir.satir, evrak_no=satir.evrak_no, hata=hata))


def commit_rows(
        db: Session,
        satirlar: List[ParsedRow],
        actor_id: Optional[str],
        base_currency: str = BASE_CURRENCY,
) -> CommitResult:
    """Insert valid rows one by one. A failing row never stops the batch."""
    if not satirlar:
        raise ValidationError("Import edilecek satır bulunamadı")

    gecerli_satirlar = [s for s in satirlar if s.gecerli is True]
    if not gecerli_satirlar:
        raise ValidationError("Geçerli satır bulunamadı. Lütfen hatalı satırları düzeltin.")

    lookups = DbLookups(db)
    sonuc = CommitResult()

    for satir in gecerli_satirlar:
        if satir.hatalar:
            _reject(sonuc, satir, "; ".join(satir.hatalar))
            continue

        data, hatalar = recheck_row(satir, lookups, base_currency=base_currency)
        if hatalar:
            logger.warning("Import row %s failed re-validation: %s", satir.satir, hatalar)
            _reject(sonuc, satir, "; ".join(hatalar))
            continue

        durum = data.get("durum") or VARSAYILAN_DURUM
        try:
            evrak = Evrak(
                evrak_tipi=data["evrak_tipi"],
                evrak_no=data["evrak_no"],
                tutar=data["tutar"],
                para_birimi=data.get("para_birimi") or base_currency,
                doviz_kuru=data.get("doviz_kuru"),
                evrak_tarihi=data.get("evrak_tarihi"),
                vade_tarihi=data["vade_tarihi"],
                banka_adi=data.get("banka_adi"),
                kesideci=data.get("kesideci"),
                cari_id=data.get("cari_id"),
                durum=durum,
                notlar=data.get("notlar"),
                created_by=actor_id,
            )
            db.add(evrak)
            db.flush()

            db.add(
                EvrakHareketi(
                    evrak_id=evrak.id,
                    eski_durum=None,
                    yeni_durum=durum,
                    aciklama=IMPORT_NOTU,
                    created_by=actor_id,
                )
            )
            db.commit()
            sonuc.basarili += 1

        except IntegrityError:
            db.rollback()
            logger.warning("Import row %s rejected by constraints", satir.satir, exc_info=True)
            _reject(sonuc, satir, "Evrak no zaten mevcut veya zorunlu alan eksik")
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Import row %s could not be saved", satir.satir, exc_info=True)
            _reject(sonuc, satir, "Kayıt eklenemedi")

    logger.info("Import committed: %s saved, %s failed", sonuc.basarili, sonuc.basarisiz)
    return sonuc


def create_import_template() -> bytes:
    workbook = Workbook()
    workbook.properties.creator = "ÇekSenet Takip Sistemi"

    worksheet = workbook.active
    worksheet.title = "Evrak Verileri"
    worksheet.sheet_properties.tabColor = "3B82F6"

    worksheet.append([header for header, _, _, _, _ in KOLONLAR])
    for col_idx, (_, _, _, _, width) in enumerate(KOLONLAR, start=1):
        worksheet.column_dimensions[get_column_letter(col_idx)].width = width

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(fill_type="solid", fgColor="3B82F6")
    for cell in worksheet[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(vertical="center", horizontal="center")

    ornek = {
        "evrak_tipi": "cek",
        "evrak_no": "CHK-001",
        "tutar": 10000,
        "para_birimi": BASE_CURRENCY,
        "doviz_kuru": "",
        "vade_tarihi": "15.02.2026",
        "evrak_tarihi": "01.01.2026",
        "banka_adi": "Garanti Bankası",
        "kesideci": "Örnek Şirket A.Ş.",
        "cari_adi": "",
        "durum": VARSAYILAN_DURUM,
        "notlar": "Örnek not",
    }
    worksheet.append([ornek[field] for _, field, _, _, _ in KOLONLAR])

    info_sheet = workbook.create_sheet("Açıklamalar")
    info_sheet.append(["Alan", "Açıklama", "Geçerli Değerler"])
    for cell in info_sheet[1]:
        cell.font = Font(bold=True)
    info_sheet.column_dimensions["A"].width = 20
    info_sheet.column_dimensions["B"].width = 50
    info_sheet.column_dimensions["C"].width = 40

    gecerli_degerler = {
        "evrak_tipi": ", ".join(GECERLI_EVRAK_TIPLERI),
        "para_birimi": ", ".join(CURRENCIES),
        "durum": ", ".join(GECERLI_DURUMLAR),
    }
    for header, field, required, description, _ in KOLONLAR:
        aciklama = f"Zorunlu. {description}" if required else description
        info_sheet.append([header, aciklama, gecerli_degerler.get(field, "")])

    out = BytesIO()
    workbook.save(out)
    return out.getvalue()


def import_info() -> Dict[str, Any]:
    def _kolon(header, field, description):
        return {"name": header, "field": field, "description": description}

    return {
        "maxFileSize": f"{MAX_FILE_SIZE // (1024 * 1024)}MB",
        "allowedFormats": [".xlsx"],
        "maxRows": MAX_ROWS,
        "requiredColumns": [_kolon(h, f, d) for h, f, r, d, _ in KOLONLAR if r],
        "optionalColumns": [_kolon(h, f, d) for h, f, r, d, _ in KOLONLAR if not r],
        "supportedDateFormats": [
            "GG.AA.YYYY (01.01.2025)",
            "GG/AA/YYYY (01/01/2025)",
            "YYYY-MM-DD (2025-01-01)",
            "Excel tarih formatı",
        ],
    }
