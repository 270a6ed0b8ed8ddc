# ceksenet/services/rapor.py
"""Spreadsheet export of the document list."""

from datetime import date
from io import BytesIO
from typing import List, Optional, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from ceksenet.core.exceptions import NotFoundError
from ceksenet.core.logging import get_logger
from ceksenet.models.enums import CARI_TIPI_ISIMLERI, DURUM_ISIMLERI, EVRAK_TIPI_ISIMLERI
from ceksenet.models.evrak_model import Evrak
from ceksenet.services.evrak_service import list_documents
from ceksenet.utils.money import base_amount

logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# header, width, number format
RAPOR_KOLONLARI = [
    ("Evrak No", 15, None),
    ("Evrak Tipi", 10, None),
    ("Tutar", 15, "#,##0.00"),
    ("Para Birimi", 10, None),
    ("Döviz Kuru", 10, "#,##0.0000"),
    ("TRY Karşılığı", 15, "#,##0.00"),
    ("Vade Tarihi", 12, "DD.MM.YYYY"),
    ("Durum", 12, None),
    ("Cari", 25, None),
    ("Cari Tipi", 12, None),
    ("Keşideci", 25, None),
    ("Banka", 20, None),
    ("Evrak Tarihi", 12, "DD.MM.YYYY"),
    ("Notlar", 30, None),
]

TOPLAM_KOLONU = 6  # TRY Karşılığı

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", fgColor="3B82F6")
THIN = Side(style="thin", color="D1D5DB")
BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)


def _row(evrak: Evrak) -> list:
    cari = evrak.cari
    banka_adi = evrak.banka.ad if evrak.banka is not None else evrak.banka_adi
    return [
        evrak.evrak_no,
        EVRAK_TIPI_ISIMLERI.get(evrak.evrak_tipi, evrak.evrak_tipi),
        float(evrak.tutar),
        evrak.para_birimi,
        float(evrak.doviz_kuru) if evrak.doviz_kuru else None,
        float(base_amount(evrak.tutar, evrak.doviz_kuru)),
        evrak.vade_tarihi,
        DURUM_ISIMLERI.get(evrak.durum, evrak.durum),
        cari.ad_soyad if cari is not None else None,
        CARI_TIPI_ISIMLERI.get(cari.tip, cari.tip) if cari is not None else None,
        evrak.kesideci,
        banka_adi,
        evrak.evrak_tarihi,
        evrak.notlar,
    ]


def build_report_workbook(evraklar: List[Evrak]) -> bytes:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Evraklar"

    worksheet.append([header for header, _, _ in RAPOR_KOLONLARI])
    for cell in worksheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(vertical="center", horizontal="center")
        cell.border = BORDER

    for evrak in evraklar:
        worksheet.append(_row(evrak))
        for cell, (_, _, number_format) in zip(worksheet[worksheet.max_row], RAPOR_KOLONLARI):
            cell.border = BORDER
            if number_format:
                cell.number_format = number_format

    for col_idx, (_, width, _) in enumerate(RAPOR_KOLONLARI, start=1):
        worksheet.column_dimensions[get_column_letter(col_idx)].width = width

    son_satir = len(evraklar) + 1
    toplam_satir = son_satir + 2
    toplam_harf = get_column_letter(TOPLAM_KOLONU)

    worksheet.cell(row=toplam_satir, column=1, value="TOPLAM:").font = Font(bold=True)
    worksheet.cell(row=toplam_satir, column=2, value=f"{len(evraklar)} Evrak")
    toplam = worksheet.cell(
        row=toplam_satir,
        column=TOPLAM_KOLONU,
        value=f"=SUM({toplam_harf}2:{toplam_harf}{son_satir})",
    )
    toplam.font = Font(bold=True)
    toplam.number_format = "#,##0.00"

    out = BytesIO()
    workbook.save(out)
    return out.getvalue()


def report_filename(today: date, vade_baslangic: Optional[date] = None,
                    vade_bitis: Optional[date] = None) -> str:
    if vade_baslangic and vade_bitis:
        return f"evraklar_{vade_baslangic.isoformat()}_{vade_bitis.isoformat()}.xlsx"
    return f"evraklar_{today.isoformat()}.xlsx"


def export_documents(db: Session, today: date, **filtreler) -> Tuple[bytes, str]:
    """Build the report for ``filtreler`` (same keys as ``list_documents``)."""
    evraklar = list_documents(db, **filtreler)
    if not evraklar:
        raise NotFoundError("Seçilen kriterlere uygun evrak bulunamadı")

    content = build_report_workbook(evraklar)
    filename = report_filename(today, filtreler.get("vade_baslangic"), filtreler.get("vade_bitis"))
    logger.info("Report exported: %s (%s rows)", filename, len(evraklar))
    return content, filename
