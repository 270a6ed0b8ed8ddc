from datetime import date
from decimal import Decimal

from ceksenet.services import taksit_takvimi
from tests.conftest import TODAY


def test_overdue_lists_open_past_due_of_active_loans(db, make_kredi):
    make_kredi(taksit_sayisi=3, baslangic=date(2025, 11, 10))  # 12-10 and 01-10 overdue
    make_kredi(taksit_sayisi=3, baslangic=date(2025, 11, 10), durum="kapandi")

    liste = taksit_takvimi.overdue_installments(db, TODAY)

    assert [t.vade_tarihi for t in liste.taksitler] == [date(2025, 12, 10), date(2026, 1, 10)]
    assert liste.toplam_tutar == Decimal("2000.00")
    assert liste.en_eski_gecikme == date(2025, 12, 10)
    assert liste.max_gecikme_gun == 53


def test_overdue_without_rows(db, make_kredi):
    make_kredi(taksit_sayisi=2, baslangic=date(2026, 2, 1))

    liste = taksit_takvimi.overdue_installments(db, TODAY)

    assert liste.taksitler == []
    assert liste.en_eski_gecikme is None
    assert liste.max_gecikme_gun == 0


def test_upcoming_window_includes_today_and_last_day(db, make_kredi):
    make_kredi(taksit_sayisi=1, baslangic=date(2026, 1, 1))  # due today
    make_kredi(taksit_sayisi=1, baslangic=date(2026, 1, 8))  # due on day 7
    make_kredi(taksit_sayisi=1, baslangic=date(2026, 1, 9))  # day 8

    liste = taksit_takvimi.upcoming_installments(db, TODAY)

    assert liste.gun_sayisi == 7
    assert [t.vade_tarihi for t in liste.taksitler] == [date(2026, 2, 1), date(2026, 2, 8)]
    assert liste.taksitler[0].kredi.kredi_turu == "ticari"


def test_upcoming_day_count_is_clamped():
    assert taksit_takvimi.clamp_days(None) == 7
    assert taksit_takvimi.clamp_days(0) == 1
    assert taksit_takvimi.clamp_days(90) == 30


def test_this_month_covers_whole_month(db, make_kredi):
    make_kredi(taksit_sayisi=2, baslangic=date(2025, 12, 28))  # 01-28 overdue, 02-28
    make_kredi(taksit_sayisi=1, tutar=250, baslangic=date(2026, 1, 2))  # 02-02

    liste = taksit_takvimi.this_month_installments(db, TODAY)

    assert [t.vade_tarihi for t in liste.taksitler] == [date(2026, 2, 2), date(2026, 2, 28)]
    assert liste.toplam_tutar == Decimal("1250.00")
    assert taksit_takvimi.month_bounds(TODAY) == (date(2026, 2, 1), date(2026, 2, 28))
