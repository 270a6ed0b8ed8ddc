import calendar
from datetime import date
from decimal import Decimal, ROUND_HALF_UP


def money(x) -> Decimal:
    """Always return 2-decimal Decimal with HALF_UP rounding."""
    if x is None:
        x = 0
    if not isinstance(x, Decimal):
        x = Decimal(str(x))
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def base_amount(tutar, doviz_kuru) -> Decimal:
    """Amount in the base currency; a missing rate counts as 1."""
    return money(Decimal(str(tutar or 0)) * Decimal(str(doviz_kuru or 1)))


def add_months(start: date, months: int) -> date:
    """Same day-of-month ``months`` later, clamped to the last day of that month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def compute_monthly_installment(
        principal: Decimal,
        annual_rate_percent: Decimal,
        term_months: int,
) -> Decimal:
    """
    EQUAL INSTALMENTS (annuity):
      r = annual% / 12 / 100
      installment = P * r(1+r)^n / ((1+r)^n - 1)

    A zero rate degenerates to P / n.

    Example:
      principal=12000, rate=0, n=12 => 1000.00
    """
    if term_months <= 0:
        raise ValueError("term_months must be > 0")

    principal = Decimal(str(principal))
    r = Decimal(str(annual_rate_percent)) / Decimal("1200")
    n = int(term_months)

    if r == 0:
        return money(principal / n)

    growth = (1 + r) ** n
    return money(principal * (r * growth) / (growth - 1))


def build_monthly_schedule(
        installment_amount: Decimal,
        term_months: int,
        start_date: date,
):
    """
    Returns a list of (installment_no, due_date, amount) tuples.

    Installment #i falls due i months after the start date.
    """
    amount = money(installment_amount)
    return [
        (i, add_months(start_date, i), amount)
        for i in range(1, int(term_months) + 1)
    ]
