from datetime import date


class SystemClock:
    def today(self) -> date:
        return date.today()


class FixedClock:
    """Clock pinned to one calendar day, for tests and back-dated batch runs."""

    def __init__(self, day: date):
        self.day = day

    def today(self) -> date:
        return self.day


def get_clock() -> SystemClock:
    return SystemClock()
