import os
import sys
from datetime import date
from pathlib import Path

import pytest

# must be set before ceksenet is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import ceksenet.models  # noqa: F401
from ceksenet.models.banka_model import Banka
from ceksenet.models.cari_model import Cari
from ceksenet.models.enums import TaksitDurum
from ceksenet.models.evrak_model import Evrak
from ceksenet.models.kredi_model import Kredi
from ceksenet.models.kredi_taksit_model import KrediTaksit
from ceksenet.models.profile_model import Profile
from ceksenet.services.notifications import NotificationDispatcher
from ceksenet.utils.clock import FixedClock, get_clock
from ceksenet.utils.database import Base, get_db
from ceksenet.utils.money import add_months

TODAY = date(2026, 2, 1)


class FakeChannel:
    """Records messages instead of sending them."""

    def __init__(self, name="fake", recipients=("alici-1",), enabled=True, fail=False):
        self.name = name
        self.recipients = list(recipients)
        self.enabled = enabled
        self.fail = fail
        self.sent = []
        self.subjects = []

    def is_enabled(self):
        return self.enabled

    def get_recipients(self):
        return list(self.recipients)

    def send(self, recipient, text, subject=None):
        if self.fail:
            raise ConnectionError("gateway down")
        self.sent.append((recipient, text))
        self.subjects.append(subject)
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock(TODAY)


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def notifier(fake_channel):
    return NotificationDispatcher([fake_channel])


@pytest.fixture
def client(db, clock, notifier):
    from main import app
    from ceksenet.services.notifications import get_notifier

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


# ---------------------------------------------------------
# Factories
# ---------------------------------------------------------

@pytest.fixture
def make_evrak(db):
    counter = {"n": 0}

    def _make(durum="portfoy", evrak_no=None, **kwargs):
        counter["n"] += 1
        evrak = Evrak(
            evrak_tipi=kwargs.pop("evrak_tipi", "cek"),
            evrak_no=evrak_no or f"CEK-{counter['n']:04d}",
            tutar=kwargs.pop("tutar", 15000),
            para_birimi=kwargs.pop("para_birimi", "TRY"),
            vade_tarihi=kwargs.pop("vade_tarihi", date(2026, 3, 15)),
            durum=durum,
            **kwargs,
        )
        db.add(evrak)
        db.commit()
        db.refresh(evrak)
        return evrak

    return _make


@pytest.fixture
def make_kredi(db):
    def _make(taksit_sayisi=12, tutar=1000, baslangic=date(2025, 6, 10), durum="aktif",
              kredi_turu="ticari"):
        kredi = Kredi(
            kredi_turu=kredi_turu,
            anapara=tutar * taksit_sayisi,
            faiz_orani=0,
            vade_ay=taksit_sayisi,
            baslangic_tarihi=baslangic,
            aylik_taksit=tutar,
            toplam_odeme=tutar * taksit_sayisi,
            para_birimi="TRY",
            durum=durum,
        )
        db.add(kredi)
        db.flush()
        for i in range(1, taksit_sayisi + 1):
            db.add(KrediTaksit(
                kredi_id=kredi.id,
                taksit_no=i,
                vade_tarihi=add_months(baslangic, i),
                tutar=tutar,
                durum=TaksitDurum.PENDING.value,
            ))
        db.commit()
        db.refresh(kredi)
        return kredi

    return _make


@pytest.fixture
def cari(db):
    row = Cari(ad_soyad="Yılmaz Ticaret", tip="musteri")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def banka(db):
    row = Banka(ad="Ziraat Bankası", aktif=True)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def profiles(db):
    rows = [
        Profile(id="u-1", username="ayse", ad_soyad="Ayşe Demir", role="admin"),
        Profile(id="u-2", username="mehmet", ad_soyad="Mehmet Kaya", role="normal"),
    ]
    db.add_all(rows)
    db.commit()
    return rows
