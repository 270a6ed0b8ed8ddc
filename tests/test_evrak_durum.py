from datetime import date
from itertools import product

import pytest
from sqlalchemy import event

from ceksenet.core.exceptions import ConflictError, NotFoundError, ValidationError
from ceksenet.models.enums import EvrakDurum
from ceksenet.models.evrak_hareketi_model import EvrakHareketi
from ceksenet.services.evrak_durum import (
    DURUM_GECISLERI,
    get_history,
    transition_document,
)
from ceksenet.services.notifications import NotificationDispatcher, build_transition_message
from tests.conftest import FakeChannel

DURUMLAR = [d.value for d in EvrakDurum]
ALL_PAIRS = list(product(DURUMLAR, DURUMLAR))
ALLOWED = [(a, b) for a, b in ALL_PAIRS if b in DURUM_GECISLERI[a]]
REJECTED = [(a, b) for a, b in ALL_PAIRS if b not in DURUM_GECISLERI[a]]


def _hareket_count(db, evrak_id):
    return db.query(EvrakHareketi).filter(EvrakHareketi.evrak_id == evrak_id).count()


def test_transition_table():
    assert DURUM_GECISLERI == {
        "portfoy": ("bankada", "ciro"),
        "bankada": ("tahsil", "karsiliksiz", "portfoy"),
        "ciro": ("tahsil", "karsiliksiz", "portfoy"),
        "tahsil": (),
        "karsiliksiz": ("portfoy",),
    }


@pytest.mark.parametrize("eski,yeni", ALLOWED)
def test_allowed_transition_appends_one_history_row(db, make_evrak, eski, yeni):
    evrak = make_evrak(durum=eski)

    result = transition_document(db, evrak.id, yeni, aciklama="  banka teslim  ", actor_id="u-1")

    assert result.evrak.durum == yeni
    assert result.evrak.updated_at is not None
    assert result.hareket.eski_durum == eski
    assert result.hareket.yeni_durum == yeni
    assert result.hareket.aciklama == "banka teslim"
    assert result.hareket.created_by == "u-1"
    assert _hareket_count(db, evrak.id) == 1
    assert "olarak güncellendi" in result.mesaj


@pytest.mark.parametrize("eski,yeni", REJECTED)
def test_rejected_transition_changes_nothing(db, make_evrak, eski, yeni):
    evrak = make_evrak(durum=eski)

    with pytest.raises(ConflictError):
        transition_document(db, evrak.id, yeni)

    db.refresh(evrak)
    assert evrak.durum == eski
    assert _hareket_count(db, evrak.id) == 0


@pytest.mark.parametrize("durum", DURUMLAR)
def test_same_state_always_fails(db, make_evrak, durum):
    evrak = make_evrak(durum=durum)

    with pytest.raises(ConflictError) as exc:
        transition_document(db, evrak.id, durum)

    assert "zaten" in exc.value.message or "değiştirilemez" in exc.value.message


def test_conflict_is_also_a_validation_error(db, make_evrak):
    evrak = make_evrak(durum="tahsil")

    with pytest.raises(ValidationError) as exc:
        transition_document(db, evrak.id, "portfoy")

    assert exc.value.message == '"Tahsil Edildi" durumundaki evrakın durumu değiştirilemez'


def test_disallowed_target_lists_allowed_states(db, make_evrak):
    evrak = make_evrak(durum="portfoy")

    with pytest.raises(ConflictError) as exc:
        transition_document(db, evrak.id, "tahsil")

    assert exc.value.message == '"Portföy" durumundan sadece şu durumlara geçilebilir: Bankada, Ciro Edildi'


def test_unknown_document(db):
    with pytest.raises(NotFoundError):
        transition_document(db, 999, "bankada")


def test_unknown_target_state(db, make_evrak):
    evrak = make_evrak()

    with pytest.raises(ValidationError):
        transition_document(db, evrak.id, "kayip")


# ---------------------------------------------------------
# Notifications
# ---------------------------------------------------------

def test_notification_sent_to_every_recipient(db, make_evrak, cari, profiles):
    evrak = make_evrak(durum="portfoy", cari_id=cari.id, kesideci="Ali Veli")
    channel = FakeChannel(recipients=["111", "222"])
    notifier = NotificationDispatcher([channel], firma_adi="Örnek Ltd")

    transition_document(db, evrak.id, "bankada", actor_id="u-1", notifier=notifier)

    assert [r for r, _ in channel.sent] == ["111", "222"]
    text = channel.sent[0][1]
    assert evrak.evrak_no in text
    assert "Portföy → Bankada" in text
    assert "15.000,00 TRY" in text
    assert "15.03.2026" in text
    assert "Yılmaz Ticaret" in text
    assert "Ayşe Demir" in text


def test_notification_failure_never_fails_transition(db, make_evrak):
    evrak = make_evrak(durum="portfoy")
    broken = FakeChannel(fail=True)
    working = FakeChannel(name="second")
    notifier = NotificationDispatcher([broken, working])

    result = transition_document(db, evrak.id, "ciro", notifier=notifier)

    assert result.evrak.durum == "ciro"
    assert _hareket_count(db, evrak.id) == 1
    assert len(working.sent) == 1


def test_disabled_channel_is_skipped(db, make_evrak):
    evrak = make_evrak(durum="portfoy")
    channel = FakeChannel(enabled=False)

    transition_document(db, evrak.id, "bankada", notifier=NotificationDispatcher([channel]))

    assert channel.sent == []


def test_message_builder_without_optional_parts(make_evrak):
    evrak = make_evrak(evrak_tipi="senet", tutar=1234567.5, vade_tarihi=date(2026, 1, 2))

    text = build_transition_message(evrak, "portfoy", "ciro")

    assert text.splitlines()[0] == f"Senet durumu değişti: {evrak.evrak_no}"
    assert "1.234.567,50 TRY" in text
    assert "02.01.2026" in text
    assert "İşlemi yapan" not in text


# ---------------------------------------------------------
# History
# ---------------------------------------------------------

def test_history_newest_first_with_actor_names(db, make_evrak, profiles):
    evrak = make_evrak(durum="portfoy")
    transition_document(db, evrak.id, "bankada", actor_id="u-1")
    transition_document(db, evrak.id, "karsiliksiz", actor_id="u-2")
    transition_document(db, evrak.id, "portfoy", actor_id="u-1")
    transition_document(db, evrak.id, "ciro", actor_id="ghost")

    _, hareketler = get_history(db, evrak.id)

    assert [h["yeni_durum"] for h in hareketler] == ["ciro", "portfoy", "karsiliksiz", "bankada"]
    assert [h["created_by_name"] for h in hareketler] == [
        None, "Ayşe Demir", "Mehmet Kaya", "Ayşe Demir",
    ]


def test_history_resolves_actors_in_one_query(db, engine, make_evrak, profiles):
    evrak = make_evrak(durum="portfoy")
    transition_document(db, evrak.id, "bankada", actor_id="u-1")
    transition_document(db, evrak.id, "portfoy", actor_id="u-2")
    transition_document(db, evrak.id, "bankada", actor_id="u-1")

    statements = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _record)
    try:
        get_history(db, evrak.id)
    finally:
        event.remove(engine, "before_cursor_execute", _record)

    profile_queries = [s for s in statements if "FROM profiles" in s]
    assert len(profile_queries) == 1


def test_history_of_unknown_document(db):
    with pytest.raises(NotFoundError):
        get_history(db, 12345)
