import inspect
from datetime import date

from ceksenet.models.evrak_hareketi_model import EvrakHareketi
from ceksenet.models.evrak_model import Evrak


def _evrak_payload(**overrides):
    payload = {
        "evrak_tipi": "cek",
        "evrak_no": "API-1",
        "tutar": 2500,
        "vade_tarihi": "2026-03-15",
    }
    payload.update(overrides)
    return payload


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ---------------------------------------------------------
# /evraklar
# ---------------------------------------------------------

def test_create_evrak_writes_initial_history(client, db):
    response = client.post("/evraklar", json=_evrak_payload(), headers={"X-User-Id": "u-1"})

    assert response.status_code == 201
    body = response.json()
    assert body["durum"] == "portfoy"
    assert body["created_by"] == "u-1"

    hareket = db.query(EvrakHareketi).filter(EvrakHareketi.evrak_id == body["id"]).one()
    assert hareket.eski_durum is None
    assert hareket.aciklama == "Evrak oluşturuldu"


def test_duplicate_evrak_no_is_conflict(client):
    client.post("/evraklar", json=_evrak_payload())

    response = client.post("/evraklar", json=_evrak_payload())

    assert response.status_code == 409


def test_foreign_currency_without_rate_is_bad_request(client):
    response = client.post("/evraklar", json=_evrak_payload(para_birimi="usd"))

    assert response.status_code == 400
    assert response.json()["detail"] == "USD için döviz kuru zorunludur"


def test_list_filters_and_orders_by_due_date(client, make_evrak):
    make_evrak(evrak_no="B", vade_tarihi=date(2026, 5, 1))
    make_evrak(evrak_no="A", vade_tarihi=date(2026, 4, 1))
    make_evrak(evrak_no="C", durum="bankada")

    everything = client.get("/evraklar").json()
    portfoy = client.get("/evraklar", params={"durum": "portfoy"}).json()

    assert [e["evrak_no"] for e in everything] == ["C", "A", "B"]
    assert [e["evrak_no"] for e in portfoy] == ["A", "B"]


def test_list_filters_by_currency_due_range_and_search(client, make_evrak):
    make_evrak(evrak_no="USD-7", para_birimi="USD", doviz_kuru=35, vade_tarihi=date(2026, 3, 1))
    make_evrak(evrak_no="TR-1", kesideci="Akın Gıda", vade_tarihi=date(2026, 4, 1))
    make_evrak(evrak_no="TR-2", kesideci="100% Tekstil", vade_tarihi=date(2026, 6, 1))

    usd = client.get("/evraklar", params={"para_birimi": "usd"}).json()
    in_range = client.get("/evraklar", params={"vade_baslangic": "2026-03-15", "vade_bitis": "2026-04-30"}).json()
    by_drawer = client.get("/evraklar", params={"search": "akın"}).json()
    literal_percent = client.get("/evraklar", params={"search": "100%"}).json()

    assert [e["evrak_no"] for e in usd] == ["USD-7"]
    assert [e["evrak_no"] for e in in_range] == ["TR-1"]
    assert [e["evrak_no"] for e in by_drawer] == ["TR-1"]
    assert [e["evrak_no"] for e in literal_percent] == ["TR-2"]


def test_update_cannot_touch_status(client, make_evrak):
    evrak = make_evrak()

    response = client.put(f"/evraklar/{evrak.id}", json={"durum": "tahsil"})

    assert response.status_code == 422


def test_update_fields(client, make_evrak):
    evrak = make_evrak()

    response = client.put(f"/evraklar/{evrak.id}", json={"kesideci": "Yeni Keşideci", "tutar": 99.5})

    assert response.status_code == 200
    assert response.json()["kesideci"] == "Yeni Keşideci"
    assert response.json()["tutar"] == 99.5


def test_delete_removes_history(client, db):
    created = client.post("/evraklar", json=_evrak_payload()).json()

    response = client.delete(f"/evraklar/{created['id']}")

    assert response.status_code == 200
    assert db.query(Evrak).count() == 0
    assert db.query(EvrakHareketi).count() == 0


def test_missing_evrak_is_404(client):
    response = client.get("/evraklar/404")

    assert response.status_code == 404
    assert response.json()["detail"] == "Evrak bulunamadı"


def test_status_change_and_history(client, make_evrak, profiles, fake_channel):
    evrak = make_evrak()

    response = client.patch(
        f"/evraklar/{evrak.id}/durum",
        json={"yeni_durum": "bankada", "aciklama": "tahsile verildi"},
        headers={"X-User-Id": "u-2"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["evrak"]["durum"] == "bankada"
    assert body["hareket"]["eski_durum"] == "portfoy"
    assert body["mesaj"] == 'Durum "Portföy" → "Bankada" olarak güncellendi'
    assert len(fake_channel.sent) == 1

    gecmis = client.get(f"/evraklar/{evrak.id}/gecmis").json()
    assert gecmis["toplam"] == 1
    assert gecmis["hareketler"][0]["created_by_name"] == "Mehmet Kaya"


def test_terminal_status_change_is_conflict(client, make_evrak):
    evrak = make_evrak(durum="tahsil")

    response = client.patch(f"/evraklar/{evrak.id}/durum", json={"yeni_durum": "portfoy"})

    assert response.status_code == 409


# ---------------------------------------------------------
# /krediler
# ---------------------------------------------------------

def test_loan_lifecycle(client):
    created = client.post("/krediler", json={
        "kredi_turu": "tasit",
        "anapara": 3000,
        "faiz_orani": 0,
        "vade_ay": 3,
        "baslangic_tarihi": "2026-01-15",
    })
    assert created.status_code == 201
    kredi_id = created.json()["id"]

    detay = client.get(f"/krediler/{kredi_id}").json()
    assert len(detay["taksitler"]) == 3
    assert detay["ozet"]["kalan_borc"] == 3000.0
    assert detay["ozet"]["sonraki_taksit"]["taksit_no"] == 1

    taksit_id = detay["taksitler"][0]["id"]
    paid = client.patch(f"/krediler/{kredi_id}/taksitler/{taksit_id}/ode")
    assert paid.status_code == 200
    assert paid.json()["message"] == "Taksit ödemesi kaydedildi"

    odenen = client.get(f"/krediler/{kredi_id}/taksitler", params={"durum": "odendi"}).json()
    assert [t["id"] for t in odenen] == [taksit_id]

    payoff = client.post(f"/krediler/{kredi_id}/erken-odeme", json={"notlar": "kapama"})
    assert payoff.status_code == 200
    assert payoff.json()["odenen_taksit_sayisi"] == 2
    assert payoff.json()["odenen_tutar"] == 2000.0
    assert payoff.json()["kredi"]["durum"] == "erken_kapandi"

    again = client.post(f"/krediler/{kredi_id}/erken-odeme")
    assert again.status_code == 400
    assert again.json()["detail"] == "Kredi aktif değil, erken ödeme yapılamaz"

    reversed_ = client.patch(f"/krediler/{kredi_id}/taksitler/{taksit_id}/iptal")
    assert reversed_.json()["kredi_durumu"] == "aktif"


def test_portfolio_route_is_not_shadowed(client, make_kredi):
    make_kredi(taksit_sayisi=2)

    response = client.get("/krediler/ozet")

    assert response.status_code == 200
    assert response.json()["aktif_kredi_sayisi"] == 1


def test_unknown_loan_is_404(client):
    assert client.get("/krediler/555").status_code == 404


def test_loan_list_edit_and_delete(client, make_kredi, banka):
    kredi = make_kredi(taksit_sayisi=3, baslangic=date(2025, 12, 10))
    make_kredi(taksit_sayisi=2, durum="kapandi", kredi_turu="konut")

    listed = client.get("/krediler", params={"durum": "aktif"}).json()
    assert [k["id"] for k in listed] == [kredi.id]
    assert listed[0]["geciken_taksit_sayisi"] == 1
    assert listed[0]["kalan_borc"] == 3000.0

    updated = client.put(f"/krediler/{kredi.id}", json={"banka_id": banka.id})
    assert updated.status_code == 200
    assert updated.json()["banka"]["ad"] == "Ziraat Bankası"
    assert client.put(f"/krediler/{kredi.id}", json={"anapara": 1}).status_code == 422

    taksit_id = client.get(f"/krediler/{kredi.id}").json()["taksitler"][0]["id"]
    client.patch(f"/krediler/{kredi.id}/taksitler/{taksit_id}/ode")
    refused = client.delete(f"/krediler/{kredi.id}")
    assert refused.status_code == 400

    client.patch(f"/krediler/{kredi.id}/taksitler/{taksit_id}/iptal")
    assert client.delete(f"/krediler/{kredi.id}").status_code == 200
    assert client.get(f"/krediler/{kredi.id}").status_code == 404


def test_installment_views(client, make_kredi):
    make_kredi(taksit_sayisi=3, baslangic=date(2025, 12, 5))  # 01-05 overdue, 02-05, 03-05

    geciken = client.get("/krediler/taksitler/geciken").json()
    yaklasan = client.get("/krediler/taksitler/yaklasan", params={"gun": 5}).json()
    bu_ay = client.get("/krediler/taksitler/bu-ay").json()

    assert [t["vade_tarihi"] for t in geciken["data"]] == ["2026-01-05"]
    assert geciken["max_gecikme_gun"] == 27
    assert geciken["data"][0]["kredi"]["kredi_turu"] == "ticari"
    assert [t["vade_tarihi"] for t in yaklasan["data"]] == ["2026-02-05"]
    assert yaklasan["gun_sayisi"] == 5
    assert bu_ay["toplam_tutar"] == 1000.0


# ---------------------------------------------------------
# /import/evraklar and /settings
# ---------------------------------------------------------

def test_template_download_and_parse(client):
    template = client.get("/import/evraklar/template")
    assert template.status_code == 200

    parsed = client.post(
        "/import/evraklar/parse",
        files={"file": ("sablon.xlsx", template.content, "application/octet-stream")},
    )

    assert parsed.status_code == 200
    assert parsed.json()["ozet"]["gecerli"] == 1


def test_parse_rejects_non_excel(client):
    response = client.post(
        "/import/evraklar/parse",
        files={"file": ("notlar.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400


def test_import_commit_endpoint(client, db):
    response = client.post("/import/evraklar/import", json={"satirlar": [{
        "satir": 2,
        "evrak_tipi": "senet",
        "evrak_no": "IMP-1",
        "tutar": 750.0,
        "vade_tarihi": "2026-06-01",
        "para_birimi": "TRY",
        "durum": "portfoy",
        "gecerli": True,
    }]})

    assert response.status_code == 200
    assert response.json()["basarili"] == 1
    assert db.query(Evrak).filter(Evrak.evrak_no == "IMP-1").count() == 1


def test_import_commit_rejects_forged_row(client, db):
    response = client.post("/import/evraklar/import", json={"satirlar": [{
        "satir": 2,
        "evrak_tipi": "xyz",
        "evrak_no": "FORGED-1",
        "tutar": -5,
        "vade_tarihi": "2026-06-01",
        "para_birimi": "USD",
        "durum": "yok_boyle_durum",
        "hatalar": [],
        "gecerli": True,
    }]})

    assert response.status_code == 200
    body = response.json()
    assert body["basarili"] == 0
    assert body["basarisiz"] == 1
    assert body["hatalar"][0]["evrak_no"] == "FORGED-1"
    assert db.query(Evrak).count() == 0


def test_parse_upload_is_a_plain_route():
    from ceksenet.routers import import_router

    assert not inspect.iscoroutinefunction(import_router.parse_upload)


def test_parse_rejects_oversized_file(client, monkeypatch):
    from ceksenet.routers import import_router

    monkeypatch.setattr(import_router, "MAX_FILE_SIZE", 16)

    response = client.post(
        "/import/evraklar/parse",
        files={"file": ("buyuk.xlsx", b"x" * 64, "application/octet-stream")},
    )

    assert response.status_code == 400
    assert "5MB" in response.json()["detail"]


def test_import_info(client):
    info = client.get("/import/evraklar/info").json()

    assert info["maxRows"] == 1000
    assert "vade_tarihi" in [c["field"] for c in info["requiredColumns"]]


def test_settings_round_trip(client):
    saved = client.put("/settings", json={"firma_adi": "Örnek", "whatsapp_api_key": "abcdef12"})
    assert saved.status_code == 200

    current = client.get("/settings").json()
    assert current["firma_adi"] == "Örnek"
    assert current["whatsapp_api_key"] == "****ef12"

    assert client.put("/settings", json={"bilinmeyen": "x"}).status_code == 400


def test_unexpected_error_is_generic_500(client, monkeypatch):
    from ceksenet.services import evrak_service

    def _boom(*args, **kwargs):
        raise RuntimeError("db connection string leaked")

    monkeypatch.setattr(evrak_service, "list_documents", _boom)

    response = client.get("/evraklar")

    assert response.status_code == 500
    assert response.json() == {"detail": "Sunucu hatası oluştu"}
