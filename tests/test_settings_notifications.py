from dataclasses import replace
from unittest import mock

import pytest
import requests

from ceksenet.core.config import load_settings
from ceksenet.core.exceptions import ValidationError
from ceksenet.models.ayar_model import Ayar
from ceksenet.schemas.settings_schema import AppSettings
from ceksenet.services.notifications import (
    EmailChannel,
    NotificationDispatcher,
    TelegramChannel,
    WhatsAppChannel,
    build_notifier,
    format_amount,
)
from ceksenet.services.settings_store import load_app_settings, masked_settings, save_app_settings
from tests.conftest import FakeChannel


# ---------------------------------------------------------
# settings store
# ---------------------------------------------------------

def test_unknown_table_keys_are_ignored(db):
    db.add_all([
        Ayar(key="firma_adi", value=" Örnek Ltd "),
        Ayar(key="telegram_aktif", value="true"),
        Ayar(key="eski_bir_anahtar", value="x"),
    ])
    db.commit()

    app_settings = load_app_settings(db)

    assert app_settings.firma_adi == "Örnek Ltd"
    assert app_settings.telegram_aktif is True
    assert app_settings.whatsapp_aktif is False


def test_save_rejects_unknown_keys_and_empty_body(db):
    with pytest.raises(ValidationError):
        save_app_settings(db, {})
    with pytest.raises(ValidationError) as exc:
        save_app_settings(db, {"firma_adi": "A", "gizli": "1"})

    assert "gizli" in exc.value.message
    assert db.query(Ayar).count() == 0


def test_save_upserts_and_stores_bools_as_text(db):
    save_app_settings(db, {"telegram_aktif": True, "telegram_chat_id": "1, 2"})
    saved = save_app_settings(db, {"telegram_aktif": "false"})

    assert saved.telegram_aktif is False
    assert saved.telegram_chat_id == "1, 2"
    assert db.query(Ayar).filter(Ayar.key == "telegram_aktif").one().value == "false"


def test_masked_secret_is_not_written_back(db):
    save_app_settings(db, {"telegram_bot_token": "123456:ABCDEF"})
    masked = masked_settings(load_app_settings(db))
    assert masked["telegram_bot_token"] == "****CDEF"

    saved = save_app_settings(db, {"telegram_bot_token": masked["telegram_bot_token"]})

    assert saved.telegram_bot_token == "123456:ABCDEF"


# ---------------------------------------------------------
# notifications
# ---------------------------------------------------------

def test_dispatcher_counts_and_never_raises():
    ok = FakeChannel(recipients=["a", "b"])
    broken = FakeChannel(name="broken", fail=True)
    off = FakeChannel(name="off", enabled=False)

    result = NotificationDispatcher([broken, off, ok]).dispatch("merhaba")

    assert (result.sent, result.failed) == (2, 1)
    assert off.sent == []


def test_build_notifier_enables_configured_channels_only():
    config = load_settings()
    app_settings = AppSettings(
        telegram_aktif=True,
        telegram_bot_token="token",
        telegram_chat_id="10, 20",
        whatsapp_aktif=True,
        whatsapp_api_key="",
        whatsapp_telefon="905551112233",
        firma_adi="Örnek Ltd",
    )

    notifier = build_notifier(app_settings, config)
    enabled = {c.name: c.is_enabled() for c in notifier.channels}

    assert enabled == {"telegram": True, "whatsapp": False, "email": False}
    assert notifier.channels[0].get_recipients() == ["10", "20"]
    assert notifier.firma_adi == "Örnek Ltd"


@mock.patch("ceksenet.services.notifications.requests.post")
def test_telegram_posts_to_bot_api(post):
    post.return_value.json.return_value = {"ok": True}
    channel = TelegramChannel("abc", ["42"], timeout=3)

    assert channel.send("42", "metin") is True

    url = post.call_args.args[0]
    assert url == "https://api.telegram.org/botabc/sendMessage"
    assert post.call_args.kwargs["json"]["chat_id"] == "42"
    assert post.call_args.kwargs["timeout"] == 3


@mock.patch("ceksenet.services.notifications.requests.get")
def test_whatsapp_uses_callmebot_query(get):
    channel = WhatsAppChannel("key-1", ["905551112233"])

    assert channel.send("905551112233", "metin") is True

    params = get.call_args.kwargs["params"]
    assert params == {"phone": "905551112233", "text": "metin", "apikey": "key-1"}
    get.return_value.raise_for_status.assert_called_once_with()


@mock.patch("ceksenet.services.notifications.requests.post")
def test_telegram_http_error_is_counted_not_raised(post):
    post.return_value.raise_for_status.side_effect = requests.HTTPError("401")
    notifier = NotificationDispatcher([TelegramChannel("abc", ["42", "43"])])

    result = notifier.dispatch("metin")

    assert (result.sent, result.failed) == (0, 2)


def test_amount_formatting():
    assert format_amount(1234567.891, "USD") == "1.234.567,89 USD"
    assert format_amount(0) == "0,00 TRY"


@mock.patch("ceksenet.services.notifications.smtplib.SMTP")
def test_email_uses_dispatch_subject(smtp):
    config = replace(load_settings(), mail_username="bot@example.com", mail_password="secret")
    channel = EmailChannel(config, ["muhasebe@example.com"])

    NotificationDispatcher([channel]).dispatch("metin", subject="Günlük rapor")
    channel.send("muhasebe@example.com", "metin")

    subjects = [c.args[0]["Subject"] for c in smtp.return_value.send_message.call_args_list]
    assert subjects == ["Günlük rapor", "Evrak durum değişikliği"]
