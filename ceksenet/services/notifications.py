# ceksenet/services/notifications.py
"""Outbound notifications for document status changes.

Channels are plain objects with ``is_enabled``, ``get_recipients`` and
``send``. ``NotificationDispatcher`` fans a message out to every enabled
channel and never raises: a failed delivery is logged and counted.
"""

import smtplib
from dataclasses import dataclass
from decimal import Decimal
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, List, Optional, Protocol

import requests
from fastapi import Depends
from sqlalchemy.orm import Session

from ceksenet.core.config import Settings, parse_csv, settings as app_config
from ceksenet.core.logging import get_logger
from ceksenet.models.enums import DURUM_ISIMLERI, EVRAK_TIPI_ISIMLERI
from ceksenet.schemas.settings_schema import AppSettings
from ceksenet.services.settings_store import load_app_settings
from ceksenet.utils.database import get_db

logger = get_logger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"
CALLMEBOT_API_URL = "https://api.callmebot.com/whatsapp.php"


class NotificationChannel(Protocol):
    name: str

    def is_enabled(self) -> bool: ...

    def get_recipients(self) -> List[str]: ...

    def send(self, recipient: str, text: str, subject: Optional[str] = None) -> bool: ...


class TelegramChannel:
    name = "telegram"

    def __init__(self, bot_token: str, chat_ids: List[str], enabled: bool = True,
                 timeout: float = 10):
        self.bot_token = bot_token
        self.chat_ids = chat_ids
        self.enabled = enabled
        self.timeout = timeout

    def is_enabled(self) -> bool:
        return self.enabled and bool(self.bot_token) and bool(self.chat_ids)

    def get_recipients(self) -> List[str]:
        return list(self.chat_ids)

    def send(self, recipient: str, text: str, subject: Optional[str] = None) -> bool:
        response = requests.post(
            TELEGRAM_API_URL.format(token=self.bot_token),
            json={
                "chat_id": recipient,
                "text": text,
                "disable_web_page_preview": True,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return bool(response.json().get("ok"))


class WhatsAppChannel:
    """WhatsApp through the CallMeBot gateway (one api key per account)."""

    name = "whatsapp"

    def __init__(self, api_key: str, phones: List[str], enabled: bool = True,
                 timeout: float = 10):
        self.api_key = api_key
        self.phones = phones
        self.enabled = enabled
        self.timeout = timeout

    def is_enabled(self) -> bool:
        return self.enabled and bool(self.api_key) and bool(self.phones)

    def get_recipients(self) -> List[str]:
        return list(self.phones)

    def send(self, recipient: str, text: str, subject: Optional[str] = None) -> bool:
        response = requests.get(
            CALLMEBOT_API_URL,
            params={"phone": recipient, "text": text, "apikey": self.api_key},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return True


class EmailChannel:
    name = "email"

    def __init__(self, config: Settings, recipients: List[str], enabled: bool = True,
                 subject: str = "Evrak durum değişikliği"):
        self.config = config
        self.recipients = recipients
        self.enabled = enabled
        self.subject = subject

    def is_enabled(self) -> bool:
        return (
            self.enabled
            and bool(self.recipients)
            and bool(self.config.mail_username)
            and bool(self.config.mail_password)
        )

    def get_recipients(self) -> List[str]:
        return list(self.recipients)

    def send(self, recipient: str, text: str, subject: Optional[str] = None) -> bool:
        msg = MIMEMultipart()
        msg["From"] = self.config.mail_default_sender or self.config.mail_username
        msg["To"] = recipient
        msg["Subject"] = subject or self.subject
        msg.attach(MIMEText(text, "plain", "utf-8"))

        server = smtplib.SMTP(
            self.config.mail_server,
            self.config.mail_port,
            timeout=self.config.notify_timeout_seconds,
        )
        try:
            if self.config.mail_use_tls:
                server.starttls()
            server.login(self.config.mail_username, self.config.mail_password)
            server.send_message(msg)
        finally:
            server.quit()
        return True


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0


class NotificationDispatcher:
    def __init__(self, channels: Iterable[NotificationChannel] = (),
                 firma_adi: str = "", header: str = "", app_url: str = ""):
        self.channels = list(channels)
        self.firma_adi = firma_adi
        self.header = header
        self.app_url = app_url

    def dispatch(self, text: str, subject: Optional[str] = None) -> DispatchResult:
        result = DispatchResult()
        for channel in self.channels:
            try:
                if not channel.is_enabled():
                    continue
                recipients = channel.get_recipients()
            except Exception as exc:
                logger.warning("Notification channel %s unavailable: %s", channel.name, exc)
                result.failed += 1
                continue

            for recipient in recipients:
                try:
                    ok = channel.send(recipient, text, subject)
                except Exception as exc:
                    logger.warning(
                        "Notification via %s to %s failed: %s", channel.name, recipient, exc
                    )
                    ok = False
                if ok:
                    result.sent += 1
                else:
                    result.failed += 1

        if result.sent or result.failed:
            logger.info("Notifications dispatched: sent=%s failed=%s", result.sent, result.failed)
        return result


def build_notifier(app_settings: AppSettings, config: Settings = app_config) -> NotificationDispatcher:
    timeout = config.notify_timeout_seconds
    channels = [
        TelegramChannel(
            app_settings.telegram_bot_token,
            parse_csv(app_settings.telegram_chat_id),
            enabled=app_settings.telegram_aktif,
            timeout=timeout,
        ),
        WhatsAppChannel(
            app_settings.whatsapp_api_key,
            parse_csv(app_settings.whatsapp_telefon),
            enabled=app_settings.whatsapp_aktif,
            timeout=timeout,
        ),
        EmailChannel(
            config,
            parse_csv(app_settings.email_alicilar),
            enabled=app_settings.email_aktif,
        ),
    ]
    return NotificationDispatcher(
        channels,
        firma_adi=app_settings.firma_adi,
        header=app_settings.whatsapp_mesaj,
        app_url=config.app_url,
    )


def get_notifier(db: Session = Depends(get_db)) -> NotificationDispatcher:
    return build_notifier(load_app_settings(db))


# ---------------------------------------------------------
# Message formatting
# ---------------------------------------------------------

def format_amount(tutar, para_birimi: str = "TRY") -> str:
    """``12345.5`` -> ``12.345,50 TRY``."""
    value = Decimal(str(tutar or 0)).quantize(Decimal("0.01"))
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{text} {para_birimi or 'TRY'}"


def format_date(value) -> str:
    return value.strftime("%d.%m.%Y") if value else "-"


def build_transition_message(evrak, eski_durum: str, yeni_durum: str,
                             actor_name: Optional[str] = None,
                             firma_adi: str = "", header: str = "",
                             app_url: str = "") -> str:
    tip = EVRAK_TIPI_ISIMLERI.get(evrak.evrak_tipi, evrak.evrak_tipi)
    lines = []
    if header:
        lines.append(header)
    if firma_adi:
        lines.append(firma_adi)
    lines.append(f"{tip} durumu değişti: {evrak.evrak_no}")
    lines.append(
        f"{DURUM_ISIMLERI.get(eski_durum, eski_durum)} → "
        f"{DURUM_ISIMLERI.get(yeni_durum, yeni_durum)}"
    )
    lines.append(f"Tutar: {format_amount(evrak.tutar, evrak.para_birimi)}")
    lines.append(f"Vade: {format_date(evrak.vade_tarihi)}")
    if evrak.kesideci:
        lines.append(f"Keşideci: {evrak.kesideci}")
    if evrak.cari is not None:
        lines.append(f"Cari: {evrak.cari.ad_soyad}")
    if actor_name:
        lines.append(f"İşlemi yapan: {actor_name}")
    if app_url:
        lines.append(f"{app_url}/evraklar/{evrak.id}")
    return "\n".join(lines)
