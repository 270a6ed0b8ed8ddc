from pydantic import BaseModel


class AppSettings(BaseModel):
    """Typed view over the ``ayarlar`` key/value table.

    Field names are the only keys read from or written to the table.
    """

    firma_adi: str = ""
    firma_telefon: str = ""
    firma_adres: str = ""

    whatsapp_aktif: bool = False
    whatsapp_telefon: str = ""  # comma separated recipients
    whatsapp_api_key: str = ""
    whatsapp_mesaj: str = ""

    telegram_aktif: bool = False
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""  # comma separated recipients

    email_aktif: bool = False
    email_alicilar: str = ""  # comma separated recipients


SECRET_KEYS = ("whatsapp_api_key", "telegram_bot_token")


def mask_secret(value: str) -> str:
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]
