"""Enumeration types for documents, loans and installments."""

from enum import Enum


class EvrakTipi(str, Enum):
    CEK = "cek"
    SENET = "senet"


class EvrakDurum(str, Enum):
    IN_PORTFOLIO = "portfoy"
    AT_BANK = "bankada"
    ENDORSED = "ciro"
    COLLECTED = "tahsil"
    BOUNCED = "karsiliksiz"


class CariTipi(str, Enum):
    MUSTERI = "musteri"
    TEDARIKCI = "tedarikci"


class KrediTuru(str, Enum):
    TUKETICI = "tuketici"
    KONUT = "konut"
    TASIT = "tasit"
    TICARI = "ticari"
    ISLETME = "isletme"
    DIGER = "diger"


class KrediDurum(str, Enum):
    ACTIVE = "aktif"
    CLOSED = "kapandi"
    CLOSED_EARLY = "erken_kapandi"


class TaksitDurum(str, Enum):
    PENDING = "bekliyor"
    PAID = "odendi"
    OVERDUE = "gecikti"


EVRAK_TIPI_ISIMLERI = {
    EvrakTipi.CEK.value: "Çek",
    EvrakTipi.SENET.value: "Senet",
}

DURUM_ISIMLERI = {
    EvrakDurum.IN_PORTFOLIO.value: "Portföy",
    EvrakDurum.AT_BANK.value: "Bankada",
    EvrakDurum.ENDORSED.value: "Ciro Edildi",
    EvrakDurum.COLLECTED.value: "Tahsil Edildi",
    EvrakDurum.BOUNCED.value: "Karşılıksız",
}

CARI_TIPI_ISIMLERI = {
    CariTipi.MUSTERI.value: "Müşteri",
    CariTipi.TEDARIKCI.value: "Tedarikçi",
}
