# ceksenet/routers/deps.py
from datetime import date
from typing import Optional

from fastapi import Header, HTTPException, Query

from ceksenet.core import config
from ceksenet.models.enums import EvrakDurum, EvrakTipi


def get_actor_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller id forwarded by the auth proxy in front of the API."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def evrak_filtreleri(
    durum: Optional[EvrakDurum] = Query(None),
    evrak_tipi: Optional[EvrakTipi] = Query(None),
    cari_id: Optional[int] = Query(None),
    para_birimi: Optional[str] = Query(None),
    vade_baslangic: Optional[date] = Query(None),
    vade_bitis: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
) -> dict:
    """Document list filters shared by the list and report endpoints."""
    return {
        "durum": durum.value if durum else None,
        "evrak_tipi": evrak_tipi.value if evrak_tipi else None,
        "cari_id": cari_id,
        "para_birimi": para_birimi,
        "vade_baslangic": vade_baslangic,
        "vade_bitis": vade_bitis,
        "search": search,
    }


def require_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    # empty CRON_SECRET disables the check
    secret = config.settings.cron_secret
    if secret and authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Yetkisiz erişim")
