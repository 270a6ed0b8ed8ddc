from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ceksenet.services.settings_store import load_app_settings, masked_settings, save_app_settings
from ceksenet.utils.database import get_db

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("")
def get_settings(db: Session = Depends(get_db)):
    return masked_settings(load_app_settings(db))


@router.put("")
def update_settings(updates: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    saved = save_app_settings(db, updates)
    return {"message": "Ayarlar kaydedildi", "settings": masked_settings(saved)}
