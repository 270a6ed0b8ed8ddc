# ceksenet/services/settings_store.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from ceksenet.core.exceptions import ValidationError
from ceksenet.core.logging import get_logger
from ceksenet.models.ayar_model import Ayar
from ceksenet.schemas.settings_schema import AppSettings, SECRET_KEYS, mask_secret

logger = get_logger(__name__)

ALLOWED_KEYS = tuple(AppSettings.model_fields.keys())
BOOL_KEYS = tuple(
    name for name, field in AppSettings.model_fields.items() if field.annotation is bool
)


def _to_bool(raw) -> bool:
    return str(raw or "").strip().lower() == "true"


def load_app_settings(db: Session) -> AppSettings:
    rows = db.query(Ayar).filter(Ayar.key.in_(ALLOWED_KEYS)).all()
    values: Dict[str, Any] = {}
    for row in rows:
        if row.key in BOOL_KEYS:
            values[row.key] = _to_bool(row.value)
        else:
            values[row.key] = (row.value or "").strip()
    return AppSettings(**values)


def masked_settings(app_settings: AppSettings) -> Dict[str, Any]:
    out = app_settings.model_dump()
    for key in SECRET_KEYS:
        out[key] = mask_secret(out[key])
    return out


def save_app_settings(db: Session, updates: Dict[str, Any]) -> AppSettings:
    """Upsert allow-listed keys. Unknown keys reject the whole request."""
    if not updates:
        raise ValidationError("Güncellenecek ayar bulunamadı")

    unknown = sorted(k for k in updates if k not in ALLOWED_KEYS)
    if unknown:
        raise ValidationError(f"Geçersiz ayar anahtarı: {', '.join(unknown)}")

    for key, value in updates.items():
        # a masked secret echoed back by the client keeps the stored value
        if key in SECRET_KEYS and str(value or "").startswith("****"):
            continue
        if key in BOOL_KEYS:
            stored = "true" if _to_bool(value) else "false"
        else:
            stored = str(value).strip() if value is not None else None
            stored = stored or None

        row = db.query(Ayar).filter(Ayar.key == key).first()
        if row:
            row.value = stored
        else:
            db.add(Ayar(key=key, value=stored))

    db.commit()
    logger.info("Settings updated: %s", ", ".join(sorted(updates)))
    return load_app_settings(db)
