# ceksenet/schemas/banka_schema.py

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class BankaCreate(BaseModel):
    ad: str = Field(min_length=1, max_length=100)
    aktif: bool = True

    @field_validator("ad", mode="before")
    def strip_name(cls, v):
        return str(v).strip() if v is not None else v


class BankaUpdate(BaseModel):
    ad: Optional[str] = Field(default=None, min_length=1, max_length=100)
    aktif: Optional[bool] = None

    class Config:
        extra = "forbid"

    @field_validator("ad", mode="before")
    def strip_name(cls, v):
        return str(v).strip() if v is not None else v


class BankaOut(BaseModel):
    id: int
    ad: str
    aktif: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BankaDetayOut(BankaOut):
    evrak_kullanim: int = 0
    kredi_kullanim: int = 0
