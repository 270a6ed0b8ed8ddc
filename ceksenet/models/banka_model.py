# ceksenet/models/banka_model.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from ceksenet.utils.database import Base


class Banka(Base):
    __tablename__ = "bankalar"

    id = Column(Integer, primary_key=True, index=True)
    ad = Column(String(100), unique=True, nullable=False)
    aktif = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now())
