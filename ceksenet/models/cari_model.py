# ceksenet/models/cari_model.py
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from ceksenet.utils.database import Base


class Cari(Base):
    __tablename__ = "cariler"

    id = Column(Integer, primary_key=True, index=True)
    ad_soyad = Column(String(200), nullable=False, index=True)
    tip = Column(String(20), nullable=False, default="musteri")  # musteri / tedarikci

    telefon = Column(String(30), nullable=True)
    email = Column(String(200), nullable=True)
    adres = Column(Text, nullable=True)
    vergi_no = Column(String(20), nullable=True)
    notlar = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())
