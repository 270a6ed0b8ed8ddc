# ceksenet/models/kredi_model.py

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Numeric,
    Text,
    ForeignKey,
    Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ceksenet.utils.database import Base


class Kredi(Base):
    __tablename__ = "krediler"

    __table_args__ = (
        Index("ix_krediler_durum", "durum"),
    )

    id = Column(Integer, primary_key=True, index=True)
    banka_id = Column(Integer, ForeignKey("bankalar.id", ondelete="SET NULL"), nullable=True)
    kredi_turu = Column(String(20), nullable=False)

    anapara = Column(Numeric(14, 2), nullable=False)
    faiz_orani = Column(Numeric(7, 4), nullable=False)  # annual %
    vade_ay = Column(Integer, nullable=False)
    baslangic_tarihi = Column(Date, nullable=False)

    aylik_taksit = Column(Numeric(14, 2), nullable=False)
    toplam_odeme = Column(Numeric(14, 2), nullable=True)
    para_birimi = Column(String(3), nullable=False, server_default="TRY")

    notlar = Column(Text, nullable=True)

    # aktif / kapandi / erken_kapandi
    durum = Column(String(20), nullable=False, server_default="aktif")

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)
    created_by = Column(String(36), nullable=True)

    banka = relationship("Banka", lazy="joined")

    taksitler = relationship(
        "KrediTaksit",
        back_populates="kredi",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="KrediTaksit.taksit_no",
    )
