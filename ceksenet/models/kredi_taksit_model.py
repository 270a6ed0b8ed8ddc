from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Numeric, Text, ForeignKey, UniqueConstraint
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ceksenet.utils.database import Base


class KrediTaksit(Base):
    __tablename__ = "kredi_taksitler"
    __table_args__ = (
        UniqueConstraint("kredi_id", "taksit_no", name="uq_kredi_taksit_no"),
    )

    id = Column(Integer, primary_key=True, index=True)
    kredi_id = Column(Integer, ForeignKey("krediler.id", ondelete="CASCADE"), nullable=False, index=True)

    taksit_no = Column(Integer, nullable=False)
    vade_tarihi = Column(Date, nullable=False, index=True)
    tutar = Column(Numeric(14, 2), nullable=False)

    # set together on payment, cleared together on reversal
    odeme_tarihi = Column(Date, nullable=True)
    odenen_tutar = Column(Numeric(14, 2), nullable=True)

    durum = Column(String(20), nullable=False, default="bekliyor")  # bekliyor / odendi / gecikti
    notlar = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    kredi = relationship("Kredi", back_populates="taksitler")
