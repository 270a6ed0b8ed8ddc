# ceksenet/models/evrak_hareketi_model.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ceksenet.utils.database import Base


class EvrakHareketi(Base):
    """Append-only audit row, one per status change (creation included)."""

    __tablename__ = "evrak_hareketleri"

    id = Column(Integer, primary_key=True, index=True)
    evrak_id = Column(
        Integer,
        ForeignKey("evraklar.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    eski_durum = Column(String(20), nullable=True)  # NULL for the creation event
    yeni_durum = Column(String(20), nullable=False)
    aciklama = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    created_by = Column(String(36), nullable=True)

    evrak = relationship("Evrak", back_populates="hareketler")
