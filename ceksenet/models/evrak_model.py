# ceksenet/models/evrak_model.py

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
    CheckConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ceksenet.models.enums import EvrakDurum, EvrakTipi
from ceksenet.utils.database import Base


def _in_list(column, enum_cls):
    values = ", ".join(f"'{e.value}'" for e in enum_cls)
    return f"{column} IN ({values})"


class Evrak(Base):
    __tablename__ = "evraklar"

    __table_args__ = (
        Index("ix_evraklar_durum", "durum"),
        Index("ix_evraklar_vade", "vade_tarihi"),
        CheckConstraint("tutar > 0", name="ck_evraklar_tutar_pozitif"),
        CheckConstraint(_in_list("durum", EvrakDurum), name="ck_evraklar_durum"),
        CheckConstraint(_in_list("evrak_tipi", EvrakTipi), name="ck_evraklar_evrak_tipi"),
    )

    id = Column(Integer, primary_key=True, index=True)
    evrak_tipi = Column(String(10), nullable=False)  # cek / senet
    evrak_no = Column(String(50), unique=True, nullable=False)

    tutar = Column(Numeric(14, 2), nullable=False)
    para_birimi = Column(String(3), nullable=False, server_default="TRY")
    doviz_kuru = Column(Numeric(12, 4), nullable=True)

    evrak_tarihi = Column(Date, nullable=True)
    vade_tarihi = Column(Date, nullable=False)

    banka_id = Column(Integer, ForeignKey("bankalar.id", ondelete="SET NULL"), nullable=True)
    # free text when the bank is not in the bankalar table
    banka_adi = Column(String(100), nullable=True)
    kesideci = Column(String(200), nullable=True)
    cari_id = Column(Integer, ForeignKey("cariler.id", ondelete="SET NULL"), nullable=True, index=True)

    notlar = Column(Text, nullable=True)

    # portfoy / bankada / ciro / tahsil / karsiliksiz
    durum = Column(String(20), nullable=False, server_default="portfoy")

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)
    created_by = Column(String(36), nullable=True)

    cari = relationship("Cari", lazy="joined")
    banka = relationship("Banka", lazy="joined")

    hareketler = relationship(
        "EvrakHareketi",
        back_populates="evrak",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="EvrakHareketi.id",
    )
