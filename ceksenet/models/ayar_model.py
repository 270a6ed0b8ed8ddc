from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from ceksenet.utils.database import Base


class Ayar(Base):
    __tablename__ = "ayarlar"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)

    updated_on = Column(DateTime, server_default=func.now(), onupdate=func.now())
