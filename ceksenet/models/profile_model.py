# ceksenet/models/profile_model.py
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from ceksenet.utils.database import Base


class Profile(Base):
    """Display data for users of the external identity provider."""

    __tablename__ = "profiles"

    # id issued by the identity provider (uuid string)
    id = Column(String(36), primary_key=True)
    username = Column(String(100), unique=True, nullable=False)
    ad_soyad = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, default="normal")  # admin / normal

    created_at = Column(DateTime, server_default=func.now())
    last_login = Column(DateTime, nullable=True)
