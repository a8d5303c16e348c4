from enum import Enum

from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin, generate_uuid


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class AgeGroup(str, Enum):
    TODDLER = "toddler"        # 1-5 years
    CHILD = "child"            # 5-17 years
    ADULT = "adult"            # 17-59 years
    ELDERLY = "elderly"        # 60+ years
    PREGNANT_WOMAN = "pregnant_woman"


class Religion(str, Enum):
    ISLAM = "islam"
    PROTESTANT = "protestant"
    CATHOLIC = "catholic"
    HINDU = "hindu"
    BUDDHIST = "buddhist"
    CONFUCIAN = "confucian"
    OTHER = "other"


class Patient(Base, TimestampMixin):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # National identity number (NIK), 16 digits, unique when present
    nik = Column(String(16), unique=True, nullable=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    sex = Column(String(10), nullable=False)
    birthplace = Column(String(100), nullable=False)
    birth_date = Column(Date, nullable=False)

    address = Column(Text, nullable=False)
    rt = Column(String(5), nullable=True)
    rw = Column(String(5), nullable=True)
    village = Column(String(100), nullable=True)     # kelurahan/desa
    district = Column(String(100), nullable=True)    # kecamatan
    regency = Column(String(100), nullable=True)     # kabupaten/kota
    province = Column(String(100), nullable=True)

    religion = Column(String(20), nullable=True)
    occupation = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)

    age_group = Column(String(20), nullable=False, index=True)
    gestational_weeks = Column(Integer, nullable=True)  # only for pregnant_woman

    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    creator = relationship("User")
    assessments = relationship(
        "MedicalAssessment",
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="MedicalAssessment.created_at.desc()",
    )
    environments = relationship(
        "EnvironmentAssessment",
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="EnvironmentAssessment.created_at.desc()",
    )
    needs = relationship(
        "NeedsIdentification",
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="NeedsIdentification.created_at.desc()",
    )
