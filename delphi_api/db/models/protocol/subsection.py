from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Float, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from delphi_api.db.session import Base, generate_uuid

SUBSECTION_TYPES = ("subsection", "break")


class Subsection(Base):
    __tablename__ = "subsections"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    time = Column(Integer, nullable=False)               # seconds
    rating = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    additional_notes = Column(Text, nullable=True)
    enabled = Column(Boolean, default=True)
    type = Column(String(16), default="subsection")
    is_public = Column(Boolean, default=False)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    sensors = relationship("Sensor", secondary="subsection_sensors", viewonly=True, order_by="Sensor.name")


class SubsectionSensor(Base):
    __tablename__ = "subsection_sensors"

    subsection_id = Column(String(36), ForeignKey("subsections.id", ondelete="CASCADE"), primary_key=True)
    sensor_id = Column(String(36), ForeignKey("sensors.id", ondelete="CASCADE"), primary_key=True)
