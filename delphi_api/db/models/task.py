from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Float, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from delphi_api.db.session import Base, generate_uuid

TASK_TYPES = ("task", "break")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    time = Column(Integer, nullable=True)                # minutes
    rating = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    additional_notes = Column(Text, nullable=True)
    enabled = Column(Boolean, default=True, index=True)
    type = Column(String(16), default="task", index=True)
    is_custom = Column(Boolean, default=False)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Global defaults, copied into protocol_task_* when the task joins a protocol
    sensors = relationship("Sensor", secondary="task_sensors", viewonly=True, order_by="Sensor.name")
    domains = relationship("Domain", secondary="task_domains", viewonly=True, order_by="Domain.name")
