from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from delphi_api.db.session import Base, generate_uuid


class ProtocolTask(Base):
    """A task placed in a protocol, with per-protocol overrides."""
    __tablename__ = "protocol_tasks"
    __table_args__ = (
        UniqueConstraint("protocol_id", "task_id", name="uq_protocol_task"),
        UniqueConstraint("protocol_id", "order_index", name="uq_protocol_task_order"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    protocol_id = Column(String(36), ForeignKey("protocols.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)

    importance_rating = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    override_title = Column(String(255), nullable=True)
    override_time = Column(Integer, nullable=True)
    override_description = Column(Text, nullable=True)
    override_additional_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    protocol = relationship("Protocol", back_populates="task_memberships")
    task = relationship("Task")
    sensors = relationship("Sensor", secondary="protocol_task_sensors", viewonly=True, order_by="Sensor.name")
    domains = relationship("Domain", secondary="protocol_task_domains", viewonly=True, order_by="Domain.name")


class ProtocolTaskSensor(Base):
    __tablename__ = "protocol_task_sensors"

    protocol_task_id = Column(String(36), ForeignKey("protocol_tasks.id", ondelete="CASCADE"), primary_key=True)
    sensor_id = Column(String(36), ForeignKey("sensors.id", ondelete="CASCADE"), primary_key=True)


class ProtocolTaskDomain(Base):
    __tablename__ = "protocol_task_domains"

    protocol_task_id = Column(String(36), ForeignKey("protocol_tasks.id", ondelete="CASCADE"), primary_key=True)
    domain_id = Column(String(36), ForeignKey("domains.id", ondelete="CASCADE"), primary_key=True)
