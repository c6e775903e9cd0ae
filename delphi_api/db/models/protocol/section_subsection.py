from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from delphi_api.db.session import Base, generate_uuid


class SectionSubsection(Base):
    __tablename__ = "section_subsections"
    __table_args__ = (
        UniqueConstraint("section_id", "subsection_id", name="uq_section_subsection"),
        UniqueConstraint("section_id", "order_index", name="uq_section_subsection_order"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    section_id = Column(String(36), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    subsection_id = Column(String(36), ForeignKey("subsections.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)

    section = relationship("Section", back_populates="subsection_memberships")
    subsection = relationship("Subsection")
    sensors = relationship("Sensor", secondary="section_subsection_sensors", viewonly=True, order_by="Sensor.name")


class SectionSubsectionSensor(Base):
    __tablename__ = "section_subsection_sensors"

    section_subsection_id = Column(
        String(36), ForeignKey("section_subsections.id", ondelete="CASCADE"), primary_key=True)
    sensor_id = Column(String(36), ForeignKey("sensors.id", ondelete="CASCADE"), primary_key=True)
