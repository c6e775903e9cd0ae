from sqlalchemy import Column, String, ForeignKey
from delphi_api.db.session import Base

class TaskSensor(Base):
    __tablename__ = "task_sensors"

    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    sensor_id = Column(String(36), ForeignKey("sensors.id", ondelete="CASCADE"), primary_key=True)


class TaskDomain(Base):
    __tablename__ = "task_domains"

    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    domain_id = Column(String(36), ForeignKey("domains.id", ondelete="CASCADE"), primary_key=True)
