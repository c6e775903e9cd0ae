from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from delphi_api.db.session import Base, generate_uuid


class Protocol(Base):
    __tablename__ = "protocols"
    __table_args__ = (
        UniqueConstraint("created_by", "name", name="uq_protocol_name_per_user"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_template = Column(Boolean, default=False, index=True)

    template_protocol_id = Column(String(36), ForeignKey("protocols.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    creator = relationship("User", back_populates="protocols")
    task_memberships = relationship(
        "ProtocolTask", back_populates="protocol", cascade="all, delete",
        passive_deletes=True, order_by="ProtocolTask.order_index")
    section_memberships = relationship(
        "ProtocolSection", back_populates="protocol", cascade="all, delete",
        passive_deletes=True, order_by="ProtocolSection.order_index")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_template": self.is_template,
            "template_protocol_id": self.template_protocol_id,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
