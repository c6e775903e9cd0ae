from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from delphi_api.db.session import Base, generate_uuid


class ProtocolSection(Base):
    __tablename__ = "protocol_sections"
    __table_args__ = (
        UniqueConstraint("protocol_id", "section_id", name="uq_protocol_section"),
        UniqueConstraint("protocol_id", "order_index", name="uq_protocol_section_order"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    protocol_id = Column(String(36), ForeignKey("protocols.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(String(36), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)

    protocol = relationship("Protocol", back_populates="section_memberships")
    section = relationship("Section")
