from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from backoffice.core.database import Base


class TemplateFolder(Base):
    __tablename__ = "template_folders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    parent_id = Column(
        UUID(as_uuid=True), ForeignKey("template_folders.id"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CertificateTemplate(Base):
    __tablename__ = "certificate_templates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text)
    template_config = Column(JSON, nullable=False)
    folder_id = Column(
        UUID(as_uuid=True), ForeignKey("template_folders.id"), nullable=True
    )
    background_image_url = Column(String)
    background_image_type = Column(String)  # url | upload
    preview_image_url = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    folder = relationship("TemplateFolder")

    @property
    def folder_name(self):
        return self.folder.name if self.folder else None


class CustomFont(Base):
    __tablename__ = "custom_fonts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    font_family = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    file_format = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class FormationTemplate(Base):
    __tablename__ = "formation_templates"
    __table_args__ = (UniqueConstraint("formation_id", "template_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    formation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("formations.id", ondelete="CASCADE"),
        nullable=False,
    )
    template_id = Column(
        UUID(as_uuid=True),
        ForeignKey("certificate_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    document_type = Column(String, default="certificat", nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    formation = relationship(
        "backoffice.models.formations.Formation", back_populates="template_links"
    )
    template = relationship("CertificateTemplate")

    @property
    def template_name(self):
        return self.template.name if self.template else None


class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (UniqueConstraint("student_id", "formation_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id"), nullable=False)
    formation_id = Column(UUID(as_uuid=True), ForeignKey("formations.id"), nullable=False)
    template_id = Column(
        UUID(as_uuid=True), ForeignKey("certificate_templates.id"), nullable=False
    )
    certificate_number = Column(String, unique=True, nullable=False, index=True)
    completion_date = Column(Date, nullable=False)
    grade = Column(String)
    metadata_ = Column("metadata", JSON, default=dict)
    issued_at = Column(DateTime(timezone=True), server_default=func.now())

    student = relationship("backoffice.models.formations.Student")
    formation = relationship("backoffice.models.formations.Formation")
    template = relationship("CertificateTemplate")
