from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from backoffice.core.database import Base


class ProjectStatus(str, enum.Enum):
    planning = "planning"
    in_progress = "in_progress"
    completed = "completed"
    archived = "archived"


class ProjectPriority(str, enum.Enum):
    normale = "normale"
    haute = "haute"
    urgente = "urgente"


class ActionStatus(str, enum.Enum):
    a_faire = "a_faire"
    en_cours = "en_cours"
    termine = "termine"


class Project(Base):
    __tablename__ = "projects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text)
    status = Column(String, default=ProjectStatus.planning.value, nullable=False)
    priority = Column(String, default=ProjectPriority.normale.value, nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)
    budget = Column(Numeric(12, 2, asdecimal=False))
    manager_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    segment_id = Column(UUID(as_uuid=True), ForeignKey("segments.id"), nullable=True)
    city = Column(String)
    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    actions = relationship("ProjectAction", back_populates="project")
    manager = relationship(
        "backoffice.models.auth.Profile", foreign_keys=[manager_id]
    )

    @property
    def manager_name(self):
        return self.manager.full_name if self.manager else None


class ProjectAction(Base):
    __tablename__ = "project_actions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    description = Column(Text, nullable=False)
    description_detail = Column(Text)
    pilote_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    assigned_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    date_assignment = Column(Date)
    deadline = Column(Date)
    status = Column(String, default=ActionStatus.a_faire.value, nullable=False)
    commentaire = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="actions")
    pilote = relationship("backoffice.models.auth.Profile", foreign_keys=[pilote_id])

    @property
    def pilote_name(self):
        return self.pilote.full_name if self.pilote else None

    @property
    def project_name(self):
        return self.project.name if self.project else None
