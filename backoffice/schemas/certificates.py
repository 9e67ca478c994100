from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import date, datetime
from uuid import UUID


class TemplateFolderCreate(BaseModel):
    name: Optional[str] = None
    parent_id: Optional[UUID] = None


class TemplateFolderResponse(BaseModel):
    id: UUID
    name: str
    parent_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TemplateCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    template_config: Any = None
    folder_id: Optional[UUID] = None
    background_image_url: Optional[str] = None
    preview_image_url: Optional[str] = None


class TemplateUpdate(TemplateCreate):
    pass


class TemplateResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    template_config: dict
    folder_id: Optional[UUID] = None
    folder_name: Optional[str] = None
    background_image_url: Optional[str] = None
    background_image_type: Optional[str] = None
    preview_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BackgroundUrl(BaseModel):
    url: Optional[str] = None


class CustomFontResponse(BaseModel):
    id: UUID
    name: str
    font_family: str
    file_url: str
    file_format: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CertificateGenerate(BaseModel):
    student_id: Optional[UUID] = None
    formation_id: Optional[UUID] = None
    template_id: Optional[UUID] = None
    completion_date: Optional[date] = None
    grade: Optional[str] = None
    metadata: Optional[dict] = None


class CertificateResponse(BaseModel):
    id: UUID
    student_id: UUID
    formation_id: UUID
    template_id: UUID
    certificate_number: str
    completion_date: date
    grade: Optional[str] = None
    metadata: Optional[dict] = Field(default=None, validation_alias="metadata_")
    issued_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CertificateMetadata(BaseModel):
    metadata: Optional[dict] = None


class DuplicateToFolder(BaseModel):
    target_folder_id: Optional[UUID] = Field(default=None, alias="targetFolderId")

    class Config:
        populate_by_name = True
