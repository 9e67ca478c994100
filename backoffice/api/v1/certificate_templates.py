from typing import Optional
import logging
import os
import shutil
import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core import security
from backoffice.core.config import settings
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.certificates import (
    Certificate,
    CertificateTemplate,
    CustomFont,
    TemplateFolder,
)
from backoffice.schemas.certificates import (
    BackgroundUrl,
    CustomFontResponse,
    DuplicateToFolder,
    TemplateCreate,
    TemplateFolderCreate,
    TemplateFolderResponse,
    TemplateResponse,
    TemplateUpdate,
)
from backoffice.services.templates import detach_template

logger = logging.getLogger(__name__)

router = APIRouter()

FONT_EXTENSIONS = ["ttf", "otf", "woff", "woff2"]
BACKGROUND_EXTENSIONS = ["jpg", "jpeg", "png", "webp", "svg"]
MAX_BACKGROUND_BYTES = 5 * 1024 * 1024


def get_template_or_404(db: Session, template_id: uuid.UUID) -> CertificateTemplate:
    template = (
        db.query(CertificateTemplate).filter(CertificateTemplate.id == template_id).first()
    )
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


def check_folder(db: Session, folder_id: Optional[uuid.UUID]) -> None:
    if folder_id and not db.query(TemplateFolder).filter(TemplateFolder.id == folder_id).first():
        raise HTTPException(status_code=404, detail="Folder not found")


def copy_template(source: CertificateTemplate, name: str, folder_id) -> CertificateTemplate:
    return CertificateTemplate(
        name=name,
        description=source.description,
        template_config=dict(source.template_config or {}),
        folder_id=folder_id,
        background_image_url=source.background_image_url,
        background_image_type=source.background_image_type,
        preview_image_url=source.preview_image_url,
    )


def remove_uploaded_background(template: CertificateTemplate) -> None:
    if template.background_image_type != "upload" or not template.background_image_url:
        return
    path = os.path.join(
        settings.UPLOAD_DIR, "backgrounds", os.path.basename(template.background_image_url)
    )
    if os.path.exists(path):
        os.remove(path)


# --- Folders ---


@router.get("/folders")
def list_folders(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.view_page")),
):
    folders = db.query(TemplateFolder).order_by(TemplateFolder.name).all()
    return {
        "success": True,
        "folders": [TemplateFolderResponse.model_validate(f) for f in folders],
    }


@router.post("/folders", status_code=status.HTTP_201_CREATED)
def create_folder(
    folder_in: TemplateFolderCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.create")),
):
    if not folder_in.name or not folder_in.name.strip():
        raise HTTPException(status_code=400, detail="Folder name is required")
    check_folder(db, folder_in.parent_id)
    folder = TemplateFolder(name=folder_in.name.strip(), parent_id=folder_in.parent_id)
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return {"success": True, "folder": TemplateFolderResponse.model_validate(folder)}


@router.delete("/folders/{folder_id}")
def delete_folder(
    folder_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.delete")),
):
    folder = db.query(TemplateFolder).filter(TemplateFolder.id == folder_id).first()
    if not folder:
        raise HTTPException(status_code=404, detail="Folder not found")

    templates = (
        db.query(CertificateTemplate).filter(CertificateTemplate.folder_id == folder_id).count()
    )
    children = db.query(TemplateFolder).filter(TemplateFolder.parent_id == folder_id).count()
    if templates or children:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Folder is not empty",
                "template_count": templates,
                "folder_count": children,
            },
        )
    db.delete(folder)
    db.commit()
    return {"success": True, "message": "Folder deleted"}


# --- Custom fonts ---


@router.get("/custom-fonts")
def list_custom_fonts(
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.view_page")),
):
    fonts = db.query(CustomFont).order_by(CustomFont.name).all()
    return {"success": True, "fonts": [CustomFontResponse.model_validate(f) for f in fonts]}


@router.post("/custom-fonts/upload", status_code=status.HTTP_201_CREATED)
def upload_custom_font(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    font_family: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.create")),
):
    if not security.validate_file_extension(file.filename, FONT_EXTENSIONS):
        raise HTTPException(
            status_code=400,
            detail="Only font files are allowed (.ttf, .otf, .woff, .woff2)",
        )

    stem, ext = os.path.splitext(file.filename)
    filename = security.generate_secure_filename(file.filename)
    font_dir = os.path.join(settings.UPLOAD_DIR, "fonts")
    os.makedirs(font_dir, exist_ok=True)
    with open(os.path.join(font_dir, filename), "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    font = CustomFont(
        name=name or stem,
        font_family=font_family or name or stem,
        file_url=f"/uploads/fonts/{filename}",
        file_format=ext.lstrip(".").lower(),
    )
    db.add(font)
    db.commit()
    db.refresh(font)
    return {"success": True, "font": CustomFontResponse.model_validate(font)}


@router.delete("/custom-fonts/{font_id}")
def delete_custom_font(
    font_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.delete")),
):
    font = db.query(CustomFont).filter(CustomFont.id == font_id).first()
    if not font:
        raise HTTPException(status_code=404, detail="Font not found")

    path = os.path.join(settings.UPLOAD_DIR, "fonts", os.path.basename(font.file_url))
    if os.path.exists(path):
        os.remove(path)
    db.delete(font)
    db.commit()
    return {"success": True, "message": "Font deleted"}


# --- Templates ---


@router.get("/")
def list_templates(
    folder_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.view_page")),
):
    query = db.query(CertificateTemplate)
    if folder_id:
        query = query.filter(CertificateTemplate.folder_id == folder_id)
    templates = query.order_by(CertificateTemplate.created_at.desc()).all()
    return {
        "success": True,
        "templates": [TemplateResponse.model_validate(t) for t in templates],
    }


@router.get("/{template_id}")
def get_template(
    template_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.view_page")),
):
    template = get_template_or_404(db, template_id)
    return {"success": True, "template": TemplateResponse.model_validate(template)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_template(
    template_in: TemplateCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.create")),
):
    if not template_in.name or template_in.template_config is None:
        raise HTTPException(status_code=400, detail="name and template_config are required")
    if not isinstance(template_in.template_config, dict):
        raise HTTPException(status_code=400, detail="template_config must be a JSON object")
    check_folder(db, template_in.folder_id)

    template = CertificateTemplate(
        name=template_in.name,
        description=template_in.description,
        template_config=template_in.template_config,
        folder_id=template_in.folder_id,
        background_image_url=template_in.background_image_url,
        background_image_type="url" if template_in.background_image_url else None,
        preview_image_url=template_in.preview_image_url,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return {"success": True, "template": TemplateResponse.model_validate(template)}


@router.put("/{template_id}")
def update_template(
    template_id: uuid.UUID,
    template_in: TemplateUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.update")),
):
    template = get_template_or_404(db, template_id)
    data = template_in.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "name" in data and not data["name"]:
        raise HTTPException(status_code=400, detail="name cannot be empty")
    if "template_config" in data and not isinstance(data["template_config"], dict):
        raise HTTPException(status_code=400, detail="template_config must be a JSON object")
    if "folder_id" in data:
        check_folder(db, data["folder_id"])

    for key, value in data.items():
        setattr(template, key, value)
    db.commit()
    db.refresh(template)
    return {"success": True, "template": TemplateResponse.model_validate(template)}


@router.delete("/{template_id}")
def delete_template(
    template_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.delete")),
):
    template = get_template_or_404(db, template_id)

    usage_count = db.query(Certificate).filter(Certificate.template_id == template_id).count()
    if usage_count:
        raise HTTPException(
            status_code=409,
            detail={
                "error": "This template is used by existing certificates and cannot be deleted",
                "usage_count": usage_count,
            },
        )

    try:
        unlinked = detach_template(db, template.id)
        db.delete(template)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete template: {str(e)}")

    logger.info("Template %s deleted (%d formation links removed)", template_id, unlinked)
    return {"success": True, "message": "Template deleted"}


@router.post("/{template_id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_template(
    template_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.create")),
):
    source = get_template_or_404(db, template_id)
    copy = copy_template(source, f"{source.name} (Copie)", source.folder_id)
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return {"success": True, "template": TemplateResponse.model_validate(copy)}


@router.post("/{template_id}/duplicate-to-folder", status_code=status.HTTP_201_CREATED)
def duplicate_template_to_folder(
    template_id: uuid.UUID,
    payload: DuplicateToFolder,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.create")),
):
    if not payload.target_folder_id:
        raise HTTPException(status_code=400, detail="Target folder ID is required")
    source = get_template_or_404(db, template_id)
    check_folder(db, payload.target_folder_id)
    copy = copy_template(source, f"{source.name} - Copie", payload.target_folder_id)
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return {"success": True, "template": TemplateResponse.model_validate(copy)}


@router.post("/{template_id}/upload-background")
def upload_background(
    template_id: uuid.UUID,
    background: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.update")),
):
    if not security.validate_file_extension(background.filename, BACKGROUND_EXTENSIONS):
        raise HTTPException(
            status_code=400,
            detail="Only image files are allowed (.jpg, .jpeg, .png, .webp, .svg)",
        )
    template = get_template_or_404(db, template_id)
    content = background.file.read()
    if len(content) > MAX_BACKGROUND_BYTES:
        raise HTTPException(status_code=400, detail="File size exceeds 5 MB limit")

    filename = security.generate_secure_filename(background.filename)
    background_dir = os.path.join(settings.UPLOAD_DIR, "backgrounds")
    os.makedirs(background_dir, exist_ok=True)
    with open(os.path.join(background_dir, filename), "wb") as buffer:
        buffer.write(content)

    remove_uploaded_background(template)
    template.background_image_url = f"/uploads/backgrounds/{filename}"
    template.background_image_type = "upload"
    db.commit()
    db.refresh(template)
    return {
        "success": True,
        "template": TemplateResponse.model_validate(template),
        "background_url": template.background_image_url,
    }


@router.post("/{template_id}/background-url")
def set_background_url(
    template_id: uuid.UUID,
    payload: BackgroundUrl,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.update")),
):
    if not payload.url or not payload.url.strip():
        raise HTTPException(status_code=400, detail="url is required")
    template = get_template_or_404(db, template_id)
    template.background_image_url = payload.url.strip()
    template.background_image_type = "url"
    db.commit()
    db.refresh(template)
    return {"success": True, "template": TemplateResponse.model_validate(template)}


@router.delete("/{template_id}/background")
def delete_background(
    template_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.templates.update")),
):
    template = get_template_or_404(db, template_id)
    remove_uploaded_background(template)
    template.background_image_url = None
    template.background_image_type = None
    db.commit()
    db.refresh(template)
    return {"success": True, "template": TemplateResponse.model_validate(template)}
