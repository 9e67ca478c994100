from typing import Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backoffice.api.deps import PermissionChecker
from backoffice.core.database import get_db
from backoffice.models.auth import Profile
from backoffice.models.formations import SessionEtudiant, Student
from backoffice.schemas.formations import (
    EnrollmentResponse,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

router = APIRouter()


@router.get("/check-cin/{cin}")
def check_cin(
    cin: str,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.students.view_page")),
):
    student = db.query(Student).filter(Student.cin == cin.strip().upper()).first()
    return {
        "success": True,
        "exists": student is not None,
        "student": StudentResponse.model_validate(student) if student else None,
    }


@router.get("/")
def list_students(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.students.view_page")),
):
    query = db.query(Student)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Student.first_name.ilike(pattern),
                Student.last_name.ilike(pattern),
                Student.cin.ilike(pattern),
                Student.email.ilike(pattern),
                Student.phone.ilike(pattern),
            )
        )
    students = query.order_by(Student.last_name, Student.first_name).all()
    return {"success": True, "students": [StudentResponse.model_validate(s) for s in students]}


@router.get("/{student_id}")
def get_student(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.students.view_page")),
):
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    enrollments = (
        db.query(SessionEtudiant).filter(SessionEtudiant.student_id == student.id).all()
    )
    return {
        "success": True,
        "student": StudentResponse.model_validate(student),
        "enrollments": [EnrollmentResponse.model_validate(e) for e in enrollments],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_student(
    student_in: StudentCreate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.students.create")),
):
    if not student_in.first_name.strip() or not student_in.last_name.strip():
        raise HTTPException(status_code=400, detail="First and last name are required")
    data = student_in.model_dump()
    if data.get("cin"):
        data["cin"] = data["cin"].strip().upper()
        if db.query(Student).filter(Student.cin == data["cin"]).first():
            raise HTTPException(
                status_code=409, detail="A student with this CIN already exists"
            )
    student = Student(**data)
    db.add(student)
    db.commit()
    db.refresh(student)
    return {"success": True, "student": StudentResponse.model_validate(student)}


@router.put("/{student_id}")
def update_student(
    student_id: uuid.UUID,
    student_in: StudentUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(PermissionChecker("formation.students.update")),
):
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    data = student_in.model_dump(exclude_unset=True)
    if data.get("cin"):
        data["cin"] = data["cin"].strip().upper()
        duplicate = (
            db.query(Student)
            .filter(Student.cin == data["cin"], Student.id != student.id)
            .first()
        )
        if duplicate:
            raise HTTPException(
                status_code=409, detail="A student with this CIN already exists"
            )
    for key, value in data.items():
        setattr(student, key, value)
    db.commit()
    db.refresh(student)
    return {"success": True, "student": StudentResponse.model_validate(student)}
