import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="backoffice-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.core.database import get_db
from backoffice.core.security import create_access_token, get_password_hash
from backoffice.main import app
from backoffice.models import (
    Base,
    Employee,
    EmployeeManager,
    Permission,
    Profile,
    Role,
    RolePermission,
    Segment,
)
from backoffice.services.permissions import ADMIN_ROLE, sync_permissions

PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    sync_permissions(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_role(db):
    def _make_role(name, codes=()):
        role = Role(name=name, is_system_role=name == ADMIN_ROLE)
        db.add(role)
        db.flush()
        for permission in db.query(Permission).filter(Permission.code.in_(list(codes))):
            db.add(RolePermission(role_id=role.id, permission_id=permission.id))
        db.commit()
        return role

    return _make_role


@pytest.fixture
def make_profile(db):
    def _make_profile(username, role=None, full_name=None):
        profile = Profile(
            username=username,
            password_hash=PASSWORD_HASH,
            full_name=full_name or username.title(),
            role_id=role.id if role else None,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make_profile


def auth_headers(profile):
    return {"Authorization": f"Bearer {create_access_token(profile.id)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def admin(db, make_role, make_profile):
    return make_profile("admin", make_role(ADMIN_ROLE), full_name="Admin User")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def viewer(make_role, make_profile):
    role = make_role("viewer", ["formation.formations.view_page"])
    return make_profile("viewer", role, full_name="Read Only")


@pytest.fixture
def viewer_headers(viewer):
    return auth_headers(viewer)


@pytest.fixture
def segment(db):
    row = Segment(name="Casablanca")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def make_employee(db):
    counter = {"n": 0}

    def _make_employee(first_name="Sara", last_name="Alami", profile=None, **kwargs):
        counter["n"] += 1
        employee = Employee(
            employee_number=kwargs.pop("employee_number", f"EMP{counter['n']:03d}"),
            first_name=first_name,
            last_name=last_name,
            profile_id=profile.id if profile else None,
            **kwargs,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make_employee


@pytest.fixture
def assign_managers(db):
    def _assign(employee, *managers):
        for rank, manager in enumerate(managers):
            db.add(EmployeeManager(employee_id=employee.id, manager_id=manager.id, rank=rank))
        if managers:
            employee.manager_id = managers[0].id
        db.commit()

    return _assign
