from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import os

from backoffice.core.config import settings
from backoffice.core.errors import register_exception_handlers
from backoffice.core.logging import configure_logging
from backoffice.api.v1 import (
    auth_router,
    users_router,
    roles_router,
    permissions_router,
    formations_router,
    corps_router,
    students_router,
    sessions_router,
    certificate_templates_router,
    certificates_router,
    hr_employees_router,
    hr_settings_router,
    hr_attendance_router,
    hr_clocking_router,
    hr_leaves_router,
    hr_payroll_router,
    projects_router,
    actions_router,
    prospects_router,
    segments_router,
)

configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME, openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

# Certificate backgrounds and custom fonts
os.makedirs(os.path.join(settings.UPLOAD_DIR, "fonts"), exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

API = settings.API_V1_STR

app.include_router(auth_router, prefix=f"{API}/auth", tags=["Auth"])
app.include_router(users_router, prefix=f"{API}/users", tags=["Users"])
app.include_router(roles_router, prefix=f"{API}/roles", tags=["Roles"])
app.include_router(permissions_router, prefix=f"{API}/permissions", tags=["Permissions"])
app.include_router(corps_router, prefix=f"{API}/corps-formation", tags=["Formations"])
app.include_router(formations_router, prefix=f"{API}/formations", tags=["Formations"])
app.include_router(students_router, prefix=f"{API}/students", tags=["Students"])
app.include_router(
    sessions_router, prefix=f"{API}/sessions-formation", tags=["Sessions"]
)
app.include_router(
    certificate_templates_router,
    prefix=f"{API}/certificate-templates",
    tags=["Certificate Templates"],
)
app.include_router(certificates_router, prefix=f"{API}/certificates", tags=["Certificates"])
app.include_router(hr_employees_router, prefix=f"{API}/hr", tags=["HR Employees"])
app.include_router(hr_settings_router, prefix=f"{API}/hr/settings", tags=["HR Settings"])
app.include_router(
    hr_attendance_router, prefix=f"{API}/hr/attendance", tags=["HR Attendance"]
)
app.include_router(hr_clocking_router, prefix=f"{API}/hr/clocking", tags=["HR Clocking"])
app.include_router(hr_leaves_router, prefix=f"{API}/hr/leaves", tags=["HR Leaves"])
app.include_router(hr_payroll_router, prefix=f"{API}/hr/payroll", tags=["HR Payroll"])
app.include_router(projects_router, prefix=f"{API}/projects", tags=["Projects"])
app.include_router(actions_router, prefix=f"{API}/actions", tags=["Actions"])
app.include_router(prospects_router, prefix=f"{API}/prospects", tags=["Prospects"])
app.include_router(segments_router, prefix=f"{API}/segments", tags=["Segments"])


@app.get("/")
async def root():
    return {"message": "Welcome to the Back-Office API"}
