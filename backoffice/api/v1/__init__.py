from backoffice.api.v1.auth import router as auth_router
from backoffice.api.v1.users import router as users_router
from backoffice.api.v1.roles import router as roles_router
from backoffice.api.v1.permissions import router as permissions_router
from backoffice.api.v1.formations import router as formations_router
from backoffice.api.v1.formations import corps_router
from backoffice.api.v1.students import router as students_router
from backoffice.api.v1.sessions import router as sessions_router
from backoffice.api.v1.certificate_templates import router as certificate_templates_router
from backoffice.api.v1.certificates import router as certificates_router
from backoffice.api.v1.hr_employees import router as hr_employees_router
from backoffice.api.v1.hr_settings import router as hr_settings_router
from backoffice.api.v1.hr_attendance import router as hr_attendance_router
from backoffice.api.v1.hr_clocking import router as hr_clocking_router
from backoffice.api.v1.hr_leaves import router as hr_leaves_router
from backoffice.api.v1.hr_payroll import router as hr_payroll_router
from backoffice.api.v1.projects import router as projects_router
from backoffice.api.v1.projects import actions_router
from backoffice.api.v1.prospects import router as prospects_router
from backoffice.api.v1.segments import router as segments_router

__all__ = [
    "auth_router",
    "users_router",
    "roles_router",
    "permissions_router",
    "formations_router",
    "corps_router",
    "students_router",
    "sessions_router",
    "certificate_templates_router",
    "certificates_router",
    "hr_employees_router",
    "hr_settings_router",
    "hr_attendance_router",
    "hr_clocking_router",
    "hr_leaves_router",
    "hr_payroll_router",
    "projects_router",
    "actions_router",
    "prospects_router",
    "segments_router",
]
