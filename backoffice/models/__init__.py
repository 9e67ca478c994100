from backoffice.core.database import Base
from backoffice.models.auth import Role, Permission, RolePermission, Profile, UserRole
from backoffice.models.prospects import Segment, Prospect, ProspectCallHistory
from backoffice.models.formations import (
    CorpsFormation,
    Formation,
    Student,
    SessionFormation,
    SessionEtudiant,
    StudentPayment,
)
from backoffice.models.certificates import (
    TemplateFolder,
    CertificateTemplate,
    CustomFont,
    FormationTemplate,
    Certificate,
)
from backoffice.models.hr import (
    Employee,
    EmployeeManager,
    Contract,
    EmployeeDocument,
    DisciplinaryAction,
    LeaveType,
    WorkSchedule,
    EmployeeSchedule,
    PublicHoliday,
    HRSetting,
)
from backoffice.models.attendance import AttendanceRecord, CorrectionRequest
from backoffice.models.leaves import LeaveRequest, LeaveBalance
from backoffice.models.payroll import PayrollPeriod, Payslip
from backoffice.models.projects import Project, ProjectAction
