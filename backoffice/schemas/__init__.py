from backoffice.schemas.auth import (
    Login,
    ProfileResponse,
    UserCreate,
    UserUpdate,
    PermissionResponse,
    RoleCreate,
    RoleResponse,
    RoleDetail,
)
from backoffice.schemas.formations import (
    CorpsFormationResponse,
    FormationResponse,
    StudentResponse,
    SessionResponse,
    EnrollmentResponse,
    PaymentResponse,
)
from backoffice.schemas.certificates import (
    TemplateResponse,
    CertificateResponse,
)
from backoffice.schemas.hr import (
    EmployeeResponse,
    ContractResponse,
    LeaveTypeResponse,
    ScheduleResponse,
    HolidayResponse,
)
from backoffice.schemas.attendance import AttendanceResponse, CorrectionResponse
from backoffice.schemas.leaves import LeaveRequestResponse, LeaveBalanceResponse
from backoffice.schemas.payroll import PeriodResponse, PayslipResponse
from backoffice.schemas.projects import ProjectResponse, ActionResponse
from backoffice.schemas.prospects import ProspectResponse, CallResponse
