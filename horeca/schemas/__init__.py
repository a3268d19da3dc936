"""Pydantic request/response schemas."""

from horeca.schemas.common import CamelModel, DateRange
from horeca.schemas.haccp import (
    EmployeeStatusCreate, EmployeeStatusRead, HealthRecordCreate, HealthRecordRead,
)
from horeca.schemas.equipment import (
    EquipmentCreate, EquipmentUpdate, EquipmentRead,
    TemperatureRecordCreate, TemperatureRecordRead,
)
from horeca.schemas.org import (
    SignupRequest, LoginRequest, SwitchPointRequest,
    EmployeeCreate, EmployeeRead, PointCreate, PointUpdate,
    UserCreate, UserRoleUpdate, RoleCreate, RoleUpdate,
    PageAccessEntry, PageAccessUpdate,
    RoleUser, RoleRead, UserRead, PermissionsUpdate, PointRead,
)
from horeca.schemas.learning import (
    CourseCreate, CourseUpdate, CourseRead, LessonCreate, LessonUpdate, LessonRead,
    QuizCreate, QuestionCreate, AnswerCreate, AssignRequest, AttemptRequest,
    AnswerRead, QuestionRead, QuizRead, AssigneeRead,
)
from horeca.schemas.files import (
    AccessEntry, FileMetadata, FileUpdate, FolderCreate, FolderUpdate, FileRead, FolderRead,
)
from horeca.schemas.billing import CheckoutRequest, SubscriptionRead

__all__ = [
    "CamelModel", "DateRange",
    "EmployeeStatusCreate", "EmployeeStatusRead", "HealthRecordCreate", "HealthRecordRead",
    "EquipmentCreate", "EquipmentUpdate", "EquipmentRead",
    "TemperatureRecordCreate", "TemperatureRecordRead",
    "SignupRequest", "LoginRequest", "SwitchPointRequest",
    "EmployeeCreate", "EmployeeRead", "PointCreate", "PointUpdate",
    "UserCreate", "UserRoleUpdate", "RoleCreate", "RoleUpdate",
    "PageAccessEntry", "PageAccessUpdate",
    "RoleUser", "RoleRead", "UserRead", "PermissionsUpdate", "PointRead",
    "CourseCreate", "CourseUpdate", "CourseRead", "LessonCreate", "LessonUpdate", "LessonRead",
    "QuizCreate", "QuestionCreate", "AnswerCreate", "AssignRequest", "AttemptRequest",
    "AnswerRead", "QuestionRead", "QuizRead", "AssigneeRead",
    "AccessEntry", "FileMetadata", "FileUpdate", "FolderCreate", "FolderUpdate", "FileRead", "FolderRead",
    "CheckoutRequest", "SubscriptionRead",
]
