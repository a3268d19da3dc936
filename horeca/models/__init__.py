"""SQLAlchemy ORM models.

Every table lives in one database; tenant and point isolation is done with
tenant_id / point_id columns rather than separate files.
"""

from horeca.models.base import Base
from horeca.models.tenant import Tenant, Point
from horeca.models.user import User, UserSession
from horeca.models.role import Role, UserRole, RolePageAccess
from horeca.models.haccp import EmployeeStatus, HealthRecord
from horeca.models.equipment import Equipment, TemperatureRecord
from horeca.models.learning import (
    Course, Lesson, Quiz, QuizQuestion, QuizAnswer, Assignment, Progress, Attempt,
)
from horeca.models.files import Folder, StoredFile, FileAccess
from horeca.models.subscription import Subscription

__all__ = [
    "Base",
    # Organization
    "Tenant", "Point", "User", "UserSession",
    # Access control
    "Role", "UserRole", "RolePageAccess",
    # Journals
    "EmployeeStatus", "HealthRecord", "Equipment", "TemperatureRecord",
    # Learning
    "Course", "Lesson", "Quiz", "QuizQuestion", "QuizAnswer",
    "Assignment", "Progress", "Attempt",
    # Files + billing
    "Folder", "StoredFile", "FileAccess", "Subscription",
]
