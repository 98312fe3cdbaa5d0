from .User import User, Role, TokenBlocklist
from .AuditLog import AuditLog
from .Academic import AcademicYear, Semester, Department, Program, Section
from .StudentProfile import StudentProfile
from .Course import Course, CourseAssignment, LecturerAssignment
from .SectionEnrollment import SectionEnrollment
from .Attendance import AttendanceSession, AttendanceRecord
from .Material import Material
from .CommunityPost import CommunityPost
from .base import (
    SoftDeleteMixin, RoleEnum, EnrollmentStatusEnum, AcademicStatusEnum, SessionStatusEnum,
    SessionTypeEnum, AttendanceStatusEnum, AttendanceMethodEnum, MaterialTypeEnum,
    MaterialCategoryEnum, PostTypeEnum, PostStatusEnum, enum_values,
)
