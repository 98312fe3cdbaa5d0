from datetime import datetime
from unidesk.extensions import db
import enum

class SoftDeleteMixin:
    deleted = db.Column(db.Boolean, default=False, nullable=False)
    deleted_at = db.Column(db.DateTime)

    def soft_delete(self):
        self.deleted = True
        self.deleted_at = datetime.utcnow()

    def restore(self):
        self.deleted = False
        self.deleted_at = None


class RoleEnum(enum.Enum):
    admin = "admin"
    lecturer = "lecturer"
    student = "student"

class EnrollmentStatusEnum(enum.Enum):
    active = "active"
    dropped = "dropped"
    completed = "completed"

class AcademicStatusEnum(enum.Enum):
    active = "active"
    graduated = "graduated"
    suspended = "suspended"
    withdrawn = "withdrawn"
    on_leave = "on_leave"

class SessionStatusEnum(enum.Enum):
    draft = "draft"
    scheduled = "scheduled"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"

class SessionTypeEnum(enum.Enum):
    lecture = "lecture"
    lab = "lab"
    tutorial = "tutorial"
    exam = "exam"

class AttendanceStatusEnum(enum.Enum):
    present = "present"
    late = "late"
    absent = "absent"

class AttendanceMethodEnum(enum.Enum):
    qr_code = "qr_code"
    facial_recognition = "facial_recognition"
    manual = "manual"
    auto = "auto"

class MaterialTypeEnum(enum.Enum):
    document = "document"
    video = "video"
    image = "image"
    link = "link"
    presentation = "presentation"

class MaterialCategoryEnum(enum.Enum):
    lecture = "lecture"
    assignment = "assignment"
    reading = "reading"
    reference = "reference"
    lab = "lab"

class PostTypeEnum(enum.Enum):
    announcement = "announcement"
    discussion = "discussion"
    suggestion = "suggestion"
    poll = "poll"
    survey = "survey"

class PostStatusEnum(enum.Enum):
    draft = "draft"
    published = "published"
    archived = "archived"
    removed = "removed"


def enum_values(enum_class):
    return [e.value for e in enum_class]
