from sqlalchemy import Boolean, Integer, String, Text, Enum, Date, Time
import enum
from unidesk.models import (
    AcademicYear, Semester, Department, Program, Section, Course, User, Role,
)


def _select_options(name):
    if name == "academic_year_id":
        return [{"label": y.year_name, "value": y.id}
                for y in AcademicYear.query.order_by(AcademicYear.start_date.desc()).all()]
    if name == "semester_id":
        return [{"label": s.semester_name, "value": s.id, "academic_year_id": s.academic_year_id}
                for s in Semester.query.order_by(Semester.start_date).all()]
    if name in ("department_id",):
        return [{"label": d.department_name, "value": d.id}
                for d in Department.query.order_by(Department.department_name).all()]
    if name == "program_id":
        return [{"label": f"{p.program_code} - {p.program_name}", "value": p.id}
                for p in Program.query.order_by(Program.program_code).all()]
    if name == "section_id":
        return [{"label": s.section_code, "value": s.id, "program_id": s.program_id}
                for s in Section.query.order_by(Section.section_code).all()]
    if name == "course_id":
        return [{"label": f"{c.course_code} - {c.course_name}", "value": c.id}
                for c in Course.query.filter_by(deleted=False).order_by(Course.course_code).all()]
    if name in ("lecturer_id", "head_id"):
        lecturers = User.query.join(Role).filter(Role.name == "lecturer", User.deleted == False)
        return [{"label": u.full_name, "value": u.id} for u in lecturers.order_by(User.full_name).all()]
    return None


def generate_schema_from_model(model, model_name, current_user=None, choices=None):
    """
    Describes a model's editable columns for a generic form renderer.

    ``choices`` maps plain string columns to their allowed values, for
    columns stored as strings but validated against an enum.
    """
    exclude_fields = {"id", "created_at", "updated_at", "deleted", "deleted_at", "password_hash"}
    choices = choices or {}
    schema = []

    for column in model.__table__.columns:
        name = column.name
        if name in exclude_fields:
            continue

        field_schema = {
            "name": name,
            "label": name.replace("_", " ").title(),
            "required": not column.nullable and column.default is None,
        }

        if name in choices:
            field_schema["type"] = "select"
            field_schema["options"] = [{"label": c.replace("_", " ").title(), "value": c} for c in choices[name]]

        elif isinstance(column.type, Enum):
            enum_class = column.type.enum_class
            field_schema["type"] = "select"
            if enum_class and issubclass(enum_class, enum.Enum):
                field_schema["options"] = [
                    {"label": e.value.replace("_", " ").title(), "value": e.value}
                    for e in enum_class
                ]
            else:
                field_schema["options"] = column.type.enums

        elif isinstance(column.type, Integer) and name.endswith("_id"):
            options = _select_options(name)
            if options is not None:
                field_schema["type"] = "select"
                field_schema["options"] = options
            else:
                field_schema["type"] = "number"

        elif isinstance(column.type, Integer):
            field_schema["type"] = "number"

        elif isinstance(column.type, Boolean):
            field_schema["type"] = "checkbox"

        elif isinstance(column.type, Date):
            field_schema["type"] = "date"

        elif isinstance(column.type, Time):
            field_schema["type"] = "time"

        elif isinstance(column.type, Text):
            field_schema["type"] = "textarea"

        elif isinstance(column.type, String):
            if "url" in name:
                field_schema["type"] = "url"
            elif "email" in name:
                field_schema["type"] = "email"
            else:
                field_schema["type"] = "text"

        else:
            field_schema["type"] = "text"

        schema.append(field_schema)

    return {"model": model_name, "fields": schema}
