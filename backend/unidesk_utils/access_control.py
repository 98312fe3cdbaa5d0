from unidesk.models import LecturerAssignment

ELEVATED_ROLES = {"admin"}


def get_assigned_course_ids(user):
    """Course ids a lecturer teaches; empty for anyone else."""
    if not user or user.role_name != "lecturer":
        return set()
    rows = LecturerAssignment.query.with_entities(LecturerAssignment.course_id).filter_by(lecturer_id=user.id).all()
    return {row.course_id for row in rows}


def ensure_course_access(user, course_id):
    """
    - Admins can manage every course.
    - Lecturers are restricted to courses they are assigned to.
    - Raises PermissionError for anyone else.
    """
    if not user:
        raise ValueError("No user provided")

    if user.role_name in ELEVATED_ROLES:
        return

    if user.role_name == "lecturer" and int(course_id) in get_assigned_course_ids(user):
        return

    raise PermissionError("Access denied to this course")


def ensure_session_access(user, session):
    if not user:
        raise ValueError("No user provided")

    if user.role_name in ELEVATED_ROLES:
        return

    if user.role_name == "lecturer" and (
        session.lecturer_id == user.id or session.course_id in get_assigned_course_ids(user)
    ):
        return

    raise PermissionError("Access denied to this session")


def ensure_self_or_staff(user, student_id):
    """Students may only read their own records; staff may read anyone's."""
    if not user:
        raise ValueError("No user provided")

    if user.role_name == "student" and int(student_id) != user.id:
        raise PermissionError("Students can only access their own records")
