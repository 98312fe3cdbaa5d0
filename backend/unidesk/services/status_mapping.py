SESSION_STATUSES = ("draft", "scheduled", "active", "completed", "cancelled")
ATTENDANCE_STATUSES = ("present", "late", "absent")

STATUS_MAPPING = {
    "admin": {
        "session": {"scheduled": "scheduled", "active": "active", "completed": "completed", "cancelled": "cancelled"},
    },
    "lecturer": {
        "session": {"scheduled": "scheduled", "active": "active", "completed": "completed", "cancelled": "cancelled"},
    },
    "student": {
        "session": {"scheduled": "upcoming", "active": "active", "completed": "completed", "cancelled": "missed"},
    },
}

VALID_STATUSES = {
    "session": SESSION_STATUSES,
    "attendance": ATTENDANCE_STATUSES,
}


def map_session_status(status, role):
    return STATUS_MAPPING.get(role, {}).get("session", {}).get(status, status)


def is_valid_status(status, entity_type):
    return status in VALID_STATUSES.get(entity_type, ())
