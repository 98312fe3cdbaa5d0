from unidesk.models import SessionStatusEnum, AttendanceStatusEnum, enum_values
from unidesk.services.status_mapping import map_session_status, is_valid_status


class TestStatusMapping:

    def test_students_see_friendly_session_labels(self):
        assert map_session_status("scheduled", "student") == "upcoming"
        assert map_session_status("cancelled", "student") == "missed"

    def test_staff_see_stored_values(self):
        assert map_session_status("scheduled", "admin") == "scheduled"
        assert map_session_status("cancelled", "lecturer") == "cancelled"

    def test_unknown_values_pass_through(self):
        assert map_session_status("archived", "student") == "archived"
        assert map_session_status("scheduled", "visitor") == "scheduled"

    def test_validity(self):
        assert is_valid_status("late", "attendance")
        assert not is_valid_status("late", "session")
        assert not is_valid_status("anything", "unknown_entity")

    def test_valid_statuses_match_stored_enums(self):
        """Route validation relies on these lists agreeing with the column enums."""
        assert all(is_valid_status(s, "session") for s in enum_values(SessionStatusEnum))
        assert all(is_valid_status(s, "attendance") for s in enum_values(AttendanceStatusEnum))
