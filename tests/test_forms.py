import unittest

from config import TestConfig
from planboard import create_app
from planboard.forms import session_payload_form


class SessionPayloadFormTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app(TestConfig)
        self.context = self.app.test_request_context()
        self.context.push()
        self.addCleanup(self.context.pop)

    def test_present_values_follow_cascade_order(self) -> None:
        form = session_payload_form({"class_id": 100, "period": "10", "school_year_id": 1, "teacher_id": None})
        self.assertTrue(form.validate())
        self.assertEqual(form.present_values(), [("school_year_id", 1), ("period", "10"), ("class_id", 100)])

    def test_sent_fields_are_per_form(self) -> None:
        first = session_payload_form({"teacher_id": 5})
        second = session_payload_form({"course_id": 4})
        self.assertEqual(first.sent_fields, {"teacher_id"})
        self.assertEqual(second.sent_fields, {"course_id"})
        self.assertIsNot(first.sent_fields, second.sent_fields)

    def test_invalid_time_is_reported(self) -> None:
        form = session_payload_form({"hour_start": "1pm"})
        self.assertFalse(form.validate())
        self.assertEqual(form.field_errors(), {"hour_start": "Invalid time"})


if __name__ == "__main__":
    unittest.main()
