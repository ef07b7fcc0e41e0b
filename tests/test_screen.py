import unittest
from datetime import date, datetime

from fakes import FakeBackend, session_payload

from planboard.planning.calendar import MONTH_VIEW
from planboard.planning.errors import (
    ConflictError,
    DerivedFieldNotEditable,
    GenericRemoteError,
    NoSessionSelected,
    SubmissionInProgress,
    ValidationError,
)
from planboard.planning.models import Page, PaginationMeta
from planboard.planning.screen import (
    CREATED_MESSAGE,
    DELETED_MESSAGE,
    UPDATED_MESSAGE,
    PlanningScreen,
)

OVERLAP = "Session overlaps with an existing booking"


class PlanningScreenTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = FakeBackend([session_payload()])
        self.screen = PlanningScreen(self.backend, today=date(2024, 5, 15))
        self.screen.load_catalogs()
        self.screen.refresh()

    def fill_form(self, **overrides) -> None:
        values = {
            "school_year_id": 1,
            "period": "10",
            "class_id": 100,
            "date_day": "2024-05-16",
            "hour_start": "13:00",
            "hour_end": "15:00",
            "teacher_id": 5,
            "class_room_id": 3,
            "planning_session_type_id": 2,
            "course_id": 4,
        }
        values.update(overrides)
        for name, value in values.items():
            self.screen.write_field(name, value)


class RefreshTestCase(PlanningScreenTestCase):
    def test_initial_form_and_list(self) -> None:
        form = self.screen.cascade.form
        self.assertEqual((form.date_day, form.hour_start, form.hour_end), ("2024-05-13", "06:00", "07:00"))
        self.assertEqual([session.id for session in self.screen.sessions], [1])
        self.assertEqual(self.screen.query.meta.total, 1)

    def test_refresh_is_cached_per_request_key(self) -> None:
        self.screen.refresh()
        self.assertEqual(self.backend.call_names().count("list_sessions"), 1)
        self.screen.set_filter("teacher_id", 5)
        self.screen.refresh()
        self.assertEqual(self.backend.call_names().count("list_sessions"), 2)
        self.assertEqual(self.backend.calls[-1][1]["teacher_id"], 5)

    def test_superseded_response_is_ignored(self) -> None:
        stale_key = self.screen.current_key()
        self.screen.next()
        stale = Page(data=[session_payload(id=99)], meta=PaginationMeta())
        self.assertFalse(self.screen.apply_page(stale_key, stale))
        self.assertEqual([session.id for session in self.screen.sessions], [1])

    def test_load_failure_is_reported(self) -> None:
        self.backend.fail_list = "Service unavailable"
        self.screen.refresh(force=True)
        self.assertEqual(self.screen.load_error, "Service unavailable")
        self.assertEqual(len(self.screen.sessions), 1)


class ViewsTestCase(PlanningScreenTestCase):
    def test_week_view_renders_entries(self) -> None:
        view = self.screen.week_view(now=datetime(2024, 5, 15, 9, 0))
        self.assertEqual(view["label"], "13 May – 17 May 2024")
        wednesday = view["buckets"][2]
        self.assertTrue(wednesday["is_today"])
        entry = wednesday["entries"][0]
        self.assertEqual(entry["time_range"], "08:00 - 10:00")
        self.assertEqual(entry["tone"], "today")
        self.assertFalse(entry["conflict"])

    def test_month_view(self) -> None:
        self.screen.set_view_mode(MONTH_VIEW)
        view = self.screen.current_view(now=datetime(2024, 6, 1, 12, 0))
        self.assertEqual(view["view"], MONTH_VIEW)
        self.assertEqual(len(view["buckets"]), 42)
        self.assertEqual(view["label"], "May 2024")
        self.assertEqual(view["buckets"][16]["entries"][0]["tone"], "past")

    def test_navigation_clears_conflict(self) -> None:
        self.screen.conflicts.mark_conflict("2024-05-15", "08:00", "10:00")
        self.screen.set_view_mode(MONTH_VIEW)
        self.assertIsNotNone(self.screen.conflicts.slot)
        self.screen.next()
        self.assertIsNone(self.screen.conflicts.slot)


class SubmitTestCase(PlanningScreenTestCase):
    def test_validation_never_reaches_backend(self) -> None:
        outcome = self.screen.submit()
        self.assertIsInstance(outcome.error, ValidationError)
        self.assertEqual(outcome.error.errors["teacher_id"], "Teacher is required")
        self.assertNotIn("create_session", self.backend.call_names())
        self.assertEqual(self.screen.cascade.form.errors["class_id"], "Class is required")

    def test_create_success_resets_form(self) -> None:
        self.fill_form()
        outcome = self.screen.submit()
        self.assertTrue(outcome.ok)
        self.assertEqual(self.screen.alert.message, CREATED_MESSAGE)
        payload = dict(self.backend.calls)["create_session"]
        self.assertEqual(payload["specialization_id"], 7)
        self.assertEqual(payload["hour_start"], "13:00")
        self.assertEqual(self.screen.cascade.form.teacher_id, None)
        self.assertEqual(len(self.screen.sessions), 2)
        names = self.backend.call_names()
        last_refresh = max(index for index, name in enumerate(names) if name == "list_sessions")
        self.assertLess(names.index("create_session"), last_refresh)

    def test_overlap_marks_conflict_until_next_success(self) -> None:
        self.fill_form(date_day="2024-05-15", hour_start="08:00", hour_end="10:00")
        self.backend.fail_next = OVERLAP
        outcome = self.screen.submit()
        self.assertIsInstance(outcome.error, ConflictError)
        self.assertEqual(self.screen.alert.as_dict(), {"type": "error", "message": OVERLAP})

        view = self.screen.week_view(now=datetime(2024, 5, 1, 8, 0))
        entries = [entry for bucket in view["buckets"] for entry in bucket["entries"]]
        self.assertEqual([entry["conflict"] for entry in entries], [True])
        self.screen.set_view_mode(MONTH_VIEW)
        month = self.screen.month_view(now=datetime(2024, 5, 1, 8, 0))
        flagged = [entry["id"] for bucket in month["buckets"] for entry in bucket["entries"] if entry["conflict"]]
        self.assertEqual(flagged, [1])

        self.screen.select_entry(1)
        self.screen.write_field("hour_end", "11:00")
        outcome = self.screen.submit()
        self.assertTrue(outcome.ok)
        self.assertEqual(self.screen.alert.message, UPDATED_MESSAGE)
        self.assertIsNone(self.screen.conflicts.slot)
        self.assertFalse(any(self.screen.conflicts.is_conflicting(session) for session in self.screen.sessions))

    def test_generic_failure_does_not_mark_conflict(self) -> None:
        self.fill_form()
        self.backend.fail_next = "Teacher not available"
        outcome = self.screen.submit()
        self.assertIsInstance(outcome.error, GenericRemoteError)
        self.assertIsNone(self.screen.conflicts.slot)
        self.assertEqual(self.screen.alert.type, "error")
        self.assertFalse(self.screen.is_submitting)

    def test_second_submit_rejected_while_pending(self) -> None:
        self.fill_form()
        pending = self.screen.begin_submit()
        self.assertTrue(self.screen.is_submitting)
        with self.assertRaises(SubmissionInProgress):
            self.screen.submit()
        self.screen.next()
        outcome = self.screen.finish(pending, pending.send(self.backend))
        self.assertTrue(outcome.ok)
        self.assertFalse(self.screen.is_submitting)
        self.assertEqual(self.backend.call_names().count("create_session"), 1)

    def test_unexpected_failure_releases_pending_flag(self) -> None:
        self.fill_form()
        pending = self.screen.begin_submit()
        self.backend.create_session = None
        with self.assertRaises(TypeError):
            self.screen.run(pending)
        self.assertFalse(self.screen.is_submitting)

    def test_overlap_on_timestamped_session_is_highlighted(self) -> None:
        self.backend.sessions = [session_payload(date_day="2024-05-15T00:00:00.000Z")]
        self.screen.refresh(force=True)
        self.screen.select_entry(1)
        self.backend.fail_next = OVERLAP
        outcome = self.screen.submit()
        self.assertIsInstance(outcome.error, ConflictError)
        self.assertEqual(self.screen.conflicts.slot.date_day, "2024-05-15")
        view = self.screen.week_view(now=datetime(2024, 5, 1, 8, 0))
        flags = [entry["conflict"] for bucket in view["buckets"] for entry in bucket["entries"]]
        self.assertEqual(flags, [True])

    def test_update_keeps_selection(self) -> None:
        self.screen.select_entry(1)
        self.screen.write_field("teacher_id", 6)
        outcome = self.screen.submit()
        self.assertTrue(outcome.ok)
        self.assertEqual(self.backend.calls[-2][0], "update_session")
        self.assertEqual(self.screen.selected.teacher_id, 6)
        self.assertEqual(self.screen.cascade.form.teacher_id, 6)


class FormTestCase(PlanningScreenTestCase):
    def test_select_entry_hydrates_and_clears_state(self) -> None:
        self.screen.conflicts.mark_conflict("2024-05-15", "08:00", "10:00")
        self.screen.cascade.set_errors({"course_id": "Course is required"})
        self.screen.select_entry(1)
        snapshot = self.screen.form_snapshot()
        self.assertEqual(snapshot["mode"], "edit")
        self.assertEqual(snapshot["values"]["hour_start"], "08:00")
        self.assertEqual(snapshot["errors"], {})
        self.assertIsNone(snapshot["conflict"])
        self.assertEqual(snapshot["specialization_label"], "Computer Science")

    def test_period_label_uses_loaded_periods(self) -> None:
        self.screen.select_entry(1)
        view = self.screen.week_view(now=datetime(2024, 5, 15, 7, 0))
        entry = view["buckets"][2]["entries"][0]
        self.assertEqual(entry["period_label"], "Semester 1")
        self.assertEqual(entry["tone"], "future")
        self.assertTrue(entry["selected"])

    def test_select_unknown_entry(self) -> None:
        with self.assertRaises(NoSessionSelected):
            self.screen.select_entry(404)

    def test_specialization_is_read_only(self) -> None:
        with self.assertRaises(DerivedFieldNotEditable):
            self.screen.write_field("specialization_id", 7)

    def test_scoped_classes_and_periods(self) -> None:
        self.screen.write_field("school_year_id", 2)
        self.assertEqual([item["id"] for item in self.screen.catalogs["periods"]], [20])
        self.screen.write_field("period", "20")
        self.assertEqual(self.screen.options("form_classes"), [{"value": 102, "label": "INFO2-A"}])

    def test_reset_form(self) -> None:
        self.screen.select_entry(1)
        self.screen.reset_form()
        snapshot = self.screen.form_snapshot()
        self.assertEqual(snapshot["mode"], "create")
        self.assertEqual(snapshot["values"]["date_day"], "2024-05-13")

    def test_options(self) -> None:
        self.assertEqual(
            self.screen.options("teachers"),
            [{"value": 5, "label": "Ada Lovelace"}, {"value": 6, "label": "grace@example.com"}],
        )
        self.assertEqual(self.screen.options("session_types"), [{"value": 2, "label": "Lecture (CM)"}])
        with self.assertRaises(KeyError):
            self.screen.options("rooms")


class DeleteTestCase(PlanningScreenTestCase):
    def test_delete_requires_selection(self) -> None:
        with self.assertRaises(NoSessionSelected):
            self.screen.delete()

    def test_delete_success(self) -> None:
        self.screen.select_entry(1)
        outcome = self.screen.delete()
        self.assertTrue(outcome.ok)
        self.assertEqual(self.screen.sessions, [])
        self.assertIsNone(self.screen.selected)
        self.assertEqual(self.screen.alert.message, DELETED_MESSAGE)

    def test_delete_failure(self) -> None:
        self.screen.select_entry(1)
        self.backend.fail_next = "Cannot delete"
        outcome = self.screen.delete()
        self.assertFalse(outcome.ok)
        self.assertEqual(self.screen.alert.as_dict(), {"type": "error", "message": "Cannot delete"})
        self.assertIsNotNone(self.screen.selected)


class SessionTypeTestCase(PlanningScreenTestCase):
    def test_active_type_is_selected(self) -> None:
        created = self.screen.create_session_type({"title": "Workshop", "type": "TD", "coefficient": 1.0})
        self.assertEqual(self.screen.cascade.form.planning_session_type_id, created.id)
        self.assertIn({"value": created.id, "label": "Workshop (TD)"}, self.screen.options("session_types"))

    def test_inactive_type_is_not_selected(self) -> None:
        self.screen.create_session_type({"title": "Draft", "type": "TD", "status": "inactive"})
        self.assertIsNone(self.screen.cascade.form.planning_session_type_id)
        self.assertIn("Activate it", self.screen.alert.message)

    def test_failure(self) -> None:
        self.backend.fail_next = "Title already used"
        with self.assertRaises(GenericRemoteError):
            self.screen.create_session_type({"title": "Lecture", "type": "CM"})


if __name__ == "__main__":
    unittest.main()
