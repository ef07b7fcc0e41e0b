import unittest
from datetime import date

from planboard.planning.query import STATUS_ALL, PlanningQueryState, derive_meta
from planboard.remote.pagination import to_paginated


class QueryParamsTestCase(unittest.TestCase):
    def test_status_all_and_unset_are_identical(self) -> None:
        with_all = PlanningQueryState()
        with_all.set_filter("status", STATUS_ALL)
        with_all.set_filter("class_id", 5)
        unset = PlanningQueryState()
        unset.set_filter("status", None)
        unset.set_filter("class_id", "5")
        self.assertEqual(with_all.to_params(), unset.to_params())
        self.assertNotIn("status", unset.to_params())
        self.assertEqual(unset.to_params()["class_id"], 5)

    def test_explicit_status_is_sent(self) -> None:
        state = PlanningQueryState()
        state.set_filter("status", "0")
        self.assertEqual(state.to_params()["status"], 0)

    def test_empty_ids_are_omitted(self) -> None:
        state = PlanningQueryState()
        state.set_filter("teacher_id", "")
        state.set_filter("course_id", 0)
        self.assertEqual(state.to_params(), {"page": 1, "limit": 50, "order": "ASC"})

    def test_unknown_filter(self) -> None:
        with self.assertRaises(KeyError):
            PlanningQueryState().set_filter("colour", "red")


class PaginationStateTestCase(unittest.TestCase):
    def test_filter_change_resets_page(self) -> None:
        state = PlanningQueryState()
        state.set_page(4)
        state.set_filter("teacher_id", 2)
        self.assertEqual(state.page, 1)

    def test_limit_change_resets_page(self) -> None:
        state = PlanningQueryState()
        state.set_page(3)
        state.set_limit(10)
        self.assertEqual((state.page, state.limit), (1, 10))

    def test_page_change_keeps_filters(self) -> None:
        state = PlanningQueryState()
        state.set_filter("course_id", 9)
        state.set_limit(20)
        state.set_page(2)
        self.assertEqual(state.to_params(), {"page": 2, "limit": 20, "order": "ASC", "course_id": 9})

    def test_request_key_tracks_anchor_and_params(self) -> None:
        state = PlanningQueryState()
        key = state.request_key(date(2024, 5, 13))
        self.assertEqual(key, state.request_key(date(2024, 5, 13)))
        self.assertNotEqual(key, state.request_key(date(2024, 5, 20)))
        state.set_filter("class_id", 1)
        self.assertNotEqual(key, state.request_key(date(2024, 5, 13)))


class DeriveMetaTestCase(unittest.TestCase):
    def test_missing_fields_are_derived(self) -> None:
        meta = derive_meta({"page": 2, "limit": 10, "total": 25}, [])
        self.assertEqual(meta.total_pages, 3)
        self.assertTrue(meta.has_next)
        self.assertTrue(meta.has_previous)

    def test_total_pages_never_below_one(self) -> None:
        meta = derive_meta({"page": 1, "limit": 10, "total": 0}, [])
        self.assertEqual(meta.total_pages, 1)
        self.assertFalse(meta.has_next)
        self.assertFalse(meta.has_previous)

    def test_backend_flags_win(self) -> None:
        meta = derive_meta({"page": 1, "limit": 10, "total": 5, "hasNext": True, "lastPage": 4}, [])
        self.assertEqual(meta.total_pages, 4)
        self.assertTrue(meta.has_next)


class ToPaginatedTestCase(unittest.TestCase):
    def test_bare_list_is_a_single_page(self) -> None:
        page = to_paginated([{"id": 1}, {"id": 2}])
        self.assertEqual(len(page.data), 2)
        self.assertEqual(page.meta.as_dict()["totalPages"], 1)
        self.assertFalse(page.meta.has_next)

    def test_wrapped_response(self) -> None:
        page = to_paginated({"data": [{"id": 1}], "meta": {"page": 1, "limit": 1, "total": 3}})
        self.assertEqual(page.meta.total_pages, 3)
        self.assertTrue(page.meta.has_next)

    def test_garbage_is_an_empty_page(self) -> None:
        page = to_paginated(None)
        self.assertEqual(page.data, [])
        self.assertEqual(page.meta.total_pages, 1)


if __name__ == "__main__":
    unittest.main()
