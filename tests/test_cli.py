import unittest

from fakes import FakeBackend, session_payload

from config import TestConfig
from planboard import create_app


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        backend = FakeBackend([session_payload(planningSessionType={"title": "Lecture", "type": "CM"})])

        class FakeBackendConfig(TestConfig):
            PLANNING_BACKEND = backend

        self.backend = backend
        self.runner = create_app(FakeBackendConfig).test_cli_runner()

    def test_time_options(self) -> None:
        result = self.runner.invoke(args=["time-options", "--start", "23:15"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip(), "23:30 23:45 00:00")

    def test_planning_week(self) -> None:
        result = self.runner.invoke(args=["planning-week", "--date", "2024-05-15"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("13 May – 17 May 2024", result.output)
        self.assertIn("08:00 - 10:00  Lecture", result.output)

    def test_planning_month_reports_backend_errors(self) -> None:
        self.backend.fail_list = "Service unavailable"
        result = self.runner.invoke(args=["planning-month", "--date", "2024-06-01"])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Service unavailable", result.output)

    def test_invalid_date(self) -> None:
        result = self.runner.invoke(args=["planning-week", "--date", "soon"])
        self.assertEqual(result.exit_code, 2)


if __name__ == "__main__":
    unittest.main()
