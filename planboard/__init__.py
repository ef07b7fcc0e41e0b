import click
from datetime import date
from typing import Any, Optional
from flask import Flask, current_app
from flask.cli import with_appcontext

from config import Config, _normalise_prefix

from .extensions import REGISTRY_KEY, init_api
from .planning.calendar import MONTH_VIEW, WEEK_VIEW
from .planning.models import parse_iso_date
from .planning.registry import ScreenRegistry
from .planning.screen import PlanningScreen
from .planning.timeslots import TIME_OPTIONS, end_time_options
from .remote.client import PlanningApiClient


def build_backend(app: Flask) -> Any:
    backend = app.config.get("PLANNING_BACKEND")
    if backend is not None:
        return backend
    return PlanningApiClient(
        app.config["PLANNING_API_URL"],
        token=app.config.get("PLANNING_API_TOKEN"),
        timeout=app.config.get("PLANNING_API_TIMEOUT", 10.0),
    )


def _screen_factory(app: Flask):
    backend = build_backend(app)
    limit = app.config.get("PLANNING_PAGE_LIMIT", 50)

    def factory(today: Optional[date] = None, view_mode: str = WEEK_VIEW) -> PlanningScreen:
        screen = PlanningScreen(backend, today=today, limit=limit, view_mode=view_mode)
        screen.load_catalogs()
        return screen

    return factory


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(__name__, static_folder=None)
    app.config.from_object(config_class)

    url_prefix = _normalise_prefix(app.config.get("URL_PREFIX", ""))
    app.config["URL_PREFIX"] = url_prefix

    app.extensions[REGISTRY_KEY] = ScreenRegistry(_screen_factory(app))
    init_api(app)
    app.logger.info(
        "Planning backend: %s (prefix %r).",
        app.config.get("PLANNING_API_URL"),
        url_prefix or "/",
    )

    @app.cli.command("planning-week")
    @click.option("--date", "day", default=None, help="Any day of the week (YYYY-MM-DD).")
    @with_appcontext
    def planning_week(day: Optional[str]) -> None:
        """Print the Monday-Friday planning around a day."""
        _print_view(_cli_screen(day, WEEK_VIEW))

    @app.cli.command("planning-month")
    @click.option("--date", "day", default=None, help="Any day of the month (YYYY-MM-DD).")
    @with_appcontext
    def planning_month(day: Optional[str]) -> None:
        """Print the month grid around a day."""
        _print_view(_cli_screen(day, MONTH_VIEW))

    @app.cli.command("time-options")
    @click.option("--start", default=None, help="Only list end times after this start.")
    def time_options(start: Optional[str]) -> None:
        """List the selectable quarter-hour times."""
        options = end_time_options(start) if start else list(TIME_OPTIONS)
        click.echo(" ".join(options))

    return app


def _cli_screen(day: Optional[str], view_mode: str) -> PlanningScreen:
    reference = parse_iso_date(day) if day else date.today()
    if reference is None:
        raise click.BadParameter(f"invalid date: {day}", param_hint="--date")
    screen = PlanningScreen(
        build_backend(current_app),
        today=reference,
        limit=current_app.config.get("PLANNING_PAGE_LIMIT", 50),
        view_mode=view_mode,
    )
    screen.refresh()
    if screen.load_error:
        raise click.ClickException(screen.load_error)
    return screen


def _print_view(screen: PlanningScreen) -> None:
    view = screen.current_view()
    click.echo(view["label"])
    for bucket in view["buckets"]:
        if not bucket["entries"] and view["view"] == MONTH_VIEW:
            continue
        click.echo(f"  {bucket['date']} {bucket['label']}")
        for entry in bucket["entries"]:
            click.echo(
                f"    {entry['time_range']}  {entry['session_type_title']}  "
                f"{entry['teacher_name']}  [{entry['status_label']}]"
            )
    meta = screen.query.pagination()
    click.echo(f"{len(screen.sessions)} session(s), page {meta['page']}/{meta['totalPages']}")
