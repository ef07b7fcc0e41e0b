from __future__ import annotations

from typing import Any, Iterable, Mapping

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import FloatField, IntegerField, SelectField, StringField
from wtforms.validators import AnyOf, DataRequired, Length, NumberRange, Optional, Regexp

from .planning.models import FORM_STATUSES, SESSION_TYPE_ACTIVE, SESSION_TYPE_INACTIVE


TIME_PATTERN = r"^\d{2}:\d{2}(:\d{2})?$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

# Order matters: dependent selections are written after what they depend on.
SESSION_FIELD_ORDER = (
    "school_year_id",
    "period",
    "class_id",
    "date_day",
    "hour_start",
    "hour_end",
    "teacher_id",
    "class_room_id",
    "planning_session_type_id",
    "course_id",
    "status",
)


def as_formdata(payload: Mapping[str, Any] | None) -> MultiDict:
    """Turn a JSON body into form data, dropping empty values."""
    return MultiDict(
        {
            key: str(value)
            for key, value in (payload or {}).items()
            if value is not None and value != "" and not isinstance(value, (dict, list))
        }
    )


class SessionPayloadForm(FlaskForm):
    class Meta:
        csrf = False

    sent_fields: set[str]

    school_year_id = IntegerField("School year", validators=[Optional(), NumberRange(min=1)])
    period = StringField("Period", validators=[Optional(), Length(max=64)])
    class_id = IntegerField("Class", validators=[Optional(), NumberRange(min=1)])
    date_day = StringField("Date", validators=[Optional(), Regexp(DATE_PATTERN, message="Invalid date")])
    hour_start = StringField("Start", validators=[Optional(), Regexp(TIME_PATTERN, message="Invalid time")])
    hour_end = StringField("End", validators=[Optional(), Regexp(TIME_PATTERN, message="Invalid time")])
    teacher_id = IntegerField("Teacher", validators=[Optional(), NumberRange(min=1)])
    class_room_id = IntegerField("Classroom", validators=[Optional(), NumberRange(min=1)])
    planning_session_type_id = IntegerField("Session type", validators=[Optional(), NumberRange(min=1)])
    course_id = IntegerField("Course", validators=[Optional(), NumberRange(min=1)])
    status = IntegerField("Status", validators=[Optional(), AnyOf(FORM_STATUSES)])

    def __init__(self, *args: Any, sent_fields: Iterable[str] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.sent_fields = set(sent_fields)

    def present_values(self) -> list[tuple[str, Any]]:
        """Fields the caller actually sent, in cascade order."""
        return [(name, self[name].data) for name in SESSION_FIELD_ORDER if name in self.sent_fields]

    def field_errors(self) -> dict[str, str]:
        return {name: messages[0] for name, messages in self.errors.items() if messages}


class SessionTypeForm(FlaskForm):
    class Meta:
        csrf = False

    title = StringField("Title", validators=[DataRequired(message="Title is required"), Length(max=120)])
    type = StringField("Type", validators=[DataRequired(message="Type is required"), Length(max=32)])
    coefficient = FloatField("Coefficient", validators=[Optional(), NumberRange(min=0)])
    status = SelectField(
        "Status",
        choices=[(SESSION_TYPE_ACTIVE, "Active"), (SESSION_TYPE_INACTIVE, "Inactive")],
        default=SESSION_TYPE_ACTIVE,
        validators=[Optional()],
    )

    def field_errors(self) -> dict[str, str]:
        return {name: messages[0] for name, messages in self.errors.items() if messages}

    def values(self) -> dict[str, Any]:
        return {
            "title": (self.title.data or "").strip(),
            "type": (self.type.data or "").strip(),
            "coefficient": self.coefficient.data,
            "status": self.status.data or SESSION_TYPE_ACTIVE,
        }


def session_payload_form(payload: Mapping[str, Any] | None) -> SessionPayloadForm:
    formdata = as_formdata(payload)
    return SessionPayloadForm(formdata=formdata, sent_fields=formdata.keys())


def session_type_form(payload: Mapping[str, Any] | None) -> SessionTypeForm:
    return SessionTypeForm(formdata=as_formdata(payload))
