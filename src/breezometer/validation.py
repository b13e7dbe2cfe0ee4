# request validation for the three operations
# pydantic checks each field on its own, cross_check() covers the rules that span fields
# nothing here touches the network

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Type, TypeVar, get_args

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .errors import ValidationError

Language = Literal["en", "he"]

ResultField = Literal[
    "breezometer_aqi",
    "breezometer_description",
    "country_aqi_prefix",
    "country_color",
    "breezometer_color",
    "country_name",
    "country_aqi",
    "country_description",
    "dominant_pollutant_canonical_name",
    "dominant_pollutant_description",
    "dominant_pollutant_text",
    "datetime",
    "pollutants",
    "data_valid",
    "random_recommendations",
]

LANGUAGES = get_args(Language)
RESULT_FIELDS = get_args(ResultField)
MAX_FIELDS = 15

# tolerate small clock skew between us and the provider
NOW_BUFFER = timedelta(seconds=1)

R = TypeVar("R", bound="LocationRequest")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(v: Optional[datetime]) -> Optional[datetime]:
    # naive timestamps are read as UTC
    if v is None:
        return v
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)

def reject_bool(v: Any) -> Any:
    # pydantic would read True/False as 1/0
    if isinstance(v, bool):
        raise ValueError("must be a number, not a boolean")
    return v

def _problem(name: str, message: str, value: Any) -> Dict[str, Any]:
    # same shape as pydantic's error dicts so callers read one format
    return {"type": "value_error", "loc": (name,), "msg": message, "input": value}


class LocationRequest(BaseModel):
    """Parameters every operation accepts: a coordinate plus response shaping."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False, description="WGS84 latitude")
    lon: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False, description="WGS84 longitude")
    lang: Optional[Language] = None
    result_fields: Optional[List[ResultField]] = Field(
        default=None,
        min_length=1,
        max_length=MAX_FIELDS,
        validation_alias=AliasChoices("fields", "result_fields"),
        serialization_alias="fields",
    )

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def coordinates_are_not_bools(cls, v: Any) -> Any:
        return reject_bool(v)

    @field_validator("lang", mode="before")
    @classmethod
    def blank_lang_is_unset(cls, v: Any) -> Any:
        return None if v == "" else v

    @field_validator("result_fields", mode="before")
    @classmethod
    def single_field_is_a_list(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        if isinstance(v, (tuple, set, frozenset)):
            return list(v)
        return v

    @field_validator("result_fields")
    @classmethod
    def fields_are_unique(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is not None and len(set(v)) != len(v):
            dupes = sorted({f for f in v if v.count(f) > 1})
            raise ValueError(f"fields must be unique, repeated: {', '.join(dupes)}")
        return v

    def cross_check(self, now: datetime) -> List[Dict[str, Any]]:
        return []


class WindowRequest(LocationRequest):
    start_datetime: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("start_date", "startDate", "start_datetime"),
        serialization_alias="start_datetime",
    )
    end_datetime: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("end_date", "endDate", "end_datetime"),
        serialization_alias="end_datetime",
    )

    @field_validator("start_datetime", "end_datetime")
    @classmethod
    def window_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @property
    def has_window(self) -> bool:
        return self.start_datetime is not None or self.end_datetime is not None

    def _window_problems(self) -> List[Dict[str, Any]]:
        problems = []
        if (self.start_datetime is None) != (self.end_datetime is None):
            missing = "end_datetime" if self.end_datetime is None else "start_datetime"
            problems.append(_problem(missing, "start and end of a time range must be given together", None))
        elif self.start_datetime is not None and self.end_datetime < self.start_datetime:
            problems.append(_problem("end_datetime", "end of the time range precedes its start",
                                     self.end_datetime))
        return problems


class CurrentConditionsRequest(LocationRequest):
    pass


class HistoricalConditionsRequest(WindowRequest):
    date_time: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("date_time", "dateTime", "datetime"),
        serialization_alias="datetime",
    )
    interval: Optional[int] = Field(default=None, ge=1, le=24, description="hours between results")

    @field_validator("date_time")
    @classmethod
    def date_time_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @field_validator("interval", mode="before")
    @classmethod
    def interval_is_not_a_bool(cls, v: Any) -> Any:
        return reject_bool(v)

    def cross_check(self, now: datetime) -> List[Dict[str, Any]]:
        problems = self._window_problems()
        if self.date_time is not None and self.has_window:
            problems.append(_problem("datetime", "datetime cannot be combined with a time range",
                                     self.date_time))
        elif self.date_time is None and not self.has_window:
            problems.append(_problem("datetime", "one of datetime or a start/end time range is required", None))

        if self.interval is not None and (self.start_datetime is None or self.end_datetime is None):
            problems.append(_problem("interval", "interval requires both start and end of a time range",
                                     self.interval))

        latest = now - NOW_BUFFER
        if self.date_time is not None and self.date_time > latest:
            problems.append(_problem("datetime", "historical datetime cannot be in the future", self.date_time))
        if self.end_datetime is not None and self.end_datetime > latest:
            problems.append(_problem("end_datetime", "historical time range cannot end in the future",
                                     self.end_datetime))
        return problems


class ForecastRequest(WindowRequest):
    hours: Optional[int] = Field(default=None, ge=1, le=24, description="hourly forecasts from now")

    @field_validator("hours", mode="before")
    @classmethod
    def hours_is_not_a_bool(cls, v: Any) -> Any:
        return reject_bool(v)

    def cross_check(self, now: datetime) -> List[Dict[str, Any]]:
        problems = self._window_problems()
        if self.hours is not None and self.has_window:
            problems.append(_problem("hours", "hours cannot be combined with a time range", self.hours))
        elif self.hours is None and not self.has_window:
            problems.append(_problem("hours", "one of hours or a start/end time range is required", None))

        earliest = now - NOW_BUFFER
        if self.start_datetime is not None and self.start_datetime < earliest:
            problems.append(_problem("start_datetime", "forecast time range cannot start in the past",
                                     self.start_datetime))
        return problems


def _describe(errors: List[Dict[str, Any]]) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc") or ()) or "parameters"
        parts.append(f"{loc}: {err.get('msg')}")
    return "Invalid Breezometer request. " + "; ".join(parts)

def validate_params(request_cls: Type[R], params: Optional[Mapping[str, Any]],
                    now: Optional[datetime] = None) -> R:
    # single entry point: returns a validated request or raises ValidationError
    if not isinstance(params, Mapping):
        problem = _problem("parameters", f"must be a mapping (got {type(params).__name__})", params)
        problem["loc"] = ()
        raise ValidationError(_describe([problem]), [problem])

    try:
        request = request_cls.model_validate(dict(params))
    except pydantic.ValidationError as exc:
        errors = exc.errors(include_url=False)
        raise ValidationError(_describe(errors), errors) from exc

    problems = request.cross_check(now or utc_now())
    if problems:
        raise ValidationError(_describe(problems), problems)
    return request
