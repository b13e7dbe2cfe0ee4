# query normalization: what actually goes on the wire for a validated request

from datetime import datetime, timezone

from breezometer.query import build_query, ceil_second, floor_second, format_timestamp, redact
from breezometer.validation import (
    CurrentConditionsRequest,
    ForecastRequest,
    HistoricalConditionsRequest,
    validate_params,
)

NOW = datetime(2017, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
STAMP = datetime(2017, 2, 27, 8, 30, 15, 123456, tzinfo=timezone.utc)


def test_second_rounding():
    assert floor_second(STAMP) == datetime(2017, 2, 27, 8, 30, 15, tzinfo=timezone.utc)
    assert ceil_second(STAMP) == datetime(2017, 2, 27, 8, 30, 15, 999000, tzinfo=timezone.utc)

def test_timestamp_format():
    assert format_timestamp(ceil_second(STAMP)) == "2017-02-27T08:30:15.999Z"

def test_current_query_keeps_numbers_and_adds_key():
    req = validate_params(CurrentConditionsRequest, {"lat": "43.067475", "lon": -89.392808})
    assert build_query(req, "foo") == {"lat": 43.067475, "lon": -89.392808, "key": "foo"}

def test_fields_are_comma_joined_and_lang_kept():
    req = validate_params(CurrentConditionsRequest, {
        "lat": 1, "lon": 2, "lang": "he", "fields": ["breezometer_aqi", "pollutants"],
    })
    qs = build_query(req, "foo")
    assert qs["fields"] == "breezometer_aqi,pollutants"
    assert qs["lang"] == "he"

def test_historical_point_is_ceiled():
    req = validate_params(HistoricalConditionsRequest, {"lat": 1, "lon": 2, "date_time": STAMP}, now=NOW)
    qs = build_query(req, "foo")
    assert qs["datetime"] == "2017-02-27T08:30:15.999Z"
    assert "start_datetime" not in qs and "interval" not in qs

def test_historical_range_start_floored_end_ceiled():
    req = validate_params(HistoricalConditionsRequest, {
        "lat": 1, "lon": 2, "start_date": STAMP, "end_date": "2017-02-28T00:00:00.5Z", "interval": 6,
    }, now=NOW)
    qs = build_query(req, "foo")
    assert qs["start_datetime"] == "2017-02-27T08:30:15.000Z"
    assert qs["end_datetime"] == "2017-02-28T00:00:00.999Z"
    assert qs["interval"] == 6

def test_forecast_hours():
    req = validate_params(ForecastRequest, {"lat": 1, "lon": 2, "hours": "8"}, now=NOW)
    assert build_query(req, "foo") == {"lat": 1.0, "lon": 2.0, "hours": 8, "key": "foo"}

def test_redact_hides_only_the_key():
    assert redact({"lat": 1, "key": "secret"}) == {"lat": 1, "key": "***"}
