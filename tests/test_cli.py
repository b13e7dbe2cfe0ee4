# cli wiring: argument parsing and output, with the client stubbed out

import argparse
import json
from unittest.mock import MagicMock

import pytest

from breezometer import cli
from breezometer.errors import ValidationError
from breezometer.models import AirQualityReading, Location


@pytest.fixture
def fake_client(monkeypatch):
    instance = MagicMock()
    instance.__enter__.return_value = instance
    instance.__exit__.return_value = False
    factory = MagicMock(return_value=instance)
    monkeypatch.setattr(cli, "BreezometerClient", factory)
    return instance

def test_parse_location():
    assert cli.parse_location("Madison=43.067475,-89.392808") == Location("Madison", "43.067475", "-89.392808")
    assert cli.parse_location("1.5,2.5") == Location("1.5,2.5", "1.5", "2.5")
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_location("Madison")

def test_format_reading():
    r = AirQualityReading("Madison", True, 72, "Fair Air Quality", "ozone")
    assert cli.format_reading(r) == "Madison BAQI: 72 (Fair Air Quality), dominant pollutant: ozone"
    assert "not supported" in cli.format_reading(AirQualityReading("Atlantis", False))

def test_current(fake_client, monkeypatch, capsys):
    readings = [AirQualityReading("Madison", True, 72)]
    fetch = MagicMock(return_value=readings)
    monkeypatch.setattr(cli, "fetch_current_for_locations", fetch)

    assert cli.main(["--api-key", "foo", "current", "Madison=43.06,-89.39", "--lang", "he"]) == 0
    assert capsys.readouterr().out == "Madison BAQI: 72\n"
    assert fetch.call_args.kwargs["lang"] == "he"

def test_forecast_prints_json(fake_client, capsys):
    fake_client.get_forecast.return_value = [{"breezometer_aqi": 70}]
    assert cli.main(["--api-key", "foo", "forecast", "--fields", "breezometer_aqi", "43.06", "-89.39",
                     "--hours", "8"]) == 0
    params = fake_client.get_forecast.call_args.args[0]
    assert params == {"lat": "43.06", "lon": "-89.39", "fields": ["breezometer_aqi"], "hours": 8}
    assert json.loads(capsys.readouterr().out) == [{"breezometer_aqi": 70}]

def test_historical_range(fake_client, capsys):
    fake_client.get_historical_conditions.return_value = None
    assert cli.main(["--api-key", "foo", "historical", "0", "0", "--start", "2017-01-01T00:00:00Z",
                     "--end", "2017-01-02T00:00:00Z", "--interval", "6"]) == 0
    params = fake_client.get_historical_conditions.call_args.args[0]
    assert params["start_date"] == "2017-01-01T00:00:00Z"
    assert params["interval"] == 6
    assert "not supported" in capsys.readouterr().out

def test_errors_exit_non_zero(fake_client, capsys):
    fake_client.get_forecast.side_effect = ValidationError("hours: out of range")
    assert cli.main(["--api-key", "foo", "forecast", "0", "0", "--hours", "25"]) == 1
    assert "hours: out of range" in capsys.readouterr().err

def test_shaping_options_follow_positionals(fake_client):
    fake_client.get_forecast.return_value = []
    assert cli.main(["--api-key", "foo", "forecast", "0", "0", "--hours", "4", "--lang", "he"]) == 0
    assert fake_client.get_forecast.call_args.args[0]["lang"] == "he"
