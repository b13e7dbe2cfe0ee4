# connects command line input (locations, time windows) to the client and prints the result

from __future__ import annotations
import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from .client import BreezometerClient
from .errors import BreezometerError
from .models import AirQualityReading, Location
from .service import fetch_current_for_locations


def parse_location(text: str) -> Location:
    # NAME=LAT,LON or just LAT,LON; coordinates stay strings, the client coerces them
    name, sep, coords = text.rpartition("=")
    lat, comma, lon = coords.partition(",")
    if not comma:
        raise argparse.ArgumentTypeError(f"expected NAME=LAT,LON (got {text!r})")
    return Location(name=name if sep else coords, lat=lat.strip(), lon=lon.strip())

def format_reading(r: AirQualityReading) -> str:
    if not r.supported:
        return f"{r.name}: location not supported by Breezometer"
    line = f"{r.name} BAQI: {r.aqi}"
    if r.description:
        line += f" ({r.description})"
    if r.dominant_pollutant:
        line += f", dominant pollutant: {r.dominant_pollutant}"
    return line

def _shared_params(args: argparse.Namespace) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if args.lang:
        params["lang"] = args.lang
    if args.fields:
        params["fields"] = [f.strip() for f in args.fields.split(",") if f.strip()]
    return params

def _window_params(args: argparse.Namespace) -> Dict[str, Any]:
    params = {}
    if args.start:
        params["start_date"] = args.start
    if args.end:
        params["end_date"] = args.end
    return params

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="breezometer", description="Query the BreezoMeter air-quality API.")
    parser.add_argument("--api-key", help="defaults to $BREEZOMETER_API_KEY")
    parser.add_argument("--base-url", help="defaults to $BREEZOMETER_BASE_URL or the production host")
    parser.add_argument("--timeout", type=float, default=BreezometerClient.DEFAULT_TIMEOUT, help="seconds per attempt")
    parser.add_argument("--retries", type=int, default=BreezometerClient.DEFAULT_RETRY_TIMES)
    sub = parser.add_subparsers(dest="command", required=True)

    # response shaping options, accepted after any subcommand
    shaping = argparse.ArgumentParser(add_help=False)
    shaping.add_argument("--lang", help="response language (en, he)")
    shaping.add_argument("--fields", help="comma separated list of response fields")

    current = sub.add_parser("current", parents=[shaping], help="current conditions for one or more locations")
    current.add_argument("locations", nargs="+", type=parse_location, metavar="NAME=LAT,LON")
    current.add_argument("--workers", type=int, default=4)

    historical = sub.add_parser("historical", parents=[shaping], help="past conditions at a point in time or over a range")
    historical.add_argument("lat")
    historical.add_argument("lon")
    historical.add_argument("--at", help="ISO 8601 timestamp")
    historical.add_argument("--start", help="ISO 8601 start of the range")
    historical.add_argument("--end", help="ISO 8601 end of the range")
    historical.add_argument("--interval", type=int, help="hours between results (1-24)")

    forecast = sub.add_parser("forecast", parents=[shaping], help="hourly forecast")
    forecast.add_argument("lat")
    forecast.add_argument("lon")
    forecast.add_argument("--hours", type=int, help="hours ahead of now (1-24)")
    forecast.add_argument("--start", help="ISO 8601 start of the range")
    forecast.add_argument("--end", help="ISO 8601 end of the range")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        client = BreezometerClient(api_key=args.api_key, base_url=args.base_url,
                                   timeout=args.timeout, retry_times=args.retries)
        with client:
            if args.command == "current":
                readings = fetch_current_for_locations(client, args.locations, max_workers=args.workers,
                                                       **_shared_params(args))
                for r in readings:
                    print(format_reading(r))
                return 0

            params = {"lat": args.lat, "lon": args.lon, **_shared_params(args), **_window_params(args)}
            if args.command == "historical":
                if args.at:
                    params["date_time"] = args.at
                if args.interval is not None:
                    params["interval"] = args.interval
                result = client.get_historical_conditions(params)
            else:
                if args.hours is not None:
                    params["hours"] = args.hours
                result = client.get_forecast(params)
    except BreezometerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if result is None:
        print("location not supported by Breezometer")
    else:
        print(json.dumps(result, indent=2, default=str))
    return 0

if __name__ == "__main__":
    sys.exit(main())
