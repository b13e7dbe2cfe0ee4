# orchestration on top of the client
# use ThreadPoolExecutor to look up several locations concurrently
# provides a pure parse step and a coordinator that works with any collection of locations

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Iterable, List

from .client import BreezometerClient
from .models import AirQualityReading, Location


# flatten the provider payload into our small, typed value object and check shape
def parse_reading(name: str, payload: Any) -> AirQualityReading:
    # None is the client's "location not supported" outcome
    if payload is None:
        return AirQualityReading(name=name, supported=False)

    if not isinstance(payload, dict):
        raise ValueError("Unsupported payload shape for parse_reading()")

    # v2 responses wrap the reading in "data" and the index in "indexes.baqi"
    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
    indexes = data.get("indexes")
    baqi = indexes.get("baqi") if isinstance(indexes, dict) else None

    if isinstance(baqi, dict):
        return AirQualityReading(
            name=name,
            supported=bool(data.get("data_available", True)),
            aqi=baqi.get("aqi"),
            description=baqi.get("category"),
            dominant_pollutant=baqi.get("dominant_pollutant"),
            observed_at=data.get("parsed_datetime"),
        )

    return AirQualityReading(
        name=name,
        supported=bool(data.get("data_valid", True)),
        aqi=data.get("breezometer_aqi"),
        description=data.get("breezometer_description"),
        dominant_pollutant=data.get("dominant_pollutant_canonical_name"),
        observed_at=data.get("parsed_datetime"),
    )

# single location path: fetch -> parse
def current_reading(client: BreezometerClient, location: Location, **params: Any) -> AirQualityReading:
    # keeping this small makes it ideal as the function we submit to the thread pool
    payload = client.get_current_conditions(lat=location.lat, lon=location.lon, **params)
    return parse_reading(location.name, payload)

# reuse a single client, each worker has its own thread local http session
def fetch_current_for_locations(client: BreezometerClient, locations: Iterable[Location],
                                max_workers: int = 4, **params: Any) -> List[AirQualityReading]:
    locations = list(locations)
    if not locations:
        return []

    results: List[AirQualityReading] = []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(locations)))) as pool:
        futures = {
            pool.submit(current_reading, client, loc, **params): loc
            for loc in locations
        }
        for fut in as_completed(futures):
            # allow exceptions to propagate (cli will display clear messages)
            results.append(fut.result())

    # stable ordering so cli output is deterministic and tests are easier to validate
    return sorted(results, key=lambda r: r.name.lower())
