# value objects to keep configuration and result shapes explicit and reusable across the package

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union


@dataclass(frozen=True)
class ClientConfig:
    # captured once when the client is built and only read afterwards
    api_key: str
    base_url: str
    timeout: float
    retry_times: int
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    logger: Any = None

    def __repr__(self) -> str:
        # keep the key out of tracebacks and logs
        return (f"ClientConfig(base_url={self.base_url!r}, timeout={self.timeout!r}, "
                f"retry_times={self.retry_times!r})")

@dataclass(frozen=True)
class Location:
    # coordinates may arrive as strings from the cli; the client coerces them
    name: str
    lat: Union[float, str]
    lon: Union[float, str]

@dataclass(frozen=True)
class AirQualityReading:
    # one location's current conditions, flattened for display
    name: str
    supported: bool
    aqi: Any = None
    description: Optional[str] = None
    dominant_pollutant: Optional[str] = None
    observed_at: Optional[datetime] = None
