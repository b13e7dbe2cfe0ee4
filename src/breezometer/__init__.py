# thin client for the BreezoMeter air-quality API: validate, build the query, GET with retry

import logging

__version__ = "0.2.0"

from .client import BreezometerClient
from .errors import (
    BreezometerError,
    ConfigurationError,
    ProviderApplicationError,
    TransportError,
    UnexpectedStatusError,
    ValidationError,
)
from .models import AirQualityReading, ClientConfig, Location

# silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AirQualityReading",
    "BreezometerClient",
    "BreezometerError",
    "ClientConfig",
    "ConfigurationError",
    "Location",
    "ProviderApplicationError",
    "TransportError",
    "UnexpectedStatusError",
    "ValidationError",
    "__version__",
]
