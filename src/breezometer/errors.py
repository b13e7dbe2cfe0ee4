# error taxonomy shared by every layer of the client
# everything raised on purpose derives from BreezometerError so callers can catch one type

from __future__ import annotations
from typing import Any, List, Tuple


class BreezometerError(RuntimeError):
    pass

class ConfigurationError(BreezometerError):
    # client cannot be built, e.g. no api key anywhere
    pass

class ValidationError(BreezometerError, ValueError):
    # raised before any network call; never retried

    def __init__(self, message: str, errors: List[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []

    @property
    def fields(self) -> Tuple[str, ...]:
        # names of the offending parameters, in the order pydantic reported them
        names = []
        for err in self.errors:
            loc = err.get("loc") or ()
            name = ".".join(str(p) for p in loc) if loc else "__root__"
            if name not in names:
                names.append(name)
        return tuple(names)

class TransportError(BreezometerError):
    # connection failure or timeout after all retries
    pass

class UnexpectedStatusError(BreezometerError):

    def __init__(self, status_code: int, body: str, operation: str = ""):
        self.status_code = status_code
        self.body = body
        snippet = (body or "")[:300]
        super().__init__(f"Did not receive a HTTP 200 from Breezometer {operation}. "
                         f"Status: {status_code}. Body: {snippet}")

class ProviderApplicationError(BreezometerError):
    # error object embedded in an otherwise successful response

    def __init__(self, message: str, code: Any = None, body: Any = None):
        super().__init__(message)
        self.code = code
        self.body = body
