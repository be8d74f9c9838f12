from __future__ import annotations


class AppError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", details: dict | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationAppError(AppError):
    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        super().__init__(code="validation_error", message=message, status_code=422, details=details)


class NoMatchError(AppError):
    def __init__(self, message: str = "No location matches the query", details: dict | None = None) -> None:
        super().__init__(code="no_match", message=message, status_code=404, details=details)


class GeocodeFailure(AppError):
    def __init__(self, message: str = "Geocoding service failed", details: dict | None = None) -> None:
        super().__init__(code="geocode_failure", message=message, status_code=502, details=details)


class RouteFailure(AppError):
    def __init__(self, message: str = "Unable to compute a route", details: dict | None = None) -> None:
        super().__init__(code="route_failure", message=message, status_code=502, details=details)


class PositionUnavailable(AppError):
    def __init__(self, message: str = "Current position is unavailable", details: dict | None = None) -> None:
        super().__init__(code="position_unavailable", message=message, status_code=409, details=details)


class SpeechUnavailable(AppError):
    def __init__(self, message: str = "Speech output is unavailable", details: dict | None = None) -> None:
        super().__init__(code="speech_unavailable", message=message, status_code=503, details=details)
