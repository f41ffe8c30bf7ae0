"""
Application exceptions.

Every error that should reach an API caller derives from QSuiteError and carries
the HTTP status it maps to. Routes translate these into their JSON error envelopes.
"""

from typing import Any, Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError


class QSuiteError(Exception):
    """Base exception for QSuite"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(message)


class AuthorizationError(QSuiteError):
    """Missing or invalid caller credential"""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, error_code="AUTHORIZATION_ERROR", **kwargs)


class ConfigurationError(QSuiteError):
    """Required configuration (e.g. a provider API key) is not available"""

    status_code = 500

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)


class RequestValidationError(QSuiteError):
    """Request payload failed validation"""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs
    ):
        self.field = field
        super().__init__(message, error_code="VALIDATION_ERROR", **kwargs)


class ProviderError(QSuiteError):
    """The external AI provider failed or returned an unusable response"""

    status_code = 502

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        provider_status: Optional[int] = None,
        **kwargs
    ):
        self.provider = provider
        self.provider_status = provider_status
        super().__init__(message, error_code="PROVIDER_ERROR", **kwargs)


class NotFoundError(QSuiteError):
    """Requested resource does not exist or is not owned by the caller"""

    status_code = 404

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        **kwargs
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message, error_code="NOT_FOUND", **kwargs)


class PersistenceError(QSuiteError):
    """Database write failed"""

    status_code = 500

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        self.operation = operation
        super().__init__(message, error_code="PERSISTENCE_ERROR", **kwargs)


def describe_validation_errors(errors) -> str:
    """One-line summary of pydantic/FastAPI validation errors for error envelopes"""
    if not errors:
        return "Invalid request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"Invalid value for '{location}': {message}" if location else f"Invalid request body: {message}"


RequestModel = TypeVar("RequestModel", bound=BaseModel)


def parse_request_body(model: Type[RequestModel], body: Union[RequestModel, bytes, str, None]) -> RequestModel:
    """Validate a raw JSON request body; an empty body counts as ``{}``.

    Raises RequestValidationError so callers can report it in their own envelope.
    """
    if isinstance(body, model):
        return body
    if not body or not body.strip():
        body = "{}"
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        errors = e.errors()
        field = ".".join(str(part) for part in errors[0]["loc"]) if errors and errors[0].get("loc") else None
        raise RequestValidationError(describe_validation_errors(errors), field=field) from e
