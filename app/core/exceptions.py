"""
Service-layer exceptions.

Services raise these instead of returning error tuples; each blueprint
turns them into JSON responses via app.utils.errors.register_error_handlers.

    NotFoundError    → 404 ERR_NOT_FOUND
    ValidationError  → 422 ERR_BUSINESS_RULE  (well-formed input that breaks
                       a rule, e.g. a phase contradicting its position)

Malformed input (wrong types, missing fields) never reaches the service
layer; blueprints answer it with 400 directly.
"""


class DomainError(Exception):
    """Base class; ``details`` is an optional field → message mapping."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class NotFoundError(DomainError):
    """A looked-up row does not exist."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        where = f" id={resource_id}" if resource_id is not None else ""
        super().__init__(f"{resource}{where} not found")


class ValidationError(DomainError):
    """Input was well-formed but violates a business rule."""
