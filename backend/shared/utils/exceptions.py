"""
HTTP errors raised by services and dependencies.

Every error carries a Spanish `detail` for the mobile app and the dashboard
and writes one log line when raised; keyword arguments become log fields and
never reach the client.

    raise NotFoundError(ErrorMessages.CUSTOMER_NOT_FOUND, customer_id, company_id=company_id)
    raise ForbiddenError("crear clientes", user_id=principal.user_id)
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.constants import ErrorMessages
from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST
    log_level: str = "warning"

    def __init__(self, detail: str, headers: dict[str, str] | None = None, **log_context: Any):
        getattr(logger, self.log_level)(detail, status_code=self.status_code, **log_context)
        super().__init__(status_code=self.status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """400: the request is well-formed JSON but breaks a business rule."""


class InvalidTransitionError(ValidationError):
    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        super().__init__(
            f"Transición inválida de '{from_status}' a '{to_status}' para {entity}",
            entity=entity,
            from_status=from_status,
            to_status=to_status,
            **log_context,
        )


class AuthenticationError(AppException):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = ErrorMessages.NOT_AUTHENTICATED, **log_context: Any):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"}, **log_context)


class ForbiddenError(AppException):
    """
    403. Pass the action ("crear clientes") for the generic message, or a
    ready-made `detail`.
    """

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, action: str | None = None, detail: str | None = None, **log_context: Any):
        if detail is None:
            detail = f"No autorizado para {action}" if action else "Acceso denegado"
        super().__init__(detail, action=action, **log_context)


class InsufficientRoleError(ForbiddenError):
    def __init__(self, required_roles: list[str], **log_context: Any):
        super().__init__(
            detail=ErrorMessages.INSUFFICIENT_PERMISSIONS,
            required_roles=required_roles,
            **log_context,
        )


class SubscriptionReadOnlyError(ForbiddenError):
    """The company's subscription lapsed; it can read but not write."""

    def __init__(self, company_id: int | None = None, **log_context: Any):
        super().__init__(detail=ErrorMessages.SUBSCRIPTION_EXPIRED, company_id=company_id, **log_context)


class PlanLimitError(ForbiddenError):
    """Creating one more vendor, delivery user or customer would exceed the plan."""

    def __init__(self, message_template: str, limit: int, **log_context: Any):
        super().__init__(detail=message_template.format(limit=limit), limit=limit, **log_context)


class NotFoundError(AppException):
    """404, also used for rows that exist but belong to another company."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, detail: str, entity_id: int | str | None = None, **log_context: Any):
        super().__init__(detail, entity_id=entity_id, **log_context)


class ConflictError(AppException):
    status_code = status.HTTP_409_CONFLICT


class ServiceUnavailableError(AppException):
    """503: the platform is missing something only an operator can fix."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    log_level = "error"
