"""
Base service layer patterns for business logic encapsulation.

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

    Business rule violations are raised as core.exceptions subclasses and
    translated to HTTP responses by core.exception_handler. A service never
    returns a half-applied result: each mutating call runs in one
    transaction.

Usage:
    from django.db import transaction
    from core.services import BaseService

    class SettlementService(BaseService):
        @classmethod
        def settle(cls, payable, amount, reason):
            cls.require_fields(amount=amount, reason=reason)
            with transaction.atomic():
                ...

Related:
    - core.exceptions: Error hierarchy raised by services
"""

from __future__ import annotations

from core.exceptions import ValidationError


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Log through a module-level logging.getLogger(__name__)
        - Raise core.exceptions subclasses for business rule violations
    """

    @classmethod
    def require_fields(cls, **kwargs) -> None:
        """
        Validate that required fields are provided.

        Raises:
            ValidationError: If any field is None or a blank string. The
                details map each missing field to an error list.

        Example:
            cls.require_fields(reason=reason)
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]

        if errors:
            raise ValidationError(
                "Required fields missing: " + ", ".join(sorted(errors)),
                error_code="REQUIRED_FIELDS_MISSING",
                details=errors,
            )
