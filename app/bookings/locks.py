"""
Concurrency control for ledger aggregates.

At most one mutating operation may run against an aggregate root (Booking,
payable, CreditNote) at a time. Two mechanisms enforce this:

1. **Row locks** (lock_for_update)
   - select_for_update() inside the caller's transaction
   - Used for child records of an aggregate that is already version checked

2. **Optimistic locking** (check_version)
   - Caller passes the version it read
   - A writer holding a stale version fails with StaleRecordError
     (a ConflictError) instead of silently overwriting

Usage:
    from bookings.locks import check_version, lock_for_update

    with transaction.atomic():
        payable = check_version(SupplierPayable, payable_id, expected_version=3)
        payable.pending_amount -= amount
        payable.save()  # Version auto-increments

Note:
    Both helpers must be called inside transaction.atomic(); the row lock
    is held until the outer transaction commits or rolls back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from django.db import models, transaction

from bookings.exceptions import StaleRecordError
from core.exceptions import NotFoundError

if TYPE_CHECKING:
    from typing import Any

T = TypeVar("T", bound=models.Model)


def _not_found(model_class: type[models.Model], pk: Any) -> NotFoundError:
    model_name = model_class.__name__
    return NotFoundError(
        f"{model_name} {pk} not found",
        error_code=f"{model_name.upper()}_NOT_FOUND",
        details={"pk": str(pk)},
    )


def lock_for_update(model_class: type[T], pk: Any) -> T:
    """
    Fetch a record with a row lock.

    Raises:
        NotFoundError: If record doesn't exist
    """
    instance = model_class.objects.select_for_update().filter(pk=pk).first()
    if instance is None:
        raise _not_found(model_class, pk)
    return instance


def check_version(
    model_class: type[T],
    pk: Any,
    expected_version: int,
) -> T:
    """
    Atomically check version and lock a record for update.

    Combines optimistic locking (version check) with pessimistic locking
    (select_for_update). Of two writers that read the same version, the
    second to acquire the lock fails.

    Args:
        model_class: Django model class (must have 'version' field)
        pk: Primary key of the record
        expected_version: Version the caller read

    Returns:
        The locked model instance (within a transaction)

    Raises:
        StaleRecordError: If version doesn't match (concurrent modification)
        NotFoundError: If record doesn't exist

    Example:
        with transaction.atomic():
            note = check_version(CreditNote, note_id, expected_version=2)
            note.remaining_amount -= amount
            note.save()  # Version auto-increments to 3
    """
    with transaction.atomic():
        instance = (
            model_class.objects.select_for_update()
            .filter(pk=pk, version=expected_version)
            .first()
        )

        if instance is None:
            current = model_class.objects.filter(pk=pk).first()
            if current is None:
                raise _not_found(model_class, pk)

            model_name = model_class.__name__
            raise StaleRecordError(
                f"{model_name} {pk} has been modified "
                f"(expected version {expected_version}, current {current.version})",
                details={
                    "pk": str(pk),
                    "model": model_name,
                    "expected_version": expected_version,
                    "current_version": current.version,
                },
            )

        return instance
