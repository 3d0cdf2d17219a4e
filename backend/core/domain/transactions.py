"""
core.domain.transactions — Helpers for safe state transitions and counters.

Provides utilities that wrap ``transaction.atomic``, ``select_for_update``
and ``F()``-based conditional updates into reusable patterns so that every
app's service layer follows the same concurrency-safe approach.

Design goals
------------
* Never read-modify-write a counter in Python.  Counters move through a
  single ``UPDATE … SET col = col + n WHERE <guard>`` statement; zero
  rows updated means the guard failed and nothing changed.
* Ensure that state-transition reads always lock the row first
  (``select_for_update``) to prevent race conditions.
* Translate low-level ``DatabaseError`` into the domain's
  ``StoreUnavailable`` at one place.

Usage::

    from core.domain.transactions import atomic_transition, conditional_update

    applied = conditional_update(
        EconomyState, pk=1,
        guard=Q(total_minted__lte=F("max_supply") - amount),
        total_minted=F("total_minted") + amount,
    )

    profile = atomic_transition(
        instance=profile,
        status_field="penalty_tier",
        target_status="none",
        allowed_sources={"flagged", "blocked"},
        updates={"flagged": False, "blocked_until": None},
    )
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Iterable, Iterator, Mapping, TypeVar

from django.db import DatabaseError, models, transaction
from django.db.models import Q

from core.domain.exceptions import InvalidTransition, NotFound, StoreUnavailable

M = TypeVar("M", bound=models.Model)

logger = logging.getLogger(__name__)


def atomic_transition(
    *,
    instance: M,
    status_field: str = "status",
    target_status: str,
    allowed_sources: Iterable[str] | None = None,
    updates: Mapping[str, Any] | None = None,
) -> M:
    """
    Atomically transition a model instance from one status to another.

    Steps performed inside ``transaction.atomic()``:
        1. Re-fetch the instance with ``select_for_update()`` to acquire
           a row-level lock.
        2. Read the current value of ``status_field``.
        3. If ``allowed_sources`` is provided, verify the current value
           is among them; raise ``InvalidTransition`` otherwise.
        4. Set ``status_field`` to ``target_status``, apply ``updates``
           and save.
        5. Return the refreshed instance.

    Args:
        instance:        The model instance to transition.
        status_field:    Name of the status field on the model.
        target_status:   The desired new value.
        allowed_sources: Optional set/list of status values from which
                         the transition is permitted.  ``None`` means
                         any current value is accepted (use with care).
        updates:         Extra ``field → value`` assignments saved in the
                         same statement.

    Returns:
        The same instance with the updated field values persisted.

    Raises:
        NotFound:          If the instance no longer exists in the DB.
        InvalidTransition: If the current status is not in ``allowed_sources``.
    """
    model_class = type(instance)
    updates = dict(updates or {})

    with transaction.atomic():
        locked = lock_for_update(model_class, instance.pk)
        current = getattr(locked, status_field)

        if allowed_sources is not None:
            allowed = set(allowed_sources)
            if current not in allowed:
                raise InvalidTransition(
                    current=str(current),
                    target=target_status,
                    reason=(
                        f"allowed source states: "
                        f"{', '.join(sorted(str(s) for s in allowed))}"
                    ),
                )

        setattr(locked, status_field, target_status)
        for field, value in updates.items():
            setattr(locked, field, value)

        update_fields = {status_field, *updates}
        if any(f.name == "updated_at" for f in model_class._meta.concrete_fields):
            update_fields.add("updated_at")
        locked.save(update_fields=list(update_fields))

    # Refresh caller's reference
    instance.refresh_from_db()
    return instance


def conditional_update(
    model_class: type[M],
    *,
    pk: Any,
    guard: Q | None = None,
    **assignments: Any,
) -> bool:
    """
    Apply ``assignments`` to one row only if ``guard`` holds, in one
    ``UPDATE`` statement.

    This is the compare-and-swap primitive behind every ledger counter:
    ``assignments`` are usually ``F()`` expressions (``col=F("col") + n``)
    so the database, not Python, computes the new value.

    Returns:
        ``True`` when the row was updated, ``False`` when the guard failed
        (or the row does not exist).
    """
    qs = model_class.objects.filter(pk=pk)
    if guard is not None:
        qs = qs.filter(guard)
    return qs.update(**assignments) == 1


def lock_for_update(model_class: type[M], pk: Any) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")


@contextlib.contextmanager
def store_guard(operation: str) -> Iterator[None]:
    """
    Re-raise any ``DatabaseError`` inside the block as ``StoreUnavailable``.

    Wrap it *around* ``transaction.atomic()`` so the rollback has already
    happened by the time the domain error surfaces.
    """
    try:
        yield
    except DatabaseError as exc:
        logger.exception("Store failure during %s", operation)
        raise StoreUnavailable(f"Store unavailable during {operation}.") from exc
