from __future__ import annotations

from contextlib import contextmanager
from functools import wraps
from typing import Iterator, Optional

from ..core.exceptions import DomainError


def tag_error(exc: DomainError, operation: str, entity_id: Optional[int] = None) -> DomainError:
    """Fill in whatever the raiser left blank; never overwrite."""
    if exc.operation is None:
        exc.operation = operation
    if exc.entity_id is None and entity_id is not None:
        exc.entity_id = entity_id
    return exc


@contextmanager
def tagged_errors(operation: str, entity_id: Optional[int] = None) -> Iterator[None]:
    try:
        yield
    except DomainError as exc:
        tag_error(exc, operation, entity_id)
        raise


def service_operation(operation: str):
    """Method decorator: domain errors escaping the method name ``operation``."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            with tagged_errors(operation):
                return fn(*args, **kwargs)

        return wrapper

    return decorator
