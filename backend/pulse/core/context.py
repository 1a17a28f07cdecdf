"""Request and job correlation ids carried through logging."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator
from uuid import uuid4

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return request_id_ctx_var.get()


def new_correlation_id(prefix: str | None = None) -> str:
    """Random id; batch runs use a prefix so their log lines stand out."""
    value = uuid4().hex if prefix else str(uuid4())
    return f"{prefix}-{value[:12]}" if prefix else value


@contextmanager
def correlation_scope(request_id: str) -> Iterator[str]:
    """Bind `request_id` for the duration of the block."""
    token = request_id_ctx_var.set(request_id)
    try:
        yield request_id
    finally:
        request_id_ctx_var.reset(token)
