"""Logging helpers for acmeprep.

Records are emitted under the ``acmeprep`` logger namespace with
structured ``extra`` fields. While a preparation pass runs, every record
built with :func:`log_extra` carries the certificate being prepared.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

logging.getLogger("acmeprep").addHandler(logging.NullHandler())

_pass_fields: ContextVar[dict[str, object] | None] = ContextVar("pass_fields", default=None)


@contextmanager
def certificate_context(
    name: str, domains: list[str], namespace: str | None = None
) -> Iterator[None]:
    """Tag records logged inside the block with a certificate request.

    Args:
        name: Certificate request name.
        domains: Domains of the request. A single domain is logged as
            ``domain``, several as ``domains``.
        namespace: Namespace of the request, if any.
    """
    fields: dict[str, object] = {"certificate": f"{namespace}/{name}" if namespace else name}
    if len(domains) == 1:
        fields["domain"] = domains[0]
    else:
        fields["domains"] = list(domains)

    token = _pass_fields.set(fields)
    try:
        yield
    finally:
        _pass_fields.reset(token)


def context_fields() -> dict[str, object]:
    """Fields of the enclosing certificate_context, or an empty dict."""
    return dict(_pass_fields.get() or {})


def log_extra(**fields: object) -> dict[str, object]:
    """Build the ``extra`` mapping for a log call.

    Explicit fields override the certificate context; an explicit
    ``domain`` also drops the certificate-wide ``domains`` list.
    """
    extra = context_fields()
    if "domain" in fields:
        extra.pop("domains", None)
    extra.update(fields)
    return extra


def get_logger(name: str) -> logging.Logger:
    """Get a module logger (pass ``__name__``)."""
    return logging.getLogger(name)


class Timer:
    """Measures the wall time spent inside a ``with`` block."""

    def __init__(self) -> None:
        self.elapsed_ms: float = 0
        self._start: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000

    @property
    def duration_ms(self) -> float:
        """Elapsed time rounded for log output."""
        return round(self.elapsed_ms, 2)
