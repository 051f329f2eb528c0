"""Translate raw store failures into LedgerUnavailable."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager

from invres.domain.exceptions import LedgerUnavailable

# Errors a backing store raises when it cannot be reached or its document
# cannot be parsed.  Anything else from a repository is a bug.
STORE_ERRORS: tuple[type[BaseException], ...] = (OSError, json.JSONDecodeError)


@contextmanager
def store_guard(action: str) -> Iterator[None]:
    try:
        yield
    except STORE_ERRORS as exc:
        raise LedgerUnavailable(f"Stock store unavailable while trying to {action}: {exc}") from exc
