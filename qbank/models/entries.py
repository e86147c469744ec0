"""Identity of locally held records.

A record created on the form before the backend knows about it carries a
``TemporaryId``; once saved it carries the ``PersistedId`` returned by the
backend. Both render to a string key used by the routes.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Union

TEMPORARY_PREFIX = "tmp-"


@dataclass(frozen=True)
class TemporaryId:
    local_id: int

    @property
    def key(self) -> str:
        return f"{TEMPORARY_PREFIX}{self.local_id}"


@dataclass(frozen=True)
class PersistedId:
    server_id: int

    @property
    def key(self) -> str:
        return str(self.server_id)


EntryId = Union[TemporaryId, PersistedId]


class LocalIdSequence:
    """Per-form generator of temporary ids and entry keys."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)

    def temporary(self) -> TemporaryId:
        return TemporaryId(next(self._counter))

    def entry_key(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"
