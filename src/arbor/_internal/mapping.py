"""Immutable string mapping with case-insensitive keys.

Shared by request ``Params`` and response ``Headers``. Keys keep the
spelling they were supplied with; lookup, membership and equality ignore
case.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Self


class CaseInsensitiveMapping(Mapping[str, str]):
    """Immutable ``Mapping[str, str]`` whose keys compare without regard to case.

    When two supplied keys differ only in case the last one wins. Subclasses
    add their own constructors and copy methods on top of ``_with`` and
    ``_without``.
    """

    __slots__ = ("_data", "_lookup")

    def __init__(self, data: Mapping[str, str] | None = None) -> None:
        items: dict[str, str] = {}
        for name, value in (data or {}).items():
            _put(items, name, value)
        object.__setattr__(self, "_data", items)
        object.__setattr__(self, "_lookup", {name.lower(): value for name, value in items.items()})

    def __getitem__(self, key: str) -> str:
        return self._lookup[key.lower()]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key.lower() in self._lookup

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CaseInsensitiveMapping):
            return self._lookup == other._lookup
        if isinstance(other, Mapping):
            return self._lookup == {str(k).lower(): v for k, v in other.items()}
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._lookup.items()))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self._data.items())
        return f"{type(self).__name__}({{{items}}})"

    def __setattr__(self, name: str, value: object) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the value for *key*, or *default* if missing."""
        return self._lookup.get(key.lower(), default)

    def as_dict(self) -> dict[str, str]:
        """Return the entries as a plain dict, keys as they were supplied."""
        return dict(self._data)

    def _with(self, data: Mapping[str, str]) -> Self:
        items = dict(self._data)
        for name, value in data.items():
            _put(items, name, value)
        return type(self)(items)

    def _without(self, key: str) -> Self:
        return type(self)({name: v for name, v in self._data.items() if name.lower() != key.lower()})


def _put(data: dict[str, str], name: str, value: str) -> None:
    """Set *name* in *data*, dropping any entry that differs only in case."""
    for existing in [key for key in data if key.lower() == name.lower()]:
        del data[existing]
    data[name] = value
