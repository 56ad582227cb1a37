"""
Partial updates that tell "set to null" apart from "leave alone".

    patch = Patch(published=False, date_published=None)
    patch.get("date_published")      # None  -> write NULL
    patch.get("open_access_date")    # UNSET -> keep the stored value

API schemas produce patches from ``model_dump(exclude_unset=True)``, so a
client sending ``{"open_access_date": null}`` clears the column while omitting
the key leaves it untouched.
"""

from typing import Any, Dict, Iterator, Mapping


class _Unset:
    """Marker for a field that is absent from a patch."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class Patch(Mapping[str, Any]):
    """Immutable mapping of field name to new value; None is an explicit null."""

    def __init__(self, fields: Mapping[str, Any] | None = None, **kwargs: Any):
        values: Dict[str, Any] = dict(fields or {})
        values.update(kwargs)
        self._values = {k: v for k, v in values.items() if v is not UNSET}

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: str, default: Any = UNSET) -> Any:
        return self._values.get(key, default)

    def is_set(self, key: str) -> bool:
        return key in self._values

    def merged(self, other: Mapping[str, Any]) -> "Patch":
        """New patch with ``other`` applied on top of this one."""
        return Patch({**self._values, **dict(other)})

    def apply(self, target: Any, allowed: frozenset[str] | None = None) -> Dict[str, Any]:
        """
        Assign every field of the patch onto ``target``.

        Returns the previous values of the fields that actually changed.

        Raises:
            ValueError: if a field is not in ``allowed`` or not an attribute of target
        """
        changed: Dict[str, Any] = {}
        for name, value in self._values.items():
            if allowed is not None and name not in allowed:
                raise ValueError(f"Field '{name}' cannot be updated")
            if not hasattr(target, name):
                raise ValueError(f"Unknown field '{name}'")
            previous = getattr(target, name)
            if previous != value:
                changed[name] = previous
            setattr(target, name, value)
        return changed

    def __repr__(self) -> str:
        return f"Patch({self._values!r})"
