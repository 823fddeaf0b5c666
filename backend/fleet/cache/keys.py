"""
Structured cache keys.

A key is an operation tag plus typed parameters; rendering is deterministic
so equal keys always map to the same backend string.
"""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Tuple


def _render(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class CacheKey:
    namespace: str
    operation: str
    params: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def of(cls, namespace: str, operation: str, **params: Any) -> "CacheKey":
        return cls(namespace, operation, tuple(params.items()))

    @classmethod
    def entity(cls, namespace: str, entity_id: int) -> "CacheKey":
        """Single-entity key, the only kind that writes touch"""
        return cls.of(namespace, "id", id=entity_id)

    def render(self) -> str:
        parts = [self.namespace, self.operation]
        parts.extend(f"{name}={_render(value)}" for name, value in self.params)
        return ":".join(parts)

    def __str__(self) -> str:
        return self.render()
