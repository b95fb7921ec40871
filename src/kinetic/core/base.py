"""Base classes for configuration and state models.

Kept apart from config.py so that log.py can import them without a
cycle:
- Closeable protocol for anything with a close() method
- BaseCloseable, which closes every Closeable field it owns
- BaseConfig / BaseState markers for configuration and runtime models
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Release resources."""
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable children.

    close() walks the model fields and closes each child that
    implements Closeable. A failing child does not stop the walk;
    the failure is reported on stderr because the logger itself may
    be one of the children being closed.

    Usable as a context manager:
        with state.config:
            ...
    """

    def close(self):
        """Close all Closeable fields, continuing past failures."""
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None or not isinstance(child, Closeable):
                continue
            try:
                child.close()
            except Exception as e:
                print(
                    f"Warning: Error closing {field_name}: {e}",
                    file=sys.stderr,
                )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration sections (YAML/env/CLI)."""
    pass


class BaseState(BaseCloseable):
    """Marker base for runtime state sections (mutated by commands)."""
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
