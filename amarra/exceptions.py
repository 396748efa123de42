#  -*- coding: utf-8 -*-
"""
Exceptions raised by the synchronization engine.

Two channels exist. Resolution problems (an accessor that cannot be found, that
raised, or that must not be touched) are raised as ``PropertyResolutionError``.
Synchronization problems are never raised; bindings report them as values
(see ``amarra.binding.SyncFailure``).
"""

from __future__ import annotations

from enum import Enum

from typing import Any


class ResolutionFailure(Enum):
    """Reason a path segment could not be resolved."""

    NOT_FOUND = 'not found'
    RAISED = 'raised'
    INACCESSIBLE = 'inaccessible'


class PropertyResolutionError(RuntimeError):
    """
    A path segment could not be read or written.

    Parameters
    ----------
    description : str
        Human-readable description.
    source : object
        Object on which the segment was resolved.
    path : str
        Offending path (or segment).
    kind : ResolutionFailure
        Why resolution failed.

    Notes
    -----
    When ``kind`` is ``RAISED`` the exception thrown by the accessor is chained
    as ``__cause__``.
    """

    def __init__(self,
                 description: str,
                 source: Any,
                 path: str,
                 kind: ResolutionFailure = ResolutionFailure.NOT_FOUND) -> None:

        super().__init__(description)

        self.description: str = description
        self.source: Any = source
        self.path: str = str(path)
        self.kind: ResolutionFailure = kind

    def __str__(self) -> str:
        return f'{self.description} [kind={self.kind.value}, path={self.path!r}, source={self.source!r}]'


class UnreadableError(RuntimeError):
    """``get_value`` was called on a property that is not readable for the source."""


class UnwritableError(RuntimeError):
    """``set_value`` (or ``get_write_type``) was called on a property that is not writeable."""


class IllegalStateError(RuntimeError):
    """An operation was attempted in the wrong bound/unbound state."""


class CacheDivergenceError(RuntimeError):
    """
    The cached observation state no longer matches the live object graph.

    Raised only when the divergence policy is ``"raise"``.
    """
