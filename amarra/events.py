#  -*- coding: utf-8 -*-
"""
Notifications emitted by properties while they are observed.
"""

from __future__ import annotations

from typing import Any, Callable, TypeAlias, TYPE_CHECKING

if TYPE_CHECKING:
    from amarra.property import Property


class _Unreadable:

    __slots__ = ()

    def __repr__(self) -> str:
        return 'UNREADABLE'

    def __reduce__(self) -> str:
        return 'UNREADABLE'


UNREADABLE = _Unreadable()
"""Value reported in events when the property is (or was) not readable."""


class PropertyStateEvent:
    """
    Describes a change in the state of a property for one source object.

    Parameters
    ----------
    source_property : Property
        Property whose state changed.
    source_object : object
        Source object the change applies to.
    value_changed : bool
        Whether the value changed.
    old_value, new_value : object
        Previous and current values; ``UNREADABLE`` when not readable.
    writeable_changed : bool
        Whether writeability changed.
    is_writeable : bool
        Writeability after the change.

    Raises
    ------
    ValueError
        If neither the value nor the writeability changed, or if the value is
        reported as changing from ``UNREADABLE`` to ``UNREADABLE``.

    Notes
    -----
    ``readable_changed`` is derived: the value moved to or from ``UNREADABLE``.
    """

    __slots__ = ('source_property', 'source_object', 'value_changed',
                 'old_value', 'new_value', 'writeable_changed', 'is_writeable')

    def __init__(self,
                 source_property: Property,
                 source_object: Any,
                 value_changed: bool,
                 old_value: Any,
                 new_value: Any,
                 writeable_changed: bool,
                 is_writeable: bool) -> None:

        if not value_changed and not writeable_changed:
            raise ValueError('Nothing has changed')

        if value_changed and old_value is UNREADABLE and new_value is UNREADABLE:
            raise ValueError("Value can't change from UNREADABLE to UNREADABLE")

        self.source_property = source_property
        self.source_object = source_object
        self.value_changed: bool = value_changed
        self.old_value: Any = old_value
        self.new_value: Any = new_value
        self.writeable_changed: bool = writeable_changed
        self.is_writeable: bool = is_writeable

    def __repr__(self) -> str:
        lines = [f'{type(self).__name__}: Property {self.source_property} changed on {self.source_object!r}:']

        if self.value_changed:
            lines.append(f'    value changed from {self.old_value!r} to {self.new_value!r}')

        if self.readable_changed:
            lines.append(f'    readable changed from {not self.is_readable} to {self.is_readable}')

        if self.writeable_changed:
            lines.append(f'    writeable changed from {not self.is_writeable} to {self.is_writeable}')

        return '\n'.join(lines)

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def readable_changed(self) -> bool:
        """True when the value moved to or from ``UNREADABLE``."""
        return (self.value_changed
                and self.old_value is not self.new_value
                and (self.old_value is UNREADABLE or self.new_value is UNREADABLE))

    @property
    def is_readable(self) -> bool:
        """Readability after the change."""
        return self.new_value is not UNREADABLE


PropertyStateListener: TypeAlias = Callable[[PropertyStateEvent], None]
