#  -*- coding: utf-8 -*-
"""
The property capability contract.

A ``Property`` is stateless logic evaluated against any number of source
objects. Everything specific to one source object (listeners, caches) is kept
per source, keyed by object identity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from amarra.events import PropertyStateEvent, PropertyStateListener
from amarra.exceptions import UnwritableError

from typing import Any


class Property(ABC):
    """
    Abstract capability set of a property over source objects.

    Subclasses report readability and writeability for a given source, read and
    write the value, and let callers observe state changes per source.

    Notes
    -----
    ``get_value`` on an unreadable property raises ``UnreadableError``;
    ``set_value`` and ``get_write_type`` on an unwriteable one raise
    ``UnwritableError``.
    """

    # ========== ========== ========== ========== ========== public methods
    @abstractmethod
    def get_write_type(self, source: Any) -> type:
        """Type used when converting values written to this property."""
        ...

    def get_value_type(self, source: Any) -> type:
        """Alias of :meth:`get_write_type`."""
        return self.get_write_type(source)

    @abstractmethod
    def get_value(self, source: Any) -> Any:
        ...

    @abstractmethod
    def set_value(self, source: Any, value: Any) -> None:
        ...

    @abstractmethod
    def is_readable(self, source: Any) -> bool:
        ...

    @abstractmethod
    def is_writeable(self, source: Any) -> bool:
        ...

    @abstractmethod
    def add_state_listener(self, source: Any, listener: PropertyStateListener) -> None:
        """Start observing ``source`` on behalf of ``listener``."""
        ...

    @abstractmethod
    def remove_state_listener(self, source: Any, listener: PropertyStateListener) -> None:
        """Stop observing ``source`` on behalf of ``listener``."""
        ...

    @abstractmethod
    def get_state_listeners(self, source: Any) -> tuple[PropertyStateListener, ...]:
        ...

    @abstractmethod
    def is_listening(self, source: Any) -> bool:
        """Tell whether at least one listener observes ``source``."""
        ...


class PropertyHelper(Property, ABC):
    """
    ``Property`` base that manages the listeners of every source object.

    Subclasses get :meth:`_listening_started` on the first listener added for a
    source and :meth:`_listening_stopped` after the last one is removed. A
    listener added twice is notified twice and must be removed twice.
    """

    # ========== ========== ========== ========== ========== protected methods
    @property
    def _listener_table(self) -> dict[int, tuple[Any, list[PropertyStateListener]]]:
        try:
            return self.__listener_table
        except AttributeError:
            self.__listener_table = {}
            return self.__listener_table

    def _listening_started(self, source: Any) -> None:
        """Hook called on the 0 to 1 listener transition for ``source``."""

    def _listening_stopped(self, source: Any) -> None:
        """Hook called on the 1 to 0 listener transition for ``source``."""

    def _fire_state_change(self, event: PropertyStateEvent) -> None:
        """Dispatch ``event`` to the listeners of its source object."""
        entry = self._listener_table.get(id(event.source_object))

        if entry is None:
            return

        for listener in tuple(entry[1]):
            listener(event)

    # ========== ========== ========== ========== ========== public methods
    def add_state_listener(self, source: Any, listener: PropertyStateListener) -> None:
        if listener is None:
            return

        entry = self._listener_table.get(id(source))

        if entry is None:
            entry = self._listener_table[id(source)] = (source, [])

        entry[1].append(listener)

        if len(entry[1]) == 1:

            try:
                self._listening_started(source)

            except Exception:
                del self._listener_table[id(source)]
                raise

    def remove_state_listener(self, source: Any, listener: PropertyStateListener) -> None:
        if listener is None:
            return

        entry = self._listener_table.get(id(source))

        if entry is None or listener not in entry[1]:
            return

        entry[1].remove(listener)

        if not entry[1]:
            del self._listener_table[id(source)]
            self._listening_stopped(source)

    def get_state_listeners(self, source: Any) -> tuple[PropertyStateListener, ...]:
        entry = self._listener_table.get(id(source))
        return () if entry is None else tuple(entry[1])

    def is_listening(self, source: Any) -> bool:
        return id(source) in self._listener_table


class ObjectProperty(PropertyHelper):
    """
    Property whose value is the source object itself.

    Always readable, never writeable, and never changes state.

    Examples
    --------
    >>> prop = ObjectProperty()
    >>> prop.get_value('text')
    'text'
    """

    def __str__(self) -> str:
        return f'{type(self).__name__}()'

    def __repr__(self) -> str:
        return str(self)

    def get_write_type(self, source: Any) -> type:
        raise UnwritableError('ObjectProperty is never writeable')

    def get_value(self, source: Any) -> Any:
        return source

    def set_value(self, source: Any, value: Any) -> None:
        raise UnwritableError('ObjectProperty is never writeable')

    def is_readable(self, source: Any) -> bool:
        return True

    def is_writeable(self, source: Any) -> bool:
        return False
