#  -*- coding: utf-8 -*-
"""
Low-level change notification for plain Python objects.

Path properties can only keep their caches current for objects that announce
their own changes. This module provides the building blocks for such objects:

- ``ObservableProperty``: a data descriptor with defaults, parsers and
  observers that notifies listeners after every effective change.
- ``Observable``: the mixin holding change listeners.
- ``ObservableDict``: a mutable mapping that notifies on key changes.

A change listener is any callable ``listener(source, name, old_value, new_value)``.
A ``name`` of ``None`` means that any attribute of ``source`` may have changed.

ObservableProperty
------------------
Data descriptor that announces its changes.

Works like ``property`` with extras: a default used while the attribute is
unset, a parser applied to every assigned value, an observer called after
every assignment, and read-only/write-once flags. When the owner instance is
``Observable`` and the value effectively changed, every change listener of
the instance is notified with ``(instance, name, old_value, new_value)``.

Parameters
----------
fget, fset, fdel : callable, optional
    Accessor functions. When omitted, the value is stored in a private
    instance attribute.
default : object or callable, optional
    Value returned while unset. A callable receives the instance and acts
    as a factory; its result is stored.
parser : callable, optional
    ``parser(instance, value) -> value`` applied before storing.
observer : callable, optional
    ``observer(instance, old_value, new_value)`` called after storing.
readonly : bool
    Reject every assignment.
writeonce : bool
    Reject assignments once a non-None value is stored.
doc : str, optional
    Docstring. Defaults to the getter's docstring.

Examples
--------
>>> class Person(Observable):
...     name: str = ObservableProperty(default='')
...
...     @ObservableProperty
...     def greeting(self) -> str:
...         return f'hello {self.name}'
>>> person = Person()
>>> person.add_change_listener(lambda src, name, old, new: print(name, old, new))
>>> person.name = 'Ada'
name  Ada
"""

from __future__ import annotations

from collections.abc import MutableMapping

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import TypeVar, Callable, Any, TypeAlias, Self, Iterator


T = TypeVar('T')
"""Represent the type of the property"""

Getter: TypeAlias = Callable[[object], T]
Setter: TypeAlias = Callable[[object, Any], None]
Deleter: TypeAlias = Callable[[object], None]

Observer: TypeAlias = Callable[[object, T, T], None]
Parser: TypeAlias = Callable[[object, Any], T]

ChangeListener: TypeAlias = Callable[[object, str | None, Any, Any], None]


def values_differ(old_value: Any, new_value: Any) -> bool:
    """
    Tell whether a stored value effectively changed.

    Identity short-circuits; otherwise ``!=`` decides. Values whose comparison
    is not a plain boolean (arrays, for instance) are treated as changed.
    """
    if old_value is new_value:
        return False

    try:
        return bool(old_value != new_value)

    except (TypeError, ValueError):
        return True


# ========== ========== ========== ========== ========== ObservableProperty
class ObservableProperty:

    # ========== ========== ========== ========== ========== class attributes
    __slots__ = ('fget', 'fset', 'fdel',
                 '_default', '_parser', '_observer',
                 '_writeonce', '_readonly', '_private_storage',
                 'name', 'private_name', 'owner', '__doc__', '__weakref__')

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 fget: Getter | None = None,
                 fset: Setter | None = None,
                 fdel: Deleter | None = None,
                 *,
                 default: T | Getter | None = None,
                 parser: Parser | None = None,
                 observer: Observer | None = None,
                 readonly: bool = False,
                 writeonce: bool = False,
                 doc: str | None = None) -> None:

        self.fget: Getter | None = fget
        self.fset: Setter | None = fset
        self.fdel: Deleter | None = fdel

        self._default: T | Getter | None = default
        self._parser: Parser | None = parser
        self._observer: Observer | None = observer

        self._readonly: bool = readonly
        self._writeonce: bool = writeonce
        self._private_storage: bool = False

        self.name: str = getattr(fget, '__name__', '')
        self.private_name: str = ''
        self.owner: type | None = None

        if self._readonly:
            self.fset = None

        self.__doc__: str | None = fget.__doc__ if doc is None and fget is not None else doc

    def __set_name__(self, owner: type, name: str) -> None:
        """Called when the descriptor is assigned to a class attribute."""
        self.name = name
        self.owner = owner
        self.private_name = f'_observable_property__{name}'

        if self.fget is None:
            self._private_storage = True
            self.fget = lambda obj: getattr(obj, self.private_name)

        if self.fset is None and not self._readonly and self._private_storage:
            self.fset = lambda obj, value: setattr(obj, self.private_name, value)

    def __get__(self, instance: object | None, owner: type | None = None) -> T | Self:
        """Get the property value."""
        if instance is None:
            # Accessing from class, return descriptor for introspection
            return self

        if self.fget is None:
            raise AttributeError(f"unreadable attribute '{self.name}'")

        try:
            return self.fget(instance)

        except AttributeError:
            if not self._private_storage:
                raise

        value = self.default_value(instance)

        setattr(instance, self.private_name, value)

        return value

    def __set__(self, instance: object, value: Any) -> None:
        """Set the property value and notify observers."""
        if self.fset is None:
            raise AttributeError(f"can't set attribute '{self.name}' (read-only property)")

        if self._writeonce and self.is_set(instance):
            current_value = self.fget(instance)
            raise AttributeError(
                f'{self.name} is a write-once property and has already been set with value {current_value!r}'
            )

        if self._parser is not None:
            value = self._parser(instance, value)

        old_value = self.__get__(instance, self.owner) if self.fget is not None else None

        self.fset(instance, value)

        if self._observer is not None:
            self._observer(instance, old_value, value)

        if isinstance(instance, Observable) and values_differ(old_value, value):
            instance.fire_change(self.name, old_value, value)

    def __delete__(self, instance: object) -> None:
        """Delete the property value."""
        if self.fdel is None:
            raise AttributeError(f"can't delete attribute '{self.name}'")

        self.fdel(instance)

    # ========== ========== Descriptor protocol methods to work like @property
    def _copy(self, **changes: Any) -> Self:

        arguments = dict(fget=self.fget if not self._private_storage else None,
                         fset=self.fset if not self._private_storage else None,
                         fdel=self.fdel,
                         default=self._default,
                         parser=self._parser,
                         observer=self._observer,
                         readonly=self._readonly,
                         writeonce=self._writeonce,
                         doc=self.__doc__)

        arguments.update(changes)

        fget, fset, fdel = arguments.pop('fget'), arguments.pop('fset'), arguments.pop('fdel')

        return type(self)(fget, fset, fdel, **arguments)

    def getter(self, fget: Getter) -> Self:
        """Set the getter function."""
        return self._copy(fget=fget)

    def setter(self, fset: Setter) -> Self:
        """Set the setter function."""
        return self._copy(fset=fset)

    def deleter(self, fdel: Deleter) -> Self:
        """Set the deleter function."""
        return self._copy(fdel=fdel)

    def default(self, func: Getter) -> Self:
        """Set the default factory."""
        return self._copy(default=func)

    def parser(self, func: Parser) -> Self:
        """Set the parser function."""
        return self._copy(parser=func)

    def observer(self, func: Observer) -> Self:
        """Set the observer function."""
        return self._copy(observer=func)

    # ========== ========== ========== ========== ========== public methods
    def default_value(self, instance: object) -> Any:
        """Value used while the attribute is unset on ``instance``."""
        return self._default(instance) if callable(self._default) else self._default

    def is_set(self, instance: object) -> bool:
        """Tell whether a non-None value is stored on ``instance``."""
        if self.fget is None:
            return False

        try:
            return self.fget(instance) is not None

        except AttributeError:
            return False

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def readonly(self) -> bool:
        """Check if property is read-only (no setter)."""
        return self._readonly or self.fset is None

    @property
    def writeonce(self) -> bool:
        """Check if property is write-once property."""
        return self._writeonce


def observable_property(default: T | Getter | None = None,
                        readonly: bool = False,
                        writeonce: bool = False) -> Callable[[Getter], ObservableProperty]:
    """Decorator form of ``ObservableProperty`` taking the getter."""

    def decorator(getter: Getter) -> ObservableProperty:
        return ObservableProperty(
            fget=getter,
            default=default,
            readonly=readonly,
            writeonce=writeonce,
        )

    return decorator


# ========== ========== ========== ========== ========== Observable
class Observable:
    """
    Mixin for objects that notify listeners about their own changes.

    ``ObservableProperty`` descriptors on an ``Observable`` notify automatically.
    Plain attributes and computed values can be announced with
    :meth:`fire_change`.

    Examples
    --------
    >>> class Point(Observable):
    ...     x: int = ObservableProperty(default=0)
    >>> calls = []
    >>> point = Point()
    >>> point.add_change_listener(lambda *args: calls.append(args))
    >>> point.x = 3
    >>> calls == [(point, 'x', 0, 3)]
    True
    """

    # ========== ========== ========== ========== ========== protected methods
    @property
    def _change_listener_list(self) -> list[ChangeListener]:
        try:
            return self.__change_listeners
        except AttributeError:
            self.__change_listeners = []
            return self.__change_listeners

    # ========== ========== ========== ========== ========== public methods
    def add_change_listener(self, listener: ChangeListener) -> None:
        """Register ``listener``; the same listener may be added more than once."""
        if listener is None:
            return

        self._change_listener_list.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        """Remove one registration of ``listener``; unknown listeners are ignored."""
        try:
            self._change_listener_list.remove(listener)
        except ValueError:
            pass

    def fire_change(self, name: str | None, old_value: Any = None, new_value: Any = None) -> None:
        """
        Notify every listener.

        Parameters
        ----------
        name : str or None
            Changed attribute, or None when anything may have changed.
        old_value, new_value : object
            Values before and after the change.
        """
        for listener in tuple(self._change_listener_list):
            listener(self, name, old_value, new_value)

    @classmethod
    def observable_properties(cls) -> dict[str, ObservableProperty]:
        """Collect the ``ObservableProperty`` descriptors across the MRO."""
        properties = {}

        for base in reversed(cls.__mro__):

            if base is object:
                continue

            for attr_name, attr_value in base.__dict__.items():

                if isinstance(attr_value, ObservableProperty):
                    properties[attr_name] = attr_value

        return properties

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def change_listeners(self) -> tuple[ChangeListener, ...]:
        """Snapshot of the registered listeners."""
        return tuple(self._change_listener_list)


# ========== ========== ========== ========== ========== ObservableDict
class ObservableDict(MutableMapping, Observable):
    """
    Mutable mapping that notifies listeners about key changes.

    Every insertion, replacement and removal calls listeners with
    ``(mapping, key, old_value, new_value)``; ``old_value`` is None for an
    added key and ``new_value`` is None for a removed key. All the derived
    ``MutableMapping`` methods (``update``, ``pop``, ``clear``...) notify too.

    Examples
    --------
    >>> data = ObservableDict(city='Recife')
    >>> data.add_change_listener(lambda src, key, old, new: print(key, old, new))
    >>> data['city'] = 'Natal'
    city Recife Natal
    >>> del data['city']
    city Natal None
    """

    def __init__(self, data: Any = None, /, **kwargs: Any) -> None:
        self._data: dict = {}

        if data is not None:
            self._data.update(data)

        self._data.update(kwargs)

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        old_value = self._data.get(key)
        self._data[key] = value
        self.fire_change(key, old_value, value)

    def __delitem__(self, key: Any) -> None:
        old_value = self._data.pop(key)
        self.fire_change(key, old_value, None)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._data!r})'
