#  -*- coding: utf-8 -*-
"""
Resolution of a single path segment on a single object.

Segments are resolved, in order, through:

1. accessors registered explicitly for the object's type (or a base type);
2. key lookup, for map-like objects (``collections.abc.Mapping``);
3. structural attribute access: data descriptors (``property``,
   ``ObservableProperty``, slots), instance attributes and non-callable class
   attributes. Methods and other callables are not properties.

Attributes are classified statically (``inspect.getattr_static``), so asking
whether a segment is readable or writeable never runs user code.
"""

from __future__ import annotations

import inspect
import types
import typing

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from functools import lru_cache

from amarra.exceptions import PropertyResolutionError, ResolutionFailure
from amarra.observable import ObservableProperty

from typing import Any, Callable, TypeAlias


SegmentGetter: TypeAlias = Callable[[Any], Any]
SegmentSetter: TypeAlias = Callable[[Any, Any], None]


class _NoRead:

    __slots__ = ()

    def __repr__(self) -> str:
        return 'NOREAD'


NOREAD = _NoRead()
"""Result of reading a segment that cannot be read (no object or no reader)."""

_MISSING = object()


@dataclass(frozen=True)
class Accessor:
    """Explicitly registered reader/writer pair for one named segment."""

    getter: SegmentGetter
    setter: SegmentSetter | None = None
    value_type: Any = object


# ========== ========== ========== ========== ========== helpers
def _is_data_descriptor(attribute: Any) -> bool:
    return hasattr(type(attribute), '__set__') or hasattr(type(attribute), '__delete__')


def _is_frozen(obj: Any) -> bool:
    if isinstance(obj, tuple):
        return True

    params = getattr(type(obj), '__dataclass_params__', None)
    return params is not None and params.frozen


def _as_type(hint: Any) -> type:
    """Reduce an annotation to a runtime class usable with ``isinstance``."""
    if hint is None or hint is typing.Any:
        return object

    origin = typing.get_origin(hint)

    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        return _as_type(args[0]) if len(args) == 1 else object

    if origin is not None:
        return origin if isinstance(origin, type) else object

    return hint if isinstance(hint, type) else object


@lru_cache(maxsize=512)
def _class_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)

    except (NameError, TypeError, AttributeError):
        # unresolvable forward references: fall back to what is evaluable
        hints = {}

        for base in reversed(cls.__mro__):
            for name, hint in getattr(base, '__annotations__', {}).items():
                if not isinstance(hint, str):
                    hints[name] = hint

        return hints


def _attribute_access(obj: Any, name: str) -> tuple[bool, bool]:
    """Return ``(readable, writeable)`` for attribute ``name`` of ``obj``."""
    cls_attr = inspect.getattr_static(type(obj), name, _MISSING)

    if cls_attr is not _MISSING and _is_data_descriptor(cls_attr):

        if isinstance(cls_attr, property):
            return cls_attr.fget is not None, cls_attr.fset is not None

        if isinstance(cls_attr, ObservableProperty):
            return cls_attr.fget is not None, not cls_attr.readonly

        return True, not _is_frozen(obj)

    try:
        instance_dict = vars(obj)

    except TypeError:
        instance_dict = None

    if isinstance(instance_dict, (dict, types.MappingProxyType)) and name in instance_dict:
        return True, not _is_frozen(obj) and isinstance(instance_dict, dict)

    if cls_attr is not _MISSING:

        if callable(cls_attr) or isinstance(cls_attr, (classmethod, staticmethod)):
            return False, False

        return True, isinstance(instance_dict, dict) and not _is_frozen(obj)

    return False, False


# ========== ========== ========== ========== ========== AccessorRegistry
class AccessorRegistry:
    """
    Reads and writes named segments on objects.

    Parameters
    ----------
    allow_private : bool
        Whether segments starting with ``_`` may be resolved. Disallowed by
        default; such segments raise ``PropertyResolutionError`` with kind
        ``INACCESSIBLE``.

    Examples
    --------
    Registering an accessor for a type whose data is not exposed as attributes:

    >>> class Thermometer:
    ...     def __init__(self):
    ...         self._celsius = 20.0
    ...     def read(self):
    ...         return self._celsius
    >>> registry = AccessorRegistry()
    >>> registry.register(Thermometer, 'celsius', Thermometer.read, value_type=float)
    >>> registry.get(Thermometer(), 'celsius')
    20.0
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, allow_private: bool = False) -> None:
        self._accessors: dict[tuple[type, str], Accessor] = {}
        self.allow_private: bool = allow_private

    def __contains__(self, key: tuple[type, str]) -> bool:
        return key in self._accessors

    # ========== ========== ========== ========== ========== private methods
    def _registered(self, obj: Any, name: str) -> Accessor | None:
        for cls in type(obj).__mro__:
            accessor = self._accessors.get((cls, name))
            if accessor is not None:
                return accessor

        return None

    def _check_accessible(self, obj: Any, name: str) -> None:
        if name.startswith('_') and not self.allow_private and self._registered(obj, name) is None:
            raise PropertyResolutionError(f'Segment {name!r} is not accessible',
                                          obj, name, ResolutionFailure.INACCESSIBLE)

    # ========== ========== ========== ========== ========== public methods
    def register(self,
                 owner: type,
                 name: str,
                 getter: SegmentGetter,
                 setter: SegmentSetter | None = None,
                 value_type: Any = object) -> None:
        """
        Register explicit accessors for segment ``name`` on ``owner`` and its subclasses.

        Raises
        ------
        TypeError
            If ``owner`` is not a class or ``getter`` is not callable.
        """
        if not isinstance(owner, type):
            raise TypeError(f'Expected a class as owner, got {type(owner).__name__}')

        if not callable(getter) or (setter is not None and not callable(setter)):
            raise TypeError('Accessors must be callable')

        self._accessors[(owner, name)] = Accessor(getter, setter, value_type)

    def unregister(self, owner: type, name: str) -> None:
        """Remove a registration; unknown registrations raise ``KeyError``."""
        del self._accessors[(owner, name)]

    def has_reader(self, obj: Any, name: str) -> bool:
        """Tell whether ``name`` can be read on ``obj``."""
        if obj is None or obj is NOREAD:
            return False

        self._check_accessible(obj, name)

        if self._registered(obj, name) is not None:
            return True

        if isinstance(obj, Mapping):
            return True

        return _attribute_access(obj, name)[0]

    def has_writer(self, obj: Any, name: str) -> bool:
        """Tell whether ``name`` can be written on ``obj``."""
        if obj is None or obj is NOREAD:
            return False

        self._check_accessible(obj, name)

        accessor = self._registered(obj, name)

        if accessor is not None:
            return accessor.setter is not None

        if isinstance(obj, Mapping):
            return isinstance(obj, MutableMapping)

        return _attribute_access(obj, name)[1]

    def get(self, obj: Any, name: str) -> Any:
        """
        Read ``name`` on ``obj``, returning ``NOREAD`` when there is no reader.

        A missing mapping key reads as None.

        Raises
        ------
        PropertyResolutionError
            If the segment is inaccessible (``INACCESSIBLE``) or the reader
            raised (``RAISED``).
        """
        if not self.has_reader(obj, name):
            return NOREAD

        accessor = self._registered(obj, name)

        try:
            if accessor is not None:
                return accessor.getter(obj)

            if isinstance(obj, Mapping):
                return obj.get(name)

            return getattr(obj, name)

        except Exception as error:
            raise PropertyResolutionError(f'Exception reading {name!r} on {type(obj).__name__}',
                                          obj, name, ResolutionFailure.RAISED) from error

    def read(self, obj: Any, name: str) -> Any:
        """
        Strict form of :meth:`get`.

        Raises
        ------
        PropertyResolutionError
            With kind ``NOT_FOUND`` if there is no reader, otherwise as :meth:`get`.
        """
        value = self.get(obj, name)

        if value is NOREAD:
            raise PropertyResolutionError(f'No reader for {name!r}', obj, name, ResolutionFailure.NOT_FOUND)

        return value

    def write(self, obj: Any, name: str, value: Any) -> None:
        """
        Write ``value`` to ``name`` on ``obj``.

        Raises
        ------
        PropertyResolutionError
            With kind ``NOT_FOUND`` if there is no writer, ``INACCESSIBLE`` for
            private segments, or ``RAISED`` if the writer raised.
        """
        if not self.has_writer(obj, name):
            raise PropertyResolutionError(f'No writer for {name!r}', obj, name, ResolutionFailure.NOT_FOUND)

        accessor = self._registered(obj, name)

        try:
            if accessor is not None:
                accessor.setter(obj, value)

            elif isinstance(obj, MutableMapping):
                obj[name] = value

            else:
                setattr(obj, name, value)

        except Exception as error:
            raise PropertyResolutionError(f'Exception writing {name!r} on {type(obj).__name__}',
                                          obj, name, ResolutionFailure.RAISED) from error

    def value_type(self, obj: Any, name: str) -> type:
        """
        Return the declared type of ``name`` on ``obj`` (``object`` when undeclared).

        Sources, in order: the registered accessor, class annotations (with
        ``Optional[X]`` reduced to ``X``), the return annotation of a
        ``property`` getter.
        """
        accessor = self._registered(obj, name)

        if accessor is not None:
            return _as_type(accessor.value_type)

        if isinstance(obj, Mapping):
            return object

        hints = _class_hints(type(obj))

        if name in hints:
            return _as_type(hints[name])

        cls_attr = inspect.getattr_static(type(obj), name, _MISSING)

        if isinstance(cls_attr, property) and cls_attr.fget is not None:
            try:
                return _as_type(typing.get_type_hints(cls_attr.fget).get('return'))

            except (NameError, TypeError):
                return object

        return object


default_registry = AccessorRegistry()
"""Registry used by properties that are not given one explicitly."""
