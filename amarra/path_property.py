#  -*- coding: utf-8 -*-
"""
Properties resolved by walking a dotted path across a live object graph.

While a ``PathProperty`` is observed for a source object it keeps an
observation record for that source: the chain of objects met along the path,
the cached leaf value and writeability, and the low-level change listeners
attached to every observable object of the chain. A change announced by any
object of the chain re-resolves the rest of the path, moves the listeners to the
new objects and fires a single ``PropertyStateEvent`` when the value or the
writeability actually changed.

While not observed nothing is cached: every query resolves the path again.
"""

from __future__ import annotations

from decimal import Decimal
from functools import partial

from loguru import logger

from amarra import config
from amarra.accessors import AccessorRegistry, NOREAD, default_registry
from amarra.config import DiagnosticSettings, DivergencePolicy
from amarra.events import PropertyStateEvent, UNREADABLE
from amarra.exceptions import (CacheDivergenceError, PropertyResolutionError,
                               UnreadableError, UnwritableError)
from amarra.observable import values_differ
from amarra.path import PathExpression
from amarra.property import Property, PropertyHelper

from typing import Any, Self


_LITERAL_TYPES = (str, bytes, int, float, complex, bool, Decimal, tuple, frozenset)


def _same(cached: Any, live: Any) -> bool:
    """Identity, or equality for immutable literals that may be rebuilt on every read."""
    if cached is live:
        return True

    if type(cached) is type(live) and isinstance(cached, _LITERAL_TYPES):
        return not values_differ(cached, live)

    return False


def _is_observable(obj: Any) -> bool:
    if obj is None or obj is NOREAD:
        return False

    return (callable(getattr(obj, 'add_change_listener', None))
            and callable(getattr(obj, 'remove_change_listener', None)))


def _as_reported(value: Any) -> Any:
    return UNREADABLE if value is NOREAD else value


class _ObservationRecord:
    """Per-source observation state of one ``PathProperty``."""

    __slots__ = ('source', 'bean', 'cache', 'cached_value', 'cached_writeable',
                 'attached', 'ignore_change', 'change_handler', 'source_handler')

    def __init__(self, source: Any) -> None:
        self.source: Any = source
        self.bean: Any = NOREAD
        self.cache: list[Any] = []
        self.cached_value: Any = NOREAD
        self.cached_writeable: bool = False

        # id(obj) -> [obj, references]
        self.attached: dict[int, list] = {}

        self.ignore_change: bool = False
        self.change_handler = None
        self.source_handler = None

    def attach(self, obj: Any) -> None:
        if not _is_observable(obj):
            return

        entry = self.attached.get(id(obj))

        if entry is not None:
            entry[1] += 1
            return

        self.attached[id(obj)] = [obj, 1]
        obj.add_change_listener(self.change_handler)

    def detach(self, obj: Any) -> None:
        entry = self.attached.get(id(obj))

        if entry is None:
            return

        entry[1] -= 1

        if entry[1] == 0:
            del self.attached[id(obj)]
            obj.remove_change_listener(self.change_handler)

    def detach_all(self) -> None:
        for obj, _ in self.attached.values():
            obj.remove_change_listener(self.change_handler)

        self.attached.clear()


# ========== ========== ========== ========== ========== PathProperty
class PathProperty(PropertyHelper):
    """
    Property whose value is found by following a dotted path from the source.

    Each segment is resolved by an ``AccessorRegistry``: registered accessors,
    mapping keys, or plain attributes. When an intermediate value is None (or
    cannot be read) the property is unreadable and unwriteable for that source.
    The identity path ``""`` denotes the source itself.

    Parameters
    ----------
    path : str or PathExpression
        Path to follow.
    source_property : Property, optional
        When given, the path is followed from the value of this property
        instead of from the source object.
    registry : AccessorRegistry, optional
        Segment resolver. Defaults to ``amarra.accessors.default_registry``.
    settings : DiagnosticSettings, optional
        Diagnostic settings. Defaults to ``amarra.config.diagnostics``.

    Examples
    --------
    >>> from amarra.observable import ObservableDict
    >>> source = ObservableDict(a=ObservableDict(b=5))
    >>> prop = PathProperty.create('a.b')
    >>> prop.get_value(source)
    5
    >>> events = []
    >>> prop.add_state_listener(source, events.append)
    >>> source['a'] = ObservableDict(b=7)
    >>> (events[0].old_value, events[0].new_value)
    (5, 7)
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 path: str | PathExpression,
                 source_property: Property | None = None,
                 *,
                 registry: AccessorRegistry | None = None,
                 settings: DiagnosticSettings | None = None) -> None:

        if isinstance(path, str):
            path = PathExpression.parse(path)

        elif not isinstance(path, PathExpression):
            raise TypeError(f'Expected str or PathExpression as path, got {type(path).__name__}')

        if source_property is not None and not isinstance(source_property, Property):
            raise TypeError(f'Expected a Property as source_property, got {type(source_property).__name__}')

        self._path: PathExpression = path
        self._source_property: Property | None = source_property
        self._registry: AccessorRegistry | None = registry
        self._settings: DiagnosticSettings | None = settings

        self._records: dict[int, _ObservationRecord] = {}
        self._divergence_count: int = 0

    def __str__(self) -> str:
        text = f'{type(self).__name__}[{self._path}]'

        if self._source_property is not None:
            return f'{self._source_property}.{text}'

        return text

    def __repr__(self) -> str:
        return str(self)

    # ========== ========== ========== ========== ========== private methods
    def _bean(self, source: Any) -> Any:
        if self._source_property is None:
            return source

        if not self._source_property.is_readable(source):
            return NOREAD

        return self._source_property.get_value(source)

    def _read(self, obj: Any, index: int) -> Any:
        name = self._path.segment(index)

        try:
            value = self.registry.get(obj, name)

        except PropertyResolutionError as error:
            raise PropertyResolutionError(error.description, obj,
                                          str(self._path.sub_path(0, index + 1)),
                                          error.kind) from error

        if value is NOREAD and obj is not None and obj is not NOREAD and self.settings.log_resolution:
            logger.debug(f'{self}: no reader for {name!r} on {type(obj).__name__}')

        return value

    def _has_writer(self, obj: Any) -> bool:
        index = len(self._path) - 1

        try:
            writeable = self.registry.has_writer(obj, self._path.segment(index))

        except PropertyResolutionError as error:
            raise PropertyResolutionError(error.description, obj, str(self._path), error.kind) from error

        if not writeable and obj is not None and obj is not NOREAD and self.settings.log_resolution:
            logger.debug(f'{self}: no writer for {self._path.last()!r} on {type(obj).__name__}')

        return writeable

    def _leaf_owner(self, source: Any) -> Any:
        """Resolve every hop but the last, from scratch."""
        obj = self._bean(source)

        for index in range(len(self._path) - 1):
            obj = self._read(obj, index)

        return obj

    def _observed_owner(self, record: _ObservationRecord) -> Any:
        return record.cache[-1] if record.cache else record.bean

    # ---------- ---------- ---------- ---------- ---------- cache maintenance
    def _update_cached_sources(self, record: _ObservationRecord, index: int) -> None:
        """Re-resolve the hops from ``index`` on and move the listeners accordingly."""
        if index == 0:
            record.bean = self._bean(record.source)

        fresh = []

        for position in range(index, len(self._path)):

            if position == 0:
                fresh.append(record.bean)

            else:
                previous = fresh[-1] if fresh else record.cache[position - 1]
                fresh.append(self._read(previous, position - 1))

        # attach before detaching so unchanged objects keep their listener
        for obj in fresh:
            record.attach(obj)

            if obj is not None and obj is not NOREAD and not _is_observable(obj) and self.settings.log_resolution:
                logger.debug(f'{self}: {type(obj).__name__} does not announce changes and is not observed')

        for obj in record.cache[index:]:
            record.detach(obj)

        record.cache[index:] = fresh

    def _update_cached_value(self, record: _ObservationRecord) -> None:
        if self._path.is_identity:
            record.cached_value = record.bean
            record.cached_writeable = False
            return

        owner = self._observed_owner(record)

        record.cached_value = self._read(owner, len(self._path) - 1)
        record.cached_writeable = self._has_writer(owner)

    def _validate_cache(self, record: _ObservationRecord, ignore: int) -> None:
        """Compare the cached chain with the live graph, skipping hop ``ignore``."""
        if self.settings.divergence_policy == DivergencePolicy.IGNORE.value:
            return

        last = len(self._path) - 1

        for index in range(last + 1):

            if index == ignore:
                continue

            cached = record.cache[index + 1] if index < last else record.cached_value
            live = self._read(record.cache[index], index)

            if not _same(cached, live):
                self._report_divergence(record, f'{self._path.sub_path(0, index + 1)}: '
                                                f'cached {_as_reported(cached)!r}, live {_as_reported(live)!r}')

    def _report_divergence(self, record: _ObservationRecord, detail: str) -> None:
        self._divergence_count += 1

        message = f'{self}: concurrent modification detected for {record.source!r} ({detail})'

        if self.settings.divergence_policy == DivergencePolicy.RAISE.value:
            raise CacheDivergenceError(message)

        logger.warning(message)

    def _cached_value_changed(self, record: _ObservationRecord, index: int) -> None:
        self._validate_cache(record, index - 1)

        old_value, was_writeable = record.cached_value, record.cached_writeable

        self._update_cached_sources(record, index)
        self._update_cached_value(record)

        self._notify(record, old_value, was_writeable)

    def _notify(self, record: _ObservationRecord, old_value: Any, was_writeable: bool) -> None:
        old_value = _as_reported(old_value)
        new_value = _as_reported(record.cached_value)

        value_changed = values_differ(old_value, new_value)
        writeable_changed = was_writeable != record.cached_writeable

        if not value_changed and not writeable_changed:
            return

        self._fire_state_change(PropertyStateEvent(self, record.source,
                                                   value_changed, old_value, new_value,
                                                   writeable_changed, record.cached_writeable))

    # ---------- ---------- ---------- ---------- ---------- handlers
    def _object_changed(self, record: _ObservationRecord, obj: Any, name: str | None,
                        old_value: Any = None, new_value: Any = None) -> None:

        if record.ignore_change:
            return

        for index, hop in enumerate(record.cache):
            if hop is obj and (name is None or name == self._path.segment(index)):
                self._cached_value_changed(record, index + 1)
                return

    def _source_property_changed(self, record: _ObservationRecord, event: PropertyStateEvent) -> None:
        if record.ignore_change or not event.value_changed:
            return

        self._cached_value_changed(record, 0)

    # ========== ========== ========== ========== ========== protected methods
    def _listening_started(self, source: Any) -> None:
        record = _ObservationRecord(source)
        record.change_handler = partial(self._object_changed, record)

        self._records[id(source)] = record

        try:
            if self._source_property is not None:
                record.source_handler = partial(self._source_property_changed, record)
                self._source_property.add_state_listener(source, record.source_handler)

            self._update_cached_sources(record, 0)
            self._update_cached_value(record)

        except Exception:
            self._listening_stopped(source)
            raise

        if self.settings.log_resolution:
            logger.debug(f'{self}: observing {type(source).__name__} through {len(record.attached)} object(s)')

    def _listening_stopped(self, source: Any) -> None:
        record = self._records.pop(id(source))

        record.detach_all()
        record.cache.clear()

        if self._source_property is not None:
            self._source_property.remove_state_listener(source, record.source_handler)

        if self.settings.log_resolution:
            logger.debug(f'{self}: stopped observing {type(source).__name__}')

    # ========== ========== ========== ========== ========== public methods
    @classmethod
    def create(cls, path: str | PathExpression, **kwargs: Any) -> Self:
        """Create a property following ``path`` from the source object."""
        return cls(path, **kwargs)

    @classmethod
    def create_for_property(cls, source_property: Property, path: str | PathExpression, **kwargs: Any) -> Self:
        """Create a property following ``path`` from the value of ``source_property``."""
        if source_property is None:
            raise ValueError('Source property must not be None')

        return cls(path, source_property, **kwargs)

    def is_readable(self, source: Any) -> bool:
        record = self._records.get(id(source))

        if record is not None:
            self._validate_cache(record, -1)
            return record.cached_value is not NOREAD

        if self._path.is_identity:
            return self._bean(source) is not NOREAD

        return self._read(self._leaf_owner(source), len(self._path) - 1) is not NOREAD

    def is_writeable(self, source: Any) -> bool:
        if self._path.is_identity:
            return False

        record = self._records.get(id(source))

        if record is not None:
            self._validate_cache(record, -1)
            return record.cached_writeable

        return self._has_writer(self._leaf_owner(source))

    def get_value(self, source: Any) -> Any:
        """
        Read the value for ``source``.

        Raises
        ------
        UnreadableError
            If the path cannot be followed to its end.
        PropertyResolutionError
            If an accessor raised or a segment is inaccessible.
        """
        record = self._records.get(id(source))

        if record is not None:
            self._validate_cache(record, -1)
            value = record.cached_value

        elif self._path.is_identity:
            value = self._bean(source)

        else:
            value = self._read(self._leaf_owner(source), len(self._path) - 1)

        if value is NOREAD:
            raise UnreadableError(f'{self} is not readable for {source!r}')

        return value

    def set_value(self, source: Any, value: Any) -> None:
        """
        Write ``value`` for ``source``.

        When observed, the change announced by the write itself is ignored and a
        single state event reflecting the new value is fired instead.

        Raises
        ------
        UnwritableError
            If the last segment cannot be written.
        PropertyResolutionError
            If the writer raised.
        """
        if not self.is_writeable(source):
            raise UnwritableError(f'{self} is not writeable for {source!r}')

        record = self._records.get(id(source))
        owner = self._observed_owner(record) if record is not None else self._leaf_owner(source)

        if record is not None:
            record.ignore_change = True

        try:
            self.registry.write(owner, self._path.last(), value)

        except PropertyResolutionError as error:
            raise PropertyResolutionError(error.description, owner, str(self._path), error.kind) from error

        finally:
            if record is not None:
                record.ignore_change = False

        if record is not None:
            old_value, was_writeable = record.cached_value, record.cached_writeable
            self._update_cached_value(record)
            self._notify(record, old_value, was_writeable)

    def get_write_type(self, source: Any) -> type:
        """
        Declared type of the last segment for ``source``.

        Raises
        ------
        UnwritableError
            If the property is not writeable for ``source``.
        """
        if not self.is_writeable(source):
            raise UnwritableError(f'{self} is not writeable for {source!r}')

        record = self._records.get(id(source))
        owner = self._observed_owner(record) if record is not None else self._leaf_owner(source)

        return self.registry.value_type(owner, self._path.last())

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def path(self) -> PathExpression:
        return self._path

    @property
    def source_property(self) -> Property | None:
        return self._source_property

    @property
    def registry(self) -> AccessorRegistry:
        return default_registry if self._registry is None else self._registry

    @property
    def settings(self) -> DiagnosticSettings:
        return config.diagnostics if self._settings is None else self._settings

    @property
    def divergence_count(self) -> int:
        """Number of cache divergences detected so far."""
        return self._divergence_count
