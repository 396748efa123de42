#  -*- coding: utf-8 -*-
"""
Pairwise synchronization between a source and a target property.

A ``Binding`` couples one ``(source_object, source_property)`` pair to one
``(target_object, target_property)`` pair. ``refresh`` copies the source value
to the target and ``save`` copies the target value back to the source, each
through the optional ``Converter`` (and, on the way back, ``Validator``).

Expected problems (a side that cannot be read or written, a conversion error,
a rejected value) are never raised: they are returned as ``SyncFailure``
values and reported to the binding listeners. Programming errors (a value of
the wrong type when no converter is configured) propagate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum

from loguru import logger
from rich.text import Text

from amarra.converter import Converter, default_convert
from amarra.display import Displayable
from amarra.events import PropertyStateEvent
from amarra.exceptions import IllegalStateError
from amarra.mixin import Nameable
from amarra.observable import Observable, ObservableProperty
from amarra.property import Property
from amarra.validator import Validator

from typing import Any, Iterator


# ========== ========== ========== ========== ========== failures
class SyncFailureType(Enum):
    """Reason a refresh or save could not complete."""

    TARGET_UNWRITEABLE = 'target unwriteable'
    SOURCE_UNWRITEABLE = 'source unwriteable'
    TARGET_UNREADABLE = 'target unreadable'
    CONVERSION_FAILED = 'conversion failed'
    VALIDATION_FAILED = 'validation failed'


class SyncFailure:
    """
    A failed refresh or save.

    Conversion failures carry the exception raised by the converter; validation
    failures carry the ``Validator.Result``.
    """

    __slots__ = ('_type', '_reason')

    TARGET_UNWRITEABLE: SyncFailure
    SOURCE_UNWRITEABLE: SyncFailure
    TARGET_UNREADABLE: SyncFailure

    def __init__(self, failure_type: SyncFailureType, reason: Any = None) -> None:
        self._type: SyncFailureType = failure_type
        self._reason: Any = reason

    def __repr__(self) -> str:
        if self._reason is None:
            return f'{type(self).__name__}({self._type.name})'

        return f'{type(self).__name__}({self._type.name}, {self._reason!r})'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SyncFailure):
            return NotImplemented

        return self._type is other._type and self._reason is other._reason

    def __hash__(self) -> int:
        return hash((self._type, id(self._reason)))

    @classmethod
    def conversion_failure(cls, exception: Exception) -> SyncFailure:
        return cls(SyncFailureType.CONVERSION_FAILED, exception)

    @classmethod
    def validation_failure(cls, result: Validator.Result) -> SyncFailure:
        return cls(SyncFailureType.VALIDATION_FAILED, result)

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def type(self) -> SyncFailureType:
        return self._type

    @property
    def conversion_exception(self) -> Exception:
        """
        Exception raised by the converter.

        Raises
        ------
        AttributeError
            If this is not a conversion failure.
        """
        if self._type is not SyncFailureType.CONVERSION_FAILED:
            raise AttributeError(f'{self._type.name} failure has no conversion exception')

        return self._reason

    @property
    def validation_result(self) -> Validator.Result:
        """
        Result returned by the validator.

        Raises
        ------
        AttributeError
            If this is not a validation failure.
        """
        if self._type is not SyncFailureType.VALIDATION_FAILED:
            raise AttributeError(f'{self._type.name} failure has no validation result')

        return self._reason


SyncFailure.TARGET_UNWRITEABLE = SyncFailure(SyncFailureType.TARGET_UNWRITEABLE)
SyncFailure.SOURCE_UNWRITEABLE = SyncFailure(SyncFailureType.SOURCE_UNWRITEABLE)
SyncFailure.TARGET_UNREADABLE = SyncFailure(SyncFailureType.TARGET_UNREADABLE)


class ValueResult:
    """Either a value or the ``SyncFailure`` that prevented computing it."""

    __slots__ = ('_value', '_failure')

    def __init__(self, value: Any = None, failure: SyncFailure | None = None) -> None:
        self._value: Any = value
        self._failure: SyncFailure | None = failure

    def __repr__(self) -> str:
        if self.failed:
            return f'{type(self).__name__}(failure={self._failure!r})'

        return f'{type(self).__name__}(value={self._value!r})'

    @property
    def failed(self) -> bool:
        return self._failure is not None

    @property
    def value(self) -> Any:
        """The value; ``AttributeError`` if the result is a failure."""
        if self.failed:
            raise AttributeError('Failed result has no value')

        return self._value

    @property
    def failure(self) -> SyncFailure:
        """The failure; ``AttributeError`` if the result is a value."""
        if not self.failed:
            raise AttributeError('Successful result has no failure')

        return self._failure


# ========== ========== ========== ========== ========== listeners
class BindingListener:
    """
    Receives the notifications of a binding.

    Every method does nothing; override the ones of interest. Any object with
    these methods can be registered.
    """

    def binding_became_bound(self, binding: Binding) -> None:
        pass

    def binding_became_unbound(self, binding: Binding) -> None:
        pass

    def sync_failed(self, binding: Binding, *failures: SyncFailure) -> None:
        pass

    def synced(self, binding: Binding) -> None:
        pass

    def source_edited(self, binding: Binding) -> None:
        pass

    def target_edited(self, binding: Binding) -> None:
        pass


class SyncState(Enum):
    """Whether the binding is writing one of its own properties."""

    IDLE = 'idle'
    PROPAGATING = 'propagating'


def _unbound_only(binding: Binding, value: Any) -> Any:
    binding._throw_if_bound()
    return value


def _property_parser(binding: Binding, value: Any) -> Property:
    binding._throw_if_bound()

    if not isinstance(value, Property):
        raise TypeError(f'Expected a Property, got {type(value).__name__}')

    return value


# ========== ========== ========== ========== ========== Binding
class Binding(Displayable, Nameable, Observable, ABC):
    """
    Abstract pairing of a source and a target property.

    Parameters
    ----------
    source_object : object
        Object the source property is evaluated on.
    source_property : Property
        Property read by ``refresh`` and written by ``save``.
    target_object : object
        Object the target property is evaluated on.
    target_property : Property
        Property written by ``refresh`` and read by ``save``.
    name : str, optional
        Name of the binding.

    Notes
    -----
    While bound the binding holds exactly one state listener on each side.
    Changes announced while the binding writes one of its own properties are
    ignored, so that refresh and save never feed back into themselves.

    Configuration (objects, properties, converter, validator, substitution
    values) can only change while unbound; otherwise ``IllegalStateError``.
    """

    # ========== ========== ========== ========== ========== class attributes
    source_object: Any = ObservableProperty(parser=_unbound_only)
    target_object: Any = ObservableProperty(parser=_unbound_only)

    source_property: Property = ObservableProperty(parser=_property_parser)
    target_property: Property = ObservableProperty(parser=_property_parser)

    converter: Converter | None = ObservableProperty(doc="""
        Converter applied by refresh (forward) and save (reverse).

        When None, values are adapted to the write type of the receiving
        property with ``default_convert`` and must be instances of it.
        """)

    @converter.parser
    def converter(self, value: Converter | None) -> Converter | None:
        self._throw_if_bound()

        if value is not None and not isinstance(value, Converter):
            raise TypeError(f'Expected a Converter, got {type(value).__name__}')

        return value

    validator: Validator | None = ObservableProperty(doc="""
        Validator applied by save to the converted target value.
        """)

    @validator.parser
    def validator(self, value: Validator | None) -> Validator | None:
        self._throw_if_bound()

        if value is not None and not isinstance(value, Validator):
            raise TypeError(f'Expected a Validator, got {type(value).__name__}')

        return value

    source_null_value: Any = ObservableProperty(parser=_unbound_only, doc="""
        Value given to the target when the source value is None.
        """)

    target_null_value: Any = ObservableProperty(parser=_unbound_only, doc="""
        Value given to the source when the target value is None.
        """)

    source_unreadable_value: Any = ObservableProperty(parser=_unbound_only, doc="""
        Value given to the target when the source is unreadable.
        """)

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 source_object: Any,
                 source_property: Property,
                 target_object: Any,
                 target_property: Property,
                 name: str | None = None) -> None:

        if source_property is None or target_property is None:
            raise ValueError('Both source and target properties are required')

        self._bound: bool = False
        self._edited_source: bool = False
        self._edited_target: bool = False
        self._sync_state: SyncState = SyncState.IDLE
        self._listeners: list[BindingListener] = []

        self.source_object = source_object
        self.source_property = source_property
        self.target_object = target_object
        self.target_property = target_property
        self.name = name

    def __repr__(self) -> str:
        fields = ', '.join(f'{key}={value!r}' for key, value in self._parameters().items())
        return f'{type(self).__name__}({fields})'

    # ========== ========== ========== ========== ========== private methods
    def _parameters(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'source_object': self.source_object,
            'source_property': self.source_property,
            'target_object': self.target_object,
            'target_property': self.target_property,
            'converter': self.converter,
            'validator': self.validator,
            'source_null_value': self.source_null_value,
            'target_null_value': self.target_null_value,
            'source_unreadable_value': self.source_unreadable_value,
            'has_edited_source': self._edited_source,
            'has_edited_target': self._edited_target,
            'bound': self._bound,
        }

    def _property_state_changed(self, event: PropertyStateEvent) -> None:
        if self._sync_state is SyncState.PROPAGATING:
            return

        if event.source_property is self.source_property and event.source_object is self.source_object:
            self._source_changed(event)
        else:
            self._target_changed(event)

    def _source_changed(self, event: PropertyStateEvent) -> None:
        if event.value_changed:
            self._set_edited_source(True)

            for listener in tuple(self._listeners):
                listener.source_edited(self)

        self._source_changed_impl(event)

    def _target_changed(self, event: PropertyStateEvent) -> None:
        if event.value_changed:
            self._set_edited_target(True)

            for listener in tuple(self._listeners):
                listener.target_edited(self)

        self._target_changed_impl(event)

    def _set_edited_source(self, value: bool) -> None:
        old_value, self._edited_source = self._edited_source, value

        if old_value != value:
            self.fire_change('has_edited_source', old_value, value)

    def _set_edited_target(self, value: bool) -> None:
        old_value, self._edited_target = self._edited_target, value

        if old_value != value:
            self.fire_change('has_edited_target', old_value, value)

    def _convert_forward(self, value: Any) -> Any:
        if self.converter is not None:
            return self.converter.convert_forward(value)

        return self._default_convert(value, self.target_property.get_write_type(self.target_object))

    def _convert_reverse(self, value: Any) -> Any:
        if self.converter is not None:
            return self.converter.convert_reverse(value)

        return self._default_convert(value, self.source_property.get_write_type(self.source_object))

    @staticmethod
    def _default_convert(value: Any, write_type: type) -> Any:
        converted = default_convert(value, write_type)

        if not isinstance(converted, write_type):
            raise TypeError(f'Cannot convert {type(value).__name__} value {value!r} to {write_type.__name__}')

        return converted

    @contextmanager
    def _propagating(self) -> Iterator[None]:
        previous, self._sync_state = self._sync_state, SyncState.PROPAGATING

        try:
            yield
        finally:
            self._sync_state = previous

    # ========== ========== ========== ========== ========== protected methods
    def _throw_if_bound(self) -> None:
        if getattr(self, '_bound', False):
            raise IllegalStateError('Can not call this method on a bound binding')

    def _throw_if_unbound(self) -> None:
        if not self._bound:
            raise IllegalStateError('Can not call this method on an unbound binding')

    @abstractmethod
    def _bind_impl(self) -> None:
        """Initial synchronization, called by :meth:`bind` once listening."""
        ...

    @abstractmethod
    def _unbind_impl(self) -> None:
        """Called by :meth:`unbind` before the listeners are removed."""
        ...

    def _source_changed_impl(self, event: PropertyStateEvent) -> None:
        """Hook for every state change of the source while bound."""

    def _target_changed_impl(self, event: PropertyStateEvent) -> None:
        """Hook for every state change of the target while bound."""

    def _notify_synced(self) -> None:
        for listener in tuple(self._listeners):
            listener.synced(self)

    def _notify_sync_failed(self, *failures: SyncFailure) -> None:
        logger.debug(f'{type(self).__name__} {self.name!r}: sync failed {failures}')

        for listener in tuple(self._listeners):
            listener.sync_failed(self, *failures)

    def _notify_and_return(self, failure: SyncFailure | None) -> SyncFailure | None:
        if failure is None:
            self._notify_synced()
        else:
            self._notify_sync_failed(failure)

        return failure

    def _title(self) -> Text:
        state = 'bound' if self._bound else 'unbound'
        return Text(f'{type(self).__name__}: {self.name or "<unnamed>"} ({state})', style='bold')

    def _content(self) -> Any:
        parameters = self._parameters()
        del parameters['name']
        return self.format_as_form({key: repr(value) for key, value in parameters.items()})

    # ========== ========== ========== ========== ========== public methods
    def get_source_value_for_target(self) -> ValueResult:
        """
        Compute the value ``refresh`` would write to the target.

        Returns
        -------
        ValueResult
            ``TARGET_UNWRITEABLE`` failure if the target cannot be written.
            Otherwise the converted source value, ``source_null_value`` for a
            None source value, or ``source_unreadable_value`` for an
            unreadable source.

        Raises
        ------
        TypeError
            If there is no converter and the value does not fit the target's
            write type. Exceptions raised by a converter propagate as well.
        """
        if not self.target_property.is_writeable(self.target_object):
            return ValueResult(failure=SyncFailure.TARGET_UNWRITEABLE)

        if not self.source_property.is_readable(self.source_object):
            return ValueResult(self.source_unreadable_value)

        raw_value = self.source_property.get_value(self.source_object)

        if raw_value is None:
            return ValueResult(self.source_null_value)

        return ValueResult(self._convert_forward(raw_value))

    def get_target_value_for_source(self) -> ValueResult:
        """
        Compute the value ``save`` would write to the source.

        Returns
        -------
        ValueResult
            ``TARGET_UNREADABLE`` or ``SOURCE_UNWRITEABLE`` failures when a side
            cannot be accessed; ``target_null_value`` for a None target value;
            otherwise the reverse-converted target value, or a
            ``CONVERSION_FAILED`` / ``VALIDATION_FAILED`` failure.

        Raises
        ------
        TypeError
            If there is no converter and the value does not fit the source's
            write type. Every exception raised by a converter becomes a
            ``CONVERSION_FAILED`` failure.
        """
        if not self.target_property.is_readable(self.target_object):
            return ValueResult(failure=SyncFailure.TARGET_UNREADABLE)

        if not self.source_property.is_writeable(self.source_object):
            return ValueResult(failure=SyncFailure.SOURCE_UNWRITEABLE)

        raw_value = self.target_property.get_value(self.target_object)

        if raw_value is None:
            return ValueResult(self.target_null_value)

        try:
            value = self._convert_reverse(raw_value)

        except Exception as error:
            # only the cast failure of the default conversion propagates
            if self.converter is None and isinstance(error, TypeError):
                raise

            return ValueResult(failure=SyncFailure.conversion_failure(error))

        if self.validator is not None:
            result = self.validator.validate(value)

            if result is not None:
                return ValueResult(failure=SyncFailure.validation_failure(result))

        return ValueResult(value)

    def bind(self) -> None:
        """
        Start listening to both sides and perform the initial synchronization.

        Raises
        ------
        IllegalStateError
            If already bound, or if source and target are the same property of
            the same object.
        """
        self._throw_if_bound()

        if self.source_property is self.target_property and self.source_object is self.target_object:
            raise IllegalStateError('Can not bind a property of an object to itself')

        self._edited_source = False
        self._edited_target = False
        self._bound = True

        attached = []

        try:
            for prop, obj in ((self.source_property, self.source_object),
                              (self.target_property, self.target_object)):
                prop.add_state_listener(obj, self._property_state_changed)
                attached.append((prop, obj))

        except Exception:
            for prop, obj in attached:
                prop.remove_state_listener(obj, self._property_state_changed)

            self._bound = False
            raise

        logger.debug(f'{type(self).__name__} {self.name!r}: bound')

        self._bind_impl()

        for listener in tuple(self._listeners):
            listener.binding_became_bound(self)

        self.fire_change('is_bound', False, True)

    def unbind(self) -> None:
        """
        Stop listening to both sides.

        Raises
        ------
        IllegalStateError
            If not bound.
        """
        self._throw_if_unbound()

        self._unbind_impl()

        self.source_property.remove_state_listener(self.source_object, self._property_state_changed)
        self.target_property.remove_state_listener(self.target_object, self._property_state_changed)

        self._bound = False
        self._edited_source = False
        self._edited_target = False

        logger.debug(f'{type(self).__name__} {self.name!r}: unbound')

        for listener in tuple(self._listeners):
            listener.binding_became_unbound(self)

        self.fire_change('is_bound', True, False)

    def refresh(self) -> SyncFailure | None:
        """
        Write the source value (see :meth:`get_source_value_for_target`) to the target.

        Returns
        -------
        SyncFailure or None
            None on success.

        Raises
        ------
        IllegalStateError
            If not bound.
        """
        self._throw_if_unbound()

        result = self.get_source_value_for_target()

        if result.failed:
            return result.failure

        with self._propagating():
            self.target_property.set_value(self.target_object, result.value)

        self._set_edited_source(False)
        self._set_edited_target(False)

        return None

    def save(self) -> SyncFailure | None:
        """
        Write the target value (see :meth:`get_target_value_for_source`) to the source.

        Returns
        -------
        SyncFailure or None
            None on success.

        Raises
        ------
        IllegalStateError
            If not bound.
        """
        self._throw_if_unbound()

        result = self.get_target_value_for_source()

        if result.failed:
            return result.failure

        with self._propagating():
            self.source_property.set_value(self.source_object, result.value)

        self._set_edited_source(False)
        self._set_edited_target(False)

        return None

    def refresh_and_notify(self) -> SyncFailure | None:
        """:meth:`refresh`, then report ``synced`` or ``sync_failed`` to the listeners."""
        return self._notify_and_return(self.refresh())

    def save_and_notify(self) -> SyncFailure | None:
        """:meth:`save`, then report ``synced`` or ``sync_failed`` to the listeners."""
        return self._notify_and_return(self.save())

    def add_binding_listener(self, listener: BindingListener) -> None:
        """Register ``listener``; None is ignored, duplicates are notified once per registration."""
        if listener is None:
            return

        self._listeners.append(listener)

    def remove_binding_listener(self, listener: BindingListener) -> None:
        """Remove one registration of ``listener``; unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def is_bound(self) -> bool:
        return self._bound

    @property
    def has_edited_source(self) -> bool:
        """
        Whether the source changed since the last successful refresh or save.

        Raises
        ------
        IllegalStateError
            If not bound.
        """
        self._throw_if_unbound()
        return self._edited_source

    @property
    def has_edited_target(self) -> bool:
        """
        Whether the target changed since the last successful refresh or save.

        Raises
        ------
        IllegalStateError
            If not bound.
        """
        self._throw_if_unbound()
        return self._edited_target

    @property
    def sync_state(self) -> SyncState:
        return self._sync_state

    @property
    def binding_listeners(self) -> tuple[BindingListener, ...]:
        return tuple(self._listeners)
