#  -*- coding: utf-8 -*-
"""
Bindings that synchronize automatically according to an update strategy.
"""

from __future__ import annotations

from enum import Enum

from amarra.binding import Binding, SyncFailure, SyncFailureType
from amarra.events import PropertyStateEvent
from amarra.path_property import PathProperty
from amarra.property import ObjectProperty, Property

from typing import Any


class UpdateStrategy(Enum):
    """
    When an ``AutoBinding`` propagates values.

    READ
        The target follows the source; target edits are only reported.
    READ_ONCE
        The target is refreshed once, when bound; afterwards changes on either
        side are only reported.
    READ_WRITE
        Both sides follow each other.
    """

    READ = 'read'
    READ_ONCE = 'read once'
    READ_WRITE = 'read write'


class AutoBinding(Binding):
    """
    ``Binding`` reacting to the state changes of its properties.

    Reactions, by strategy:

    ============ =========================================== ==========================================
    strategy     source changed                              target changed
    ============ =========================================== ==========================================
    READ_ONCE    nothing                                     nothing
    READ         value changed: refresh                      became writeable: refresh
    READ_WRITE   value changed: refresh, else save;          became writeable: refresh, else save;
                 became writeable: save                      otherwise: save, else refresh
    ============ =========================================== ==========================================

    When saving a target edit fails because of conversion or validation the
    failure is reported as is, without refreshing the target: the edit is bad,
    not stale.

    Parameters
    ----------
    strategy : UpdateStrategy
        Update strategy.
    source_object, source_property, target_object, target_property, name
        As for ``Binding``.

    Examples
    --------
    >>> from amarra.observable import ObservableDict
    >>> model, view = ObservableDict(title='draft'), ObservableDict()
    >>> binding = create_auto_binding(UpdateStrategy.READ_WRITE, model, 'title', view, 'text')
    >>> binding.bind()
    >>> view['text']
    'draft'
    >>> view['text'] = 'final'
    >>> model['title']
    'final'
    """

    def __init__(self,
                 strategy: UpdateStrategy,
                 source_object: Any,
                 source_property: Property,
                 target_object: Any,
                 target_property: Property,
                 name: str | None = None) -> None:

        if not isinstance(strategy, UpdateStrategy):
            raise ValueError(f'Must provide an update strategy, got {strategy!r}')

        self._strategy: UpdateStrategy = strategy

        super().__init__(source_object, source_property, target_object, target_property, name)

    # ========== ========== ========== ========== ========== private methods
    def _parameters(self) -> dict[str, Any]:
        parameters = super()._parameters()
        parameters['update_strategy'] = self._strategy
        return parameters

    def _try_refresh_then_save(self) -> None:
        refresh_failure = self.refresh()

        if refresh_failure is None:
            self._notify_synced()
            return

        save_failure = self.save()

        if save_failure is None:
            self._notify_synced()
        else:
            self._notify_sync_failed(refresh_failure, save_failure)

    def _try_save_then_refresh(self) -> None:
        save_failure = self.save()

        if save_failure is None:
            self._notify_synced()
            return

        if save_failure.type in (SyncFailureType.CONVERSION_FAILED, SyncFailureType.VALIDATION_FAILED):
            self._notify_sync_failed(save_failure)
            return

        refresh_failure = self.refresh()

        if refresh_failure is None:
            self._notify_synced()
        else:
            self._notify_sync_failed(save_failure, refresh_failure)

    # ========== ========== ========== ========== ========== protected methods
    def _bind_impl(self) -> None:
        if self._strategy is UpdateStrategy.READ_WRITE:
            self._try_refresh_then_save()
        else:
            self.refresh_and_notify()

    def _unbind_impl(self) -> None:
        pass

    def _source_changed_impl(self, event: PropertyStateEvent) -> None:
        if self._strategy is UpdateStrategy.READ:
            if event.value_changed:
                self.refresh_and_notify()

        elif self._strategy is UpdateStrategy.READ_WRITE:
            if event.value_changed:
                self._try_refresh_then_save()

            elif event.writeable_changed and event.is_writeable:
                self.save_and_notify()

    def _target_changed_impl(self, event: PropertyStateEvent) -> None:
        became_writeable = event.writeable_changed and event.is_writeable

        if self._strategy is UpdateStrategy.READ:
            if became_writeable:
                self.refresh_and_notify()

        elif self._strategy is UpdateStrategy.READ_WRITE:
            if became_writeable:
                self._try_refresh_then_save()
            else:
                self._try_save_then_refresh()

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def update_strategy(self) -> UpdateStrategy:
        return self._strategy


def _as_property(prop: Property | str | None) -> Property:
    if prop is None:
        return ObjectProperty()

    if isinstance(prop, str):
        return PathProperty.create(prop)

    if isinstance(prop, Property):
        return prop

    raise TypeError(f'Expected a Property, a path or None, got {type(prop).__name__}')


def create_auto_binding(strategy: UpdateStrategy,
                        source_object: Any,
                        source_property: Property | str | None,
                        target_object: Any,
                        target_property: Property | str | None,
                        name: str | None = None) -> AutoBinding:
    """
    Create an unbound ``AutoBinding``.

    Properties may be given as ``Property`` instances, as paths (wrapped in
    ``PathProperty``) or as None, meaning the object itself (``ObjectProperty``).

    Examples
    --------
    >>> binding = create_auto_binding(UpdateStrategy.READ, {'a': 1}, 'a', {}, 'b', name='copy')
    >>> binding.name, binding.is_bound
    ('copy', False)
    """
    return AutoBinding(strategy,
                       source_object, _as_property(source_property),
                       target_object, _as_property(target_property),
                       name)
