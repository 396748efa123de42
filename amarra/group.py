#  -*- coding: utf-8 -*-
"""
Groups of bindings bound, unbound and monitored together.
"""

from __future__ import annotations

import pandas

from rich.text import Text

from amarra.binding import Binding, BindingListener, SyncFailure
from amarra.display import Displayable
from amarra.observable import Observable

from typing import Any


class _GroupHandler(BindingListener):
    """Listener installed on every member; keeps the group state and forwards notifications."""

    def __init__(self, group: BindingGroup) -> None:
        self.group = group

    def binding_became_bound(self, binding: Binding) -> None:
        self.group._moved(binding, bound=True)

        for listener in self.group.binding_listeners:
            listener.binding_became_bound(binding)

    def binding_became_unbound(self, binding: Binding) -> None:
        self.group._moved(binding, bound=False)

        for listener in self.group.binding_listeners:
            listener.binding_became_unbound(binding)

    def sync_failed(self, binding: Binding, *failures: SyncFailure) -> None:
        for listener in self.group.binding_listeners:
            listener.sync_failed(binding, *failures)

    def synced(self, binding: Binding) -> None:
        for listener in self.group.binding_listeners:
            listener.synced(binding)

    def source_edited(self, binding: Binding) -> None:
        for listener in self.group.binding_listeners:
            listener.source_edited(binding)

    def target_edited(self, binding: Binding) -> None:
        for listener in self.group.binding_listeners:
            listener.target_edited(binding)

    def binding_changed(self, binding: Binding, name: str | None, old_value: Any, new_value: Any) -> None:
        if name == 'has_edited_target':
            self.group._edited(binding, bool(new_value))


class BindingGroup(Displayable, Observable):
    """
    A set of bindings with aggregate bind, unbind and edit tracking.

    Bindings are kept in two partitions, bound and unbound, updated as members
    are bound or unbound (through the group or directly). Named members can be
    looked up by name; names are unique within a group.

    ``has_edited_target_bindings`` tells whether any bound member has a target
    edit not yet synchronized. It is announced (``fire_change``) only when it
    flips.

    Examples
    --------
    >>> from amarra.auto_binding import UpdateStrategy, create_auto_binding
    >>> group = BindingGroup()
    >>> group.add_binding(create_auto_binding(UpdateStrategy.READ, {'a': 1}, 'a', {}, 'a', name='a'))
    >>> group.bind()
    >>> group.get_binding('a').is_bound
    True
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self) -> None:
        self._unbound: list[Binding] = []
        self._bound: list[Binding] = []
        self._named: dict[str, Binding] = {}
        self._edited_targets: dict[Binding, None] = {}
        self._listeners: list[BindingListener] = []
        self._handler = _GroupHandler(self)

    def __len__(self) -> int:
        return len(self._bound) + len(self._unbound)

    def __iter__(self):
        return iter(self.bindings)

    def __contains__(self, binding: object) -> bool:
        return any(binding is member for member in self.bindings)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(bound={len(self._bound)}, unbound={len(self._unbound)})'

    # ========== ========== ========== ========== ========== private methods
    def _moved(self, binding: Binding, bound: bool) -> None:
        origin, destination = (self._unbound, self._bound) if bound else (self._bound, self._unbound)

        if binding in origin:
            origin.remove(binding)
            destination.append(binding)

        if not bound:
            self._edited(binding, False)

    def _edited(self, binding: Binding, edited: bool) -> None:
        was_edited = bool(self._edited_targets)

        if edited:
            self._edited_targets[binding] = None
        else:
            self._edited_targets.pop(binding, None)

        if was_edited != bool(self._edited_targets):
            self.fire_change('has_edited_target_bindings', was_edited, not was_edited)

    # ========== ========== ========== ========== ========== protected methods
    def _title(self) -> Text:
        return Text(f'{type(self).__name__} ({len(self._bound)} bound, {len(self._unbound)} unbound)', style='bold')

    def _content(self) -> Any:
        if not len(self):
            return Text('no bindings', style='dim')

        frame = pandas.DataFrame([{
            'name': binding.name or '',
            'type': type(binding).__name__,
            'source': str(binding.source_property),
            'target': str(binding.target_property),
            'bound': binding.is_bound,
            'edited target': binding in self._edited_targets,
        } for binding in self.bindings])

        return self.format_as_table(frame)

    # ========== ========== ========== ========== ========== public methods
    def add_binding(self, binding: Binding) -> None:
        """
        Add ``binding`` to the group.

        Raises
        ------
        ValueError
            If ``binding`` is None, already a member, or named like another member.
        """
        if binding is None:
            raise ValueError('Binding must not be None')

        if binding in self:
            raise ValueError('Group already contains this binding')

        name = binding.name

        if name is not None:

            if name in self._named:
                raise ValueError(f'Group already contains a binding with name {name!r}')

            self._named[name] = binding

        binding.add_binding_listener(self._handler)
        binding.add_change_listener(self._handler.binding_changed)

        if binding.is_bound:
            self._bound.append(binding)

            if binding.has_edited_target:
                self._edited(binding, True)

        else:
            self._unbound.append(binding)

    def remove_binding(self, binding: Binding) -> None:
        """
        Remove ``binding`` from the group.

        Raises
        ------
        ValueError
            If ``binding`` is None or not a member.
        """
        if binding is None:
            raise ValueError('Binding must not be None')

        if binding not in self:
            raise ValueError('Unknown binding')

        if binding.name is not None:
            del self._named[binding.name]

        binding.remove_binding_listener(self._handler)
        binding.remove_change_listener(self._handler.binding_changed)

        if binding.is_bound:
            self._bound.remove(binding)
        else:
            self._unbound.remove(binding)

        self._edited(binding, False)

    def get_binding(self, name: str) -> Binding | None:
        """
        Member named ``name``, or None.

        Raises
        ------
        ValueError
            If ``name`` is None.
        """
        if name is None:
            raise ValueError('Cannot fetch unnamed bindings')

        return self._named.get(name)

    def bind(self) -> None:
        """Bind every unbound member."""
        for binding in tuple(self._unbound):
            binding.bind()

    def unbind(self) -> None:
        """Unbind every bound member."""
        for binding in tuple(self._bound):
            binding.unbind()

    def add_binding_listener(self, listener: BindingListener) -> None:
        """Register ``listener`` for the notifications of every member."""
        if listener is None:
            return

        self._listeners.append(listener)

    def remove_binding_listener(self, listener: BindingListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def bindings(self) -> tuple[Binding, ...]:
        """Every member, bound ones first."""
        return tuple(self._bound) + tuple(self._unbound)

    @property
    def binding_listeners(self) -> tuple[BindingListener, ...]:
        return tuple(self._listeners)

    @property
    def has_edited_target_bindings(self) -> bool:
        return bool(self._edited_targets)

    @property
    def edited_target_bindings(self) -> tuple[Binding, ...]:
        return tuple(self._edited_targets)
