#  -*- coding: utf-8 -*-
"""
Tests for ObservableProperty, Observable and ObservableDict.
"""

from __future__ import annotations

import numpy as np
import pytest

from unittest.mock import Mock

from amarra.observable import (Observable, ObservableDict, ObservableProperty,
                               observable_property, values_differ)


# ========== ========== ========== ========== Fixtures
@pytest.fixture
def point_class() -> type:

    class Point(Observable):
        x: int = ObservableProperty(default=0)
        y: int = ObservableProperty(default=0)

    return Point


# ========== ========== ========== ========== Test ObservableProperty
class TestObservablePropertyBasics:
    """Test storage, defaults, parsers and observers."""

    def test_default_value(self, point_class: type) -> None:
        assert point_class().x == 0

    def test_class_access_returns_descriptor(self, point_class: type) -> None:
        assert isinstance(point_class.x, ObservableProperty)
        assert point_class.x.name == 'x'

    def test_doc(self) -> None:
        class Gauge(Observable):
            level: int = ObservableProperty(default=0, doc='Fill level.')

            @ObservableProperty
            def label(self) -> str:
                """Display label."""
                return 'gauge'

        assert Gauge.level.__doc__ == 'Fill level.'
        assert Gauge.label.__doc__ == 'Display label.'
        assert Gauge.label.name == 'label'

    def test_set_and_get(self, point_class: type) -> None:
        point = point_class()
        point.x = 3

        assert point.x == 3
        assert point_class.x.is_set(point)

    def test_default_factory_per_instance(self) -> None:

        class Bag:
            items: list = ObservableProperty(default=lambda self: [])

        first, second = Bag(), Bag()
        first.items.append(1)

        assert first.items == [1]
        assert second.items == []

    def test_parser_applied(self) -> None:

        class Label:
            text: str = ObservableProperty()

            @text.parser
            def text(self, value) -> str:
                return str(value).strip()

        label = Label()
        label.text = '  hi  '

        assert label.text == 'hi'

    def test_observer_called(self) -> None:
        spy = Mock()

        class Counter:
            count: int = ObservableProperty(default=0, observer=lambda inst, old, new: spy(old, new))

        counter = Counter()
        counter.count = 2

        spy.assert_called_once_with(0, 2)

    def test_readonly(self) -> None:

        class Fixed:
            value: int = ObservableProperty(default=1, readonly=True)

        fixed = Fixed()

        assert fixed.value == 1
        assert Fixed.value.readonly

        with pytest.raises(AttributeError):
            fixed.value = 2

    def test_writeonce(self) -> None:

        class Once:
            key: str = ObservableProperty(writeonce=True)

        once = Once()
        once.key = None
        once.key = 'a'

        assert Once.key.writeonce

        with pytest.raises(AttributeError, match='write-once'):
            once.key = 'b'

    def test_custom_accessors(self) -> None:

        class Temperature(Observable):

            def __init__(self) -> None:
                self._celsius = 0.0

            @ObservableProperty
            def celsius(self) -> float:
                return self._celsius

            @celsius.setter
            def celsius(self, value: float) -> None:
                self._celsius = value

        temperature = Temperature()
        listener = Mock()
        temperature.add_change_listener(listener)

        temperature.celsius = 5.0

        assert temperature._celsius == 5.0
        listener.assert_called_once_with(temperature, 'celsius', 0.0, 5.0)

    def test_getter_only_is_readonly(self) -> None:

        class Greeter:
            @observable_property()
            def greeting(self) -> str:
                return 'hello'

        greeter = Greeter()

        assert greeter.greeting == 'hello'
        assert Greeter.greeting.readonly

        with pytest.raises(AttributeError):
            greeter.greeting = 'bye'

    def test_delete_without_deleter(self, point_class: type) -> None:
        with pytest.raises(AttributeError):
            del point_class().x


# ========== ========== ========== ========== Test change notification
class TestChangeNotification:
    """Test Observable listeners."""

    def test_listener_notified(self, point_class: type) -> None:
        point = point_class()
        listener = Mock()
        point.add_change_listener(listener)

        point.x = 3

        listener.assert_called_once_with(point, 'x', 0, 3)

    def test_no_notification_without_change(self, point_class: type) -> None:
        point = point_class()
        point.x = 3

        listener = Mock()
        point.add_change_listener(listener)
        point.x = 3

        listener.assert_not_called()

    def test_listener_added_twice_called_twice(self, point_class: type) -> None:
        point = point_class()
        listener = Mock()
        point.add_change_listener(listener)
        point.add_change_listener(listener)

        point.y = 1

        assert listener.call_count == 2

    def test_remove_listener(self, point_class: type) -> None:
        point = point_class()
        listener = Mock()
        point.add_change_listener(listener)
        point.remove_change_listener(listener)

        point.x = 1

        listener.assert_not_called()
        assert point.change_listeners == ()

    def test_remove_unknown_and_none_ignored(self, point_class: type) -> None:
        point = point_class()

        point.remove_change_listener(Mock())
        point.add_change_listener(None)

        assert point.change_listeners == ()

    def test_fire_change_any_attribute(self, point_class: type) -> None:
        point = point_class()
        listener = Mock()
        point.add_change_listener(listener)

        point.fire_change(None)

        listener.assert_called_once_with(point, None, None, None)

    def test_listener_may_remove_itself(self, point_class: type) -> None:
        point = point_class()
        calls = []

        def listener(*args) -> None:
            calls.append(args)
            point.remove_change_listener(listener)

        point.add_change_listener(listener)
        point.x = 1
        point.x = 2

        assert len(calls) == 1

    def test_observable_properties_across_mro(self, point_class: type) -> None:

        class Point3D(point_class):
            z: int = ObservableProperty(default=0)

        assert set(Point3D.observable_properties()) == {'x', 'y', 'z'}


# ========== ========== ========== ========== Test ObservableDict
class TestObservableDict:
    """Test the notifying mapping."""

    def test_mapping_behaviour(self) -> None:
        data = ObservableDict({'a': 1}, b=2)

        assert data['a'] == 1
        assert len(data) == 2
        assert set(data) == {'a', 'b'}
        assert data.get('missing') is None
        assert repr(data) == "ObservableDict({'a': 1, 'b': 2})"

    def test_set_item_notifies(self) -> None:
        data = ObservableDict(a=1)
        listener = Mock()
        data.add_change_listener(listener)

        data['a'] = 2
        data['b'] = 3

        assert listener.call_args_list[0].args == (data, 'a', 1, 2)
        assert listener.call_args_list[1].args == (data, 'b', None, 3)

    def test_delete_notifies(self) -> None:
        data = ObservableDict(a=1)
        listener = Mock()
        data.add_change_listener(listener)

        del data['a']

        listener.assert_called_once_with(data, 'a', 1, None)

    def test_derived_methods_notify(self) -> None:
        data = ObservableDict(a=1, b=2)
        listener = Mock()
        data.add_change_listener(listener)

        data.update(c=3)
        data.pop('a')
        data.clear()

        keys = [call.args[1] for call in listener.call_args_list]

        assert keys[:2] == ['c', 'a']
        assert sorted(keys[2:]) == ['b', 'c']
        assert len(data) == 0


# ========== ========== ========== ========== Test values_differ
class TestValuesDiffer:
    """Test change detection."""

    def test_identity_and_equality(self) -> None:
        value = object()

        assert not values_differ(value, value)
        assert not values_differ(1, 1.0)
        assert values_differ(1, 2)
        assert values_differ(None, 0)

    def test_ambiguous_comparison_counts_as_change(self) -> None:
        assert values_differ(np.array([1, 2]), np.array([1, 2]))
