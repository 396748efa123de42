#  -*- coding: utf-8 -*-
"""
Tests for Binding, SyncFailure and ValueResult.
"""

from __future__ import annotations

import pytest

from unittest.mock import Mock, call, patch

from amarra.binding import (Binding, BindingListener, SyncFailure, SyncFailureType,
                            SyncState, ValueResult)
from amarra.converter import FunctionConverter
from amarra.exceptions import IllegalStateError, PropertyResolutionError
from amarra.observable import ObservableDict
from amarra.path_property import PathProperty
from amarra.validator import FunctionValidator, Validator

from conftest import Faulty, Person, ReadOnlyBox


class ManualBinding(Binding):
    """Binding that only synchronizes when asked to."""

    def _bind_impl(self) -> None:
        pass

    def _unbind_impl(self) -> None:
        pass


def make_binding(source, source_path: str, target, target_path: str, **kwargs) -> ManualBinding:
    return ManualBinding(source, PathProperty.create(source_path), target, PathProperty.create(target_path), **kwargs)


@pytest.fixture
def form() -> ObservableDict:
    return ObservableDict()


@pytest.fixture
def binding(person: Person, form: ObservableDict) -> ManualBinding:
    return make_binding(person, 'name', form, 'text', name='greeting')


@pytest.fixture
def listener() -> Mock:
    return Mock(spec=BindingListener)


# ========== ========== ========== ========== Test SyncFailure and ValueResult
class TestSyncFailure:
    """Test failure values."""

    def test_singletons(self) -> None:
        assert SyncFailure.TARGET_UNWRITEABLE.type is SyncFailureType.TARGET_UNWRITEABLE
        assert SyncFailure.SOURCE_UNWRITEABLE.type is SyncFailureType.SOURCE_UNWRITEABLE
        assert SyncFailure.TARGET_UNREADABLE.type is SyncFailureType.TARGET_UNREADABLE
        assert SyncFailure.TARGET_UNWRITEABLE == SyncFailure(SyncFailureType.TARGET_UNWRITEABLE)

    def test_conversion_failure(self) -> None:
        error = ValueError('bad')
        failure = SyncFailure.conversion_failure(error)

        assert failure.type is SyncFailureType.CONVERSION_FAILED
        assert failure.conversion_exception is error
        assert failure == SyncFailure.conversion_failure(error)
        assert failure != SyncFailure.conversion_failure(ValueError('bad'))

        with pytest.raises(AttributeError):
            failure.validation_result

    def test_validation_failure(self) -> None:
        result = Validator.Result('range')
        failure = SyncFailure.validation_failure(result)

        assert failure.type is SyncFailureType.VALIDATION_FAILED
        assert failure.validation_result is result

        with pytest.raises(AttributeError):
            failure.conversion_exception

    def test_repr(self) -> None:
        assert repr(SyncFailure.TARGET_UNREADABLE) == 'SyncFailure(TARGET_UNREADABLE)'


class TestValueResult:

    def test_value(self) -> None:
        result = ValueResult(3)

        assert not result.failed
        assert result.value == 3

        with pytest.raises(AttributeError):
            result.failure

    def test_none_is_a_value(self) -> None:
        assert ValueResult(None).value is None

    def test_failure(self) -> None:
        result = ValueResult(failure=SyncFailure.TARGET_UNWRITEABLE)

        assert result.failed
        assert result.failure is SyncFailure.TARGET_UNWRITEABLE

        with pytest.raises(AttributeError):
            result.value


# ========== ========== ========== ========== Test configuration
class TestConfiguration:
    """Test construction and configuration rules."""

    def test_fields(self, binding: ManualBinding, person: Person, form: ObservableDict) -> None:
        assert binding.name == 'greeting'
        assert binding.source_object is person
        assert binding.target_object is form
        assert binding.converter is None
        assert binding.validator is None
        assert binding.source_null_value is None
        assert not binding.is_bound
        assert binding.sync_state is SyncState.IDLE

    def test_properties_required(self, person: Person) -> None:
        with pytest.raises(ValueError):
            ManualBinding(person, None, person, PathProperty.create('name'))

        with pytest.raises(ValueError):
            ManualBinding(person, PathProperty.create('name'), person, None)

    def test_properties_must_be_properties(self, person: Person) -> None:
        with pytest.raises(TypeError):
            ManualBinding(person, 'name', person, PathProperty.create('name'))

    def test_converter_and_validator_types(self, binding: ManualBinding) -> None:
        with pytest.raises(TypeError):
            binding.converter = str

        with pytest.raises(TypeError):
            binding.validator = bool

    def test_configuration_frozen_while_bound(self, binding: ManualBinding) -> None:
        binding.bind()

        with pytest.raises(IllegalStateError):
            binding.converter = FunctionConverter(str)

        with pytest.raises(IllegalStateError):
            binding.validator = None

        with pytest.raises(IllegalStateError):
            binding.source_object = Person()

        with pytest.raises(IllegalStateError):
            binding.target_property = PathProperty.create('other')

        with pytest.raises(IllegalStateError):
            binding.source_null_value = ''

    def test_configuration_allowed_after_unbind(self, binding: ManualBinding) -> None:
        binding.bind()
        binding.unbind()

        binding.source_null_value = ''

        assert binding.source_null_value == ''

    def test_configuration_changes_announced(self, binding: ManualBinding) -> None:
        spy = Mock()
        binding.add_change_listener(spy)

        binding.source_unreadable_value = 'n/a'

        spy.assert_called_once_with(binding, 'source_unreadable_value', None, 'n/a')

    def test_repr(self, binding: ManualBinding) -> None:
        text = repr(binding)

        assert text.startswith("ManualBinding(name='greeting'")
        assert 'bound=False' in text

    def test_display(self, binding: ManualBinding) -> None:
        text = str(binding)

        assert 'greeting' in text
        assert 'unbound' in text


# ========== ========== ========== ========== Test bind and unbind
class TestLifecycle:
    """Test bind and unbind."""

    def test_bind(self, binding: ManualBinding, listener: Mock) -> None:
        spy = Mock()
        binding.add_change_listener(spy)
        binding.add_binding_listener(listener)

        binding.bind()

        assert binding.is_bound
        assert not binding.has_edited_source
        assert not binding.has_edited_target
        listener.binding_became_bound.assert_called_once_with(binding)
        spy.assert_called_once_with(binding, 'is_bound', False, True)

    def test_bind_listens_to_both_sides(self, binding: ManualBinding, person: Person, form: ObservableDict) -> None:
        binding.bind()

        assert binding.source_property.is_listening(person)
        assert binding.target_property.is_listening(form)

    def test_bind_twice(self, binding: ManualBinding) -> None:
        binding.bind()

        with pytest.raises(IllegalStateError):
            binding.bind()

    def test_bind_property_to_itself(self, person: Person) -> None:
        prop = PathProperty.create('name')

        with pytest.raises(IllegalStateError):
            ManualBinding(person, prop, person, prop).bind()

    def test_same_property_on_different_objects(self, person: Person) -> None:
        prop = PathProperty.create('name')
        binding = ManualBinding(person, prop, Person('Grace'), prop)

        binding.bind()

        assert binding.is_bound

    def test_failed_bind_leaves_binding_unbound(self, person: Person, listener: Mock) -> None:
        # The source listener is removed again when the target can not be observed
        panel = ObservableDict(device=Faulty())
        binding = make_binding(person, 'name', panel, 'device.value')
        binding.add_binding_listener(listener)

        with pytest.raises(PropertyResolutionError):
            binding.bind()

        assert not binding.is_bound
        assert not binding.source_property.is_listening(person)
        assert not binding.target_property.is_listening(panel)
        assert person.change_listeners == ()
        assert panel.change_listeners == ()
        listener.binding_became_bound.assert_not_called()

        panel['device'] = ObservableDict(value='')
        binding.bind()

        assert binding.is_bound

    def test_unbind(self, binding: ManualBinding, listener: Mock, person: Person, form: ObservableDict) -> None:
        binding.bind()
        binding.add_binding_listener(listener)

        binding.unbind()

        assert not binding.is_bound
        assert person.change_listeners == ()
        assert form.change_listeners == ()
        listener.binding_became_unbound.assert_called_once_with(binding)

    def test_unbind_unbound(self, binding: ManualBinding) -> None:
        with pytest.raises(IllegalStateError):
            binding.unbind()

    def test_unbound_queries_rejected(self, binding: ManualBinding) -> None:
        with pytest.raises(IllegalStateError):
            binding.has_edited_source

        with pytest.raises(IllegalStateError):
            binding.has_edited_target

        with pytest.raises(IllegalStateError):
            binding.refresh()

        with pytest.raises(IllegalStateError):
            binding.save()

    def test_value_queries_allowed_while_unbound(self, binding: ManualBinding) -> None:
        assert binding.get_source_value_for_target().value == 'Ada'


# ========== ========== ========== ========== Test refresh
class TestRefresh:
    """Test copying the source value to the target."""

    def test_refresh(self, binding: ManualBinding, form: ObservableDict) -> None:
        binding.bind()

        assert binding.refresh() is None
        assert form['text'] == 'Ada'

    def test_default_conversion(self, person: Person) -> None:
        target = Person()
        binding = make_binding(person, 'age', target, 'name')
        binding.bind()

        binding.refresh()

        assert target.name == '36'

    def test_converter(self, person: Person, form: ObservableDict) -> None:
        binding = make_binding(person, 'age', form, 'text')
        binding.converter = FunctionConverter(lambda age: f'{age} years')
        binding.bind()

        binding.refresh()

        assert form['text'] == '36 years'

    def test_wrong_type_propagates(self, person: Person) -> None:
        binding = make_binding(person, 'address', Person(), 'age')
        binding.bind()

        with pytest.raises(TypeError):
            binding.refresh()

    def test_target_unwriteable(self, person: Person) -> None:
        box = ReadOnlyBox('x')
        binding = make_binding(person, 'name', box, 'value')
        binding.bind()

        assert binding.refresh() is SyncFailure.TARGET_UNWRITEABLE
        assert box.value == 'x'

    def test_unreadable_source(self, form: ObservableDict) -> None:
        binding = make_binding(Person('Ada'), 'address.city', form, 'text')
        binding.source_unreadable_value = 'n/a'
        binding.bind()

        binding.refresh()

        assert form['text'] == 'n/a'

    def test_null_source(self, form: ObservableDict) -> None:
        binding = make_binding(Person('Ada'), 'address', form, 'text')
        binding.source_null_value = '-'
        binding.bind()

        binding.refresh()

        assert form['text'] == '-'

    def test_refresh_and_notify(self, binding: ManualBinding, listener: Mock) -> None:
        binding.add_binding_listener(listener)
        binding.bind()

        binding.refresh_and_notify()

        listener.synced.assert_called_once_with(binding)
        listener.sync_failed.assert_not_called()

    def test_refresh_and_notify_failure(self, person: Person, listener: Mock, log_messages: list) -> None:
        binding = make_binding(person, 'name', ReadOnlyBox('x'), 'value')
        binding.add_binding_listener(listener)
        binding.bind()

        failure = binding.refresh_and_notify()

        assert failure is SyncFailure.TARGET_UNWRITEABLE
        listener.sync_failed.assert_called_once_with(binding, SyncFailure.TARGET_UNWRITEABLE)
        assert any('sync failed' in record['message'] for record in log_messages)


# ========== ========== ========== ========== Test save
class TestSave:
    """Test copying the target value back to the source."""

    def test_save(self, binding: ManualBinding, person: Person, form: ObservableDict) -> None:
        binding.bind()
        form['text'] = 'Grace'

        assert binding.save() is None
        assert person.name == 'Grace'

    def test_default_conversion(self, person: Person, form: ObservableDict) -> None:
        binding = make_binding(person, 'age', form, 'text')
        binding.bind()
        form['text'] = '41'

        binding.save()

        assert person.age == 41

    def test_wrong_type_propagates(self, person: Person, form: ObservableDict) -> None:
        binding = make_binding(person, 'age', form, 'text')
        binding.bind()
        form['text'] = 'abc'

        with pytest.raises(TypeError):
            binding.save()

        assert person.age == 36

    def test_conversion_failure(self, person: Person, form: ObservableDict, listener: Mock) -> None:
        binding = make_binding(person, 'age', form, 'text')
        binding.converter = FunctionConverter(str, int)
        binding.add_binding_listener(listener)
        binding.bind()
        form['text'] = 'abc'

        failure = binding.save_and_notify()

        assert failure.type is SyncFailureType.CONVERSION_FAILED
        assert isinstance(failure.conversion_exception, ValueError)
        assert person.age == 36
        listener.sync_failed.assert_called_once_with(binding, failure)

    def test_converter_type_error_is_a_conversion_failure(self, person: Person, form: ObservableDict) -> None:
        # Converters may reject values with TypeError too
        binding = make_binding(person, 'age', form, 'text')
        binding.converter = FunctionConverter(str, int)
        binding.bind()
        form['text'] = ['4']

        failure = binding.save()

        assert failure.type is SyncFailureType.CONVERSION_FAILED
        assert isinstance(failure.conversion_exception, TypeError)
        assert person.age == 36

    def test_validation_failure_leaves_source_untouched(self, person: Person, form: ObservableDict) -> None:
        binding = make_binding(person, 'age', form, 'text')
        binding.validator = FunctionValidator(lambda age: age >= 0, 'negative')
        binding.bind()
        form['text'] = '-1'

        with patch.object(binding.source_property, 'set_value') as set_value:
            failure = binding.save()

        set_value.assert_not_called()
        assert failure.type is SyncFailureType.VALIDATION_FAILED
        assert failure.validation_result.error_code == 'negative'

    def test_validation_success(self, person: Person, form: ObservableDict) -> None:
        binding = make_binding(person, 'age', form, 'text')
        binding.validator = FunctionValidator(lambda age: age >= 0)
        binding.bind()
        form['text'] = '7'

        assert binding.save() is None
        assert person.age == 7

    def test_source_unwriteable(self, form: ObservableDict) -> None:
        binding = make_binding(ReadOnlyBox('x'), 'value', form, 'text')
        binding.bind()
        form['text'] = 'y'

        assert binding.save() is SyncFailure.SOURCE_UNWRITEABLE

    def test_target_unreadable(self, person: Person) -> None:
        binding = make_binding(person, 'name', Person('Grace'), 'address.city')
        binding.bind()

        assert binding.save() is SyncFailure.TARGET_UNREADABLE

    def test_null_target(self, binding: ManualBinding, person: Person) -> None:
        binding.target_null_value = '?'
        binding.bind()

        binding.save()

        assert person.name == '?'


# ========== ========== ========== ========== Test edit tracking
class TestEditTracking:
    """Test edited flags and notifications."""

    def test_source_edit(self, binding: ManualBinding, person: Person, listener: Mock) -> None:
        spy = Mock()
        binding.bind()
        binding.add_binding_listener(listener)
        binding.add_change_listener(spy)

        person.name = 'Grace'

        assert binding.has_edited_source
        assert not binding.has_edited_target
        listener.source_edited.assert_called_once_with(binding)
        spy.assert_called_once_with(binding, 'has_edited_source', False, True)

    def test_target_edit(self, binding: ManualBinding, form: ObservableDict, listener: Mock) -> None:
        binding.bind()
        binding.add_binding_listener(listener)

        form['text'] = 'Grace'

        assert binding.has_edited_target
        listener.target_edited.assert_called_once_with(binding)

    def test_sync_clears_flags(self, binding: ManualBinding, person: Person, form: ObservableDict) -> None:
        binding.bind()
        person.name = 'Grace'
        form['text'] = 'Linus'

        binding.refresh()

        assert not binding.has_edited_source
        assert not binding.has_edited_target

    def test_own_writes_are_not_edits(self, binding: ManualBinding, listener: Mock) -> None:
        binding.bind()
        binding.add_binding_listener(listener)

        binding.refresh()

        assert not binding.has_edited_target
        listener.target_edited.assert_not_called()
        assert binding.sync_state is SyncState.IDLE

    def test_writeability_change_is_not_an_edit(self, person: Person, form: ObservableDict) -> None:
        form['box'] = ReadOnlyBox('Ada')
        binding = make_binding(person, 'name', form, 'box.value')
        binding.bind()

        form['box'] = ObservableDict(value='Ada')

        assert not binding.has_edited_target

    def test_flags_reset_by_bind(self, binding: ManualBinding, person: Person) -> None:
        binding.bind()
        person.name = 'Grace'
        binding.unbind()
        binding.bind()

        assert not binding.has_edited_source


# ========== ========== ========== ========== Test binding listeners
class TestBindingListeners:

    def test_add_and_remove(self, binding: ManualBinding, listener: Mock) -> None:
        binding.add_binding_listener(listener)
        binding.add_binding_listener(None)

        assert binding.binding_listeners == (listener,)

        binding.remove_binding_listener(listener)
        binding.remove_binding_listener(listener)

        assert binding.binding_listeners == ()

    def test_notification_order(self, binding: ManualBinding, person: Person) -> None:
        manager = Mock()
        binding.add_binding_listener(manager)
        binding.bind()

        person.name = 'Grace'
        binding.refresh_and_notify()

        assert manager.mock_calls == [call.binding_became_bound(binding),
                                      call.source_edited(binding),
                                      call.synced(binding)]
