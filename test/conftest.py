#  -*- coding: utf-8 -*-
"""
Shared fixtures and model classes for the test suite.
"""

from __future__ import annotations

import pytest

from loguru import logger

from amarra.config import diagnostics
from amarra.observable import Observable, ObservableProperty


# ========== ========== ========== ========== Models
class Address(Observable):

    city: str = ObservableProperty(default='')

    def __init__(self, city: str = '') -> None:
        self.city = city

    def __repr__(self) -> str:
        return f'Address({self.city!r})'


class Person(Observable):

    name: str = ObservableProperty(default='')
    age: int = ObservableProperty(default=0)
    address: Address | None = ObservableProperty(default=None)

    def __init__(self, name: str = '', age: int = 0, address: Address | None = None) -> None:
        self.name = name
        self.age = age
        self.address = address

    def __repr__(self) -> str:
        return f'Person({self.name!r})'


class Node(Observable):

    value: int = ObservableProperty(default=0)
    next: Node | None = ObservableProperty(default=None)


class ReadOnlyBox:

    def __init__(self, value: str) -> None:
        self._value = value

    @property
    def value(self) -> str:
        return self._value


class Faulty:

    @property
    def value(self) -> int:
        raise RuntimeError('sensor offline')


# ========== ========== ========== ========== Fixtures
@pytest.fixture
def person() -> Person:
    return Person('Ada', 36, Address('Recife'))


@pytest.fixture
def log_messages() -> list:
    """Records emitted by the package while the test runs."""
    records = []

    logger.enable('amarra')
    handler_id = logger.add(lambda message: records.append(message.record), level='DEBUG')

    yield records

    logger.remove(handler_id)
    logger.disable('amarra')


@pytest.fixture(autouse=True)
def restore_diagnostics():
    """Tests may change the shared diagnostic settings."""
    yield diagnostics
    diagnostics.reset()
