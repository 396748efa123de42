#  -*- coding: utf-8 -*-
"""
Validation of values flowing from the target side back to the source.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from typing import Any, Callable


class Validator(ABC):
    """
    Decides whether a value may be written to the source of a binding.

    ``validate`` returns None to accept the value, or a ``Validator.Result``
    describing why it was rejected.

    Examples
    --------
    >>> class Positive(Validator):
    ...     def validate(self, value):
    ...         if value <= 0:
    ...             return Validator.Result('negative', 'must be positive')
    >>> Positive().validate(-1)
    Result(error_code='negative', description='must be positive')
    """

    @dataclass(frozen=True)
    class Result:
        """Reason a value was rejected."""

        error_code: Any = None
        description: str | None = None

    @abstractmethod
    def validate(self, value: Any) -> Validator.Result | None:
        ...


class FunctionValidator(Validator):
    """
    ``Validator`` built from a predicate.

    Parameters
    ----------
    predicate : callable
        ``predicate(value) -> bool``; a false result rejects the value.
    error_code : object, optional
        Error code of the rejection result.
    description : str, optional
        Description of the rejection result.
    """

    def __init__(self, predicate: Callable[[Any], bool], error_code: Any = None, description: str | None = None) -> None:
        if not callable(predicate):
            raise TypeError('Predicate must be callable')

        self._predicate = predicate
        self._result = Validator.Result(error_code, description)

    def validate(self, value: Any) -> Validator.Result | None:
        return None if self._predicate(value) else self._result
