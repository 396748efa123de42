#  -*- coding: utf-8 -*-
"""
Value conversion between the source and target sides of a binding.
"""

from __future__ import annotations

import numpy

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation

from typing import Any, Callable


class Converter(ABC):
    """
    Converts values from the source side to the target side and back.

    ``convert_forward`` is mandatory. ``convert_reverse`` raises
    ``NotImplementedError`` unless overridden, which is enough for bindings that
    only ever refresh the target.

    Examples
    --------
    >>> class Celsius(Converter):
    ...     def convert_forward(self, value):
    ...         return f'{value:.1f} °C'
    ...     def convert_reverse(self, value):
    ...         return float(value.removesuffix(' °C'))
    >>> Celsius().convert_forward(21.5)
    '21.5 °C'
    """

    @abstractmethod
    def convert_forward(self, value: Any) -> Any:
        """Convert a (non-None) source value to a target value."""
        ...

    def convert_reverse(self, value: Any) -> Any:
        """Convert a (non-None) target value to a source value."""
        raise NotImplementedError(f'{type(self).__name__} does not convert in reverse')


class FunctionConverter(Converter):
    """``Converter`` built from plain callables."""

    def __init__(self, forward: Callable[[Any], Any], reverse: Callable[[Any], Any] | None = None) -> None:
        if not callable(forward) or (reverse is not None and not callable(reverse)):
            raise TypeError('Conversion functions must be callable')

        self._forward = forward
        self._reverse = reverse

    def __repr__(self) -> str:
        reverse = getattr(self._reverse, '__name__', None)
        return f'{type(self).__name__}({getattr(self._forward, "__name__", self._forward)!r}, {reverse!r})'

    def convert_forward(self, value: Any) -> Any:
        return self._forward(value)

    def convert_reverse(self, value: Any) -> Any:
        if self._reverse is None:
            return super().convert_reverse(value)

        return self._reverse(value)


_TRUE_STRINGS = frozenset({'true', 'yes', 'on', '1'})
_FALSE_STRINGS = frozenset({'false', 'no', 'off', '0'})


def default_convert(value: Any, target_type: type) -> Any:
    """
    Convert ``value`` towards ``target_type`` when no converter is configured.

    The conversions are the safe ones only: numpy scalars become Python
    scalars, anything becomes ``str`` for string targets, and strings are
    parsed for ``int``, ``float``, ``Decimal`` and ``bool`` targets. Integers
    widen to ``float`` and ``Decimal``. Values that cannot be converted are
    returned unchanged; the caller decides whether that is a type error.

    Parameters
    ----------
    value : object
        Non-None value to convert.
    target_type : type
        Type of the receiving property.

    Returns
    -------
    object
        The converted value, or ``value`` itself.

    Examples
    --------
    >>> default_convert('42', int)
    42
    >>> default_convert(numpy.float64(0.5), float)
    0.5
    >>> default_convert(3, str)
    '3'
    """
    if isinstance(value, numpy.generic):
        value = value.item()

    if target_type is object or isinstance(value, target_type):
        return value

    if target_type is str:
        return str(value)

    if target_type is bool and isinstance(value, str):
        text = value.strip().lower()

        if text in _TRUE_STRINGS:
            return True

        if text in _FALSE_STRINGS:
            return False

        return value

    if target_type in (int, float, Decimal) and isinstance(value, str):
        try:
            return target_type(value.strip())

        except (ValueError, InvalidOperation):
            return value

    if target_type in (float, Decimal) and isinstance(value, int) and not isinstance(value, bool):
        return target_type(value)

    return value
