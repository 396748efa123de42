#  -*- coding: utf-8 -*-
"""
Small capability mixins.
"""

from __future__ import annotations

from amarra.observable import ObservableProperty

from typing import Any


# ========== ========== ========== ========== ========== Nameable
class Nameable:
    """
    Mixin for objects with an optional, write-once name.

    Examples
    --------
    >>> class Item(Nameable):
    ...     pass
    >>> item = Item()
    >>> item.name is None
    True
    >>> item.name = '  total  '
    >>> item.name
    'total'
    >>> item.name = 'other'
    Traceback (most recent call last):
        ...
    AttributeError: name is a write-once property and has already been set with value 'total'
    """

    name: str | None = ObservableProperty(writeonce=True, doc="""
        Human-readable name.

        None means unnamed. Non-None values are coerced to ``str`` and stripped;
        the result must not be empty. Once a name is set it cannot change.
        """)

    @name.parser
    def name(self, value: Any) -> str | None:
        if value is None:
            return None

        value = str(value).strip()

        if not value:
            raise ValueError('Invalid name: must not be empty.')

        return value
