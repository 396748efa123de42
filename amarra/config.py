#  -*- coding: utf-8 -*-
"""
Runtime settings.

Settings objects expose their fields as ``ObservableProperty`` descriptors, so
every field has a default, validates assignments and announces changes. They
can be saved to and loaded from TOML files.

Two settings objects are used by the engine:

- ``DiagnosticSettings``: what to do when a property detects that its cached
  observation state diverged from the live object graph, and whether to log
  resolution details.
- ``DisplaySettings``: terminal rendering of bindings and binding groups.

The module-level ``diagnostics`` instance is shared by every property that is
not given its own settings.
"""

from __future__ import annotations

import toml

from enum import Enum
from pathlib import Path

from rich import box

from amarra.observable import Observable, ObservableProperty

from typing import Any, Self


class DivergencePolicy(Enum):
    """Reaction to a detected cache divergence."""

    LOG = 'log'
    RAISE = 'raise'
    IGNORE = 'ignore'


# ========== ========== ========== ========== ========== Settings
class Settings(Observable):
    """
    Base class for groups of settings.

    Examples
    --------
    >>> settings = DiagnosticSettings()
    >>> settings.update(divergence_policy='raise')
    >>> settings.to_dict()['divergence_policy']
    'raise'
    """

    section: str = 'settings'
    """Table name used in TOML files."""

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, **values: Any) -> None:
        self.update(**values)

    def __repr__(self) -> str:
        fields = ', '.join(f'{key}={value!r}' for key, value in self.to_dict().items())
        return f'{type(self).__name__}({fields})'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Settings):
            return NotImplemented

        return type(self) is type(other) and self.to_dict() == other.to_dict()

    __hash__ = object.__hash__

    # ========== ========== ========== ========== ========== public methods
    def to_dict(self) -> dict[str, Any]:
        """Current values of every field."""
        return {name: getattr(self, name) for name in self.observable_properties()}

    def update(self, **values: Any) -> None:
        """
        Assign several fields at once.

        Raises
        ------
        AttributeError
            If a name is not a field of this settings class.
        """
        fields = self.observable_properties()

        for name, value in values.items():

            if name not in fields:
                raise AttributeError(f'{type(self).__name__} has no setting {name!r}')

            setattr(self, name, value)

    def reset(self) -> None:
        """Restore every field to its default value."""
        for name, prop in self.observable_properties().items():
            setattr(self, name, prop.default_value(self))

    def save(self, path: str | Path) -> None:
        """
        Save the fields to a TOML file.

        Fields holding None are omitted (TOML has no null).
        """
        data = {key: value for key, value in self.to_dict().items() if value is not None}

        with Path(path).open('w') as file:
            toml.dump({self.section: data}, file)

    @classmethod
    def load(cls, path: str | Path) -> Self:
        """
        Load settings saved by :meth:`save`.

        Raises
        ------
        KeyError
            If the file has no table for this settings class.
        """
        with Path(path).open() as file:
            data = toml.load(file)

        return cls(**data[cls.section])


# ========== ========== ========== ========== ========== DiagnosticSettings
class DiagnosticSettings(Settings):
    """
    Diagnostics of the observation machinery.

    Attributes
    ----------
    divergence_policy : str
        ``'log'`` (default) logs a warning, ``'raise'`` raises
        ``CacheDivergenceError``, ``'ignore'`` skips the check.
    log_resolution : bool
        Log resolution details (missing readers and writers, unobservable
        objects, listener attachment) at DEBUG level. Default True.
    """

    section = 'diagnostics'

    divergence_policy: str = ObservableProperty(default=DivergencePolicy.LOG.value)

    @divergence_policy.parser
    def divergence_policy(self, value: str | DivergencePolicy) -> str:
        try:
            return DivergencePolicy(value).value

        except ValueError as error:
            options = ', '.join(repr(policy.value) for policy in DivergencePolicy)
            raise ValueError(f'Invalid divergence policy: {value!r}. Must be one of {options}.') from error

    log_resolution: bool = ObservableProperty(default=True)

    @log_resolution.parser
    def log_resolution(self, value: Any) -> bool:
        return bool(value)


# ========== ========== ========== ========== ========== DisplaySettings
class DisplaySettings(Settings):
    """
    Terminal rendering settings.

    All styles use Rich's style syntax (``'bold red'``, ``'#FF00FF'``...).

    Attributes
    ----------
    console_width : int
        Maximum console width in characters. Default 150.
    property_style : str
        Style of labels in forms. Default ``'bold bright_yellow'``.
    panel_border_style : str
        Style of panel borders. Default ``'bright_cyan'``.
    panel_box : str
        Name of a ``rich.box`` box. Default ``'ROUNDED'``.
    panel_title_align : str
        ``'left'``, ``'center'`` or ``'right'``. Default ``'center'``.
    table_index_style : str or None
        Style of the index column of tables. Default None.
    table_header_style : str or None
        Style of table headers. Default ``'bold bright_yellow'``.
    table_round_floats : int or None
        Decimal places of float columns. Default None (full precision).
    table_spacing : int
        Spaces between table columns. Default 4.
    """

    section = 'display'

    # ---------- ---------- ---------- ---------- console
    console_width: int = ObservableProperty(default=150)

    @console_width.parser
    def console_width(self, value: int) -> int:
        value = int(value)

        if value <= 0:
            raise ValueError(f'Invalid console width: {value}. Must be positive.')

        return value

    # ---------- ---------- ---------- ---------- property
    property_style: str = ObservableProperty(default='bold bright_yellow')

    # ---------- ---------- ---------- ---------- panel
    panel_border_style: str = ObservableProperty(default='bright_cyan')
    panel_box: str = ObservableProperty(default='ROUNDED')

    @panel_box.parser
    def panel_box(self, value: str) -> str:
        value = str(value).upper()

        if not isinstance(getattr(box, value, None), box.Box):
            raise ValueError(f'Invalid panel box: {value!r}. Must name a box of rich.box.')

        return value

    panel_title_align: str = ObservableProperty(default='center')

    @panel_title_align.parser
    def panel_title_align(self, value: str) -> str:
        if value not in ('left', 'center', 'right'):
            raise ValueError(f"Invalid title alignment: {value!r}. Must be 'left', 'center' or 'right'.")

        return value

    # ---------- ---------- ---------- ---------- table
    table_index_style: str | None = ObservableProperty(default=None)
    table_header_style: str | None = ObservableProperty(default='bold bright_yellow')
    table_round_floats: int | None = ObservableProperty(default=None)
    table_spacing: int = ObservableProperty(default=4)


diagnostics = DiagnosticSettings()
"""Settings shared by the properties that are not given their own."""
