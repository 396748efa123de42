#  -*- coding: utf-8 -*-
"""
Rich terminal display of bindings and binding groups.

Objects describe their display through ``_title`` and ``_content``; the
``Displayable`` base wraps them in a styled panel according to its
``DisplaySettings``.
"""

from __future__ import annotations

import pandas

from abc import ABC, abstractmethod

from io import StringIO

from rich.markup import escape
from rich.text import Text
from rich.panel import Panel
from rich.console import Console, RenderableType
from rich.table import Table
from rich import box
from rich.align import Align

from amarra.config import DisplaySettings
from amarra.observable import ObservableProperty


class Displayable(ABC):
    """
    Abstract base for objects with Rich terminal display.

    Subclasses implement ``_title()`` and ``_content()``; ``__str__``,
    ``__rich__``, ``to_html`` and ``to_svg`` render the resulting panel.

    Attributes
    ----------
    display_settings : DisplaySettings
        Formatting configuration. Each instance gets its own by default;
        assign a shared instance to style several objects together.
    """

    # ========== ========== ========== ========== ========== class attributes
    display_settings: DisplaySettings = ObservableProperty(doc="""
        Configuration for display formatting and styling.

        Each instance receives its own ``DisplaySettings`` on first access.
        Changes take effect on the next render.
        """)

    @display_settings.default
    def display_settings(self) -> DisplaySettings:
        return DisplaySettings()

    @display_settings.parser
    def display_settings(self, value: DisplaySettings) -> DisplaySettings:
        if not isinstance(value, DisplaySettings):
            raise TypeError(f'Expected DisplaySettings, got {type(value).__name__}')

        return value

    # ========== ========== ========== ========== ========== special methods
    def __str__(self) -> str:
        string_io = StringIO()
        console = Console(file=string_io,
                          force_terminal=True,
                          width=self.display_settings.console_width)

        console.print(self._display_panel())

        return string_io.getvalue()

    def __rich__(self) -> RenderableType:
        return self._display_panel()

    # ========== ========== ========== ========== ========== private methods
    @staticmethod
    def _add_rows(table: Table, frame: pandas.DataFrame, show_index: bool, index_style: str | None) -> None:
        for _, row in frame.iterrows():

            # cells are plain text; property paths contain brackets
            values = [escape(value) for value in row.values]

            if show_index:
                table.add_row(Text(row.values[0], style=index_style), *values[1:])
            else:
                table.add_row(*values)

    # ========== ========== ========== ========== ========== protected methods
    @abstractmethod
    def _title(self) -> Text:
        """Panel title."""
        ...

    @abstractmethod
    def _content(self) -> RenderableType:
        """Panel body."""
        ...

    def _display_panel(self) -> Panel:
        return Panel(
            self._content(),
            title=self._title(),
            border_style=self.display_settings.panel_border_style,
            title_align=self.display_settings.panel_title_align,
            expand=False,
            box=getattr(box, self.display_settings.panel_box)
        )

    # ========== ========== ========== ========== ========== public methods
    def format_as_form(self, data: dict[str, str] | pandas.Series) -> Table:
        """
        Format key-value pairs as a two-column form.

        Keys get ``':'`` appended and the ``property_style`` of the settings.
        """
        form = Table.grid(padding=(0, 4), expand=False)
        form.add_column(justify='left', style=self.display_settings.property_style)
        form.add_column(justify='left', style=None)

        for prop, value in data.items():
            form.add_row(f'{prop}:', escape(str(value)))

        return form

    def format_as_table(self,
                        frame: pandas.DataFrame,
                        show_index: bool = True,
                        align_header: str = 'center',
                        align_column: str | dict[str, str] | None = None,
                        max_rows: int = 31,
                        **kwargs) -> Table:
        """
        Format a DataFrame as a Rich table.

        Parameters
        ----------
        frame : pandas.DataFrame
            Data to display.
        show_index : bool, optional
            Include the index as first column. Default True.
        align_header : str, optional
            Header alignment. Default 'center'.
        align_column : str, dict[str, str] or None, optional
            Column alignment; None aligns numbers right and everything else
            left.
        max_rows : int, optional
            Rows shown before the middle of the table is elided. Default 31.
        **kwargs
            ``header_style``, ``index_style`` and ``round_floats`` override
            the corresponding settings.

        Raises
        ------
        TypeError
            If ``align_column`` or ``round_floats`` has an invalid type.
        """
        header_style: str | None = kwargs.pop('header_style', self.display_settings.table_header_style)
        index_style: str | None = kwargs.pop('index_style', self.display_settings.table_index_style)
        round_floats: int | None = kwargs.pop('round_floats', self.display_settings.table_round_floats)

        _frame = frame.reset_index() if show_index else frame.copy()
        columns = _frame.columns

        table = Table.grid(padding=(0, self.display_settings.table_spacing), expand=False)

        # ---------- ---------- column alignments
        for column in columns:

            if isinstance(align_column, str):
                table.add_column(justify=align_column)

            elif isinstance(align_column, dict):
                table.add_column(justify=align_column.get(column, 'left'))

            elif align_column is None:
                numeric = (pandas.api.types.is_numeric_dtype(_frame[column])
                           and not pandas.api.types.is_bool_dtype(_frame[column]))
                table.add_column(justify='right' if numeric else 'left')

            else:
                raise TypeError(f'Invalid type for align_column argument: {type(align_column)}')

        table.add_row(*(Align(escape(str(col)), align_header) for col in columns), style=header_style)

        # ---------- ---------- rounding floats
        if round_floats is not None:

            if not isinstance(round_floats, int):
                raise TypeError(f'Invalid type for round_floats argument: {type(round_floats)}')

            for col in _frame.select_dtypes(include='float').columns:
                _frame[col] = _frame[col].apply(lambda val: f'{val:.{round_floats}f}')

        # ---------- ---------- rows
        text_frame = _frame.astype(str)

        if len(text_frame) <= max_rows:
            self._add_rows(table, text_frame, show_index, index_style)

        else:
            n_rows: int = (max_rows - 1) // 2

            self._add_rows(table, text_frame.head(n_rows), show_index, index_style)
            table.add_row(*(Align.center('...') for _ in columns))
            self._add_rows(table, text_frame.tail(n_rows), show_index, index_style)

        return table

    def to_html(self) -> str:
        """Export the display as HTML with inline styles."""
        console = Console(record=True, file=StringIO(), width=self.display_settings.console_width)
        console.print(self)
        return console.export_html()

    def to_svg(self) -> str:
        """Export the display as SVG."""
        console = Console(record=True, file=StringIO(), width=self.display_settings.console_width)
        console.print(self)
        return console.export_svg()
