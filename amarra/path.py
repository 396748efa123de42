#  -*- coding: utf-8 -*-
"""
Dotted property paths.

A ``PathExpression`` is the parsed form of strings such as ``"owner.address.city"``:
an immutable, ordered sequence of segment names. Segment names are interned, so
repeated paths share their strings and compare quickly.
"""

from __future__ import annotations

import sys

from typing import Iterator, Self


PATH_SEPARATOR: str = '.'
"""Separator between path segments."""


class PathExpression:
    """
    Immutable ordered sequence of accessor-segment names.

    The empty path (length 0) is valid and denotes the source object itself.

    Parameters
    ----------
    segments : iterable of str
        Segment names, in traversal order.

    Raises
    ------
    ValueError
        If a segment is empty or contains the path separator.
    TypeError
        If a segment is not a string.

    Examples
    --------
    >>> path = PathExpression.parse('owner.address.city')
    >>> len(path)
    3
    >>> path.segment(1)
    'address'
    >>> path.sub_path(1, 2)
    PathExpression('address.city')
    >>> PathExpression.parse('a').append(PathExpression.parse('b.c')) == PathExpression.parse('a.b.c')
    True
    """

    # ========== ========== ========== ========== ========== class attributes
    __slots__ = ('_segments', '_hash')

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, segments: tuple[str, ...] | list[str] = ()) -> None:

        interned = []

        for segment in segments:

            if not isinstance(segment, str):
                raise TypeError(f'Path segments must be str, got {type(segment).__name__}')

            if not segment or PATH_SEPARATOR in segment:
                raise ValueError(f'Invalid path segment: {segment!r}')

            interned.append(sys.intern(str(segment)))

        self._segments: tuple[str, ...] = tuple(interned)
        self._hash: int = hash(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[str]:
        return iter(self._segments)

    def __getitem__(self, index: int) -> str:
        return self.segment(index)

    def __eq__(self, other: object) -> bool:

        if self is other:
            return True

        if not isinstance(other, PathExpression):
            return NotImplemented

        if len(self._segments) != len(other._segments):
            return False

        # interned strings: identity is enough
        return all(a is b for a, b in zip(self._segments, other._segments))

    def __hash__(self) -> int:
        return self._hash

    def __str__(self) -> str:
        return PATH_SEPARATOR.join(self._segments)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({str(self)!r})'

    # ========== ========== ========== ========== ========== public methods
    @classmethod
    def parse(cls, text: str) -> Self:
        """
        Parse a dotted path string.

        Parameters
        ----------
        text : str
            Dotted path. The empty string parses to the identity path.

        Returns
        -------
        PathExpression
            The parsed path.

        Raises
        ------
        ValueError
            If the text contains empty segments (``"a..b"``, ``".a"``, ``"a."``).
        TypeError
            If ``text`` is not a string.
        """
        if not isinstance(text, str):
            raise TypeError(f'Path must be str, got {type(text).__name__}')

        if text == '':
            return cls(())

        return cls(text.split(PATH_SEPARATOR))

    def length(self) -> int:
        """Number of segments."""
        return len(self._segments)

    def segment(self, index: int) -> str:
        """
        Return the segment at ``index``.

        Negative indices are not accepted.

        Raises
        ------
        IndexError
            If ``index`` is outside ``0 <= index < length()``.
        """
        if not 0 <= index < len(self._segments):
            raise IndexError(f'Segment index {index} out of range for path {str(self)!r}')

        return self._segments[index]

    def last(self) -> str:
        """Return the final segment (``IndexError`` for the identity path)."""
        return self.segment(len(self._segments) - 1)

    def sub_path(self, start: int, length: int) -> PathExpression:
        """
        Return the path of ``length`` segments beginning at ``start``.

        Raises
        ------
        IndexError
            If the requested range is not inside this path.
        """
        if start < 0 or length < 0 or start + length > len(self._segments):
            raise IndexError(f'Sub-path ({start}, {length}) out of range for path {str(self)!r}')

        return PathExpression(self._segments[start:start + length])

    def append(self, other: PathExpression | str) -> PathExpression:
        """
        Return the concatenation of this path and ``other``.

        ``other`` may be a ``PathExpression`` or a dotted string.
        """
        if isinstance(other, str):
            other = PathExpression.parse(other)

        return PathExpression(self._segments + other._segments)

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def segments(self) -> tuple[str, ...]:
        """All segments as a tuple."""
        return self._segments

    @property
    def is_identity(self) -> bool:
        """True for the empty path."""
        return not self._segments
