#  -*- coding: utf-8 -*-
"""
Amarra: synchronization of properties across live Python object graphs.

Amarra keeps pairs of properties (named, possibly nested, observable values of
arbitrary objects) synchronized, automatically or on demand, with pluggable
conversion and validation.

Key Features
------------
- **Path properties**: dotted paths such as ``"owner.address.city"`` resolved
  over attributes, mapping keys or registered accessors, with listeners that
  follow the path as intermediate objects are replaced
- **Bindings**: explicit ``refresh``/``save`` with failures reported as values
- **Auto bindings**: READ, READ_ONCE and READ_WRITE update strategies
- **Binding groups**: aggregate bind/unbind and pending-edit tracking
- **Rich terminal output** for bindings and groups

Modules
-------
path
    ``PathExpression``, the parsed dotted path
observable
    ``ObservableProperty``, ``Observable`` and ``ObservableDict``: objects that announce their changes
accessors
    Resolution of one path segment on one object
property, path_property
    The ``Property`` contract, ``ObjectProperty`` and ``PathProperty``
converter, validator
    Value conversion and validation
binding, auto_binding, group
    ``Binding``, ``AutoBinding`` and ``BindingGroup``
config
    Diagnostic and display settings

Examples
--------
Keep a view in sync with a nested model value:

>>> from amarra import ObservableDict, UpdateStrategy, create_auto_binding
>>>
>>> model = ObservableDict(owner=ObservableDict(name='Ada'))
>>> view = ObservableDict()
>>> binding = create_auto_binding(UpdateStrategy.READ_WRITE, model, 'owner.name', view, 'text')
>>> binding.bind()
>>> view['text']
'Ada'
>>> model['owner'] = ObservableDict(name='Grace')
>>> view['text']
'Grace'

Logging uses loguru and is disabled for this package by default; enable it with
``logger.enable('amarra')``.
"""

from loguru import logger

from .path import *
from .events import *
from .exceptions import *
from .observable import *
from .accessors import *
from .property import *
from .path_property import *
from .converter import *
from .validator import *
from .config import *
from .display import *
from .mixin import *
from .binding import *
from .auto_binding import *
from .group import *


__all__ = [
    "PathExpression",
    "UNREADABLE",
    "PropertyStateEvent",
    "PropertyResolutionError",
    "ResolutionFailure",
    "UnreadableError",
    "UnwritableError",
    "IllegalStateError",
    "CacheDivergenceError",
    "ObservableProperty",
    "Observable",
    "ObservableDict",
    "AccessorRegistry",
    "NOREAD",
    "default_registry",
    "Property",
    "PropertyHelper",
    "ObjectProperty",
    "PathProperty",
    "Converter",
    "FunctionConverter",
    "default_convert",
    "Validator",
    "FunctionValidator",
    "DiagnosticSettings",
    "DisplaySettings",
    "DivergencePolicy",
    "diagnostics",
    "Displayable",
    "Nameable",
    "Binding",
    "BindingListener",
    "SyncFailure",
    "SyncFailureType",
    "SyncState",
    "ValueResult",
    "AutoBinding",
    "UpdateStrategy",
    "create_auto_binding",
    "BindingGroup",
]


logger.disable('amarra')


try:
    # this will run if amarra is installed
    from importlib.metadata import metadata, PackageNotFoundError

    meta = metadata('amarra')

    __author__ = meta['Author-email']
    __license__ = meta['License']
    __version__ = meta['Version']

except PackageNotFoundError:
    # this will run during development
    import toml
    from pathlib import Path

    pyproject_filepath = Path(__file__).parent.parent / "pyproject.toml"

    with pyproject_filepath.open() as file:
        pyproject = toml.load(file)

    __version__ = pyproject["project"]["version"]
    __author__ = pyproject["project"]["authors"][0]["name"]
    __license__ = pyproject["project"]["license"]["text"]
