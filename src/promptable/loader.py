"""Symbol import and schema resolution."""

from __future__ import annotations

import importlib
from typing import Any, Type

from pydantic import BaseModel


def import_symbol(path: str) -> Any:
    """
    Imports a symbol given "package.module:SymbolName".
    """
    if ":" not in path:
        raise ValueError(f"Expected import path 'module:Symbol', got {path!r}")
    mod, sym = path.split(":", 1)
    module = importlib.import_module(mod)
    return getattr(module, sym)


def resolve_schema(schemas: dict[str, str], schema_name: str) -> Type[BaseModel]:
    if schema_name not in schemas:
        raise KeyError(f"Schema {schema_name!r} not registered in chain schemas.")
    cls = import_symbol(schemas[schema_name])
    if not isinstance(cls, type) or not issubclass(cls, BaseModel):
        raise TypeError(f"Schema {schema_name!r} must be a Pydantic BaseModel subclass.")
    return cls
