"""Name-to-class registry for DataTables exposed over the API."""

from typing import Dict, List, Type

from datatable.table import DataTable

_REGISTRY: Dict[str, Type[DataTable]] = {}


def register_table(cls: Type[DataTable]) -> Type[DataTable]:
    """Class decorator registering a table under its `name`."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} must define a name")
    _REGISTRY[cls.name] = cls
    return cls


def get_table_class(name: str) -> Type[DataTable]:
    """
    Raises:
        KeyError: no table registered under this name
    """
    return _REGISTRY[name]


def registered_tables() -> List[str]:
    return sorted(_REGISTRY)
