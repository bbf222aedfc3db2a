"""
Serialization utilities - enum <-> string conversion for YAML config

Config files name enums by member name (e.g. interface: A, level: DEBUG).
"""

from typing import TypeVar, Type
from enum import Enum

T = TypeVar('T', bound=Enum)


class Serializer:
    """Central enum serialization for config files"""

    @staticmethod
    def str_to_enum(value: str, enum_type: Type[T]) -> T:
        """Convert string to enum, raise ValueError if invalid"""
        try:
            return enum_type[value]
        except KeyError:
            raise ValueError(f"Invalid {enum_type.__name__}: {value}")
