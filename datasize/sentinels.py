"""
Sentinel object for distinguishing an unprovided argument from None.

A unit argument of None is an error, while an omitted unit means "read it
from the text". UNSET marks the omitted case and is checked by identity.

Example:
    >>> def parse(text: str, unit: Unit | UnsetType = UNSET):
    ...     if unit is UNSET:
    ...         unit = read_unit(text)
"""

from typing import Any

__all__ = [
    'UNSET',
    'UnsetType',
]


# Base Sentinel --------------------------------------------------------------------------------------------------------

class _SentinelBase:
    """
    Base class for sentinel objects.

    Sentinels are singleton objects optimized for identity checks.
    """
    __slots__ = ('_name',)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return f'<{self._name}>'

    def __eq__(self, other: Any) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)

    def __bool__(self) -> bool:
        return False


# Sentinel Types -------------------------------------------------------------------------------------------------------

class UnsetType(_SentinelBase):
    """
    Sentinel type for UNSET.

    Represents an optional argument that was not provided, where None would be
    an invalid value rather than an omission.
    """
    _instance: 'UnsetType | None' = None

    def __new__(cls) -> 'UnsetType':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if not hasattr(self, '_name'):
            super().__init__("UNSET")

    def __reduce__(self) -> tuple:
        """Ensure pickling returns the singleton instance."""
        return (self.__class__, ())


UNSET = UnsetType()
