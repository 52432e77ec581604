"""
Datasize utilities shared across the package.

Contains the small formatting helpers used in exception messages, kept here
to avoid circular imports between the numeric, units and display modules.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import reprlib
from typing import Any

_repr = reprlib.Repr()
_repr.maxstring = 80
_repr.maxother = 80


# Methods --------------------------------------------------------------------------------------------------------------

def class_name(obj: Any) -> str:
    """
    Get the class name of an object or a class.

    Returns class name whether given an instance or the class itself.
    For example, both `class_name(10)` and `class_name(int)` return 'int'.

    Parameters:
        obj (Any): An object or a class.

    Examples:
        >>> class_name(10)
        'int'
        >>> class_name(None)
        'NoneType'
    """
    cls = obj if isinstance(obj, type) else type(obj)
    return cls.__name__


def fmt_type(obj: Any) -> str:
    """
    Format type information of an object or a type for exception messages.

    Examples:
        >>> fmt_type(42)
        '<int>'
        >>> fmt_type(None)
        '<NoneType>'
    """
    return f"<{class_name(obj)}>"


def fmt_value(obj: Any) -> str:
    """
    Format a single value as a type-value pair for exception messages.

    Long representations are truncated, a broken __repr__ never propagates.

    Examples:
        >>> fmt_value(42)
        '<int: 42>'
        >>> fmt_value("kB")
        "<str: 'kB'>"
    """
    return f"<{class_name(obj)}: {_repr.repr(obj)}>"
