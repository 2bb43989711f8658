# stagehand/core/utils.py

from typing import Any, List, Optional, Sequence, TypeVar, Union

T = TypeVar('T')


def return_array(value: Optional[Union[T, Sequence[T]]]) -> List[T]:
    """
    Normalizes a "single item or list" setting into a list.

    None becomes an empty list, a list/tuple is copied as-is (entries are kept
    even if they are None), anything else is wrapped in a one-element list.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def describe_callable(func: Any) -> str:
    """Human readable name for hooks and probes, used in debug logs."""
    return getattr(func, '__qualname__', None) or getattr(func, '__name__', None) or repr(func)
