"""
A single validation rule.

A rule binds a property name to an error payload and a predicate over the
owning object. The predicate returns True when the object satisfies the
rule; the error payload is reported when it does not.
"""

from enum import Enum
from typing import Any, Callable, Optional, Union

PropertyName = Union[str, Enum]


def property_key(property_name: Optional[PropertyName]) -> Optional[str]:
    """
    Normalise a property name token to its string form.

    Enum members are accepted as typed keys and resolve to their value.
    None and "" are passed through as "the whole object".
    """
    if isinstance(property_name, Enum):
        property_name = property_name.value
    if property_name is None or property_name == "":
        return property_name
    if not isinstance(property_name, str):
        raise TypeError(
            f"Property name must be a str or Enum, got {type(property_name).__name__}"
        )
    return property_name


class Rule:
    """Immutable (property name, error, predicate) triple."""

    __slots__ = ("_property_name", "_error", "_predicate")

    def __init__(self, property_name: PropertyName, error: Any,
                 predicate: Callable[[Any], bool]):
        """
        Initialize the rule.

        Args:
            property_name: Name (or Enum token) of the property the rule applies to
            error: Opaque payload reported when the predicate fails
            predicate: Callable taking the instance, True when the rule is satisfied
        """
        name = property_key(property_name)
        if not name:
            raise ValueError("Rule property name must not be empty")
        if not callable(predicate):
            raise TypeError("Rule predicate must be callable")
        object.__setattr__(self, "_property_name", name)
        object.__setattr__(self, "_error", error)
        object.__setattr__(self, "_predicate", predicate)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def property_name(self) -> str:
        return self._property_name

    @property
    def error(self) -> Any:
        return self._error

    @property
    def predicate(self) -> Callable[[Any], bool]:
        return self._predicate

    def applies_to(self, property_name: PropertyName) -> bool:
        """Return True if this rule is scoped to the given property."""
        return self._property_name == property_key(property_name)

    def is_satisfied_by(self, instance: Any) -> bool:
        """
        Evaluate the predicate against an instance.

        Exceptions raised by the predicate are not caught.
        """
        return bool(self._predicate(instance))

    def __repr__(self):
        return f"Rule(property_name={self._property_name!r}, error={self._error!r})"
