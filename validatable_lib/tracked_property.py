"""Descriptor that routes attribute assignment through ValidatableObject.set_property."""

from typing import Any, Optional

from .rule import PropertyName, property_key


class TrackedProperty:
    """
    Validated attribute of a ValidatableObject subclass.

        class Product(ValidatableObject):
            title = TrackedProperty(default="")

    The default is stored on the owner class under the backing field name
    ("_" + attribute name) and is shared by all instances until they assign
    their own value, so it should be immutable. Writes go through
    set_property: equal assignments are ignored and changes trigger
    re-validation.
    """

    def __init__(self, default: Any = None, name: Optional[PropertyName] = None):
        """
        Args:
            default: Value returned before the first assignment
            name: Property name reported to rules and observers (str or
                Enum token); defaults to the attribute name
        """
        self.default = default
        self.name = property_key(name) if name is not None else None
        self.field_name = None

    def __set_name__(self, owner, attr_name):
        if self.name is None:
            self.name = attr_name
        self.field_name = f"_{attr_name}"
        setattr(owner, self.field_name, self.default)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return getattr(instance, self.field_name)

    def __set__(self, instance, value):
        instance.set_property(self.name, value, field_name=self.field_name)

    def __repr__(self):
        return f"TrackedProperty(name={self.name!r}, default={self.default!r})"
