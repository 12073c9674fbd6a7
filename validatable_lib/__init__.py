"""
validatable-lib: Rule-based validation for stateful objects

This library provides a small change-driven validation engine with:
- Per-type rule collections shared by every instance of a model
- Incremental re-validation of the property that changed
- Cached per-property error lists with a has_errors aggregate
- Synchronous property_changed / errors_changed notifications
- YAML engine configuration

Example:
    from validatable_lib import RuleCollection, TrackedProperty, ValidatableObject

    PRODUCT_RULES = RuleCollection()
    PRODUCT_RULES.add("id", "Id cannot be empty", lambda p: bool(p.id))

    class Product(ValidatableObject):
        id = TrackedProperty(default="")

        def __init__(self):
            super().__init__(PRODUCT_RULES)

    product = Product()
    product.has_errors       # True
    product.id = "abc"
    product.get_errors()     # []
"""

from .config_loader import ConfigLoader, get_default_config, reset_default_config
from .events import ErrorsChangedStream, EventHandler
from .rule import Rule, property_key
from .rule_collection import RuleCollection
from .tracked_property import TrackedProperty
from .validatable import HAS_ERRORS_PROPERTY, ValidatableObject

__version__ = "0.1.0"
__all__ = [
    "ConfigLoader",
    "ErrorsChangedStream",
    "EventHandler",
    "HAS_ERRORS_PROPERTY",
    "Rule",
    "RuleCollection",
    "TrackedProperty",
    "ValidatableObject",
    "get_default_config",
    "property_key",
    "reset_default_config",
]
