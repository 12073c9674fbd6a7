"""
Change-driven validation engine.

ValidatableObject is the base class a model inherits from to gain
property-change tracking, automatic re-validation and error caching.

Typical model:

    PRODUCT_RULES = RuleCollection()
    PRODUCT_RULES.add("id", "Id cannot be empty", lambda p: bool(p.id))

    class Product(ValidatableObject):
        def __init__(self):
            super().__init__(PRODUCT_RULES)

        @property
        def id(self):
            return getattr(self, "_id", None)

        @id.setter
        def id(self, value):
            self.set_property("id", value)

Setting a property runs, in order: property_changed(name), the rules
scoped to that property, errors_changed(name) if that property's errors
differ from before, then property_changed("has_errors"). The last
notification fires after every value change, whether or not the aggregate
flag flipped. "has_errors" is the Python name of the aggregate property
that INotifyDataErrorInfo-style observers know as "HasErrors".

Engine state lives in name-mangled attributes, so model fields (and their
"_" + name backing fields) may use any name, including rules, config and
errors.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from .config_loader import get_default_config
from .events import ErrorsChangedStream, EventHandler
from .rule import PropertyName, Rule, property_key
from .rule_collection import RuleCollection

logger = logging.getLogger(__name__)

# "HasErrors" in INotifyDataErrorInfo terms
HAS_ERRORS_PROPERTY = "has_errors"


class ValidatableObject:
    """
    Base behaviour for objects validated by a shared RuleCollection.

    The error cache maps property names to the error payloads of their
    failing rules. A key is present only while at least one rule fails.
    The cache is built on first access (has_errors, get_errors, or the
    first value-changing set_property) and updated one property at a time
    afterwards.

    Subclasses must call ValidatableObject.__init__ before assigning any
    tracked property.
    """

    def __init__(self, rules: RuleCollection, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the engine state for this instance.

        Args:
            rules: The rule collection shared by every instance of the model type
            config: Engine config dict; defaults to get_default_config()
        """
        if not isinstance(rules, RuleCollection):
            raise TypeError(
                f"rules must be a RuleCollection, got {type(rules).__name__}"
            )
        self.__rules = rules
        self.__config = get_default_config() if config is None else config
        self.__errors: Optional[Dict[str, List[Any]]] = None
        self.__notify_depth = 0
        self.__pending_changes: Dict[str, None] = {}
        self.property_changed = EventHandler("property_changed")
        self.errors_changed = EventHandler("errors_changed")

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def add_rule(self, property_name: PropertyName, error: Any,
                 predicate: Callable[[Any], bool]) -> Rule:
        """
        Add a rule to the collection shared by every instance of this type.

        Args:
            property_name: The name of the property the rule applies to
            error: The error reported if the object does not satisfy the rule
            predicate: Callable taking the instance, True when satisfied
        """
        rule = self.__rules.add(property_name, error, predicate)
        self.__check_property_name(rule.property_name)
        return rule

    def clear_rules(self) -> None:
        """Remove every rule of this type. Cached errors stay until revalidated."""
        self.__rules.clear()

    def get_rules(self) -> RuleCollection:
        return self.__rules

    def get_config(self) -> Dict[str, Any]:
        return self.__config

    # ------------------------------------------------------------------
    # Error state
    # ------------------------------------------------------------------

    @property
    def has_errors(self) -> bool:
        """True if any rule currently fails for this instance."""
        return bool(self.__ensure_errors_initialized())

    def get_errors(self, property_name: Optional[PropertyName] = None) -> List[Any]:
        """
        Get the validation errors for one property or for the whole object.

        Args:
            property_name: Property to retrieve errors for. None or "" for
                every error of this instance.

        Returns:
            A new list of error payloads. Whole-object errors are ordered by
            property first-registration, then rule order.
        """
        name = property_key(property_name)
        if name:
            self.__check_property_name(name)
        errors = self.__ensure_errors_initialized()

        if name:
            return list(errors.get(name, ()))

        ordered = self.__rules.property_names()
        result = []
        for key in ordered:
            result.extend(errors.get(key, ()))
        # keys left over after the rules were cleared
        registered = set(ordered)
        for key, property_errors in errors.items():
            if key not in registered:
                result.extend(property_errors)
        return result

    def when_errors_changed(self) -> ErrorsChangedStream:
        """Stream of property names whose errors changed."""
        return ErrorsChangedStream(self, self.errors_changed)

    def revalidate(self) -> None:
        """
        Rebuild the whole error cache from the current rules.

        Fires errors_changed(None) when the result differs from what was
        cached. Stale keys left after clear_rules() are dropped.
        """
        previous = self.__errors
        errors = self.__evaluate_all()
        self.__errors = errors
        logger.debug(f"Revalidated {type(self).__name__}: {len(errors)} properties failing")
        if (previous or {}) != errors:
            self.errors_changed.fire(self, None)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_property(self, property_name: PropertyName, value: Any,
                     field_name: Optional[str] = None) -> bool:
        """
        Assign a backing field and re-validate if the value changed.

        On the first mutation of a fresh instance the error cache is seeded
        from every other property after the assignment; the mutated
        property counts as previously valid.

        Args:
            property_name: Name of the property being set
            value: New value
            field_name: Backing attribute, "_" + property_name by default

        Returns:
            True if the value changed, False if it was equal to the current one
        """
        name = property_key(property_name)
        if not name:
            raise ValueError("set_property requires a property name")
        field = field_name or f"_{name}"

        current = getattr(self, field, None)
        if current is value or current == value:
            return False

        setattr(self, field, value)

        if self.__notify_depth and self.__config.get("coalesce_reentrant_changes", False):
            self.__pending_changes[name] = None
            logger.debug(f"Queued nested change of '{name}' on {type(self).__name__}")
            return True

        self.__ensure_errors_initialized(skip=name)
        self.__on_property_changed(name)
        return True

    def notify_property_changed(self, property_name: Optional[PropertyName] = None) -> None:
        """
        Raise change notifications and re-validate after an external change.

        Args:
            property_name: The property that changed. None re-validates
                every property and reports errors_changed(None).
        """
        name = property_key(property_name)
        self.__ensure_errors_initialized()
        self.__on_property_changed(name or None)

    def __on_property_changed(self, property_name: Optional[str]) -> None:
        self.__notify_depth += 1
        try:
            self.__raise_changes(property_name)
            while self.__pending_changes:
                pending = next(iter(self.__pending_changes))
                del self.__pending_changes[pending]
                self.__raise_changes(pending)
        finally:
            self.__notify_depth -= 1
            if not self.__notify_depth:
                # drop changes queued by a pass that was aborted by an exception
                self.__pending_changes.clear()

    def __raise_changes(self, property_name: Optional[str]) -> None:
        self.property_changed.fire(self, property_name)
        if property_name is None:
            self.revalidate()
        elif self.__apply_rules(property_name):
            self.errors_changed.fire(self, property_name)
        self.property_changed.fire(self, HAS_ERRORS_PROPERTY)

    # ------------------------------------------------------------------
    # Cache maintenance
    # ------------------------------------------------------------------

    def __apply_rules(self, property_name: str) -> bool:
        """
        Re-apply the rules for one property and update its cache entry.

        Returns:
            True if the property's error list changed
        """
        errors = self.__ensure_errors_initialized()
        property_errors = self.__rules.apply(self, property_name)
        previous = errors.get(property_name, [])
        if property_errors:
            errors[property_name] = property_errors
        else:
            errors.pop(property_name, None)
        logger.debug(
            f"Applied rules for '{property_name}' on {type(self).__name__}: "
            f"{len(property_errors)} errors"
        )
        return previous != property_errors

    def __evaluate_all(self, skip: Optional[str] = None) -> Dict[str, List[Any]]:
        errors = {}
        for name in self.__rules.property_names():
            if name == skip:
                continue
            property_errors = self.__rules.apply(self, name)
            if property_errors:
                errors[name] = property_errors
        return errors

    def __ensure_errors_initialized(self, skip: Optional[str] = None) -> Dict[str, List[Any]]:
        """
        Build the error cache on first use and return it.

        Args:
            skip: Property left out of the initial scan; its rules run in
                the incremental update that follows
        """
        if self.__errors is not None:
            return self.__errors

        logger.debug(f"Initializing error cache for {type(self).__name__}")
        if self.__config.get("atomic_initialization", True):
            # only swapped in when every property evaluated without a fault
            self.__errors = self.__evaluate_all(skip=skip)
        else:
            self.__errors = {}
            for name in self.__rules.property_names():
                if name != skip:
                    self.__apply_rules(name)
        return self.__errors

    def __check_property_name(self, property_name: str) -> None:
        if not self.__config.get("check_property_names", False):
            return
        if not hasattr(type(self), property_name) and not hasattr(self, property_name):
            logger.warning(
                f"'{property_name}' is not a property of {type(self).__name__}"
            )
