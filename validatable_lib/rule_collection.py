"""Ordered registry of validation rules shared by every instance of a model type."""

import logging
from typing import Any, Callable, Iterator, List

from .rule import PropertyName, Rule, property_key

logger = logging.getLogger(__name__)


class RuleCollection:
    """
    Ordered collection of rules, keyed implicitly by property name.

    One collection is the rule schema of one model type. The model creates
    it once and passes it to every instance, so adding or clearing rules
    affects validation of all instances immediately.
    """

    def __init__(self):
        self._rules: List[Rule] = []

    def add(self, property_name: PropertyName, error: Any,
            predicate: Callable[[Any], bool]) -> Rule:
        """
        Append a new rule.

        Args:
            property_name: Name (or Enum token) of the property the rule applies to
            error: Payload reported when the predicate fails
            predicate: Callable taking the instance, True when satisfied

        Returns:
            The rule that was added
        """
        rule = Rule(property_name, error, predicate)
        self._rules.append(rule)
        logger.debug(f"Rule added for '{rule.property_name}' ({len(self._rules)} total)")
        return rule

    def clear(self) -> None:
        """Remove every rule. Errors already cached on instances are left alone."""
        count = len(self._rules)
        self._rules.clear()
        logger.debug(f"Cleared {count} rules")

    def rules_for(self, property_name: PropertyName) -> List[Rule]:
        """Return the rules scoped to a property, in insertion order."""
        name = property_key(property_name)
        return [rule for rule in self._rules if rule.property_name == name]

    def apply(self, instance: Any, property_name: PropertyName) -> List[Any]:
        """
        Evaluate the rules for one property against an instance.

        Args:
            instance: The object being validated
            property_name: Property whose rules should run

        Returns:
            Error payloads of the failing rules, in insertion order

        Raises:
            Whatever a predicate raises; evaluation stops at the first fault
        """
        return [
            rule.error
            for rule in self.rules_for(property_name)
            if not rule.is_satisfied_by(instance)
        ]

    def property_names(self) -> List[str]:
        """Return every distinct property name, in first-registration order."""
        # dict keeps first-insertion order and drops duplicates
        return list(dict.fromkeys(rule.property_name for rule in self._rules))

    def __contains__(self, property_name) -> bool:
        name = property_key(property_name)
        return any(rule.property_name == name for rule in self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self):
        return f"RuleCollection({len(self._rules)} rules, properties={self.property_names()})"
