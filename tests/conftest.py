"""
Shared fixtures.

Each test gets its own Product type with its own RuleCollection, so rules
registered in one test never leak into another.
"""
import pytest

from models import make_product_type


@pytest.fixture
def engine_config():
    """Engine config matching the bundled defaults."""
    return {
        "atomic_initialization": True,
        "coalesce_reentrant_changes": False,
        "check_property_names": False,
    }


@pytest.fixture
def product_type(engine_config):
    return make_product_type(engine_config)


@pytest.fixture
def product(product_type):
    return product_type()


@pytest.fixture
def events(product):
    """Record (event, property_name) tuples fired by the product fixture."""
    recorded = []
    product.property_changed.subscribe(
        lambda sender, name: recorded.append(("property_changed", name))
    )
    product.errors_changed.subscribe(
        lambda sender, name: recorded.append(("errors_changed", name))
    )
    return recorded
