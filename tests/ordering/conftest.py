import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _reset_adapters():
    """Give every test fresh settings, inventory and order store singletons."""
    from ordering.delivery.settings_store import reset_settings_store
    from ordering.order.store import reset_order_store
    from ordering.stock.inventory import reset_inventory

    reset_settings_store()
    reset_inventory()
    reset_order_store()
    yield
    reset_settings_store()
    reset_inventory()
    reset_order_store()
