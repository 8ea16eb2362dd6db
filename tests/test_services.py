from __future__ import annotations

from stockroom.services import build_services


def test_build_services_shares_one_store(store, seed_item):
    services = build_services(store=store, recipients=["stores@example.com"])
    seed_item("flt-oil-300", 12, reorder_point=2)

    assert services.reporting.store is store
    assert services.mutations.store is store
    assert services.mutations.notifier is services.notifier
    assert services.notifier.recipients == ["stores@example.com"]
    assert services.mutations.lookup_stock("flt-oil-300").quantity == 12
