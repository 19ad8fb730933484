from __future__ import annotations

import json

import pytest

from storefront.core.errors import ErrorType, StorefrontError
from storefront.core.location.models import DeliveryLocation, LocationSource
from storefront.core.location.store import LocationStore

from conftest import STORAGE_KEY


def _location(pincode: str = "421202", depot_id: str | None = "1") -> DeliveryLocation:
    return DeliveryLocation(pincode=pincode, source=LocationSource.MANUAL, depot_id=depot_id, depot_name="Depot")


def test_save_persists_before_notifying_listeners(location_store) -> None:
    observed = []

    def listener(change) -> None:
        observed.append((change.current, location_store.get_current_location()))

    location_store.subscribe(listener)
    location = _location()
    change = location_store.save(location)

    assert change.previous is None
    assert change.current == location
    assert len(observed) == 1
    published, persisted = observed[0]
    assert published == location
    assert persisted is not None and persisted.pincode == "421202"


def test_round_trip_preserves_every_field(location_store) -> None:
    location = DeliveryLocation(
        pincode="400601",
        source=LocationSource.GEOLOCATION,
        area_name="Thane West",
        area_id=12,
        depot_id="2",
        depot_name="Thane Depot",
        city="Thane",
        latitude=19.2,
        longitude=72.97,
    )
    location_store.save(location)

    assert location_store.get_current_location() == location


def test_last_writer_wins_and_reports_previous(location_store) -> None:
    location_store.save(_location("421202", "1"))
    change = location_store.save(_location("400601", "2"))

    assert change.previous.depot_id == "1"
    assert change.depot_changed is True
    assert location_store.get_current_location().pincode == "400601"


def test_same_depot_write_is_not_a_depot_change(location_store) -> None:
    location_store.save(_location("421202", "1"))
    change = location_store.save(_location("421201", "1"))

    assert change.depot_changed is False


def test_corrupted_record_is_discarded(location_store, location_cache) -> None:
    location_cache.save_raw(STORAGE_KEY, "{not json")

    with pytest.raises(StorefrontError) as excinfo:
        location_store.load_current_location()
    assert excinfo.value.type is ErrorType.CACHE_ERROR

    assert location_store.get_current_location() is None
    assert location_cache.load_raw(STORAGE_KEY) is None


def test_record_with_invalid_pincode_is_corrupted(location_store, location_cache) -> None:
    location_cache.save_raw(STORAGE_KEY, json.dumps({"pincode": "12", "source": "manual"}))

    assert location_store.get_current_location() is None


def test_clear_publishes_removal(location_store) -> None:
    changes = []
    location_store.subscribe(changes.append)
    location_store.save(_location())

    location_store.clear_current_location()

    assert location_store.get_current_location() is None
    assert changes[-1].current is None
    assert changes[-1].previous.pincode == "421202"


def test_unsubscribe_stops_notifications(location_store) -> None:
    changes = []
    unsubscribe = location_store.subscribe(changes.append)
    unsubscribe()

    location_store.save(_location())

    assert changes == []


def test_failing_listener_does_not_block_others(location_store) -> None:
    changes = []

    def broken(change) -> None:
        raise RuntimeError("boom")

    location_store.subscribe(broken)
    location_store.subscribe(changes.append)
    location_store.save(_location())

    assert len(changes) == 1


def test_cross_tab_event_republishes_current_record(location_cache) -> None:
    # Two stores over the same disk cache behave like two tabs.
    first_tab = LocationStore(location_cache, STORAGE_KEY)
    second_tab = LocationStore(location_cache, STORAGE_KEY)
    received = []
    second_tab.subscribe(received.append)

    old_value = location_cache.save_record(STORAGE_KEY, _location("421202", "1").to_dict())
    first_tab.save(_location("400601", "2"))
    second_tab.handle_storage_event(STORAGE_KEY, old_value, location_cache.load_raw(STORAGE_KEY))

    assert len(received) == 1
    assert received[0].external is True
    assert received[0].previous.depot_id == "1"
    assert received[0].current.depot_id == "2"


def test_storage_events_for_other_keys_are_ignored(location_store) -> None:
    received = []
    location_store.subscribe(received.append)

    location_store.handle_storage_event("cart", None, "{}")

    assert received == []
