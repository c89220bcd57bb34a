from __future__ import annotations

import json

import pytest

from ledger.errors import TourNotFoundError
from ledger.models import DateRange, LedgerStats
from ledger.persistence import InMemoryKeyValueStore
from ledger.store import DATA_KEY, LedgerStore


def _seed(store: LedgerStore, clock):
    tour = store.create_tour("u1", "Sylhet Expedition", "2024-01-10", host_name="Rahim", price_per_seat=1000)
    clock.advance(seconds=1)
    guests = [
        store.create_guest(tour.id, "u1", "Ayesha", paid_amount=1000, payment_status="Paid"),
        store.create_guest(tour.id, "u1", "Babul", paid_amount=400, payment_status="Partial"),
        store.create_guest(tour.id, "u1", "Chandra", paid_amount=1200, payment_status="Paid"),
    ]
    expense = store.create_expense(tour.id, "u1", category="Transport", amount=500, note="Bus")
    return tour, guests, expense


def test_create_assigns_ids_timestamps_and_owner_keys(store, clock) -> None:
    tour, guests, expense = _seed(store, clock)

    assert tour.id == "tour_1704099600000"
    assert tour.user_id == "u1"
    assert tour.created_at == "2024-01-01T09:00:00+00:00"
    assert tour.total_seats == 20

    # Same clock tick: ids are bumped, never reused.
    assert [g.id for g in guests] == [
        "guest_1704099601000",
        "guest_1704099601001",
        "guest_1704099601002",
    ]
    assert all(g.tour_id == tour.id and g.user_id == "u1" for g in guests)
    assert expense.id == "exp_1704099601000"


def test_store_financials_match_the_worked_example(store, clock) -> None:
    tour, _, _ = _seed(store, clock)

    fin = store.tour_financials(tour.id)

    assert (fin.total_collected, fin.total_unpaid, fin.projected_revenue) == (2600, 600, 3200)
    assert (fin.current_net_profit, fin.projected_net_profit) == (2100, 2700)


def test_guest_and_expense_need_an_existing_tour(store) -> None:
    with pytest.raises(TourNotFoundError):
        store.create_guest("tour_missing", "u1", "Nobody")
    with pytest.raises(TourNotFoundError):
        store.create_expense("tour_missing", "u1", amount=10)
    assert store.guests == []
    assert store.expenses == []


@pytest.mark.parametrize(
    "kwargs",
    [{"payment_status": "Refunded"}, {"payment_status": "paid"}],
)
def test_unknown_payment_status_is_rejected(store, kwargs) -> None:
    tour = store.create_tour("u1", "T", "2024-01-10")
    with pytest.raises(ValueError):
        store.create_guest(tour.id, "u1", "G", **kwargs)


def test_unknown_expense_category_is_rejected(store) -> None:
    tour = store.create_tour("u1", "T", "2024-01-10")
    with pytest.raises(ValueError):
        store.create_expense(tour.id, "u1", category="Fuel", amount=10)


def test_delete_tour_cascades_and_stats_follow(store, clock) -> None:
    tour, _, _ = _seed(store, clock)
    other = store.create_tour("u1", "Cox's Bazar", "2024-03-05", price_per_seat=500)
    store.create_guest(other.id, "u1", "Dipu", paid_amount=500, payment_status="Paid")

    store.delete_tour(tour.id)

    assert [t.id for t in store.tours] == [other.id]
    assert all(g.tour_id == other.id for g in store.guests)
    assert store.expenses_for_tour(tour.id) == []
    assert store.global_stats("u1") == LedgerStats(
        total_tours=1, total_guests=1, total_income=500, total_expenses=0, net_profit=500
    )


def test_delete_tour_is_persisted_in_one_blob(store, backend, clock) -> None:
    tour, _, _ = _seed(store, clock)

    store.delete_tour(tour.id)

    blob = json.loads(backend.get(DATA_KEY))
    assert blob["tours"] == []
    assert blob["guests"] == []
    assert blob["expenses"] == []


def test_guest_and_expense_deletes_are_independent(store, clock) -> None:
    tour, guests, expense = _seed(store, clock)

    store.delete_guest(guests[1].id)
    store.delete_expense(expense.id)

    assert [g.id for g in store.guests_for_tour(tour.id)] == [guests[0].id, guests[2].id]
    assert store.expenses_for_tour(tour.id) == []
    assert store.get_tour(tour.id) == tour


def test_deleting_unknown_ids_is_a_no_op(store, clock) -> None:
    _seed(store, clock)
    store.delete_tour("nope")
    store.delete_guest("nope")
    store.delete_expense("nope")
    assert (len(store.tours), len(store.guests), len(store.expenses)) == (1, 3, 1)


def test_load_all_scopes_through_tour_ownership(store) -> None:
    mine = store.create_tour("u1", "Mine", "2024-01-10")
    theirs = store.create_tour("u2", "Theirs", "2024-01-11")
    store.create_guest(mine.id, "u2", "Entered by u2")
    store.create_guest(theirs.id, "u1", "Entered by u1")

    snapshot = store.load_all("u1")

    assert [t.id for t in snapshot.tours] == [mine.id]
    assert [g.guest_name for g in snapshot.guests] == ["Entered by u2"]
    assert isinstance(snapshot.guests, tuple)


def test_range_stats(store) -> None:
    jan = store.create_tour("u1", "Jan", "2024-01-10", price_per_seat=100)
    mar = store.create_tour("u1", "Mar", "2024-03-05", price_per_seat=100)
    store.create_guest(jan.id, "u1", "A", paid_amount=100)
    store.create_guest(mar.id, "u1", "B", paid_amount=80)
    store.create_expense(mar.id, "u1", amount=30)

    report = store.range_stats("u1", DateRange(start="2024-02-01"))

    assert [t.id for t in report.tours] == [mar.id]
    assert (report.total_income, report.total_expenses, report.net_profit) == (80, 30, 50)


def test_store_round_trips_through_backend(backend, clock) -> None:
    first = LedgerStore(backend, clock=clock)
    tour, _, _ = _seed(first, clock)

    second = LedgerStore(backend, clock=clock)

    assert second.tours == first.tours
    assert second.guests == first.guests
    assert second.expenses == first.expenses
    assert second.tour_financials(tour.id) == first.tour_financials(tour.id)


def test_legacy_blob_with_string_amounts_loads_and_sums() -> None:
    legacy = {
        "users": [{"id": "1700000000000", "name": "Owner", "email": "o@x.com", "role": "admin"}],
        "tours": [{
            "id": "tour_1", "userId": "1700000000000", "tourName": "Old Tour",
            "tourDate": "2023-12-01", "hostName": "H", "totalSeats": "20",
            "pricePerSeat": "1000", "description": "", "createdAt": "2023-11-01T00:00:00Z",
        }],
        "guests": [
            {"id": "guest_1", "tourId": "tour_1", "userId": "1700000000000",
             "guestName": "A", "paidAmount": "400", "paymentStatus": "Paid"},
            {"id": "guest_2", "tourId": "tour_1", "userId": "1700000000000",
             "guestName": "B", "paidAmount": "oops", "paymentStatus": "Unpaid"},
        ],
        "expenses": [
            {"id": "exp_1", "tourId": "tour_1", "userId": "1700000000000",
             "category": "Food", "amount": "150", "note": ""},
        ],
    }
    store = LedgerStore(InMemoryKeyValueStore({DATA_KEY: json.dumps(legacy)}))

    fin = store.tour_financials("tour_1")
    stats = store.global_stats("1700000000000")

    assert fin.total_collected == 400
    assert fin.total_unpaid == 1600
    assert stats.net_profit == 250


def test_corrupt_blob_starts_empty(caplog) -> None:
    store = LedgerStore(InMemoryKeyValueStore({DATA_KEY: "{not json"}))

    assert store.tours == []
    assert store.global_stats("anyone") == LedgerStats()
    assert "not valid JSON" in caplog.text


def test_collection_that_is_not_a_list_starts_empty(caplog) -> None:
    blob = {
        "users": [{"id": "1", "name": "Owner", "email": "o@x.com", "role": "admin"}],
        "tours": 5,
        "guests": {"guest_1": {"tourId": "tour_1"}},
    }
    store = LedgerStore(InMemoryKeyValueStore({DATA_KEY: json.dumps(blob)}))

    assert [u.email for u in store.users] == ["o@x.com"]
    assert store.tours == []
    assert store.guests == []
    assert store.expenses == []
    assert "'tours' is not a list" in caplog.text
    assert "'guests' is not a list" in caplog.text


def test_oversized_stored_amount_counts_as_zero() -> None:
    huge = "1" + "0" * 400
    raw = (
        '{"tours": [{"id": "t1", "userId": "u1", "tourName": "T", "tourDate": "2024-01-10",'
        ' "totalSeats": 20, "pricePerSeat": 1000}],'
        ' "guests": [{"id": "g1", "tourId": "t1", "userId": "u1", "guestName": "A",'
        ' "paidAmount": ' + huge + ', "paymentStatus": "Paid"}]}'
    )
    store = LedgerStore(InMemoryKeyValueStore({DATA_KEY: raw}))

    fin = store.tour_financials("t1")

    assert fin.total_collected == 0
    assert fin.total_unpaid == 1000
    assert store.global_stats("u1").total_income == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"total_seats": -1},
        {"total_seats": 2.5},
        {"total_seats": "many"},
        {"price_per_seat": -100},
        {"price_per_seat": "abc"},
        {"price_per_seat": None},
    ],
)
def test_create_tour_rejects_bad_numbers(store, backend, kwargs) -> None:
    with pytest.raises(ValueError):
        store.create_tour("u1", "T", "2024-01-10", **kwargs)
    assert store.tours == []
    assert backend.get(DATA_KEY) is None


def test_create_tour_accepts_numeric_strings(store) -> None:
    tour = store.create_tour("u1", "T", "2024-01-10", total_seats="12", price_per_seat="1500")
    assert (tour.total_seats, tour.price_per_seat) == ("12", "1500")


@pytest.mark.parametrize("bad", [-1, "n/a", float("inf")])
def test_guest_and_expense_reject_bad_amounts(store, bad) -> None:
    tour = store.create_tour("u1", "T", "2024-01-10")
    with pytest.raises(ValueError):
        store.create_guest(tour.id, "u1", "G", paid_amount=bad)
    with pytest.raises(ValueError):
        store.create_expense(tour.id, "u1", amount=bad)
    assert store.guests == []
    assert store.expenses == []


class _FailingBackend(InMemoryKeyValueStore):
    def __init__(self):
        super().__init__()
        self.fail = False

    def set(self, key: str, value: str) -> None:
        if self.fail:
            raise OSError("disk full")
        super().set(key, value)


def test_failed_write_leaves_memory_unchanged(clock) -> None:
    backend = _FailingBackend()
    store = LedgerStore(backend, clock=clock)
    tour, guests, expense = _seed(store, clock)
    stored = backend.get(DATA_KEY)

    backend.fail = True
    with pytest.raises(OSError):
        store.create_tour("u1", "Another", "2024-02-01")
    with pytest.raises(OSError):
        store.create_guest(tour.id, "u1", "Late")
    with pytest.raises(OSError):
        store.delete_tour(tour.id)
    with pytest.raises(OSError):
        store.delete_expense(expense.id)

    assert [t.id for t in store.tours] == [tour.id]
    assert store.guests == guests
    assert store.expenses == [expense]
    assert backend.get(DATA_KEY) == stored
