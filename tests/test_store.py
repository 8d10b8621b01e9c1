from __future__ import annotations

import json
from datetime import date

from shifteaze.blocks import FULL_DAY, VACATION, EmployeeSnapshot, ScheduleBlock, Scope
from shifteaze.models import Manager
from shifteaze.store import MemoryKeyValueStore, ScopedBlockStore, SqlKeyValueStore, scope_storage_key

CASHIER_MARCH = Scope(job_title="Cashier", month="2025-03")
COOK_MARCH = Scope(job_title="Cook", month="2025-03")


def sample_blocks() -> list[ScheduleBlock]:
    return [
        ScheduleBlock(
            id="1741161600000-a",
            type=FULL_DAY,
            start_date=date(2025, 3, 5),
            end_date=date(2025, 3, 5),
            start_time="09:00",
            end_time="17:00",
            employee=EmployeeSnapshot(first_name="Jane", last_name="Doe", photo_url="https://img.example/jane.png"),
            row=0,
        ),
        ScheduleBlock(
            id="1741161600001-b",
            type=VACATION,
            start_date=date(2025, 3, 10),
            end_date=date(2025, 3, 12),
            employee=EmployeeSnapshot(first_name="John", last_name="Roe"),
            row=1,
        ),
    ]


def add_manager(db, email: str) -> Manager:
    manager = Manager(email=email, display_name="", password_hash="x")
    db.add(manager)
    db.commit()
    return manager


def test_storage_key_format():
    assert scope_storage_key(CASHIER_MARCH) == "scheduleBlocks-Cashier-2025-03"
    assert Scope.of("Cook", date(2025, 11, 20)).month == "2025-11"


def test_save_then_load_round_trips():
    store = ScopedBlockStore(MemoryKeyValueStore())
    blocks = sample_blocks()
    store.save(CASHIER_MARCH, blocks)
    assert store.load(CASHIER_MARCH) == blocks


def test_load_missing_scope_is_empty():
    assert ScopedBlockStore(MemoryKeyValueStore()).load(CASHIER_MARCH) == []


def test_save_overwrites_the_whole_list():
    store = ScopedBlockStore(MemoryKeyValueStore())
    blocks = sample_blocks()
    store.save(CASHIER_MARCH, blocks)
    store.save(CASHIER_MARCH, blocks[:1])
    assert store.load(CASHIER_MARCH) == blocks[:1]


def test_stored_value_uses_camel_case_records():
    backend = MemoryKeyValueStore()
    ScopedBlockStore(backend).save(CASHIER_MARCH, sample_blocks())
    records = json.loads(backend.get("scheduleBlocks-Cashier-2025-03"))
    assert records[0] == {
        "id": "1741161600000-a",
        "type": "Full Day Block",
        "startDate": "2025-03-05",
        "endDate": "2025-03-05",
        "startTime": "09:00",
        "endTime": "17:00",
        "employee": {"firstName": "Jane", "lastName": "Doe", "photoURL": "https://img.example/jane.png"},
        "row": 0,
    }
    assert records[1]["startTime"] is None


def test_legacy_payload_with_timestamps_and_blank_times_loads():
    legacy = [
        {
            "id": "1717171717171-0.123",
            "type": "Vacation Block",
            "startDate": "2025-03-10T00:00:00.000Z",
            "endDate": "2025-03-12T00:00:00.000Z",
            "startTime": "",
            "endTime": "",
            "employee": {"firstName": "Jane", "lastName": "Doe", "photoURL": "None"},
            "row": 0,
        }
    ]
    backend = MemoryKeyValueStore({"scheduleBlocks-Cashier-2025-03": json.dumps(legacy)})
    (block,) = ScopedBlockStore(backend).load(CASHIER_MARCH)
    assert block.start_date == date(2025, 3, 10)
    assert block.end_date == date(2025, 3, 12)
    assert block.start_time is None
    assert block.employee.photo_url == "None"


def test_legacy_timestamps_round_to_the_nearest_day():
    # Local midnight of March 5th written by clients east and west of UTC.
    legacy = [
        {
            "id": "east",
            "type": "Vacation Block",
            "startDate": "2025-03-04T23:00:00.000Z",
            "endDate": "2025-03-06T14:00:00.000Z",
            "employee": {"firstName": "Jane", "lastName": "Doe", "photoURL": "None"},
            "row": 0,
        },
        {
            "id": "west",
            "type": "Vacation Block",
            "startDate": "2025-03-05T05:00:00.000Z",
            "endDate": "2025-03-06T08:00:00.000Z",
            "employee": {"firstName": "John", "lastName": "Roe", "photoURL": "None"},
            "row": 1,
        },
    ]
    backend = MemoryKeyValueStore({"scheduleBlocks-Cashier-2025-03": json.dumps(legacy)})
    east, west = ScopedBlockStore(backend).load(CASHIER_MARCH)
    assert (east.start_date, east.end_date) == (date(2025, 3, 5), date(2025, 3, 7))
    assert (west.start_date, west.end_date) == (date(2025, 3, 5), date(2025, 3, 6))


def test_undecodable_payload_reads_as_empty():
    backend = MemoryKeyValueStore({"scheduleBlocks-Cashier-2025-03": "{not json"})
    assert ScopedBlockStore(backend).load(CASHIER_MARCH) == []


def test_clear_only_touches_its_scope():
    store = ScopedBlockStore(MemoryKeyValueStore())
    store.save(CASHIER_MARCH, sample_blocks())
    store.save(COOK_MARCH, sample_blocks()[:1])
    store.clear(CASHIER_MARCH)
    assert store.load(CASHIER_MARCH) == []
    assert len(store.load(COOK_MARCH)) == 1


def test_sql_store_round_trips_and_partitions_by_manager(db):
    alice = add_manager(db, "alice@example.com")
    bob = add_manager(db, "bob@example.com")
    alice_store = ScopedBlockStore(SqlKeyValueStore(db, alice.id))
    bob_store = ScopedBlockStore(SqlKeyValueStore(db, bob.id))

    alice_store.save(CASHIER_MARCH, sample_blocks())
    assert alice_store.load(CASHIER_MARCH) == sample_blocks()
    assert bob_store.load(CASHIER_MARCH) == []

    alice_store.save(CASHIER_MARCH, sample_blocks()[:1])
    assert len(alice_store.load(CASHIER_MARCH)) == 1

    alice_store.clear(CASHIER_MARCH)
    assert alice_store.load(CASHIER_MARCH) == []
    alice_store.clear(CASHIER_MARCH)
