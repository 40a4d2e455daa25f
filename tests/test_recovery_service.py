"""
Unit tests for recovery of corrupted event logs.

Covers salvaging a log, restoring persisted blobs and crash recovery from
the primary, backup and emergency storage keys.
"""
import json
import unittest

from matchledger.services import (
    CrashRecoveryService, InMemoryStorage, StorageError,
    recover_corrupted_events, recover_from_crash, validate_and_restore,
    validate_match_data
)
from matchledger.utils import (
    MATCH_EVENTS_BACKUP_KEY, MATCH_EVENTS_EMERGENCY_KEY, MATCH_EVENTS_KEY
)


def _event(event_id, event_type, timestamp, sequence):
    return {"id": event_id, "type": event_type, "timestamp": timestamp, "sequence": sequence, "data": {}}


CLEAN_BLOB = {
    "matchId": "m1",
    "events": [
        _event("start", "match_start", 1000, 1),
        _event("end", "match_end", 61000, 2),
    ],
}


class FailingPrimaryStorage(InMemoryStorage):
    """Storage whose primary key cannot be read."""

    def get(self, key):
        if key == MATCH_EVENTS_KEY:
            raise StorageError("disk unavailable")
        return super().get(key)


class TestRecoverCorruptedEvents(unittest.TestCase):
    """Test salvaging a consistent log from corrupted input."""

    def setUp(self) -> None:
        self.corrupted = [
            _event("b", "goal_scored", 3000, 7),
            None,
            "junk",
            _event("a", "match_start", 1000, 9),
            _event("b", "goal_scored", 500, 2),
            _event("x", "not_a_type", 2000, 3),
            {"type": "goal_scored", "timestamp": 2500},
            _event("c", "match_end", "late", 4),
        ]

    def test_non_list_input(self) -> None:
        self.assertEqual(recover_corrupted_events("not an array"), [])
        self.assertEqual(recover_corrupted_events(None), [])

    def test_filters_dedupes_sorts_and_renumbers(self) -> None:
        recovered = recover_corrupted_events(self.corrupted)

        self.assertEqual([e["id"] for e in recovered], ["a", "b"])
        self.assertEqual([e["timestamp"] for e in recovered], [1000, 3000])
        self.assertEqual([e["sequence"] for e in recovered], [1, 2])

    def test_is_idempotent(self) -> None:
        once = recover_corrupted_events(self.corrupted)
        self.assertEqual(recover_corrupted_events(once), once)

    def test_input_is_not_mutated(self) -> None:
        recover_corrupted_events(self.corrupted)
        self.assertEqual(self.corrupted[0]["sequence"], 7)
        self.assertEqual(self.corrupted[3]["sequence"], 9)

    def test_non_finite_timestamps_are_dropped_before_sorting(self) -> None:
        events = [
            _event("late", "goal_scored", 30, 1),
            _event("nan", "goal_scored", float("nan"), 2),
            _event("inf", "goal_scored", float("inf"), 3),
            _event("early", "goal_scored", 10, 4),
        ]
        recovered = recover_corrupted_events(events)

        self.assertEqual([e["id"] for e in recovered], ["early", "late"])
        self.assertEqual([e["timestamp"] for e in recovered], [10, 30])

    def test_undecodable_payloads_are_dropped(self) -> None:
        sub = _event("sub", "substitution", 2000, 2)
        sub["data"] = {"playersOff": "p1", "playersOn": ["p2"]}
        recovered = recover_corrupted_events([_event("a", "match_start", 1000, 1), sub])

        self.assertEqual([e["id"] for e in recovered], ["a"])


class TestValidateAndRestore(unittest.TestCase):
    """Test parsing and restoring persisted blobs."""

    def setUp(self) -> None:
        self.clock = lambda: 1_700_000_000_000

    def test_clean_blob_round_trips_unchanged(self) -> None:
        restored = validate_and_restore(json.dumps(CLEAN_BLOB), clock=self.clock)
        self.assertEqual(restored, CLEAN_BLOB)
        self.assertNotIn("recovered", restored)

    def test_corrupted_blob_is_recovered(self) -> None:
        blob = {
            "matchId": "m1",
            "events": [
                _event("start", "match_start", 1000, 1),
                {"id": "x", "type": "bogus", "timestamp": 5},
                _event("end", "match_end", 61000, 3),
            ],
        }
        restored = validate_and_restore(json.dumps(blob), clock=self.clock)

        self.assertTrue(restored["recovered"])
        self.assertEqual(restored["recoveryTimestamp"], 1_700_000_000_000)
        self.assertEqual(restored["matchId"], "m1")
        self.assertEqual(len(restored["events"]), 2)
        self.assertEqual([e["sequence"] for e in restored["events"]], [1, 2])

    def test_recovered_events_pass_validation(self) -> None:
        sub = _event("sub", "substitution", 31000, 2)
        sub["data"] = {"playersOff": "p1", "playersOn": ["p2"]}
        blob = {"events": [_event("start", "match_start", 1000, 1), sub]}
        restored = validate_and_restore(json.dumps(blob), clock=self.clock)

        self.assertTrue(restored["recovered"])
        self.assertEqual([e["id"] for e in restored["events"]], ["start"])
        self.assertEqual(validate_match_data(restored["events"]), [])

    def test_non_finite_json_numbers_are_recovered_without_raising(self) -> None:
        blob = {
            "events": [
                _event("start", "match_start", 1000, 1),
                _event("nan", "goal_scored", float("nan"), 2),
                _event("end", "match_end", 61000, 3),
            ],
        }
        restored = validate_and_restore(json.dumps(blob), clock=self.clock)

        self.assertEqual([e["id"] for e in restored["events"]], ["start", "end"])
        self.assertEqual(validate_match_data(restored["events"]), [])

    def test_overflowing_payload_number_is_not_restored(self) -> None:
        raw = (
            '{"events": [{"id": "g", "type": "goal_scored", "timestamp": 1,'
            ' "sequence": 1, "data": {"homeScore": 1e999}}]}'
        )
        self.assertIsNone(validate_and_restore(raw, clock=self.clock))

    def test_unusable_input_yields_none(self) -> None:
        for raw in (None, "", "{not json", json.dumps("a string"), json.dumps({"events": "nope"})):
            with self.subTest(raw=raw):
                self.assertIsNone(validate_and_restore(raw, clock=self.clock))


class TestCrashRecovery(unittest.TestCase):
    """Test crash recovery across storage keys."""

    def setUp(self) -> None:
        self.clock = lambda: 5000

    def test_falls_back_to_backup_key(self) -> None:
        storage = InMemoryStorage({
            MATCH_EVENTS_KEY: "garbage",
            MATCH_EVENTS_BACKUP_KEY: json.dumps(CLEAN_BLOB),
        })
        self.assertEqual(recover_from_crash(storage, clock=self.clock), CLEAN_BLOB)

    def test_unreadable_primary_falls_back_to_emergency(self) -> None:
        storage = FailingPrimaryStorage({MATCH_EVENTS_EMERGENCY_KEY: json.dumps(CLEAN_BLOB)})
        self.assertEqual(recover_from_crash(storage, clock=self.clock), CLEAN_BLOB)

    def test_nothing_stored(self) -> None:
        self.assertIsNone(recover_from_crash(InMemoryStorage(), clock=self.clock))

    def test_service_saves_recovers_and_clears(self) -> None:
        storage = InMemoryStorage()
        service = CrashRecoveryService(storage, clock=self.clock)

        blob = service.save_events(CLEAN_BLOB["events"], matchId="m1")

        self.assertEqual(blob["lastUpdated"], 5000)
        self.assertEqual(storage.get(MATCH_EVENTS_KEY), storage.get(MATCH_EVENTS_BACKUP_KEY))
        self.assertIsNone(storage.get(MATCH_EVENTS_EMERGENCY_KEY))

        restored = service.recover()
        self.assertEqual(restored["events"], CLEAN_BLOB["events"])
        self.assertEqual(restored["matchId"], "m1")

        service.clear()
        self.assertEqual(storage.keys(), [])
        self.assertIsNone(service.recover())

    def test_service_requires_a_key(self) -> None:
        with self.assertRaises(ValueError):
            CrashRecoveryService(InMemoryStorage(), keys=())


if __name__ == "__main__":
    unittest.main()
