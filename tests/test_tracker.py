import json
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from habit_tracker.errors import NotFound, PersistenceFailure
from habit_tracker.store import JsonStore
from habit_tracker.tracker import UNTITLED_HABIT, Tracker

NOW = datetime(2026, 2, 11, 12, 0)


class FailingStore(JsonStore):
    def save(self, document):
        raise PersistenceFailure("disk full")


class CountingStore(JsonStore):
    saves = 0

    def save(self, document):
        self.saves += 1
        super().save(document)


class TrackerTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "habits.json"
        self.store = JsonStore(self.path)

    def tracker(self, **kwargs):
        return Tracker(self.store, clock=lambda: NOW, **kwargs)

    def document(self):
        return json.loads(self.path.read_text(encoding="utf-8"))


class FirstRunTests(TrackerTestCase):
    def test_first_run_writes_default_document(self):
        tracker = self.tracker(user_name="Ana")
        self.assertEqual(tracker.habits, [])
        document = self.document()
        self.assertEqual(document["habits"], [])
        self.assertEqual(document["userProfile"]["name"], "Ana")
        self.assertEqual(document["userProfile"]["totalHabits"], 0)
        self.assertEqual(document["userProfile"]["completedThisWeek"], 0)

    def test_add_then_complete_first_position(self):
        tracker = self.tracker()
        tracker.add_habit("Water", 7)
        first = tracker.complete_habit(1)
        self.assertTrue(first.ok)
        again = tracker.complete_habit(1)
        self.assertFalse(again.ok)
        self.assertEqual(again.reason, "already_marked")
        self.assertEqual(len(self.document()["habits"][0]["completions"]), 1)


class AddHabitTests(TrackerTestCase):
    def test_blank_name_gets_placeholder(self):
        self.assertEqual(self.tracker().add_habit("   ", 3).name, UNTITLED_HABIT)

    def test_invalid_frequency_is_coerced_to_zero(self):
        tracker = self.tracker()
        with self.assertLogs("habit_tracker.tracker", level="WARNING"):
            habit = tracker.add_habit("Run", "often")
        self.assertEqual(habit.target_frequency, 0)
        self.assertEqual(tracker.add_habit("Walk", "-2").target_frequency, 0)
        self.assertEqual(tracker.add_habit("Swim", " 4 ").target_frequency, 4)

    def test_ids_never_reused(self):
        tracker = self.tracker()
        first = tracker.add_habit("A", 1)
        second = tracker.add_habit("B", 1)
        tracker.delete_habit(2)
        third = tracker.add_habit("C", 1)
        self.assertEqual([first.id, second.id, third.id], [1, 2, 3])

    def test_ids_continue_after_reload(self):
        tracker = self.tracker()
        tracker.add_habit("A", 1)
        tracker.add_habit("B", 1)
        self.assertEqual(self.tracker().add_habit("C", 1).id, 3)


class CompleteHabitTests(TrackerTestCase):
    def test_unknown_position_is_not_found(self):
        tracker = self.tracker()
        tracker.add_habit("Water", 7)
        for selector in (0, 2, -1):
            result = tracker.complete_habit(selector)
            self.assertFalse(result.ok)
            self.assertEqual(result.reason, "not_found")

    def test_select_by_id(self):
        tracker = self.tracker()
        tracker.add_habit("Water", 7)
        read = tracker.add_habit("Read", 3)
        result = tracker.complete_habit(str(read.id))
        self.assertTrue(result.ok)
        self.assertIs(result.habit, read)
        self.assertEqual(tracker.complete_habit("999").reason, "not_found")

    def test_get_raises_not_found(self):
        tracker = self.tracker()
        tracker.add_habit("Water", 7)
        self.assertEqual(tracker.get(1).name, "Water")
        with self.assertRaises(NotFound):
            tracker.get(2)
        with self.assertRaises(NotFound):
            tracker.get("missing")

    def test_already_marked_does_not_save(self):
        store = CountingStore(self.path)
        tracker = Tracker(store, clock=lambda: NOW)
        tracker.add_habit("Water", 7)
        tracker.complete_habit(1)
        saves = store.saves
        tracker.complete_habit(1)
        self.assertEqual(store.saves, saves)


class DeleteHabitTests(TrackerTestCase):
    def test_out_of_range_positions(self):
        tracker = self.tracker()
        tracker.add_habit("Water", 7)
        for position in (0, 2):
            result = tracker.delete_habit(position)
            self.assertFalse(result.ok)
            self.assertEqual(result.message, "Invalid index")
        self.assertEqual(len(tracker.habits), 1)

    def test_delete_persists_and_names_habit(self):
        tracker = self.tracker()
        tracker.add_habit("Water", 7)
        tracker.add_habit("Read", 3)
        result = tracker.delete_habit(1)
        self.assertTrue(result.ok)
        self.assertIn("Water", result.message)
        self.assertEqual([h["name"] for h in self.document()["habits"]], ["Read"])


class ClearAllTests(TrackerTestCase):
    def test_clear_keeps_name_and_restarts_profile(self):
        self.path.write_text(
            json.dumps(
                {
                    "userProfile": {"name": "Ana", "joinDate": "2025-01-01T00:00:00.000Z"},
                    "habits": [{"id": 1, "name": "Water", "targetFrequency": 7, "completions": []}],
                }
            ),
            encoding="utf-8",
        )
        tracker = self.tracker()
        tracker.clear_all()
        self.assertEqual(tracker.habits, [])
        self.assertEqual(tracker.profile.name, "Ana")
        self.assertEqual(tracker.profile.days_since_join(NOW), 0)
        document = self.document()
        self.assertEqual(document["habits"], [])
        self.assertEqual(document["userProfile"]["totalHabits"], 0)


class QueryTests(TrackerTestCase):
    def setUp(self):
        super().setUp()
        self.subject = self.tracker()
        self.subject.add_habit("Water", 7)
        self.subject.add_habit("Stretch", 1)
        self.subject.add_habit("Journal", 2)
        self.subject.complete_habit(2)
        self.subject.complete_habit(3)

    def test_active_and_completed_split(self):
        self.assertEqual([h.name for h in self.subject.list_active()], ["Water", "Journal"])
        self.assertEqual([h.name for h in self.subject.list_completed()], ["Stretch"])
        self.assertEqual(self.subject.first_incomplete().name, "Water")

    def test_stats_summary(self):
        stats = self.subject.stats()
        self.assertEqual(stats.names, ["Water", "Stretch", "Journal"])
        self.assertEqual(stats.average_progress, 50)
        self.assertEqual(stats.top_habit.name, "Stretch")
        self.assertEqual(stats.top_progress, 100)
        self.assertEqual([h.name for h in stats.needs_attention], ["Water"])

    def test_profile_snapshot_is_live(self):
        profile = self.subject.profile_snapshot()
        self.assertEqual(profile.total_habits, 3)
        self.assertEqual(profile.completed_this_week, 2)

    def test_no_incomplete_when_everything_is_satisfied(self):
        self.subject.delete_habit(1)
        self.subject.delete_habit(2)
        self.assertIsNone(self.subject.first_incomplete())


class PersistenceTests(TrackerTestCase):
    def test_round_trip(self):
        tracker = self.tracker()
        tracker.add_habit("Water", 7)
        tracker.add_habit("Read", 3)
        tracker.complete_habit(1)
        reloaded = self.tracker()
        self.assertEqual(
            [(h.id, h.name, h.target_frequency, h.completions) for h in reloaded.habits],
            [(h.id, h.name, h.target_frequency, h.completions) for h in tracker.habits],
        )
        self.assertEqual(reloaded.profile.total_habits, 2)
        self.assertEqual(reloaded.profile.completed_this_week, 1)

    def test_persisted_derived_fields_are_recomputed(self):
        self.path.write_text(
            json.dumps(
                {
                    "userProfile": {"name": "Ana", "totalHabits": 99, "completedThisWeek": 42},
                    "habits": [{"id": 7, "name": "Water", "targetFrequency": 7, "completions": []}],
                }
            ),
            encoding="utf-8",
        )
        tracker = self.tracker()
        self.assertEqual(tracker.profile.total_habits, 1)
        self.assertEqual(tracker.profile.completed_this_week, 0)

    def test_missing_and_repeated_ids_are_reassigned(self):
        self.path.write_text(
            json.dumps(
                {
                    "userProfile": {"name": "Ana"},
                    "habits": [
                        {"name": "A", "targetFrequency": 1},
                        {"name": "B", "targetFrequency": 1},
                        {"id": 5, "name": "C", "targetFrequency": 1},
                        {"id": 5, "name": "D", "targetFrequency": 1},
                        {"id": "6", "name": "F", "targetFrequency": 1},
                    ],
                }
            ),
            encoding="utf-8",
        )
        with self.assertLogs("habit_tracker.tracker", level="WARNING"):
            tracker = self.tracker()
        ids = [h.id for h in tracker.habits]
        self.assertNotIn(None, ids)
        self.assertEqual(len({str(i) for i in ids}), 5)
        self.assertEqual(tracker.get("5").name, "C")

        tracker.add_habit("E", 1)
        persisted = [h["id"] for h in self.document()["habits"]]
        self.assertNotIn(None, persisted)
        self.assertEqual(len({str(i) for i in persisted}), 6)

    def test_corrupt_file_falls_back_without_overwriting(self):
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("habit_tracker.tracker", level="ERROR"):
            tracker = self.tracker()
        self.assertEqual(tracker.habits, [])
        self.assertEqual(self.path.read_text(encoding="utf-8"), "{not json")

    def test_save_failure_keeps_memory_state(self):
        tracker = Tracker(FailingStore(self.path), clock=lambda: NOW)
        with self.assertLogs("habit_tracker.tracker", level="ERROR"):
            habit = tracker.add_habit("Water", 7)
            result = tracker.complete_habit(1)
        self.assertTrue(result.ok)
        self.assertEqual(tracker.habits, [habit])
        self.assertFalse(tracker.save())


class SeedDemoDataTests(TrackerTestCase):
    def test_seed_only_when_empty(self):
        tracker = self.tracker()
        self.assertTrue(tracker.seed_demo_data())
        self.assertEqual(len(tracker.habits), 2)
        self.assertEqual(tracker.habits[0].done_this_week(NOW), 2)
        self.assertEqual(tracker.habits[1].done_this_week(NOW), 1)
        self.assertFalse(tracker.seed_demo_data())
        self.assertEqual(len(self.document()["habits"]), 2)


if __name__ == "__main__":
    unittest.main()
