import unittest
from datetime import datetime

from ccpm_engine.config import EngineConfig
from ccpm_engine.domain.buffer import (
    Buffer,
    BufferError,
    BufferStatus,
    BufferType,
    BufferZone,
    zone_for_ratio,
)
from ccpm_engine.domain.task import Task
from ccpm_engine.exceptions import BufferNotFoundError
from ccpm_engine.services.buffer_ledger import BufferLedger
from ccpm_engine.services.buffer_strategies import RootSumSquareMethod, calculate_buffer_rss
from ccpm_engine.services.scheduler import CCPMScheduler


class BufferStrategyTestCase(unittest.TestCase):
    def setUp(self):
        self.tasks = [
            Task("A", optimistic_minutes=60, pessimistic_minutes=120),
            Task("B", optimistic_minutes=120, pessimistic_minutes=240),
            Task("D", optimistic_minutes=30, pessimistic_minutes=90),
        ]

    def test_root_sum_square(self):
        # sqrt(60² + 120² + 60²) / 2 = 73.48
        self.assertEqual(calculate_buffer_rss(self.tasks), 73)
        self.assertEqual(RootSumSquareMethod().calculate_buffer_size(self.tasks), 73)

    def test_single_task_is_half_its_spread(self):
        task = Task("C", optimistic_minutes=90, pessimistic_minutes=150)
        self.assertEqual(calculate_buffer_rss([task]), 30)

    def test_empty_chain_has_no_buffer(self):
        self.assertEqual(calculate_buffer_rss([]), 0)

    def test_equal_estimates_have_no_buffer(self):
        tasks = [Task("A", optimistic_minutes=60, pessimistic_minutes=60)]
        self.assertEqual(calculate_buffer_rss(tasks), 0)

    def test_wider_estimates_never_shrink_the_buffer(self):
        previous = calculate_buffer_rss(self.tasks)
        for pessimistic in range(120, 600, 37):
            tasks = [Task("A", optimistic_minutes=60, pessimistic_minutes=pessimistic)] + self.tasks[1:]
            size = calculate_buffer_rss(tasks)
            self.assertGreaterEqual(size, previous)
            previous = size

    def test_halves_round_up(self):
        # sqrt(105²) / 2 = 52.5
        task = Task("A", optimistic_minutes=0, pessimistic_minutes=105)
        self.assertEqual(calculate_buffer_rss([task]), 53)

    def test_strategy_name(self):
        self.assertEqual(RootSumSquareMethod().get_name(), "Root Sum Square Method (RSS)")


class BufferTestCase(unittest.TestCase):
    def setUp(self):
        self.project_buffer = Buffer("PB", "Project Buffer", 100, BufferType.PROJECT)
        self.feeding_buffer = Buffer(
            "FB1", "Feeding Buffer", 30, BufferType.FEEDING, merge_task_id="D"
        )

    def test_init(self):
        self.assertEqual(self.project_buffer.size_minutes, 100)
        self.assertEqual(self.project_buffer.consumed_minutes, 0)
        self.assertIs(self.project_buffer.status, BufferStatus.ACTIVE)
        self.assertIsInstance(self.project_buffer.created_at, datetime)
        self.assertEqual(self.feeding_buffer.merge_task_id, "D")

    def test_invalid_init(self):
        with self.assertRaises(BufferError):
            Buffer("", "Name", 10, BufferType.PROJECT)
        with self.assertRaises(BufferError):
            Buffer("B", "", 10, BufferType.PROJECT)
        with self.assertRaises(BufferError):
            Buffer("B", "Name", -1, BufferType.PROJECT)
        with self.assertRaises(BufferError):
            Buffer("B", "Name", 10, "secondary")
        with self.assertRaises(BufferError):
            Buffer("B", "Name", 10, BufferType.FEEDING)

    def test_string_type_and_status(self):
        buffer = Buffer("B", "Name", 10, "feeding", merge_task_id="X", status="archived")
        self.assertIs(buffer.buffer_type, BufferType.FEEDING)
        self.assertIs(buffer.status, BufferStatus.ARCHIVED)
        self.assertFalse(buffer.is_active)

    def test_consume(self):
        self.assertEqual(self.project_buffer.consume(40), 40)
        self.assertEqual(self.project_buffer.consume(80), 120)
        self.assertEqual(self.project_buffer.consumption_percent, 120)
        with self.assertRaises(BufferError):
            self.project_buffer.consume(-5)

    def test_half_minutes_round_up(self):
        buffer = Buffer("B", "Name", 7.5, BufferType.PROJECT, consumed_minutes=0.5)
        self.assertEqual(buffer.size_minutes, 8)
        self.assertEqual(buffer.consumed_minutes, 1)
        # 1 / 8 = 12.5%
        self.assertEqual(buffer.consumption_percent, 13)

    def test_set_consumed_rejects_negative(self):
        with self.assertRaises(BufferError):
            self.project_buffer.set_consumed(-1)

    def test_zones(self):
        cases = [(0, BufferZone.GREEN), (33, BufferZone.GREEN), (34, BufferZone.YELLOW),
                 (66, BufferZone.YELLOW), (67, BufferZone.RED), (150, BufferZone.RED)]
        for consumed, zone in cases:
            with self.subTest(consumed=consumed):
                self.project_buffer.set_consumed(consumed)
                self.assertIs(self.project_buffer.zone, zone)

    def test_zero_size_buffer_is_green(self):
        buffer = Buffer("B", "Empty", 0, BufferType.PROJECT, consumed_minutes=10)
        self.assertEqual(buffer.consumption_ratio, 0)
        self.assertIs(buffer.zone, BufferZone.GREEN)

    def test_zone_for_ratio_custom_thresholds(self):
        self.assertIs(zone_for_ratio(0.4, 0.5, 0.8), BufferZone.GREEN)
        self.assertIs(zone_for_ratio(0.6, 0.5, 0.8), BufferZone.YELLOW)
        self.assertIs(zone_for_ratio(0.9, 0.5, 0.8), BufferZone.RED)

    def test_archive(self):
        self.project_buffer.archive()
        self.assertIs(self.project_buffer.status, BufferStatus.ARCHIVED)

    def test_to_dict(self):
        data = self.feeding_buffer.to_dict()
        self.assertEqual(data["buffer_type"], "FEEDING")
        self.assertEqual(data["status"], "ACTIVE")
        self.assertEqual(data["merge_task_id"], "D")
        self.assertEqual(data["size_minutes"], 30)


class BufferLedgerTestCase(unittest.TestCase):
    def setUp(self):
        scheduler = CCPMScheduler()
        scheduler.add_tasks(
            [
                Task("A", optimistic_minutes=60, pessimistic_minutes=120),
                Task("B", optimistic_minutes=120, pessimistic_minutes=240),
                Task("C", optimistic_minutes=90, pessimistic_minutes=150),
                Task("D", optimistic_minutes=30, pessimistic_minutes=90),
            ]
        )
        scheduler.add_dependency("A", "B").add_dependency("A", "C")
        scheduler.add_dependency("B", "D").add_dependency("C", "D")
        self.analysis = scheduler.analyze()
        self.ledger = BufferLedger()

    def test_regenerate_creates_buffers(self):
        ids = self.ledger.regenerate("p1", self.analysis)

        project_buffer = self.ledger.get(ids["project_buffer_id"])
        self.assertEqual(project_buffer.size_minutes, 73)
        self.assertEqual(project_buffer.name, "Project Buffer")
        self.assertEqual(project_buffer.chain_task_ids, ["A", "B", "D"])

        self.assertEqual(len(ids["feeding_buffer_ids"]), 1)
        feeding_buffer = self.ledger.get(ids["feeding_buffer_ids"][0])
        self.assertEqual(feeding_buffer.size_minutes, 30)
        self.assertEqual(feeding_buffer.merge_task_id, "D")
        self.assertEqual(feeding_buffer.name, "Feeding Buffer -> D")
        self.assertEqual(feeding_buffer.chain_task_ids, ["C"])

    def test_regenerate_archives_previous_buffers(self):
        first = self.ledger.regenerate("p1", self.analysis)
        self.ledger.update(first["project_buffer_id"], consumed_minutes=50)
        other = self.ledger.regenerate("p2", self.analysis)

        second = self.ledger.regenerate("p1", self.analysis)

        old = self.ledger.get(first["project_buffer_id"])
        self.assertIs(old.status, BufferStatus.ARCHIVED)
        self.assertEqual(old.consumed_minutes, 50)
        self.assertEqual(self.ledger.get(second["project_buffer_id"]).consumed_minutes, 0)

        # Other projects are left alone
        self.assertTrue(self.ledger.get(other["project_buffer_id"]).is_active)

        active = self.ledger.list("p1", status="active")
        self.assertEqual(active["total"], 2)
        self.assertEqual(self.ledger.list("p1")["total"], 4)

    def test_list_filters_and_pages(self):
        self.ledger.regenerate("p1", self.analysis)
        feeding = self.ledger.list("p1", buffer_type=BufferType.FEEDING)
        self.assertEqual(feeding["total"], 1)

        page = self.ledger.list("p1", limit=1, offset=1)
        self.assertEqual(page["total"], 2)
        self.assertEqual(len(page["items"]), 1)
        self.assertIs(page["items"][0].buffer_type, BufferType.FEEDING)

        self.assertEqual(self.ledger.list("unknown")["items"], [])

    def test_update_and_delete(self):
        buffer = self.ledger.create("p1", "project", "Manual", 40)
        self.ledger.update(buffer.id, name="Renamed", consumed_minutes=10, status="archived")
        self.assertEqual(buffer.name, "Renamed")
        self.assertEqual(buffer.consumed_minutes, 10)
        self.assertFalse(buffer.is_active)

        self.assertIs(self.ledger.delete(buffer.id), buffer)
        with self.assertRaises(BufferNotFoundError):
            self.ledger.get(buffer.id)
        with self.assertRaises(BufferNotFoundError):
            self.ledger.delete(buffer.id)

    def test_status_reports_zones(self):
        ids = self.ledger.regenerate("p1", self.analysis)
        self.ledger.update(ids["feeding_buffer_ids"][0], consumed_minutes=15)

        report = {entry["id"]: entry for entry in self.ledger.status("p1")}
        self.assertEqual(report[ids["project_buffer_id"]]["zone"], "GREEN")
        feeding = report[ids["feeding_buffer_ids"][0]]
        self.assertEqual(feeding["consumption_percent"], 50)
        self.assertEqual(feeding["zone"], "YELLOW")

    def test_status_uses_configured_thresholds(self):
        ledger = BufferLedger(EngineConfig(yellow_zone_threshold=0.6, red_zone_threshold=0.9))
        buffer = ledger.create("p1", BufferType.PROJECT, "Project Buffer", 100)
        buffer.set_consumed(50)
        self.assertEqual(ledger.status("p1")[0]["zone"], "GREEN")


if __name__ == "__main__":
    unittest.main()
