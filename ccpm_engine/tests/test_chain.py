import unittest

from ccpm_engine.domain.chain import Chain, ChainError, ChainTask
from ccpm_engine.domain.dependency import Dependency
from ccpm_engine.domain.task import Task
from ccpm_engine.services.critical_chain import identify_critical_chain
from ccpm_engine.services.feeding_chain import identify_feeding_chains
from ccpm_engine.utils.graph import build_dependency_graph, compute_schedule


def analyze(tasks, deps):
    task_map = {task.id: task for task in tasks}
    graph = build_dependency_graph(task_map, deps)
    schedule = compute_schedule(graph)
    critical = identify_critical_chain(task_map, schedule)
    feeding = identify_feeding_chains(task_map, critical, graph, schedule)
    return critical, feeding


class ChainTestCase(unittest.TestCase):
    def setUp(self):
        self.task = ChainTask("T1", "Task 1", 30, 60, ("ann",), 0, 30)

    def test_init(self):
        chain = Chain("feeding_1", "Feeding Chain 1")
        self.assertEqual(chain.type, "feeding")
        self.assertEqual(chain.tasks, [])
        self.assertIsNone(chain.merge_task_id)

    def test_invalid_init(self):
        with self.assertRaises(ChainError):
            Chain("", "Name")
        with self.assertRaises(ChainError):
            Chain("c1", "")
        with self.assertRaises(ChainError):
            Chain("c1", "Name", type="secondary")

    def test_add_task_ignores_duplicates(self):
        chain = Chain("c1", "Chain")
        chain.add_task(self.task).add_task(self.task)
        self.assertEqual(chain.task_ids, ["T1"])
        self.assertEqual(len(chain), 1)
        self.assertEqual(chain.early_finish, 30)

    def test_set_connection(self):
        chain = Chain("c1", "Chain")
        chain.set_connection("M")
        self.assertEqual(chain.merge_task_id, "M")

        critical = Chain("critical", "Critical Chain", type="critical")
        with self.assertRaises(ChainError):
            critical.set_connection("M")
        with self.assertRaises(ChainError):
            chain.set_connection(None)

    def test_to_dict(self):
        chain = Chain("c1", "Chain").set_connection("M").add_task(self.task)
        data = chain.to_dict()
        self.assertEqual(data["merge_task_id"], "M")
        self.assertEqual(data["tasks"][0]["task_id"], "T1")
        self.assertEqual(data["tasks"][0]["assignee_ids"], ["ann"])

        critical = Chain("critical", "Critical Chain", type="critical")
        self.assertNotIn("merge_task_id", critical.to_dict())

    def test_empty_chain_finishes_at_zero(self):
        self.assertEqual(Chain("c1", "Chain").early_finish, 0)


class CriticalChainTestCase(unittest.TestCase):
    def setUp(self):
        self.tasks = [
            Task("A", "Design", optimistic_minutes=60, pessimistic_minutes=120),
            Task("B", "Build", optimistic_minutes=120, pessimistic_minutes=240),
            Task("C", "Docs", optimistic_minutes=90, pessimistic_minutes=150),
            Task("D", "Ship", optimistic_minutes=30, pessimistic_minutes=90),
        ]
        self.deps = [
            Dependency("A", "B"),
            Dependency("A", "C"),
            Dependency("B", "D"),
            Dependency("C", "D"),
        ]

    def test_diamond(self):
        critical, feeding = analyze(self.tasks, self.deps)

        self.assertEqual(critical.task_ids, ["A", "B", "D"])
        self.assertTrue(critical.is_critical())
        self.assertEqual(critical.early_finish, 210)

        self.assertEqual(len(feeding), 1)
        self.assertEqual(feeding[0].merge_task_id, "D")
        self.assertEqual(feeding[0].task_ids, ["C"])
        self.assertEqual(feeding[0].id, "feeding_1")
        self.assertEqual(feeding[0].name, "Feeding Chain 1")

    def test_chain_tasks_carry_leveled_dates(self):
        critical, _ = analyze(self.tasks, self.deps)
        build = critical.tasks[1]
        self.assertEqual(build.title, "Build")
        self.assertEqual((build.early_start, build.early_finish), (60, 180))
        self.assertEqual(build.pessimistic_minutes, 240)

    def test_ties_keep_task_order(self):
        tasks = [
            Task("A", optimistic_minutes=100),
            Task("B", optimistic_minutes=100),
            Task("C", optimistic_minutes=10),
        ]
        deps = [Dependency("A", "C"), Dependency("B", "C")]
        critical, feeding = analyze(tasks, deps)
        self.assertEqual(critical.task_ids, ["A", "B", "C"])
        self.assertEqual(feeding, [])

    def test_sorted_by_early_start_not_input_order(self):
        tasks = [Task("Z", optimistic_minutes=10), Task("Y", optimistic_minutes=10)]
        critical, _ = analyze(tasks, [Dependency("Y", "Z")])
        self.assertEqual(critical.task_ids, ["Y", "Z"])


class FeedingChainTestCase(unittest.TestCase):
    def make_tasks(self, order):
        durations = {"A": 100, "B": 100, "C": 100, "D": 100, "X": 10, "Y": 5}
        return [Task(task_id, optimistic_minutes=durations[task_id]) for task_id in order]

    def setUp(self):
        # X feeds both B and D; Y feeds X
        self.deps = [
            Dependency("A", "B"),
            Dependency("B", "C"),
            Dependency("C", "D"),
            Dependency("X", "B"),
            Dependency("X", "D"),
            Dependency("Y", "X"),
        ]

    def test_branch_is_claimed_once(self):
        critical, feeding = analyze(self.make_tasks("ABCDXY"), self.deps)

        self.assertEqual(critical.task_ids, ["A", "B", "C", "D"])
        self.assertEqual(len(feeding), 1)
        self.assertEqual(feeding[0].merge_task_id, "B")
        # Sorted by early start, not discovery order
        self.assertEqual(feeding[0].task_ids, ["Y", "X"])

    def test_merge_points_follow_task_order(self):
        # D is listed first, so its predecessors are walked first
        critical, feeding = analyze(self.make_tasks("DABCXY"), self.deps)

        self.assertEqual(critical.task_ids, ["A", "B", "C", "D"])
        self.assertEqual(len(feeding), 1)
        self.assertEqual(feeding[0].merge_task_id, "D")

    def test_separate_branches_numbered_in_order(self):
        tasks = self.make_tasks("ABCDXY")
        deps = [
            Dependency("A", "B"),
            Dependency("B", "C"),
            Dependency("C", "D"),
            Dependency("X", "B"),
            Dependency("Y", "D"),
        ]
        _, feeding = analyze(tasks, deps)

        self.assertEqual([chain.merge_task_id for chain in feeding], ["B", "D"])
        self.assertEqual([chain.task_ids for chain in feeding], [["X"], ["Y"]])
        self.assertEqual([chain.id for chain in feeding], ["feeding_1", "feeding_2"])

    def test_no_feeding_chain_on_a_line(self):
        tasks = self.make_tasks("ABCD")
        deps = [Dependency("A", "B"), Dependency("B", "C"), Dependency("C", "D")]
        _, feeding = analyze(tasks, deps)
        self.assertEqual(feeding, [])


if __name__ == "__main__":
    unittest.main()
