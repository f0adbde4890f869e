from datetime import datetime

from ccpm_engine.domain.task import Task
from ccpm_engine.services.scheduler import CCPMScheduler


def create_sample_project():
    """
    A small product launch: design feeds two build streams that share a
    developer, documentation feeds the release, and QA starts shortly after
    the backend starts.
    """
    tasks = [
        Task("design", "Design", optimistic_minutes=240, pessimistic_minutes=480, assignee_ids=["ana"]),
        Task("backend", "Backend", optimistic_minutes=600, pessimistic_minutes=960, assignee_ids=["ben"]),
        Task("frontend", "Frontend", optimistic_minutes=480, pessimistic_minutes=720, assignee_ids=["ben"]),
        Task("docs", "Documentation", optimistic_minutes=180, pessimistic_minutes=300, assignee_ids=["cy"]),
        Task("qa", "QA", optimistic_minutes=300, pessimistic_minutes=540, assignee_ids=["dee"]),
        Task("release", "Release", optimistic_minutes=60, pessimistic_minutes=120, assignee_ids=["ana"]),
    ]

    scheduler = CCPMScheduler()
    scheduler.add_tasks(tasks)
    scheduler.add_dependency("design", "backend")
    scheduler.add_dependency("design", "frontend")
    scheduler.add_dependency("backend", "qa", "SS", 120)
    scheduler.add_dependency("backend", "release")
    scheduler.add_dependency("frontend", "release")
    scheduler.add_dependency("qa", "release", "FF", 0)
    scheduler.add_dependency("docs", "release")
    scheduler.set_start_date(datetime(2025, 4, 1, 9, 0))

    return scheduler


def print_report(scheduler, simulations=1000, seed=None):
    analysis = scheduler.analyze()
    forecast = scheduler.forecast(simulations, seed=seed)

    print("CCPM Project Schedule Report")
    print("===========================")
    print("Critical chain:")
    for task in analysis.critical_chain.tasks:
        print(f"  {task.task_id:<10} {task.early_start:>6} -> {task.early_finish:<6} {task.title}")
    for chain in analysis.feeding_chains:
        print(f"Feeding chain into {chain.merge_task_id}: {', '.join(map(str, chain.task_ids))}")
    print(f"Project buffer: {analysis.project_buffer_minutes} minutes")
    for fb in analysis.feeding_buffers:
        print(f"Feeding buffer at {fb.merge_task_id}: {fb.buffer_minutes} minutes")
    print(f"Total duration: {analysis.total_project_duration_minutes} minutes")
    print(f"Forecast ({forecast.simulations} trials):")
    for key, pf in forecast.percentiles.items():
        print(f"  {key}: {pf.duration_minutes} minutes, {pf.finish_date}")

    return analysis, forecast


if __name__ == "__main__":
    print_report(create_sample_project(), seed=42)
