"""
Task-to-resource mapping.

Maps each task identifier to the submission folder it is graded from and
the harness that grades it. Several tasks may share one folder.
"""

from collections.abc import Iterable

from .config import DEFAULT_TASKS, UNKNOWN_FOLDER, UNKNOWN_HARNESS
from .models import Task


class TaskTable:
    """
    Ordered, closed set of gradable tasks.
    """

    def __init__(self, tasks: Iterable[Task]) -> None:
        self._tasks: dict[str, Task] = {}
        for task in tasks:
            if task.task_id in self._tasks:
                raise ValueError(f"Duplicate task id: {task.task_id}")
            self._tasks[task.task_id] = task

    @classmethod
    def default(cls) -> "TaskTable":
        return cls(
            Task(task_id=task_id, folder=folder, harness=harness, max_score=max_score)
            for task_id, folder, harness, max_score in DEFAULT_TASKS
        )

    @property
    def task_ids(self) -> list[str]:
        return list(self._tasks)

    def __iter__(self):
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks

    def resolve(self, task_id: str) -> Task:
        """
        Look up a task's folder and harness.

        Unknown identifiers map to the sentinel "Unknown" folder and harness
        rather than raising; see ``is_unknown``.
        """
        task = self._tasks.get(task_id)
        if task is None:
            return Task(task_id=task_id, folder=UNKNOWN_FOLDER, harness=UNKNOWN_HARNESS)
        return task

    def folder_for(self, task_id: str) -> str:
        return self.resolve(task_id).folder

    def harness_for(self, task_id: str) -> str:
        return self.resolve(task_id).harness

    @staticmethod
    def is_unknown(task: Task) -> bool:
        return task.folder == UNKNOWN_FOLDER and task.harness == UNKNOWN_HARNESS
