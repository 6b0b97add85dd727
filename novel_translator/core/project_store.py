"""
In-process holder for the current project state
"""
import time
from typing import Callable, List

from novel_translator.models import Project


class ProjectStore:
    """Holds the one shared mutable resource: the current Project.

    Every mutation goes through apply(), which replaces the whole project and
    notifies change listeners (e.g. a persistence collaborator). There is at
    most one in-flight batch, so last-writer-wins per chapter id is enough and
    no locking is needed.
    """

    def __init__(self, project: Project):
        self._project = project
        self._listeners: List[Callable[[Project], None]] = []

    def get(self) -> Project:
        """Current snapshot"""
        return self._project

    def on_change(self, listener: Callable[[Project], None]) -> None:
        """Register a listener called with every new project snapshot"""
        self._listeners.append(listener)

    def apply(self, reducer: Callable[[Project], Project]) -> Project:
        """
        Replace the project with reducer(current).

        Args:
            reducer: Pure function from the current project to the next one

        Returns:
            The new project snapshot
        """
        updated = reducer(self._project)
        if updated.last_modified <= self._project.last_modified:
            updated = updated.update(last_modified=max(time.time(), self._project.last_modified + 1e-6))
        self._project = updated
        for listener in list(self._listeners):
            listener(updated)
        return updated

    def set(self, project: Project) -> Project:
        return self.apply(lambda _current: project)

