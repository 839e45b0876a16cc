from __future__ import annotations

from relsync.core.result import Err, Ok, Result
from relsync.output.console import ConsoleProtocol, Style
from relsync.release.contracts import TrackerClient
from relsync.release.errors import ReleaseError
from relsync.release.model import NewTrackerVersion, TrackerProject, TrackerVersion


class VersionRegistry:
    """Create-if-absent access to tracker versions.

    One registry is used per reconciliation run. Calls are made serially by the
    reconciler, and results are memoized per (project, name), so a version is
    looked up at most once and created at most once within a run.
    """

    def __init__(self, tracker: TrackerClient, console: ConsoleProtocol) -> None:
        self._tracker = tracker
        self._console = console
        self._known: dict[tuple[str, str], TrackerVersion] = {}

    def ensure_version(
        self, project: TrackerProject, name: str
    ) -> Result[TrackerVersion, ReleaseError]:
        cached = self._known.get((project.key, name))
        if cached is not None:
            return Ok(cached)

        versions = self._tracker.list_versions(project.key)
        if isinstance(versions, Err):
            return versions

        existing = [v for v in versions.value if v.name == name]
        if existing:
            version = existing[0]
            self._console.print(f"version found: {project.key} {name} (id {version.id})", Style.DIM)
        else:
            self._console.print(f"version not found, creating: {project.key} {name}", Style.DIM)
            created = self._tracker.create_version(
                NewTrackerVersion(name=name, project_id=project.id, archived=False, released=False)
            )
            if isinstance(created, Err):
                return created
            version = created.value
            self._console.print(f"version created: {project.key} {name} (id {version.id})", Style.DIM)

        self._known[(project.key, name)] = version
        return Ok(version)
