"""Release reconciliation state machine.

One run handles one release event:

    started -> version_resolved -> issues_discovered -> issues_filtered
        -> fix_version_applied -> [linked] -> [release_notes_updated]
        -> [master_ticket_updated] -> [next_version_prepared] -> done

Any step may end the run in ``failed``. Version resolution, issue discovery
and filtering are fatal on error; the mutations after them are best-effort
and collect ``ItemFailure``s instead.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Literal

from relsync.core.result import Err, Ok, Result
from relsync.output.console import Style
from relsync.release.context import Collaborators, ReconcileContext
from relsync.release.errors import ReleaseError
from relsync.release.events import PublishedEvent, PushEvent, ReleaseEvent
from relsync.release.filtering import filter_issues_without_fix_version
from relsync.release.fix_versions import apply_fix_version
from relsync.release.fsm import run_state_machine
from relsync.release.keys import parse_issue_keys
from relsync.release.linking import link_issues
from relsync.release.master import ReleaseSummary, ensure_master_ticket, update_master_ticket
from relsync.release.model import ItemFailure, ReleaseTarget, ReleaseUpdate, TrackerIssue
from relsync.release.notes import build_release_note
from relsync.release.registry import VersionRegistry
from relsync.release.semver import (
    next_minor,
    next_patch,
    previous_patch,
    previous_release_line,
    version_from_branch,
)
from relsync.release.tags import is_major_version, matches_release_line

ReconcileStep = Literal[
    "started",
    "version_resolved",
    "issues_discovered",
    "issues_filtered",
    "fix_version_applied",
    "linked",
    "release_notes_updated",
    "master_ticket_updated",
    "next_version_prepared",
    "done",
    "failed",
]

_TERMINAL = frozenset({"done", "failed"})


@dataclass(frozen=True, slots=True)
class ReconcileSession:
    event: ReleaseEvent
    step: ReconcileStep = "started"
    release_line: str = ""
    branch: str = ""
    target: ReleaseTarget | None = None
    issue_keys: tuple[str, ...] = ()
    issues: tuple[TrackerIssue, ...] = ()
    updated: tuple[str, ...] = ()
    linked: tuple[str, ...] = ()
    master_key: str | None = None
    next_version: str | None = None
    failures: tuple[ItemFailure, ...] = ()

    def require_target(self) -> ReleaseTarget:
        if self.target is None:
            raise AssertionError(f"step {self.step} reached without a resolved version")
        return self.target


@dataclass(frozen=True, slots=True)
class ReconcileReport:
    final_step: ReconcileStep
    release_line: str
    target: ReleaseTarget | None
    issue_keys: tuple[str, ...] = ()
    updated: tuple[str, ...] = ()
    linked: tuple[str, ...] = ()
    master_key: str | None = None
    next_version: str | None = None
    failures: tuple[ItemFailure, ...] = ()
    error: ReleaseError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.failures


StageWork = Callable[[ReconcileSession], Result[ReconcileSession, ReleaseError]]


class Reconciler:
    def __init__(self, ctx: ReconcileContext, collab: Collaborators) -> None:
        self._ctx = ctx
        self._collab = collab
        self._registry = VersionRegistry(collab.tracker, collab.console)
        self._tail_work: dict[ReconcileStep, StageWork] = {
            "linked": self._link,
            "release_notes_updated": self._update_release_notes,
            "master_ticket_updated": self._update_master_ticket,
            "next_version_prepared": self._prepare_next_version,
        }

    def run(self, event: ReleaseEvent) -> ReconcileReport:
        last = ReconcileSession(event=event)

        def on_transition(before: ReconcileSession, after: ReconcileSession) -> None:
            nonlocal last
            last = after
            self._collab.console.print(f"state: {before.step} -> {after.step}", Style.DIM)

        result = run_state_machine(
            initial_state=last,
            get_step=lambda s: s.step,
            handlers={
                "started": self._resolve_version,
                "version_resolved": self._discover_issues,
                "issues_discovered": self._filter_issues,
                "issues_filtered": self._apply_fix_version,
                "fix_version_applied": self._advance_tail,
                "linked": self._advance_tail,
                "release_notes_updated": self._advance_tail,
                "master_ticket_updated": self._advance_tail,
                "next_version_prepared": self._advance_tail,
            },
            terminal=_TERMINAL,
            on_transition=on_transition,
        )

        if isinstance(result, Err):
            return _report(replace(last, step="failed"), error=result.error)
        return _report(result.value)

    # -- version_resolved ---------------------------------------------------

    def _resolve_version(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        match s.event:
            case PushEvent(ref=ref):
                return self._resolve_push(s, ref)
            case PublishedEvent():
                return self._resolve_published(s, s.event)

    def _release_line_for(self, branch: str) -> Result[str, ReleaseError]:
        token = self._ctx.branch_token
        if token not in branch:
            return Err(
                ReleaseError(
                    kind="wrong_branch",
                    message=f"triggered on {branch} instead of a {token} branch",
                    hint="Nothing was changed.",
                )
            )
        return Ok(version_from_branch(branch, token))

    def _resolve_push(self, s: ReconcileSession, ref: str) -> Result[ReconcileSession, ReleaseError]:
        line_r = self._release_line_for(ref)
        if isinstance(line_r, Err):
            return line_r
        line = line_r.value
        prefix = self._ctx.tag_prefix

        first_cut = f"{prefix}{line}.0"
        if not matches_release_line(first_cut, prefix, line):
            return Err(
                ReleaseError(
                    kind="wrong_branch",
                    message=f"branch {ref} does not name a release line",
                    hint="Expected: <token>/MAJOR.MINOR",
                )
            )

        last_tag = self._latest_tag(line)
        if isinstance(last_tag, Err):
            return last_tag

        target = ReleaseTarget(fix_version=first_cut, is_major=True)
        if last_tag.value is not None:
            self._collab.console.print(f"last tag: {last_tag.value}", Style.DIM)
            found = self._find_pending_release(last_tag.value)
            if isinstance(found, Err):
                return found
            if found.value is not None:
                target = found.value

        self._collab.console.info(f"release line {line}, fix version {target.fix_version}")
        return Ok(
            replace(
                s,
                step="version_resolved",
                release_line=line,
                branch=ref.removeprefix("refs/heads/"),
                target=target,
            )
        )

    def _latest_tag(self, line: str) -> Result[str | None, ReleaseError]:
        prefix = self._ctx.tag_prefix
        cursor: str | None = None
        while True:
            page = self._collab.source_control.find_tags(f"{prefix}{line}", cursor)
            if isinstance(page, Err):
                return page
            for name in page.value.names:
                if matches_release_line(name, prefix, line):
                    return Ok(name)
            if page.value.next_cursor is None:
                return Ok(None)
            cursor = page.value.next_cursor

    def _find_pending_release(self, last_tag: str) -> Result[ReleaseTarget | None, ReleaseError]:
        # Prefer the next patch release; fall back to the next minor one.
        for bump in (next_patch, next_minor):
            candidate = bump(last_tag)
            if isinstance(candidate, Err):
                return candidate
            release = self._collab.source_control.get_release(candidate.value)
            if isinstance(release, Err):
                return release
            if release.value is not None:
                tag = release.value.tag_name
                return Ok(
                    ReleaseTarget(
                        fix_version=tag,
                        is_major=is_major_version(tag),
                        draft=release.value.is_draft,
                        release_id=release.value.id,
                    )
                )
        return Ok(None)

    def _resolve_published(
        self, s: ReconcileSession, event: PublishedEvent
    ) -> Result[ReconcileSession, ReleaseError]:
        line_r = self._release_line_for(event.target_branch)
        if isinstance(line_r, Err):
            return line_r
        line = line_r.value

        if event.prerelease:
            return Err(
                ReleaseError(
                    kind="prerelease",
                    message=f"{event.tag_name} is a pre-release; only production releases are reconciled",
                )
            )

        if not matches_release_line(event.tag_name, self._ctx.tag_prefix, line):
            return Err(
                ReleaseError(
                    kind="tag_mismatch",
                    message=f"tag {event.tag_name} does not follow {self._ctx.tag_prefix}{line}.PATCH",
                    hint=f"tag prefix: {self._ctx.tag_prefix!r}",
                )
            )

        target = ReleaseTarget(
            fix_version=event.tag_name,
            is_major=is_major_version(event.tag_name),
            draft=event.draft,
            release_id=event.release_id,
        )
        self._collab.console.info(f"release line {line}, fix version {target.fix_version}")
        return Ok(
            replace(
                s,
                step="version_resolved",
                release_line=line,
                branch=event.target_branch.removeprefix("refs/heads/"),
                target=target,
            )
        )

    # -- issues_discovered / issues_filtered / fix_version_applied ---------

    def _discover_issues(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        raw = self._collab.miner.mine(
            release_line=s.release_line,
            project_keys=self._ctx.project_keys,
            workspace=self._ctx.workspace,
            tag_prefix=self._ctx.tag_prefix,
        )
        if isinstance(raw, Err):
            return raw

        keys = tuple(parse_issue_keys(raw.value))
        if not keys:
            self._collab.console.info("no issue keys found in commit history")
            return Ok(replace(s, step="done"))

        self._collab.console.print(f"issue keys: {', '.join(keys)}", Style.DIM)
        return Ok(replace(s, step="issues_discovered", issue_keys=keys))

    def _filter_issues(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        target = s.require_target()
        issues = filter_issues_without_fix_version(
            self._ctx, self._collab, s.issue_keys, target.fix_version
        )
        if isinstance(issues, Err):
            return issues
        self._collab.console.print(
            f"issues without {target.fix_version}: {len(issues.value)}", Style.DIM
        )
        return Ok(replace(s, step="issues_filtered", issues=tuple(issues.value)))

    def _apply_fix_version(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        target = s.require_target()
        outcome = apply_fix_version(
            self._ctx, self._collab, self._registry, s.issues, target.fix_version
        )
        return Ok(
            replace(
                s,
                step="fix_version_applied",
                updated=outcome.updated,
                failures=s.failures + outcome.failures,
            )
        )

    # -- optional tail ------------------------------------------------------

    def _tail_stages(self, s: ReconcileSession) -> tuple[ReconcileStep, ...]:
        target = s.require_target()
        stages: list[ReconcileStep] = []
        if not target.is_major:
            stages.append("linked")
            if target.release_id is not None and self._ctx.update_release_notes:
                stages.append("release_notes_updated")
        if isinstance(s.event, PublishedEvent):
            if self._ctx.update_master_ticket:
                stages.append("master_ticket_updated")
            stages.append("next_version_prepared")
        return tuple(stages)

    def _advance_tail(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        stages = self._tail_stages(s)
        remaining = stages[stages.index(s.step) + 1 :] if s.step in stages else stages
        if not remaining:
            return Ok(replace(s, step="done"))
        stage = remaining[0]
        return self._tail_work[stage](replace(s, step=stage))

    def _link(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        target = s.require_target()
        outcome = link_issues(
            self._ctx, self._collab, s.issues, target.fix_version, is_major=target.is_major
        )
        return Ok(
            replace(
                s,
                linked=outcome.linked,
                master_key=outcome.master_key,
                failures=s.failures + outcome.failures,
            )
        )

    def _update_release_notes(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        target = s.require_target()
        if target.release_id is None:
            return Ok(s)

        note = build_release_note(self._ctx, self._collab, target.fix_version)
        if isinstance(note, Err):
            return Ok(_with_failure(s, target.fix_version, f"release note: {note.error.pretty()}"))

        updated = self._collab.source_control.update_release(
            ReleaseUpdate(
                release_id=target.release_id,
                body=note.value,
                tag_name=target.fix_version,
                target_branch=s.branch,
                draft=target.draft,
            )
        )
        if isinstance(updated, Err):
            return Ok(_with_failure(s, target.fix_version, f"release update: {updated.error.pretty()}"))
        self._collab.console.success(f"release notes updated for {target.fix_version}")
        return Ok(s)

    def _previous_tag(self, s: ReconcileSession) -> Result[str | None, ReleaseError]:
        target = s.require_target()
        if not target.is_major:
            return previous_patch(target.fix_version)
        # A .0 release compares against the last tag of the previous line.
        line = previous_release_line(s.release_line)
        if isinstance(line, Err) or line.value is None:
            return line
        return self._latest_tag(line.value)

    def _update_master_ticket(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        target = s.require_target()
        event = s.event
        revision = event.revision if isinstance(event, PublishedEvent) else None

        prev = self._previous_tag(s)
        if isinstance(prev, Err):
            return Ok(_with_failure(s, target.fix_version, prev.error.pretty()))
        previous = prev.value

        commit_count = 0
        file_count = 0
        if previous is not None:
            comparison = self._collab.source_control.compare_refs(previous, target.fix_version)
            if isinstance(comparison, Err):
                return Ok(
                    _with_failure(s, target.fix_version, f"compare: {comparison.error.pretty()}")
                )
            commit_count = comparison.value.commit_count
            file_count = comparison.value.file_count

        summary = ReleaseSummary(
            tag=target.fix_version,
            branch=s.branch,
            revision=revision,
            previous_tag=previous,
            commit_count=commit_count,
            file_count=file_count,
        )
        updated = update_master_ticket(self._ctx, self._collab, summary)
        if isinstance(updated, Err):
            return Ok(
                _with_failure(s, target.fix_version, f"master ticket: {updated.error.pretty()}")
            )
        if updated.value is None:
            self._collab.console.print(f"no master ticket to update for {target.fix_version}", Style.DIM)
            return Ok(s)
        return Ok(replace(s, master_key=updated.value))

    def _prepare_next_version(self, s: ReconcileSession) -> Result[ReconcileSession, ReleaseError]:
        target = s.require_target()
        upcoming = next_patch(target.fix_version)
        if isinstance(upcoming, Err):
            return Ok(_with_failure(s, target.fix_version, upcoming.error.pretty()))
        version = upcoming.value
        s = replace(s, next_version=version)
        self._collab.console.info(f"preparing next version {version}")

        release = self._collab.source_control.get_release(version)
        if isinstance(release, Err):
            s = _with_failure(s, version, f"release lookup: {release.error.pretty()}")
        elif release.value is None:
            created = self._collab.source_control.create_release(version, s.branch)
            if isinstance(created, Err):
                s = _with_failure(s, version, f"release creation: {created.error.pretty()}")
            else:
                self._collab.console.success(f"draft release {version} created on {s.branch}")

        for project in self._ctx.projects:
            ensured = self._registry.ensure_version(project, version)
            if isinstance(ensured, Err):
                s = _with_failure(s, f"{project.key} {version}", ensured.error.pretty())

        master_project = self._ctx.master.project
        master_version = self._registry.ensure_version(master_project, version)
        if isinstance(master_version, Err):
            return Ok(_with_failure(s, f"{master_project.key} {version}", master_version.error.pretty()))

        ticket = ensure_master_ticket(self._ctx, self._collab, version, master_version.value.id)
        if isinstance(ticket, Err):
            return Ok(_with_failure(s, f"master ticket {version}", ticket.error.pretty()))
        if ticket.value is not None:
            self._collab.console.success(f"master ticket {ticket.value} created for {version}")
        return Ok(s)


def _with_failure(s: ReconcileSession, subject: str, message: str) -> ReconcileSession:
    return replace(s, failures=s.failures + (ItemFailure(subject, message),))


def _report(s: ReconcileSession, *, error: ReleaseError | None = None) -> ReconcileReport:
    return ReconcileReport(
        final_step=s.step,
        release_line=s.release_line,
        target=s.target,
        issue_keys=s.issue_keys,
        updated=s.updated,
        linked=s.linked,
        master_key=s.master_key,
        next_version=s.next_version,
        failures=s.failures,
        error=error,
    )


def reconcile(
    event: ReleaseEvent, ctx: ReconcileContext, collab: Collaborators
) -> ReconcileReport:
    """Run one release event through the reconciliation state machine."""
    return Reconciler(ctx, collab).run(event)
