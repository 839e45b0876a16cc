from __future__ import annotations

from relsync.core.errors import ErrorCode
from relsync.output.console import ConsoleProtocol, Style
from relsync.release.errors import ReleaseErrorKind
from relsync.release.reconciler import ReconcileReport


def release_error_code(kind: ReleaseErrorKind) -> ErrorCode:
    if kind == "collaborator_error":
        return ErrorCode.NETWORK_ERROR
    if kind == "invalid_version":
        return ErrorCode.INTERNAL_ERROR
    return ErrorCode.USER_ERROR


def exit_code_for(report: ReconcileReport) -> ErrorCode:
    if report.error is not None:
        return release_error_code(report.error.kind)
    if report.failures:
        return ErrorCode.PARTIAL_FAILURE
    return ErrorCode.OK


def print_report(report: ReconcileReport, console: ConsoleProtocol) -> None:
    console.header("Release reconciliation")
    if report.target is not None:
        kind = "major" if report.target.is_major else "patch"
        console.print(f"fix version: {report.target.fix_version} ({kind})")
    console.print(f"state: {report.final_step}", Style.DIM)

    if report.issue_keys:
        console.print(f"issues found: {len(report.issue_keys)}", Style.DIM)
    if report.updated:
        console.success(f"fix version set on: {', '.join(report.updated)}")
    if report.linked:
        console.success(f"linked to {report.master_key}: {', '.join(report.linked)}")
    if report.next_version:
        console.print(f"next version: {report.next_version}")

    for failure in report.failures:
        console.warning(f"{failure.subject}: {failure.message}")

    if report.error is not None:
        console.error(report.error.pretty())
    elif report.failures:
        console.warning(f"{len(report.failures)} item(s) failed")
    else:
        console.success("done")
