"""Payload helpers for GitHub Actions API responses in tests."""

from collections.abc import Mapping, Sequence
from typing import Any


def workflow(
    *, workflow_id: int = 7, name: str = "CI", path: str = ".github/workflows/ci.yml"
) -> dict[str, Any]:
    return {"id": workflow_id, "name": name, "path": path, "state": "active"}


def workflows_response(items: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    return {"total_count": len(items), "workflows": list(items)}


def workflow_run(
    *,
    run_id: int = 1001,
    workflow_id: int = 7,
    event: str | None = "push",
    status: str = "completed",
    conclusion: str | None = "success",
    head_sha: str = "abc123def4567890abc123def4567890abc123de",
    head_branch: str = "main",
    pull_numbers: Sequence[int] = (),
    created_at: str = "2099-01-01T12:00:00Z",
    updated_at: str = "2099-01-01T12:05:00Z",
) -> dict[str, Any]:
    """Create a workflow run payload."""
    return {
        "id": run_id,
        "workflow_id": workflow_id,
        "name": "CI",
        "display_title": f"Run {run_id}",
        "run_number": run_id - 1000,
        "event": event,
        "status": status,
        "conclusion": conclusion,
        "head_sha": head_sha,
        "head_branch": head_branch,
        "html_url": f"https://github.com/octo/gitops/actions/runs/{run_id}",
        "created_at": created_at,
        "updated_at": updated_at,
        "run_started_at": created_at,
        "pull_requests": [
            {"number": n, "head": {"ref": head_branch, "sha": head_sha}}
            for n in pull_numbers
        ],
        "head_commit": {"id": head_sha, "message": "Bump image"},
    }


def runs_response(runs: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    return {"total_count": len(runs), "workflow_runs": list(runs)}
