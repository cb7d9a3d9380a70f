"""Payload helpers for Jenkins JSON API responses in tests."""

from collections.abc import Mapping, Sequence
from typing import Any


def job(
    *,
    name: str = "gitops-promotion",
    full_name: str | None = None,
    build_numbers: Sequence[int] = (),
) -> dict[str, Any]:
    """Create a job payload listing ``build_numbers``."""
    builds = [
        {"number": n, "url": f"http://jenkins.test/job/{name}/{n}/"}
        for n in build_numbers
    ]
    return {
        "_class": "org.jenkinsci.plugins.workflow.job.WorkflowJob",
        "name": name,
        "fullName": full_name or name,
        "url": f"http://jenkins.test/job/{name}/",
        "builds": builds,
        "lastBuild": builds[0] if builds else None,
    }


def git_build_data(
    sha: str, branch: str = "refs/remotes/origin/main"
) -> dict[str, Any]:
    """Create the Git plugin's ``BuildData`` action."""
    return {
        "_class": "hudson.plugins.git.util.BuildData",
        "lastBuiltRevision": {"SHA1": sha, "branch": [{"SHA1": sha, "name": branch}]},
        "buildsByBranchName": {branch: {"buildNumber": 1, "revision": {"SHA1": sha}}},
    }


def cause_action(*causes: Mapping[str, Any]) -> dict[str, Any]:
    return {"_class": "hudson.model.CauseAction", "causes": [dict(c) for c in causes]}


def parameters_action(parameters: Mapping[str, str]) -> dict[str, Any]:
    return {
        "_class": "hudson.model.ParametersAction",
        "parameters": [{"name": k, "value": v} for k, v in parameters.items()],
    }


def user_cause() -> dict[str, Any]:
    return {
        "_class": "hudson.model.Cause$UserIdCause",
        "shortDescription": "Started by user admin",
    }


def push_cause() -> dict[str, Any]:
    return {
        "_class": "com.cloudbees.jenkins.GitHubPushCause",
        "shortDescription": "Started by GitHub push by octocat",
    }


def timer_cause() -> dict[str, Any]:
    return {
        "_class": "hudson.triggers.TimerTrigger$TimerTriggerCause",
        "shortDescription": "Started by timer",
    }


def build(
    *,
    number: int = 1,
    name: str = "gitops-promotion",
    building: bool = False,
    result: str | None = "SUCCESS",
    actions: Sequence[Mapping[str, Any]] = (),
    timestamp: int = 4070952000000,
    duration: int = 60000,
    description: str | None = None,
) -> dict[str, Any]:
    """Create a build payload.

    Jenkins emits empty ``{}`` entries for actions without exported data;
    one is included to mirror that.
    """
    return {
        "_class": "org.jenkinsci.plugins.workflow.job.WorkflowRun",
        "number": number,
        "url": f"http://jenkins.test/job/{name}/{number}/",
        "displayName": f"#{number}",
        "fullDisplayName": f"{name} #{number}",
        "description": description,
        "building": building,
        "inQueue": False,
        "result": None if building else result,
        "timestamp": timestamp,
        "duration": 0 if building else duration,
        "actions": [{}, *(dict(a) for a in actions)],
    }
