"""Models for promotion workflows and the Git/CD collaborators."""

from enum import StrEnum
from typing import Literal

from pydantic import Field

from pipeline_promotion.models.base import Model

type PromotionMode = Literal["with-pr", "without-pr"]


class Stage(StrEnum):
    """Steps of the promotion and source-change state machines."""

    CHECK_TARGET_EXISTS = "CHECK_TARGET_EXISTS"
    CREATE_PR = "CREATE_PR"
    AWAIT_PR_PIPELINE = "AWAIT_PR_PIPELINE"
    MERGE_PR = "MERGE_PR"
    AWAIT_PUSH_PIPELINE = "AWAIT_PUSH_PIPELINE"
    COMMIT_DIRECT = "COMMIT_DIRECT"
    SYNC_DEPLOYMENT = "SYNC_DEPLOYMENT"
    AWAIT_SYNC = "AWAIT_SYNC"
    DONE = "DONE"


class PromotionRequest(Model):
    """A single request to move an image into an environment."""

    environment: str = Field(..., min_length=1, description="Target environment")
    image: str = Field(..., min_length=1, description="Image reference to deploy")
    mode: PromotionMode = Field(
        default="with-pr", description="Promote through a pull request or directly"
    )


class PullRequest(Model):
    """Pull request as returned by the Git collaborator."""

    number: int
    sha: str
    url: str = ""
    branch: str | None = None


class Application(Model):
    """Deployment controller application for one environment."""

    name: str
    environment: str
    revision: str | None = None


class SyncResult(Model):
    """Outcome of waiting for an application to sync."""

    synced: bool
    message: str = ""
