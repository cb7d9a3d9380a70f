"""Interfaces the host provides for Git hosting and the CD controller."""

from typing import Protocol

from pipeline_promotion.models.promotion import Application, PullRequest, SyncResult


class GitCollaborator(Protocol):
    """Git hosting operations used by the workflows."""

    async def create_promotion_pull_request(
        self, environment: str, image: str
    ) -> PullRequest:
        """Open a pull request on the GitOps repository bumping ``image``."""
        ...

    async def create_source_pull_request(self) -> PullRequest:
        """Open a pull request with a code change on the source repository."""
        ...

    async def merge_pull_request(self, pull_request: PullRequest) -> PullRequest:
        """Merge ``pull_request``; the returned SHA is the merge commit."""
        ...

    async def create_promotion_commit(self, environment: str, image: str) -> str:
        """Commit the image bump straight to the GitOps repository."""
        ...


class DeploymentController(Protocol):
    """GitOps continuous-deployment controller."""

    async def get_application(self, environment: str) -> Application | None:
        """Return the application deployed to ``environment``, if any."""
        ...

    async def sync_application(self, environment: str) -> None:
        """Request a sync of the ``environment`` application."""
        ...

    async def wait_until_synced(
        self, environment: str, expected_revision: str
    ) -> SyncResult:
        """Wait until the application runs ``expected_revision``."""
        ...
