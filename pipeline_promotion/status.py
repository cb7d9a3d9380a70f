"""Table-driven mapping of provider-native run states to canonical statuses."""

import logging
from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from typing import Final

from pipeline_promotion.models.pipeline import PipelineStatus

log = logging.getLogger(__name__)


class _AnyResult:
    """Wildcard result for rows where only the state matters."""

    def __repr__(self) -> str:
        return "ANY_RESULT"


ANY_RESULT: Final = _AnyResult()

type StatusKey = tuple[Hashable, Hashable]


@dataclass(frozen=True, kw_only=True)
class StatusTable:
    """One provider's exhaustive state x result -> canonical status mapping.

    Rows keyed with ``ANY_RESULT`` apply to every result of that state and are
    consulted only when no exact row exists. Anything absent from the table
    resolves to ``PipelineStatus.UNKNOWN``.
    """

    provider: str
    rows: Mapping[StatusKey, PipelineStatus]

    def normalize(self, state: Hashable, result: Hashable = None) -> PipelineStatus:
        """Map a provider state/result pair to a canonical status."""
        try:
            status = self.rows.get((state, result))
            if status is None:
                status = self.rows.get((state, ANY_RESULT))
        except TypeError:
            # Unhashable values coming from a malformed payload.
            status = None

        if status is None:
            log.debug(
                "Unmapped %s state=%r result=%r, using unknown",
                self.provider,
                state,
                result,
            )
            return PipelineStatus.UNKNOWN
        return status


def normalize_status(
    table: StatusTable, state: Hashable, result: Hashable = None
) -> PipelineStatus:
    """Total, side-effect free normalization for ``table``'s provider."""
    return table.normalize(state, result)
