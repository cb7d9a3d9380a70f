"""Best-effort lookup of the run that built a given commit."""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 50

type MatchMode = Literal["revision", "text"]


@dataclass(frozen=True, kw_only=True)
class CommitMatcher[B]:
    """One way of finding commit information inside a run payload.

    ``revision`` candidates are SHAs and match when either side is a prefix
    of the other. ``text`` candidates are free-form descriptions and match
    when they contain the target.
    """

    name: str
    candidates: Callable[[B], Iterable[str | None]]
    mode: MatchMode = "revision"

    def matches(self, run: B, target_sha: str) -> bool:
        try:
            values = list(self.candidates(run))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            log.debug("Commit matcher %s skipped: %s", self.name, exc)
            return False

        for value in values:
            if not isinstance(value, str) or not value.strip():
                continue
            if self.mode == "text":
                if target_sha in value.lower():
                    return True
            elif sha_matches(value, target_sha):
                return True
        return False


def normalize_sha(sha: str) -> str:
    return sha.strip().lower()


def sha_matches(candidate: str, target: str) -> bool:
    """Case-insensitive comparison tolerant of short SHAs on either side."""
    candidate = normalize_sha(candidate)
    target = normalize_sha(target)
    if not candidate or not target:
        return False
    return candidate.startswith(target) or target.startswith(candidate)


def match_commit[B](
    run: B, target_sha: str, matchers: Sequence[CommitMatcher[B]]
) -> str | None:
    """Return the name of the first matcher that finds ``target_sha`` in ``run``."""
    target = normalize_sha(target_sha)
    if not target:
        return None
    for matcher in matchers:
        if matcher.matches(run, target):
            return matcher.name
    return None


def find_runs_by_commit[B](
    history: Sequence[B],
    target_sha: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    matchers: Sequence[CommitMatcher[B]],
    number: Callable[[B], int],
) -> Sequence[B]:
    """Collect every run matching ``target_sha``, highest run number first.

    Only the first ``max_depth`` entries of the most-recent-first ``history``
    are inspected. Matches found by different methods are not ordered by the
    scan itself, hence the explicit sort.
    """
    window = history[: max(max_depth, 0)]
    matches: list[B] = []

    for run in window:
        if (method := match_commit(run, target_sha, matchers)) is not None:
            log.debug(
                "Run #%s matches commit %s via %s", number(run), target_sha, method
            )
            matches.append(run)

    if not matches:
        log.info(
            "No run matching commit %s after checking %d run(s)",
            target_sha,
            len(window),
        )
        return []

    return sorted(matches, key=number, reverse=True)


def find_run_by_commit[B](
    history: Sequence[B],
    target_sha: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    matchers: Sequence[CommitMatcher[B]],
    number: Callable[[B], int],
) -> B | None:
    """Return the most recent run built from ``target_sha``, or None."""
    matches = find_runs_by_commit(
        history, target_sha, max_depth, matchers=matchers, number=number
    )
    if not matches:
        return None

    log.info(
        "Found %d run(s) matching commit %s, using #%s",
        len(matches),
        target_sha,
        number(matches[0]),
    )
    return matches[0]
