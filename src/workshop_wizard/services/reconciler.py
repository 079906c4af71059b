"""Detection and removal of double-created workshop sessions."""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import timedelta

from workshop_wizard.domain.sessions import WorkshopSession
from workshop_wizard.services.sessions import SessionGateway

logger = logging.getLogger(__name__)

DEFAULT_DUPLICATE_WINDOW = timedelta(seconds=5)


@dataclass(frozen=True)
class DuplicateGroup:
    """Sessions of one owner created within the duplicate window."""

    keep: WorkshopSession
    duplicates: tuple[WorkshopSession, ...]


@dataclass
class ReconcileReport:
    """Outcome of a deletion batch."""

    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def find_duplicate_groups(
    sessions: Iterable[WorkshopSession],
    window: timedelta = DEFAULT_DUPLICATE_WINDOW,
) -> list[DuplicateGroup]:
    """Cluster sessions created less than ``window`` apart, per owner.

    Sessions are walked newest first and a session joins the current cluster
    when it was created less than ``window`` before the previous one. The
    newest member of each cluster is kept.
    """
    by_owner: dict[str, list[WorkshopSession]] = defaultdict(list)
    for session in sessions:
        by_owner[session.user_id].append(session)

    groups: list[DuplicateGroup] = []
    for owner in sorted(by_owner):
        ordered = sorted(
            by_owner[owner],
            key=lambda item: (item.created_at, item.session_id),
            reverse=True,
        )
        cluster = [ordered[0]]
        for previous, current in zip(ordered, ordered[1:], strict=False):
            if previous.created_at - current.created_at < window:
                cluster.append(current)
                continue
            _close_cluster(cluster, groups)
            cluster = [current]
        _close_cluster(cluster, groups)
    return groups


def find_duplicate_sessions(
    sessions: Iterable[WorkshopSession],
    window: timedelta = DEFAULT_DUPLICATE_WINDOW,
) -> list[str]:
    """Return the ids of sessions that should be deleted."""
    return [
        duplicate.session_id
        for group in find_duplicate_groups(sessions, window)
        for duplicate in group.duplicates
    ]


def _close_cluster(
    cluster: list[WorkshopSession], groups: list[DuplicateGroup]
) -> None:
    if len(cluster) > 1:
        groups.append(DuplicateGroup(keep=cluster[0], duplicates=tuple(cluster[1:])))


@dataclass
class DuplicateSessionReconciler:
    """Batch job that finds and removes duplicate sessions."""

    gateway: SessionGateway
    window: timedelta = DEFAULT_DUPLICATE_WINDOW

    async def find(self) -> list[DuplicateGroup]:
        """Scan every stored session and return the duplicate groups."""
        sessions = await self.gateway.list_all_sessions()
        logger.info("Scanned %d workshop sessions", len(sessions))
        return find_duplicate_groups(sessions, self.window)

    async def delete(self, groups: Iterable[DuplicateGroup]) -> ReconcileReport:
        """Delete duplicates one at a time, continuing past failures."""
        report = ReconcileReport()
        for group in groups:
            for session in group.duplicates:
                try:
                    await self.gateway.delete_session(
                        session.session_id, session.user_id
                    )
                except Exception as exc:
                    logger.error(
                        "Failed to delete session %s: %s", session.session_id, exc
                    )
                    report.failed[session.session_id] = str(exc)
                    continue
                logger.info(
                    "Deleted session %s (%s) created at %s",
                    session.session_id,
                    session.name,
                    session.created_at.isoformat(),
                )
                report.deleted.append(session.session_id)
        return report
