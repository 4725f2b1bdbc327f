"""
app/services/lifecycle_scheduler.py

Call lifecycle: scheduling the one-shot status transition and running it.

A Call stays open through its closing day. The transition is scheduled for
00:00 UTC on the following day, exactly once per call; running it reloads
the call, recomputes the status, persists any change and refreshes the
status category. A daily sweep applies the same transition to every open
call whose closing date has passed, covering jobs that never fired.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time, timedelta, timezone

from app.domain.content import CallEntity, CallStatus, compute_call_status
from app.repositories.contracts import ContentRepository, JobScheduler
from app.services.taxonomy_resolver import TaxonomyResolver

logger = logging.getLogger(__name__)

CALL_STATUS_TRANSITION_JOB = "call_status_transition"


def transition_time(closing_date: date) -> datetime:
    return datetime.combine(closing_date + timedelta(days=1), time(0, 0), tzinfo=timezone.utc)


def transition_payload(call_id: int) -> dict[str, int]:
    return {"call_id": call_id}


class CallLifecycleScheduler:
    def __init__(self, *, scheduler: JobScheduler) -> None:
        self._scheduler = scheduler

    def schedule_transition(self, call: CallEntity, *, now: datetime) -> bool:
        """
        Schedule the status transition for an open, persisted call.

        Returns True only when a new job was registered.
        """

        if call.id is None:
            return False
        if compute_call_status(call.closing_date, now) != CallStatus.OPEN:
            return False

        payload = transition_payload(call.id)
        if self._scheduler.is_scheduled(CALL_STATUS_TRANSITION_JOB, payload):
            logger.debug("Call transition already scheduled call_id=%s", call.id)
            return False

        run_at = transition_time(call.closing_date)
        self._scheduler.schedule_once(run_at, CALL_STATUS_TRANSITION_JOB, payload)
        logger.info("Call transition scheduled call_id=%s run_at=%s", call.id, run_at.isoformat())
        return True


def transition_call_status(
    *,
    call_id: int,
    repository: ContentRepository,
    taxonomy: TaxonomyResolver,
    now: datetime,
) -> bool:
    """
    Recompute and persist one call's status. The caller owns the commit.

    Deleted, non-Call and already-expired items are skipped.
    """

    call = repository.find_by_id(call_id)
    if not isinstance(call, CallEntity):
        logger.info("Call transition skipped call_id=%s reason=not_found", call_id)
        return False
    if call.call_status == CallStatus.EXPIRED:
        logger.info("Call transition skipped call_id=%s reason=already_expired", call_id)
        return False

    new_status = compute_call_status(call.closing_date, now)
    if new_status == call.call_status:
        logger.info("Call transition skipped call_id=%s reason=not_due status=%s", call_id, new_status)
        return False

    saved = repository.save(dataclasses.replace(call, call_status=new_status))
    taxonomy.resolve_status(saved)
    logger.info("Call status changed call_id=%s status=%s", call_id, new_status)
    return True


def sweep_expired_calls(
    *,
    repository: ContentRepository,
    taxonomy: TaxonomyResolver,
    now: datetime,
) -> int:
    """
    Expire every open call whose closing date is before today.
    """

    changed = 0
    for call in repository.find_open_calls_closed_before(now.date()):
        if call.id is None:
            continue
        if transition_call_status(call_id=call.id, repository=repository, taxonomy=taxonomy, now=now):
            changed += 1
    logger.info("Expired call sweep complete changed=%s", changed)
    return changed
