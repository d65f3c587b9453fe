"""Allowed lead status changes.

A lead moves freely out of ``new``; afterwards only the changes listed in
``ALLOWED_TRANSITIONS`` are accepted. ``dnc`` and ``sold`` are terminal and
the junk statuses can only be reset to ``new``. The table governs manual
edits; quoting, signing and converting force their status.
"""
import logging
from typing import Dict, FrozenSet
from sqlalchemy.ext.asyncio import AsyncSession
from autoprotect.core.enums import LeadStatus
from autoprotect.models.lead import Lead

logger = logging.getLogger(__name__)

_WORKING = frozenset({
    LeadStatus.QUOTED,
    LeadStatus.CALLBACK,
    LeadStatus.LEFT_MESSAGE,
    LeadStatus.NO_CONTACT,
    LeadStatus.WRONG_NUMBER,
    LeadStatus.NOT_INTERESTED,
    LeadStatus.DNC,
    LeadStatus.SOLD,
})

ALLOWED_TRANSITIONS: Dict[LeadStatus, FrozenSet[LeadStatus]] = {
    LeadStatus.NEW: frozenset(LeadStatus) - {LeadStatus.NEW},
    LeadStatus.QUOTED: frozenset({
        LeadStatus.CALLBACK,
        LeadStatus.LEFT_MESSAGE,
        LeadStatus.NO_CONTACT,
        LeadStatus.NOT_INTERESTED,
        LeadStatus.DNC,
        LeadStatus.SOLD,
    }),
    LeadStatus.CALLBACK: _WORKING - {LeadStatus.CALLBACK},
    LeadStatus.LEFT_MESSAGE: _WORKING - {LeadStatus.LEFT_MESSAGE},
    LeadStatus.NO_CONTACT: _WORKING - {LeadStatus.NO_CONTACT},
    LeadStatus.NOT_INTERESTED: frozenset({LeadStatus.QUOTED, LeadStatus.CALLBACK, LeadStatus.DNC}),
    LeadStatus.WRONG_NUMBER: frozenset({LeadStatus.NEW}),
    LeadStatus.FAKE_LEAD: frozenset({LeadStatus.NEW}),
    LeadStatus.DUPLICATE_LEAD: frozenset({LeadStatus.NEW}),
    LeadStatus.DNC: frozenset(),
    LeadStatus.SOLD: frozenset(),
}


class InvalidStatusTransition(Exception):
    def __init__(self, current: LeadStatus, target: LeadStatus):
        self.current = LeadStatus(current)
        self.target = LeadStatus(target)
        super().__init__(f"Cannot change lead status from {self.current} to {self.target}")


def can_transition(current: LeadStatus, target: LeadStatus) -> bool:
    current, target = LeadStatus(current), LeadStatus(target)
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: LeadStatus, target: LeadStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStatusTransition(current, target)


async def transition_lead(db: AsyncSession, lead: Lead, target: LeadStatus, force: bool = False) -> bool:
    """Move ``lead`` to ``target``; returns False when it already had it.

    ``force`` skips the transition table. Sales events (quoting, signing,
    converting) always set their status; manual edits never force.
    """
    target = LeadStatus(target)
    current = LeadStatus(lead.status or LeadStatus.NEW)
    if not force:
        ensure_transition(current, target)
    if current == target:
        return False
    lead.status = target
    db.add(lead)
    logger.info(f"Lead {lead.id} status {current} -> {target}")
    return True
