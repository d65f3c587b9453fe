from types import SimpleNamespace
import pytest
from autoprotect.core.enums import LeadStatus
from autoprotect.services.lead_status import (
    ALLOWED_TRANSITIONS,
    InvalidStatusTransition,
    can_transition,
    ensure_transition,
    transition_lead,
)


@pytest.mark.unit
class TestLeadStatusTransitions:

    def test_every_status_has_rules(self):
        assert set(ALLOWED_TRANSITIONS) == set(LeadStatus)

    @pytest.mark.parametrize("target", [s for s in LeadStatus if s != LeadStatus.NEW])
    def test_new_moves_anywhere(self, target):
        assert can_transition(LeadStatus.NEW, target)

    @pytest.mark.parametrize("status", list(LeadStatus))
    def test_same_status_is_allowed(self, status):
        assert can_transition(status, status)

    @pytest.mark.parametrize("terminal", [LeadStatus.SOLD, LeadStatus.DNC])
    def test_terminal_statuses(self, terminal):
        for target in LeadStatus:
            if target != terminal:
                assert not can_transition(terminal, target)

    @pytest.mark.parametrize("junk", [LeadStatus.WRONG_NUMBER, LeadStatus.FAKE_LEAD, LeadStatus.DUPLICATE_LEAD])
    def test_junk_only_resets_to_new(self, junk):
        assert can_transition(junk, LeadStatus.NEW)
        assert not can_transition(junk, LeadStatus.QUOTED)

    def test_quoted_cannot_go_back_to_new(self):
        assert not can_transition(LeadStatus.QUOTED, LeadStatus.NEW)
        assert can_transition(LeadStatus.QUOTED, LeadStatus.SOLD)

    def test_accepts_raw_values(self):
        assert can_transition("callback", "left-message")

    def test_ensure_transition_raises(self):
        with pytest.raises(InvalidStatusTransition) as exc:
            ensure_transition(LeadStatus.SOLD, LeadStatus.NEW)

        assert exc.value.current == LeadStatus.SOLD
        assert exc.value.target == LeadStatus.NEW
        assert str(exc.value) == "Cannot change lead status from sold to new"


class RecordingSession:
    def __init__(self):
        self.added = []

    def add(self, obj):
        self.added.append(obj)


@pytest.mark.unit
class TestTransitionLead:

    @pytest.mark.asyncio
    async def test_manual_change_checks_table(self):
        lead = SimpleNamespace(id=1, status=LeadStatus.DNC)

        with pytest.raises(InvalidStatusTransition):
            await transition_lead(RecordingSession(), lead, LeadStatus.SOLD)
        assert lead.status == LeadStatus.DNC

    @pytest.mark.asyncio
    @pytest.mark.parametrize("current,target", [
        (LeadStatus.DNC, LeadStatus.SOLD),
        (LeadStatus.FAKE_LEAD, LeadStatus.SOLD),
        (LeadStatus.SOLD, LeadStatus.QUOTED),
    ])
    async def test_forced_change_skips_table(self, current, target):
        db = RecordingSession()
        lead = SimpleNamespace(id=1, status=current)

        assert await transition_lead(db, lead, target, force=True) is True
        assert lead.status == target
        assert db.added == [lead]

    @pytest.mark.asyncio
    async def test_same_status_is_a_no_op(self):
        db = RecordingSession()
        lead = SimpleNamespace(id=1, status=LeadStatus.SOLD)

        assert await transition_lead(db, lead, LeadStatus.SOLD, force=True) is False
        assert db.added == []
