from __future__ import annotations

from inspectiondesk.models import FieldAgentAssignment
from inspectiondesk.services.reconciliation import reconcile_assignments


def _pairs(db):
    return sorted((a.inspection_id, a.field_agent_id) for a in db.query(FieldAgentAssignment).all())


def test_adds_missing_back_reference(world, db_session):
    req = world.request(status="active_negotiation", stage="inspection", assigned_field_agent_id=world.agent_user.id)

    res = reconcile_assignments(db_session)

    assert (res.added, res.removed) == (1, 0)
    assert _pairs(db_session) == [(req.id, world.agent.id)]


def test_removes_stale_back_reference(world, db_session):
    req = world.request(status="active_negotiation", stage="inspection")
    db_session.add(FieldAgentAssignment(field_agent_id=world.agent.id, inspection_id=req.id))
    db_session.commit()

    res = reconcile_assignments(db_session)

    assert (res.added, res.removed, res.checked) == (0, 1, 1)
    assert _pairs(db_session) == []


def test_moves_back_reference_to_current_agent(world, db_session):
    req = world.request(
        status="active_negotiation", stage="inspection", assigned_field_agent_id=world.other_agent_user.id
    )
    db_session.add(FieldAgentAssignment(field_agent_id=world.agent.id, inspection_id=req.id))
    db_session.commit()

    res = reconcile_assignments(db_session)

    assert (res.added, res.removed) == (1, 1)
    assert _pairs(db_session) == [(req.id, world.other_agent.id)]


def test_counts_assignments_without_a_profile(world, db_session):
    world.request(status="active_negotiation", stage="inspection", assigned_field_agent_id=world.buyer.id)

    res = reconcile_assignments(db_session)

    assert res.missing_profiles == 1
    assert _pairs(db_session) == []


def test_second_run_is_a_no_op(world, db_session):
    world.request(status="active_negotiation", stage="inspection", assigned_field_agent_id=world.agent_user.id)
    reconcile_assignments(db_session)

    res = reconcile_assignments(db_session)
    assert res.to_dict() == {"checked": 1, "removed": 0, "added": 0, "missing_profiles": 0}


def test_dry_run_leaves_nothing_behind(world, db_session):
    world.request(status="active_negotiation", stage="inspection", assigned_field_agent_id=world.agent_user.id)

    res = reconcile_assignments(db_session, commit=False)
    db_session.rollback()

    assert res.added == 1
    assert _pairs(db_session) == []
