# tests/test_assignments.py

import pytest

from errors import ConstraintViolation, InvalidTransition, PermissionDenied
from logic import assignments, sensory
from models import JudgeAssignment, Notification

from conftest import uniform_sheet


def test_assign_many_judges(make_sample, director, judges):
    sample = make_sample('approved')
    created = assignments.assign_judges(director, [sample.id], [j.id for j in judges])
    assert len(created) == 3
    assert all(a.status == 'assigned' and a.assigned_by == director.id for a in created)


def test_repeated_assignment_is_noop(assigned_sample, director, judges):
    created = assignments.assign_judges(director, [assigned_sample.id], [j.id for j in judges])
    assert created == []
    assert JudgeAssignment.query.filter_by(sample_id=assigned_sample.id).count() == 3

    single = assignments.assign_judge(director, assigned_sample.id, judges[0].id)
    assert single.judge_id == judges[0].id
    assert JudgeAssignment.query.filter_by(sample_id=assigned_sample.id).count() == 3


def test_bulk_assignment(make_sample, director, judges):
    first = make_sample('approved')
    second = make_sample('approved')
    created = assignments.assign_judges(director, [first.id, second.id, first.id], [judges[0].id, judges[1].id])
    assert len(created) == 4
    assert JudgeAssignment.query.count() == 4


def test_only_approved_samples(make_sample, director, judges):
    sample = make_sample('received')
    with pytest.raises(ConstraintViolation):
        assignments.assign_judges(director, [sample.id], [judges[0].id])
    assert JudgeAssignment.query.count() == 0


def test_only_judges_can_be_assigned(make_sample, director, make_user):
    sample = make_sample('approved')
    evaluator = make_user('evaluator')
    with pytest.raises(PermissionDenied):
        assignments.assign_judges(director, [sample.id], [evaluator.id])


def test_other_director_cannot_assign(make_sample, make_user, judges):
    sample = make_sample('approved')
    with pytest.raises(PermissionDenied):
        assignments.assign_judges(make_user('director'), [sample.id], [judges[0].id])


def test_assignment_notifies_judge_and_participant(assigned_sample, judges, participant):
    judge_notes = Notification.query.filter_by(
        type='sample_assigned_to_judge', recipient_user_id=judges[0].id).all()
    assert len(judge_notes) == 1
    assert judge_notes[0].action_required
    assert judge_notes[0].priority == 'high'

    participant_notes = Notification.query.filter_by(
        type='sample_assigned_to_judge', recipient_user_id=participant.id).all()
    assert len(participant_notes) == 3


def test_derived_status(make_sample, director, judges):
    sample = make_sample('approved')
    assert assignments.derived_status(sample) == 'unassigned'

    assignments.assign_judges(director, [sample.id], [j.id for j in judges])
    assert assignments.derived_status(sample) == 'assigned'

    assignments.start_evaluation(judges[0], sample.id)
    assert assignments.derived_status(sample) == 'evaluating'

    for judge in judges:
        sensory.save_sensory_evaluation(judge, sample.id, uniform_sheet(7))
    assert assignments.derived_status(sample) == 'evaluated'
    # Статус образца при этом хранится отдельно
    assert sample.status == 'approved'


def test_start_evaluation_requires_assignment(make_sample, judges):
    sample = make_sample('approved')
    with pytest.raises(ConstraintViolation):
        assignments.start_evaluation(judges[0], sample.id)


def test_judge_workload(assigned_sample, judges, make_sample, director):
    other = make_sample('approved')
    assignments.assign_judges(director, [other.id], [judges[0].id])
    sensory.save_sensory_evaluation(judges[1], assigned_sample.id, uniform_sheet(6))

    workload = assignments.judge_workload()
    assert workload == {judges[0].id: 2, judges[1].id: 0, judges[2].id: 1}


def test_unassign(assigned_sample, director, judges):
    assignments.unassign_judge(director, assigned_sample.id, judges[2].id)
    assert JudgeAssignment.query.filter_by(sample_id=assigned_sample.id).count() == 2


def test_cannot_unassign_after_evaluation(assigned_sample, director, judges):
    sensory.save_sensory_evaluation(judges[0], assigned_sample.id, uniform_sheet(6))
    with pytest.raises(ConstraintViolation):
        assignments.unassign_judge(director, assigned_sample.id, judges[0].id)


def test_finalize_requires_all_judges(assigned_sample, director, judges):
    sensory.save_sensory_evaluation(judges[0], assigned_sample.id, uniform_sheet(6))
    with pytest.raises(ConstraintViolation):
        assignments.finalize_sample(director, assigned_sample.id)
    assert assigned_sample.status == 'approved'


def test_finalize_without_judges_rejected(make_sample, director):
    sample = make_sample('approved')
    with pytest.raises(ConstraintViolation):
        assignments.finalize_sample(director, sample.id)


def test_finalized_sample_is_closed(assigned_sample, director, judges):
    for judge in judges:
        sensory.save_sensory_evaluation(judge, assigned_sample.id, uniform_sheet(8))
    assignments.finalize_sample(director, assigned_sample.id)
    assert assigned_sample.status == 'evaluated'

    with pytest.raises(ConstraintViolation):
        sensory.save_sensory_evaluation(judges[0], assigned_sample.id, uniform_sheet(9))
    with pytest.raises(InvalidTransition):
        assignments.finalize_sample(director, assigned_sample.id)
