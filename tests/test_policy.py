# tests/test_policy.py

import pytest

from errors import PermissionDenied
from logic import policy


def test_admin_manages_every_contest(admin, contest):
    assert policy.can_manage_contest(admin, contest)


def test_director_manages_only_own_contest(director, contest, make_user):
    assert policy.can_manage_contest(director, contest)
    assert not policy.can_manage_contest(make_user('director'), contest)


def test_staff_roles(admin, director, participant):
    assert policy.is_staff(admin)
    assert policy.is_staff(director)
    assert not policy.is_staff(participant)
    assert not policy.is_staff(None)


def test_require_role(participant):
    policy.require_role(participant, policy.PARTICIPANT)
    with pytest.raises(PermissionDenied):
        policy.require_role(participant, policy.JUDGE, policy.ADMIN)
    with pytest.raises(PermissionDenied):
        policy.require_role(None, policy.PARTICIPANT)


def test_sample_visibility(assigned_sample, participant, judges, make_user, director):
    assert policy.can_view_sample(participant, assigned_sample)
    assert policy.can_view_sample(director, assigned_sample)
    assert policy.can_view_sample(judges[0], assigned_sample)
    assert not policy.can_view_sample(make_user('participant'), assigned_sample)
    assert not policy.can_view_sample(make_user('judge'), assigned_sample)
    assert not policy.can_view_sample(make_user('evaluator'), assigned_sample)


def test_evaluators_see_samples_in_final_stage(make_sample, make_user, contest):
    sample = make_sample('approved')
    evaluator = make_user('evaluator')
    contest.final_evaluation = True
    assert policy.can_view_sample(evaluator, sample)


def test_require_sample_owner(make_sample, participant, admin, make_user):
    sample = make_sample('draft')
    policy.require_sample_owner(participant, sample)
    policy.require_sample_owner(admin, sample)
    with pytest.raises(PermissionDenied):
        policy.require_sample_owner(make_user('participant'), sample)
