# tests/test_physical.py

import pytest

from config import TestingConfig
from errors import ConstraintViolation, IncompleteSample, PermissionDenied
from logic import physical
from logic.physical import PhysicalMeasurements, evaluate_physical_criteria
from models import Notification, PhysicalEvaluation

from conftest import GOOD_MEASUREMENTS

THRESHOLDS = TestingConfig.PHYSICAL_THRESHOLDS


def verdict_for(**overrides):
    m = PhysicalMeasurements(**dict(GOOD_MEASUREMENTS, **overrides))
    return evaluate_physical_criteria(m, THRESHOLDS)


def test_good_beans_pass():
    result = verdict_for()
    assert result.verdict == 'passed'
    assert result.reasons == []
    assert result.warnings == []


def test_broken_grains_over_ceiling():
    result = verdict_for(broken_grains=12)
    assert result.verdict == 'disqualified'
    assert any('Broken grains' in r and 'exceeds 10%' in r for r in result.reasons)


def test_broken_grains_at_ceiling_passes():
    assert verdict_for(broken_grains=10).verdict == 'passed'


def test_reasons_accumulate():
    result = verdict_for(broken_grains=12, affected_grains_insects=2, percentage_humidity=9.5,
                         violated_grains=True)
    assert result.verdict == 'disqualified'
    assert len(result.reasons) == 4


def test_flat_grains_only_warn():
    result = verdict_for(flat_grains=22)
    assert result.verdict == 'passed'
    assert len(result.warnings) == 1
    assert 'Flat grains' in result.warnings[0]


def test_single_insect_disqualifies():
    assert verdict_for(affected_grains_insects=1).verdict == 'disqualified'


def test_fermentation_floor():
    assert verdict_for(well_fermented_beans=40, lightly_fermented_beans=15).verdict == 'disqualified'
    assert verdict_for(well_fermented_beans=45, lightly_fermented_beans=15).verdict == 'passed'


@pytest.mark.parametrize('field', ['slaty_beans', 'internal_moldy_beans', 'over_fermented_beans'])
def test_zero_tolerance_ceilings(field):
    assert verdict_for(**{field: 1}).verdict == 'disqualified'


def test_purple_beans_ceiling():
    assert verdict_for(purple_beans=15).verdict == 'passed'
    assert verdict_for(purple_beans=16).verdict == 'disqualified'


def test_undesirable_aromas():
    result = verdict_for(undesirable_aromas=['smoke'], has_undesirable_aromas=True)
    assert result.verdict == 'disqualified'
    assert 'smoke' in result.reasons[0]


def test_humidity_band_is_configurable():
    m = PhysicalMeasurements(**dict(GOOD_MEASUREMENTS, percentage_humidity=5.0))
    assert evaluate_physical_criteria(m, THRESHOLDS).verdict == 'passed'
    strict = dict(THRESHOLDS, humidity_min=5.5, humidity_max=8.5)
    assert evaluate_physical_criteria(m, strict).verdict == 'disqualified'


def test_broken_grains_disqualify_sample(make_sample, director, participant):
    sample = make_sample('received')
    evaluation, result = physical.save_physical_evaluation(
        director, sample.id, dict(GOOD_MEASUREMENTS, broken_grains=12))

    assert result.verdict == 'disqualified'
    assert evaluation.global_evaluation == 'disqualified'
    assert any('exceeds 10%' in r for r in evaluation.disqualification_reasons)
    assert sample.status == 'disqualified'

    note = Notification.query.filter_by(type='sample_disqualified', related_sample_id=sample.id).one()
    assert note.recipient_user_id == participant.id
    assert note.action_required
    assert 'exceeds 10%' in note.message


def test_passing_sample_is_approved(make_sample, director, participant):
    sample = make_sample('received')
    physical.save_physical_evaluation(director, sample.id, dict(GOOD_MEASUREMENTS))
    assert sample.status == 'approved'
    assert Notification.query.filter_by(type='sample_approved', recipient_user_id=participant.id).count() == 1


def test_manual_approval(app, make_sample, director):
    app.config['PHYSICAL_AUTO_APPROVE'] = False
    sample = make_sample('received')
    physical.save_physical_evaluation(director, sample.id, dict(GOOD_MEASUREMENTS, flat_grains=20))
    assert sample.status == 'physical_evaluation'

    # Пока образец не одобрен, оценку можно перезаписать
    physical.save_physical_evaluation(director, sample.id, dict(GOOD_MEASUREMENTS))
    assert PhysicalEvaluation.query.filter_by(sample_id=sample.id).count() == 1
    assert sample.physical_evaluation.warnings == []

    physical.approve_sample(director, sample.id)
    assert sample.status == 'approved'


def test_evaluation_frozen_after_approval(make_sample, director):
    sample = make_sample('approved')
    with pytest.raises(ConstraintViolation):
        physical.save_physical_evaluation(director, sample.id, dict(GOOD_MEASUREMENTS, broken_grains=50))
    assert sample.status == 'approved'
    assert sample.physical_evaluation.global_evaluation == 'passed'


def test_not_received_sample_rejected(make_sample, director):
    sample = make_sample('submitted')
    with pytest.raises(ConstraintViolation):
        physical.save_physical_evaluation(director, sample.id, dict(GOOD_MEASUREMENTS))


def test_missing_humidity(make_sample, director):
    sample = make_sample('received')
    measurements = dict(GOOD_MEASUREMENTS)
    del measurements['percentage_humidity']
    with pytest.raises(IncompleteSample) as exc:
        physical.save_physical_evaluation(director, sample.id, measurements)
    assert exc.value.missing == ['percentage_humidity']
    assert sample.status == 'received'


def test_only_contest_staff_measure(make_sample, participant, make_user):
    sample = make_sample('received')
    with pytest.raises(PermissionDenied):
        physical.save_physical_evaluation(participant, sample.id, dict(GOOD_MEASUREMENTS))
    with pytest.raises(PermissionDenied):
        physical.save_physical_evaluation(make_user('director'), sample.id, dict(GOOD_MEASUREMENTS))


def test_admin_may_measure_any_contest(make_sample, admin):
    sample = make_sample('received')
    physical.save_physical_evaluation(admin, sample.id, dict(GOOD_MEASUREMENTS))
    assert sample.status == 'approved'
