# tests/test_intake.py

import re

import pytest

from errors import ConstraintViolation, IncompleteSample, NotFound, PermissionDenied
from logic import intake
from models import Notification

from conftest import BEAN_DETAILS

CHOCOLATE_DETAILS = {
    'name': 'Dark 70',
    'brand': 'Selva',
    'batch': 'B-12',
    'manufacturer_country': 'Peru',
    'cocoa_origin_country': 'Peru',
    'cocoa_variety': 'Chuncho',
    'fermentation_method': 'Wooden boxes',
    'drying_method': 'Sun',
    'type': 'dark',
    'cocoa_percentage': 70,
    'tempering_method': 'Machine',
}


def test_draft_may_be_incomplete(participant, contest):
    sample = intake.create_sample(participant, contest.id, 'chocolate', {'name': 'Work in progress'})
    assert sample.status == 'draft'
    assert sample.tracking_code is None
    assert sample.details == {'name': 'Work in progress'}


def test_submit_generates_tracking_code(participant, contest):
    sample = intake.create_sample(participant, contest.id, 'bean', dict(BEAN_DETAILS), submit=True)
    assert sample.status == 'submitted'
    assert re.match(r'^CC-\d{4}-\d{6}$', sample.tracking_code)


def test_submit_notifies_staff(admin, director, participant, contest):
    sample = intake.create_sample(participant, contest.id, 'bean', dict(BEAN_DETAILS), submit=True)
    notes = Notification.query.filter_by(type='sample_added', related_sample_id=sample.id).all()
    assert {n.recipient_user_id for n in notes} == {admin.id, director.id}
    assert all(n.priority == 'high' for n in notes)


def test_chocolate_requires_its_own_fields(participant, contest):
    details = dict(CHOCOLATE_DETAILS)
    del details['tempering_method']
    with pytest.raises(IncompleteSample) as exc:
        intake.create_sample(participant, contest.id, 'chocolate', details, submit=True)
    assert exc.value.missing == ['tempering_method']


def test_chocolate_submission(participant, contest):
    sample = intake.create_sample(participant, contest.id, 'chocolate', dict(CHOCOLATE_DETAILS), submit=True)
    assert sample.status == 'submitted'
    assert sample.details['cocoa_percentage'] == 70


def test_liquor_percentage_out_of_range(participant, contest):
    details = {
        'name': 'Liquor', 'brand': 'X', 'batch': '1', 'country_processing': 'Ghana',
        'lecithin_percentage': 140, 'processing_method': 'Stone', 'cocoa_origin_country': 'Ghana',
    }
    with pytest.raises(IncompleteSample) as exc:
        intake.create_sample(participant, contest.id, 'liquor', details, submit=True)
    assert 'lecithin_percentage' in exc.value.message


def test_cooperative_name_required_when_member(participant, contest):
    details = dict(BEAN_DETAILS, belongs_to_cooperative=True)
    with pytest.raises(IncompleteSample):
        intake.create_sample(participant, contest.id, 'bean', details, submit=True)


def test_unknown_product_type(participant, contest):
    with pytest.raises(IncompleteSample):
        intake.create_sample(participant, contest.id, 'wine', {})


def test_only_participants_create_samples(director, contest):
    with pytest.raises(PermissionDenied):
        intake.create_sample(director, contest.id, 'bean', dict(BEAN_DETAILS))


def test_update_draft_merges_details(participant, contest):
    sample = intake.create_sample(participant, contest.id, 'bean', {'country': 'Peru'})
    intake.update_draft(participant, sample.id, details={'farm_name': 'El Sol', 'owner_full_name': 'Ana'})
    intake.submit_sample(participant, sample.id)
    assert sample.status == 'submitted'
    assert sample.details['country'] == 'Peru'


def test_submitted_sample_is_not_editable(make_sample, participant):
    sample = make_sample('submitted')
    with pytest.raises(ConstraintViolation):
        intake.update_draft(participant, sample.id, details={'variety': 'CCN-51'})


def test_other_participant_cannot_submit(make_sample, make_user):
    sample = make_sample('draft')
    stranger = make_user('participant')
    with pytest.raises(PermissionDenied):
        intake.submit_sample(stranger, sample.id)


def test_receive_requires_contest_manager(make_sample, make_user):
    sample = make_sample('submitted')
    other_director = make_user('director')
    with pytest.raises(PermissionDenied):
        intake.receive_sample(other_director, sample.id)
    assert sample.status == 'submitted'


def test_receive_notifies_participant(make_sample, participant):
    sample = make_sample('received')
    note = Notification.query.filter_by(type='sample_received', related_sample_id=sample.id).one()
    assert note.recipient_user_id == participant.id


def test_tracking_status(make_sample, contest):
    sample = make_sample('received')
    status = intake.tracking_status(sample.tracking_code)
    assert status['status'] == 'received'
    assert status['contest'] == contest.name
    assert 'user_id' not in status


def test_tracking_unknown_code(app):
    with pytest.raises(NotFound):
        intake.tracking_status('CC-2024-000000')
