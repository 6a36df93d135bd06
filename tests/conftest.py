# tests/conftest.py

"""
Общие фикстуры: приложение на sqlite в памяти, чистая схема на каждый тест,
фабрики пользователей, конкурсов и образцов на нужном этапе конвейера.
"""

from datetime import date

import pytest

from app import create_app
from config import TestingConfig
from extensions import db
from models import Contest, User
from logic import assignments, intake, physical


BEAN_DETAILS = {
    'country': 'Ecuador',
    'farm_name': 'Hacienda Victoria',
    'owner_full_name': 'Luis Andrade',
    'variety': 'Nacional',
}

GOOD_MEASUREMENTS = {
    'percentage_humidity': 6.5,
    'broken_grains': 4,
    'flat_grains': 5,
    'affected_grains_insects': 0,
    'well_fermented_beans': 70,
    'lightly_fermented_beans': 10,
    'purple_beans': 5,
}


def uniform_sheet(value, **extra):
    """Сенсорный лист, у которого все 12 слагаемых базовой оценки равны value."""
    sheet = {
        'cacao': value, 'bitterness': value, 'astringency': value, 'caramel_panela': value,
        'roast_degree': value,
        'acidity': {'frutal': value},
        'fresh_fruit': {'berries': value},
        'brown_fruit': {'dry': value},
        'vegetal': {'grass_herb': value},
        'floral': {'orange_blossom': value},
        'wood': {'light': value},
        'spice': {'spices': value},
        'nut': {'kernel': value},
    }
    sheet.update(extra)
    return sheet


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make(role='participant', name=None):
        counter['n'] += 1
        n = counter['n']
        user = User(code=f'{n:06d}', name=name or f'{role} {n}', email=f'{role}{n}@example.com', role=role)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user('admin')


@pytest.fixture
def director(make_user):
    return make_user('director')


@pytest.fixture
def participant(make_user):
    return make_user('participant')


@pytest.fixture
def judges(make_user):
    return [make_user('judge') for _ in range(3)]


@pytest.fixture
def contest(director):
    contest = Contest(
        name='Cocoa of Excellence',
        location='Quito',
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 5),
        created_by=director.id,
    )
    db.session.add(contest)
    db.session.commit()
    return contest


@pytest.fixture
def make_sample(contest, participant, director):
    """
    Создает образец и доводит его до нужного статуса:
    draft, submitted, received или approved.
    """
    def _make(stage='approved', owner=None, details=None):
        owner = owner or participant
        sample = intake.create_sample(owner, contest.id, 'bean', dict(details or BEAN_DETAILS))
        if stage == 'draft':
            return sample
        intake.submit_sample(owner, sample.id)
        if stage == 'submitted':
            return sample
        intake.receive_sample(director, sample.id)
        if stage == 'received':
            return sample
        physical.save_physical_evaluation(director, sample.id, dict(GOOD_MEASUREMENTS))
        return sample
    return _make


@pytest.fixture
def assigned_sample(make_sample, director, judges):
    sample = make_sample('approved')
    assignments.assign_judges(director, [sample.id], [j.id for j in judges])
    return sample
