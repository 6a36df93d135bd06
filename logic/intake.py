# logic/intake.py
# Прием образцов: черновики, отправка, получение, проверка по коду отслеживания

"""
Поля образца зависят от типа продукта (бобы, какао-масса, шоколад).
Черновик может хранить что угодно; при выходе из черновика поля проверяются
схемой своего типа, и только после этого статус меняется.
"""

import logging
import secrets
from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from extensions import db
from models import Contest, Sample
from models.sample import PRODUCT_TYPES
from errors import ConstraintViolation, IncompleteSample, InvalidTransition, NotFound
from logic import notifications, policy, state_machine
from logic.base import get_or_404, transactional

logger = logging.getLogger(__name__)


class _Details(BaseModel):
    model_config = ConfigDict(extra='ignore', str_strip_whitespace=True)


class BeanCertifications(BaseModel):
    organic: bool = False
    fairtrade: bool = False
    direct_trade: bool = False
    none: bool = True
    other: bool = False
    other_text: Optional[str] = None


class BeanDetails(_Details):
    product_type: Literal['bean'] = 'bean'
    country: str = Field(min_length=1)
    farm_name: str = Field(min_length=1)
    owner_full_name: str = Field(min_length=1)
    department: Optional[str] = None
    municipality: Optional[str] = None
    district: Optional[str] = None
    lot_number: Optional[str] = None
    harvest_date: Optional[date] = None
    growing_altitude_masl: Optional[int] = Field(default=None, ge=0)
    variety: Optional[str] = None
    quantity_kg: Optional[float] = Field(default=None, gt=0)
    belongs_to_cooperative: bool = False
    cooperative_name: Optional[str] = None
    certifications: Optional[BeanCertifications] = None

    @model_validator(mode='after')
    def check_cooperative(self):
        if self.belongs_to_cooperative and not self.cooperative_name:
            raise ValueError('cooperative_name is required when belongs_to_cooperative is set')
        if not self.belongs_to_cooperative:
            self.cooperative_name = None
        return self


class LiquorDetails(_Details):
    product_type: Literal['liquor'] = 'liquor'
    name: str = Field(min_length=1)
    brand: str = Field(min_length=1)
    batch: str = Field(min_length=1)
    country_processing: str = Field(min_length=1)
    lecithin_percentage: float = Field(ge=0, le=100)
    processing_method: str = Field(min_length=1)
    cocoa_origin_country: str = Field(min_length=1)
    cocoa_variety: Optional[str] = None


class ChocolateDetails(_Details):
    product_type: Literal['chocolate'] = 'chocolate'
    name: str = Field(min_length=1)
    brand: str = Field(min_length=1)
    batch: str = Field(min_length=1)
    manufacturer_country: str = Field(min_length=1)
    cocoa_origin_country: str = Field(min_length=1)
    cocoa_variety: str = Field(min_length=1)
    fermentation_method: str = Field(min_length=1)
    drying_method: str = Field(min_length=1)
    type: str = Field(min_length=1)
    cocoa_percentage: float = Field(ge=0, le=100)
    tempering_method: str = Field(min_length=1)
    sweeteners: List[str] = Field(default_factory=list)
    lecithin: List[str] = Field(default_factory=list)
    natural_flavors: List[str] = Field(default_factory=list)
    allergens: List[str] = Field(default_factory=list)
    inclusions: List[str] = Field(default_factory=list)


SampleDetails = Annotated[
    Union[BeanDetails, LiquorDetails, ChocolateDetails],
    Field(discriminator='product_type'),
]
_details_adapter = TypeAdapter(SampleDetails)


def validate_details(product_type, details):
    """Проверяет поля образца по схеме его типа. Возвращает нормализованный dict."""
    payload = dict(details or {})
    payload['product_type'] = product_type
    try:
        parsed = _details_adapter.validate_python(payload)
    except ValidationError as exc:
        missing = []
        problems = []
        for err in exc.errors():
            field = '.'.join(str(part) for part in err['loc'][1:]) or str(err['loc'][0])
            if err['type'] == 'missing':
                missing.append(field)
            else:
                problems.append(f"{field}: {err['msg']}")
        parts = []
        if missing:
            parts.append('missing ' + ', '.join(missing))
        parts.extend(problems)
        raise IncompleteSample(
            f"Sample of type '{product_type}' is incomplete: " + '; '.join(parts),
            missing=missing,
        )
    return parsed.model_dump(mode='json', exclude={'product_type'}, exclude_none=True)


def generate_tracking_code(year=None):
    year = year or datetime.utcnow().year
    while True:
        code = f'CC-{year}-{secrets.randbelow(1_000_000):06d}'
        if Sample.query.filter_by(tracking_code=code).first() is None:
            return code


def _check_product_type(product_type):
    if product_type not in PRODUCT_TYPES:
        raise IncompleteSample(f"Unknown product type '{product_type}'", missing=['product_type'])


@state_machine.draft_exit_check
def _check_draft_details(sample):
    sample.details = validate_details(sample.product_type, sample.details)


def _submit(sample):
    if not state_machine.can_transition(sample.status, 'submitted'):
        raise InvalidTransition(sample.id, sample.status, 'submitted')
    if not sample.tracking_code:
        sample.tracking_code = generate_tracking_code()
    state_machine.transition(sample, 'submitted')
    notifications.on_sample_submitted(sample)
    logger.info('Sample %s submitted as %s', sample.id, sample.tracking_code)
    return sample


@transactional
def create_sample(actor, contest_id, product_type='bean', details=None, submit=False):
    policy.require_role(actor, policy.PARTICIPANT)
    contest = get_or_404(Contest, contest_id)
    if contest.completed_at is not None:
        raise ConstraintViolation(f'Contest {contest.id} is already completed')
    _check_product_type(product_type)

    sample = Sample(
        contest_id=contest.id,
        user_id=actor.id,
        product_type=product_type,
        details=dict(details or {}),
        status='draft',
    )
    db.session.add(sample)
    db.session.flush()
    logger.info('Draft sample %s created by user %s in contest %s', sample.id, actor.id, contest.id)
    if submit:
        _submit(sample)
    return sample


@transactional
def update_draft(actor, sample_id, details=None, product_type=None):
    sample = get_or_404(Sample, sample_id)
    policy.require_sample_owner(actor, sample)
    if sample.status != 'draft':
        raise ConstraintViolation(f'Sample {sample.id} is no longer a draft')
    if product_type is not None:
        _check_product_type(product_type)
        sample.product_type = product_type
    if details is not None:
        merged = dict(sample.details or {})
        merged.update(details)
        sample.details = merged
    return sample


@transactional
def submit_sample(actor, sample_id):
    sample = get_or_404(Sample, sample_id)
    policy.require_sample_owner(actor, sample)
    return _submit(sample)


@transactional
def receive_sample(actor, sample_id):
    sample = get_or_404(Sample, sample_id)
    policy.require_contest_manager(actor, sample.contest)
    return state_machine.transition(sample, 'received')


def get_by_tracking_code(tracking_code):
    sample = Sample.query.filter_by(tracking_code=tracking_code).first()
    if sample is None:
        raise NotFound('Sample', tracking_code)
    return sample


def tracking_status(tracking_code):
    """Публичная проверка образца по коду (без персональных данных)."""
    sample = get_by_tracking_code(tracking_code)
    return {
        'tracking_code': sample.tracking_code,
        'status': sample.status,
        'product_type': sample.product_type,
        'contest': sample.contest.name,
        'submitted_at': sample.created_at.date().isoformat() if sample.created_at else None,
    }
