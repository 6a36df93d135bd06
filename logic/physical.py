# logic/physical.py
# Физическая оценка образца: правила дисквалификации и предупреждения

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from flask import current_app
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from extensions import db
from models import PhysicalEvaluation, Sample
from errors import ConstraintViolation, IncompleteSample
from logic import policy, state_machine
from logic.base import get_or_404, transactional

logger = logging.getLogger(__name__)

# Пока образец в этих статусах, физическую оценку можно перезаписать
OPEN_STATUSES = ('received', 'physical_evaluation')


class PhysicalMeasurements(BaseModel):
    model_config = ConfigDict(extra='forbid')

    undesirable_aromas: List[str] = Field(default_factory=list)
    has_undesirable_aromas: bool = False
    typical_odors: List[str] = Field(default_factory=list)
    atypical_odors: List[str] = Field(default_factory=list)
    percentage_humidity: float = Field(ge=0, le=100)
    broken_grains: float = Field(default=0, ge=0, le=100)
    violated_grains: bool = False
    flat_grains: float = Field(default=0, ge=0, le=100)
    affected_grains_insects: int = Field(default=0, ge=0)
    well_fermented_beans: float = Field(default=0, ge=0, le=100)
    lightly_fermented_beans: float = Field(default=0, ge=0, le=100)
    purple_beans: float = Field(default=0, ge=0, le=100)
    slaty_beans: float = Field(default=0, ge=0, le=100)
    internal_moldy_beans: float = Field(default=0, ge=0, le=100)
    over_fermented_beans: float = Field(default=0, ge=0, le=100)


@dataclass
class PhysicalVerdict:
    verdict: str
    reasons: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def disqualified(self):
        return self.verdict == 'disqualified'


def _pct(value):
    return f'{value:g}%'


def evaluate_physical_criteria(m, thresholds):
    """
    Применяет все правила и собирает причины целиком, без выхода на первой.

    m - PhysicalMeasurements, thresholds - словарь PHYSICAL_THRESHOLDS.
    Плоские зерна только дают предупреждение.
    """
    reasons = []
    warnings = []
    t = thresholds

    if m.has_undesirable_aromas or m.undesirable_aromas:
        found = ', '.join(m.undesirable_aromas) if m.undesirable_aromas else 'flagged'
        reasons.append(f'Undesirable aromas detected ({found})')

    if not (t['humidity_min'] <= m.percentage_humidity <= t['humidity_max']):
        reasons.append(
            f"Humidity ({_pct(m.percentage_humidity)}) outside the acceptable range "
            f"{_pct(t['humidity_min'])}-{_pct(t['humidity_max'])}"
        )

    if m.broken_grains > t['broken_grains_max']:
        reasons.append(f"Broken grains ({_pct(m.broken_grains)}) exceeds {_pct(t['broken_grains_max'])}")

    if m.violated_grains:
        reasons.append('Violated grains present')

    if m.flat_grains > t['flat_grains_warning']:
        warnings.append(f"Flat grains ({_pct(m.flat_grains)}) exceeds {_pct(t['flat_grains_warning'])}")

    if m.affected_grains_insects > t['insects_max']:
        reasons.append(f'Insect-affected grains found ({m.affected_grains_insects})')

    fermented = m.well_fermented_beans + m.lightly_fermented_beans
    if fermented < t['fermented_min']:
        reasons.append(f"Fermentation ({_pct(fermented)}) below the minimum of {_pct(t['fermented_min'])}")

    ceilings = (
        ('Purple beans', m.purple_beans, t['purple_beans_max']),
        ('Slaty beans', m.slaty_beans, t['slaty_beans_max']),
        ('Internal moldy beans', m.internal_moldy_beans, t['internal_moldy_max']),
        ('Over-fermented beans', m.over_fermented_beans, t['over_fermented_max']),
    )
    for label, value, limit in ceilings:
        if value > limit:
            reasons.append(f'{label} ({_pct(value)}) exceeds {_pct(limit)}')

    verdict = 'disqualified' if reasons else 'passed'
    return PhysicalVerdict(verdict=verdict, reasons=reasons, warnings=warnings)


def parse_measurements(measurements):
    if isinstance(measurements, PhysicalMeasurements):
        return measurements
    try:
        return PhysicalMeasurements.model_validate(measurements or {})
    except ValidationError as exc:
        missing = [str(err['loc'][0]) for err in exc.errors() if err['type'] == 'missing']
        problems = ['.'.join(str(p) for p in err['loc']) + ': ' + err['msg'] for err in exc.errors()]
        raise IncompleteSample('Invalid physical measurements: ' + '; '.join(problems), missing=missing)


@transactional
def save_physical_evaluation(actor, sample_id, measurements, notes=''):
    """
    Сохраняет (или перезаписывает) физическую оценку и двигает образец:
    received -> physical_evaluation -> disqualified | approved.

    Дисквалификация - это успешная запись с отрицательным вердиктом.
    """
    sample = get_or_404(Sample, sample_id)
    policy.require_contest_manager(actor, sample.contest)
    if sample.status not in OPEN_STATUSES:
        raise ConstraintViolation(
            f"Physical evaluation of sample {sample.id} is closed (status '{sample.status}')"
        )

    m = parse_measurements(measurements)
    result = evaluate_physical_criteria(m, current_app.config['PHYSICAL_THRESHOLDS'])

    evaluation = sample.physical_evaluation
    if evaluation is None:
        evaluation = PhysicalEvaluation(sample_id=sample.id)
        db.session.add(evaluation)
        sample.physical_evaluation = evaluation

    for name, value in m.model_dump().items():
        setattr(evaluation, name, value)
    evaluation.notes = notes or ''
    evaluation.evaluated_by = actor.id
    evaluation.evaluated_at = datetime.utcnow()
    evaluation.global_evaluation = result.verdict
    evaluation.disqualification_reasons = list(result.reasons)
    evaluation.warnings = list(result.warnings)
    db.session.flush()

    logger.info('Physical evaluation of sample %s: %s %s', sample.id, result.verdict, result.reasons)

    if sample.status == 'received':
        state_machine.transition(sample, 'physical_evaluation')
    if result.disqualified:
        state_machine.transition(sample, 'disqualified')
    elif current_app.config.get('PHYSICAL_AUTO_APPROVE', True):
        state_machine.transition(sample, 'approved')
    return evaluation, result


@transactional
def approve_sample(actor, sample_id):
    """Ручное одобрение, когда PHYSICAL_AUTO_APPROVE выключен."""
    sample = get_or_404(Sample, sample_id)
    policy.require_contest_manager(actor, sample.contest)
    evaluation = sample.physical_evaluation
    if evaluation is None or evaluation.global_evaluation != 'passed':
        raise ConstraintViolation(f'Sample {sample.id} has no passing physical evaluation')
    return state_machine.transition(sample, 'approved')
