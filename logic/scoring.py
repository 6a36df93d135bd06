# logic/scoring.py
# Подсчет баллов: сенсорный лист судьи и рубрика финальной оценки шоколада

"""
Здесь только вычисления, без базы данных. Лист оценки приходит как dict,
проверяется pydantic-моделью и превращается в итоги групп, сумму дефектов и
общую оценку качества.
"""

from dataclasses import dataclass, field
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import IncompleteSample

Score = Annotated[float, Field(ge=0, le=10)]


class _Sheet(BaseModel):
    model_config = ConfigDict(extra='forbid')


class AcidityScores(_Sheet):
    frutal: Score = 0.0
    acetic: Score = 0.0
    lactic: Score = 0.0
    mineral_butyric: Score = 0.0


class FreshFruitScores(_Sheet):
    berries: Score = 0.0
    citrus: Score = 0.0
    yellow_orange_white_pulp: Score = 0.0
    dark: Score = 0.0
    tropical: Score = 0.0


class BrownFruitScores(_Sheet):
    dry: Score = 0.0
    brown: Score = 0.0
    overripe: Score = 0.0


class VegetalScores(_Sheet):
    grass_herb: Score = 0.0
    earthy: Score = 0.0


class FloralScores(_Sheet):
    orange_blossom: Score = 0.0
    flowers: Score = 0.0


class WoodScores(_Sheet):
    light: Score = 0.0
    dark: Score = 0.0
    resin: Score = 0.0


class SpiceScores(_Sheet):
    spices: Score = 0.0
    tobacco: Score = 0.0
    umami: Score = 0.0


class NutScores(_Sheet):
    kernel: Score = 0.0
    skin: Score = 0.0


class DefectScores(_Sheet):
    dirty: Score = 0.0
    animal: Score = 0.0
    rotten: Score = 0.0
    smoke: Score = 0.0
    humid: Score = 0.0
    moldy: Score = 0.0
    overfermented: Score = 0.0
    other: Score = 0.0


class SensorySheet(_Sheet):
    evaluation_type: Literal['cocoa_mass', 'chocolate'] = 'cocoa_mass'
    cacao: Score = 0.0
    bitterness: Score = 0.0
    astringency: Score = 0.0
    caramel_panela: Score = 0.0
    roast_degree: Score = 0.0
    # Только для шоколада
    sweetness: Optional[float] = Field(default=None, ge=0, le=10)

    acidity: AcidityScores = Field(default_factory=AcidityScores)
    fresh_fruit: FreshFruitScores = Field(default_factory=FreshFruitScores)
    brown_fruit: BrownFruitScores = Field(default_factory=BrownFruitScores)
    vegetal: VegetalScores = Field(default_factory=VegetalScores)
    floral: FloralScores = Field(default_factory=FloralScores)
    wood: WoodScores = Field(default_factory=WoodScores)
    spice: SpiceScores = Field(default_factory=SpiceScores)
    nut: NutScores = Field(default_factory=NutScores)
    defects: DefectScores = Field(default_factory=DefectScores)


# Веса под-атрибутов в итоге группы. Кислотность суммируется без весов.
GROUP_WEIGHTS = {
    'acidity': {'frutal': 1, 'acetic': 1, 'lactic': 1, 'mineral_butyric': 1},
    'fresh_fruit': {'berries': 1, 'citrus': 0.8, 'yellow_orange_white_pulp': 0.3, 'dark': 0.3, 'tropical': 0.3},
    'brown_fruit': {'dry': 1, 'brown': 0.8, 'overripe': 0.3},
    'vegetal': {'grass_herb': 1, 'earthy': 0.8},
    'floral': {'orange_blossom': 1, 'flowers': 0.8},
    'wood': {'light': 1, 'dark': 0.8, 'resin': 0.3},
    'spice': {'spices': 1, 'tobacco': 0.8, 'umami': 0.3},
    'nut': {'kernel': 1, 'skin': 0.8},
}

SINGLE_ATTRIBUTES = ('cacao', 'bitterness', 'astringency', 'caramel_panela')

DEFECTS_DISQUALIFICATION_REASON = 'Defects total of {total:g} reaches the automatic disqualification limit of {limit:g}'


@dataclass
class SensoryResult:
    totals: Dict[str, float]
    defects_total: float
    base_score: float
    overall_quality: float
    auto_disqualified: bool = False
    reasons: List[str] = field(default_factory=list)


def clamp(value, low=0.0, high=10.0):
    return max(low, min(high, value))


def parse_sheet(sheet):
    """dict -> SensorySheet. Ошибки формата превращаются в IncompleteSample."""
    if isinstance(sheet, SensorySheet):
        return sheet
    try:
        return SensorySheet.model_validate(sheet or {})
    except ValidationError as exc:
        problems = ['.'.join(str(p) for p in err['loc']) + ': ' + err['msg'] for err in exc.errors()]
        raise IncompleteSample('Invalid score sheet: ' + '; '.join(problems))


def group_total(name, scores):
    weights = GROUP_WEIGHTS[name]
    raw = sum(getattr(scores, attr) * weight for attr, weight in weights.items())
    return round(clamp(raw), 2)


def defects_total(defects):
    return round(clamp(sum(defects.model_dump().values())), 2)


def apply_defect_penalty(base, total, disqualify_at=7.0, penalty_from=3.0, rate=0.5):
    """
    Штраф за дефекты.

    total >= disqualify_at  -> 0
    penalty_from <= total < disqualify_at -> линейно снимаем до rate от base
    иначе base без изменений
    """
    if total >= disqualify_at:
        return 0.0
    if total >= penalty_from:
        fraction = (total - penalty_from) / (disqualify_at - penalty_from)
        return base * (1 - rate * fraction)
    return base


def compute_sensory(sheet, disqualify_at=7.0, penalty_from=3.0, rate=0.5):
    sheet = parse_sheet(sheet)
    totals = {f'{name}_total': group_total(name, getattr(sheet, name)) for name in GROUP_WEIGHTS}
    d_total = defects_total(sheet.defects)

    values = [getattr(sheet, attr) for attr in SINGLE_ATTRIBUTES] + list(totals.values())
    base = sum(values) / len(values)
    if sheet.evaluation_type == 'chocolate' and sheet.sweetness is not None:
        base += (sheet.sweetness - 5) * 0.05

    overall = round(clamp(apply_defect_penalty(base, d_total, disqualify_at, penalty_from, rate)), 2)

    result = SensoryResult(
        totals=totals,
        defects_total=d_total,
        base_score=round(base, 2),
        overall_quality=overall,
    )
    if d_total >= disqualify_at:
        result.auto_disqualified = True
        result.reasons.append(DEFECTS_DISQUALIFICATION_REASON.format(total=d_total, limit=disqualify_at))
    return result


def compute_sensory_from_config(sheet, config):
    return compute_sensory(
        sheet,
        disqualify_at=config['DEFECTS_DISQUALIFY_AT'],
        penalty_from=config['DEFECTS_PENALTY_FROM'],
        rate=config['DEFECTS_PENALTY_RATE'],
    )


# --- Рубрика финальной оценки шоколада ---

class AppearanceScores(_Sheet):
    color: Score = 0.0
    gloss: Score = 0.0
    surface_homogeneity: Score = 0.0


class AromaScores(_Sheet):
    intensity: Score = 0.0
    quality: Score = 0.0


class TextureScores(_Sheet):
    smoothness: Score = 0.0
    melting: Score = 0.0
    body: Score = 0.0


class FlavorScores(_Sheet):
    sweetness: Score = 0.0
    bitterness: Score = 0.0
    acidity: Score = 0.0
    intensity: Score = 0.0


class AftertasteScores(_Sheet):
    persistence: Score = 0.0
    quality: Score = 0.0
    final_balance: Score = 0.0


class ChocolateSheet(_Sheet):
    appearance: AppearanceScores = Field(default_factory=AppearanceScores)
    aroma: AromaScores = Field(default_factory=AromaScores)
    texture: TextureScores = Field(default_factory=TextureScores)
    flavor: FlavorScores = Field(default_factory=FlavorScores)
    aftertaste: AftertasteScores = Field(default_factory=AftertasteScores)


CHOCOLATE_WEIGHTS = {
    'appearance': 0.05,
    'aroma': 0.25,
    'texture': 0.20,
    'flavor': 0.40,
    'aftertaste': 0.10,
}


def compute_chocolate(sheet):
    """Возвращает (overall_quality, оценки по категориям)."""
    if not isinstance(sheet, ChocolateSheet):
        try:
            sheet = ChocolateSheet.model_validate(sheet or {})
        except ValidationError as exc:
            problems = ['.'.join(str(p) for p in err['loc']) + ': ' + err['msg'] for err in exc.errors()]
            raise IncompleteSample('Invalid chocolate rubric: ' + '; '.join(problems))

    breakdown = {}
    for category in CHOCOLATE_WEIGHTS:
        values = list(getattr(sheet, category).model_dump().values())
        breakdown[category] = round(sum(values) / len(values), 2)
    overall = sum(breakdown[c] * w for c, w in CHOCOLATE_WEIGHTS.items())
    return round(clamp(overall), 2), breakdown
