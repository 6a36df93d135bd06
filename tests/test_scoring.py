# tests/test_scoring.py

import pytest

from errors import IncompleteSample
from logic import scoring

from conftest import uniform_sheet


def test_uniform_sheet_overall():
    result = scoring.compute_sensory(uniform_sheet(7))
    assert result.overall_quality == 7.0
    assert set(result.totals) == {
        'acidity_total', 'fresh_fruit_total', 'brown_fruit_total', 'vegetal_total',
        'floral_total', 'wood_total', 'spice_total', 'nut_total',
    }
    assert all(total == 7.0 for total in result.totals.values())
    assert result.defects_total == 0
    assert not result.auto_disqualified


def test_group_weights():
    sheet = uniform_sheet(0, fresh_fruit={'berries': 5, 'citrus': 5}, wood={'resin': 10})
    result = scoring.compute_sensory(sheet)
    assert result.totals['fresh_fruit_total'] == 9.0
    assert result.totals['wood_total'] == 3.0


def test_group_total_is_clamped():
    sheet = uniform_sheet(0, acidity={'frutal': 8, 'acetic': 8})
    assert scoring.compute_sensory(sheet).totals['acidity_total'] == 10.0


def test_defects_total_is_clamped_sum():
    sheet = uniform_sheet(8, defects={'dirty': 2, 'smoke': 1.5})
    assert scoring.compute_sensory(sheet).defects_total == 3.5

    sheet = uniform_sheet(8, defects={'dirty': 8, 'moldy': 8})
    assert scoring.compute_sensory(sheet).defects_total == 10.0


def test_heavy_defects_zero_the_score():
    result = scoring.compute_sensory(uniform_sheet(9, defects={'rotten': 4, 'animal': 3}))
    assert result.defects_total == 7.0
    assert result.overall_quality == 0
    assert result.auto_disqualified
    assert result.reasons


def test_proportional_penalty():
    # base 8, defects 5 -> half of the penalty band -> 8 * (1 - 0.5 * 0.5)
    result = scoring.compute_sensory(uniform_sheet(8, defects={'humid': 5}))
    assert result.overall_quality == 6.0


def test_penalty_band_edges():
    assert scoring.compute_sensory(uniform_sheet(8, defects={'other': 2.9})).overall_quality == 8.0
    assert scoring.compute_sensory(uniform_sheet(8, defects={'other': 3})).overall_quality == 8.0
    assert scoring.apply_defect_penalty(8, 6.99) > 0
    assert scoring.apply_defect_penalty(8, 7) == 0


def test_custom_penalty_rate():
    assert scoring.apply_defect_penalty(10, 7 - 1e-9, rate=1.0) == pytest.approx(0, abs=1e-6)


def test_chocolate_sweetness_adjustment():
    sheet = uniform_sheet(7, evaluation_type='chocolate', sweetness=9)
    assert scoring.compute_sensory(sheet).overall_quality == 7.2


def test_sweetness_ignored_for_cocoa_mass():
    sheet = uniform_sheet(7, sweetness=9)
    assert scoring.compute_sensory(sheet).overall_quality == 7.0


def test_scores_must_be_in_range():
    with pytest.raises(IncompleteSample):
        scoring.compute_sensory(uniform_sheet(11))


def test_unknown_attribute_rejected():
    with pytest.raises(IncompleteSample):
        scoring.compute_sensory(uniform_sheet(5, acidity={'sour': 3}))


def test_chocolate_rubric():
    sheet = {
        'appearance': {'color': 10, 'gloss': 10, 'surface_homogeneity': 10},
        'aroma': {'intensity': 8, 'quality': 6},
        'texture': {'smoothness': 6, 'melting': 6, 'body': 6},
        'flavor': {'sweetness': 5, 'bitterness': 5, 'acidity': 5, 'intensity': 5},
        'aftertaste': {'persistence': 9, 'quality': 9, 'final_balance': 9},
    }
    overall, breakdown = scoring.compute_chocolate(sheet)
    assert breakdown == {'appearance': 10.0, 'aroma': 7.0, 'texture': 6.0, 'flavor': 5.0, 'aftertaste': 9.0}
    # 0.5 + 1.75 + 1.2 + 2.0 + 0.9
    assert overall == pytest.approx(6.35)


def test_chocolate_weights_sum_to_one():
    assert sum(scoring.CHOCOLATE_WEIGHTS.values()) == pytest.approx(1.0)
