import math

import pytest

from records.services.derived import coerce_bool, coerce_positive, compute_bmi, derive_fields


def test_examples_from_intake_form():
    assert derive_fields(170, 68) == (23.53, True)
    assert derive_fields(170, 95) == (32.87, False)


@pytest.mark.parametrize('height,weight', [(150, 40), (160.5, 55.2), (182, 77), (199, 140), (120, 25)])
def test_bmi_is_weight_over_height_squared(height, weight):
    bmi, _ = derive_fields(height, weight)
    assert bmi == round(weight / (height / 100) ** 2, 2)


@pytest.mark.parametrize('bmi,expected', [
    (18.49, False),
    (18.5, True),
    (22.0, True),
    (24.99, True),
    (25.0, False),
    (31.2, False),
])
def test_certificate_follows_healthy_range(bmi, expected):
    assert derive_fields(170, 68, supplied_bmi=bmi) == (bmi, expected)


@pytest.mark.parametrize('flag,expected', [
    (True, True), (False, False),
    ('true', True), ('TRUE', True), ('false', False), ('yes', False),
    (1, True), (0, False), ('1', True), ('0', False),
])
def test_explicit_certificate_flag_overrides_bmi(flag, expected):
    # 170/95 is outside the healthy range, 170/68 inside it
    assert derive_fields(170, 95, supplied_certificate=flag)[1] is expected
    assert derive_fields(170, 68, supplied_certificate=flag)[1] is expected


@pytest.mark.parametrize('bad', [None, 0, -3, 'abc', '', float('nan'), math.inf, True])
def test_unusable_supplied_bmi_is_recomputed(bad):
    assert derive_fields(170, 68, supplied_bmi=bad)[0] == 23.53


def test_valid_supplied_bmi_is_kept():
    assert derive_fields(170, 68, supplied_bmi='21.7') == (21.7, True)


def test_coercions():
    assert coerce_positive('70.5') == 70.5
    assert coerce_positive('-1') is None
    assert coerce_bool(None) is False
    assert compute_bmi(200, 100) == 25.0
