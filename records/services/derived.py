"""
Derived visit fields: BMI and certificate eligibility.

Both create and update go through :func:`derive_fields` whenever height,
weight or BMI change, so a stored record never disagrees with the rule
that produced it.
"""
from __future__ import annotations

import math
from typing import Any, Optional, Tuple

HEALTHY_BMI_MIN = 18.5
HEALTHY_BMI_MAX = 25.0


def coerce_positive(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float > 0, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def coerce_bool(value: Any) -> bool:
    """Normalize the boolean, string and numeric forms clients send.

    ``True``, ``1`` and ``"true"``/``"1"`` (any case) are true; everything
    else is false.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1')
    return False


def compute_bmi(height_cm: float, weight_kg: float) -> float:
    return round(weight_kg / (height_cm / 100) ** 2, 2)


def is_healthy_bmi(bmi: float) -> bool:
    return HEALTHY_BMI_MIN <= bmi < HEALTHY_BMI_MAX


def derive_fields(height: float, weight: float, supplied_bmi: Any = None,
                  supplied_certificate: Any = None) -> Tuple[float, bool]:
    """Return ``(bmi, certificate_enabled)``.

    A supplied BMI wins when it is a finite positive number; otherwise it
    is computed from height and weight. An explicit certificate flag wins
    over the healthy-range default. ``None`` means "not supplied".
    """
    bmi = coerce_positive(supplied_bmi)
    if bmi is None:
        bmi = compute_bmi(height, weight)
    if supplied_certificate is None:
        certificate = is_healthy_bmi(bmi)
    else:
        certificate = coerce_bool(supplied_certificate)
    return bmi, certificate
