"""
Credit Risk Module
==================
Maps firm financial ratios to a probability of default through a
logistic scorecard and derives the loss distribution figures used for
credit limits.

Mathematical Foundation:
    PD   = 1 / (1 + e^(-logit)),  clamped to [0.001, 0.999]
    LGD  = 0.45 + min(0.3, 0.1·D/E) + max(-0.2, -0.05·CR),  clamped to [0.1, 0.9]
    EL   = PD · LGD · EAD
    UL   = √(PD(1 - PD)) · LGD · EAD
    CVaR = z_0.99 · UL + EL
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

from risk_analytics.distributions import inverse_normal_cdf
from risk_analytics.exceptions import DomainError
from risk_analytics.types import CreditProfile, CreditRiskMetrics

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
PD_FLOOR: float = 0.001
PD_CAP: float = 0.999

BASE_LGD: float = 0.45
LGD_DEBT_SENSITIVITY: float = 0.1
LGD_DEBT_CAP: float = 0.3
LGD_LIQUIDITY_SENSITIVITY: float = 0.05
LGD_LIQUIDITY_FLOOR: float = -0.2
LGD_FLOOR: float = 0.1
LGD_CAP: float = 0.9

CREDIT_VAR_CONFIDENCE: float = 0.99

# Upper PD bound (exclusive) for each grade; anything above the last is "B".
RATING_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (0.001, "AAA"),
    (0.002, "AA+"),
    (0.005, "AA"),
    (0.01, "AA-"),
    (0.02, "A+"),
    (0.05, "A"),
    (0.1, "A-"),
    (0.15, "BBB+"),
    (0.25, "BBB"),
    (0.4, "BBB-"),
    (0.6, "BB+"),
    (0.8, "BB"),
)
WORST_RATING: str = "B"
RATING_LADDER: Tuple[str, ...] = tuple(grade for _, grade in RATING_THRESHOLDS) + (WORST_RATING,)


@dataclass(frozen=True)
class CreditModelCoefficients:
    """
    Logistic scorecard coefficients.

    logit = intercept + score·credit_score + debt·D/E + liquidity·CR
            + coverage·interest_coverage + industry·industry_risk
    """
    intercept: float = -1.0
    score: float = -0.003
    debt: float = 0.15
    liquidity: float = -0.08
    coverage: float = -0.02
    industry: float = 0.05


DEFAULT_COEFFICIENTS = CreditModelCoefficients()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def probability_of_default(
    profile: CreditProfile,
    coefficients: CreditModelCoefficients = DEFAULT_COEFFICIENTS,
) -> float:
    """
    Logistic probability of default.

    Parameters
    ----------
    profile : CreditProfile
        Firm ratios.
    coefficients : CreditModelCoefficients
        Scorecard weights.

    Returns
    -------
    float
        PD clamped to [0.001, 0.999].
    """
    logit = (
        coefficients.intercept
        + coefficients.score * profile.credit_score
        + coefficients.debt * profile.debt_to_equity
        + coefficients.liquidity * profile.current_ratio
        + coefficients.coverage * profile.interest_coverage
        + coefficients.industry * profile.industry_risk_score
    )
    # exp overflows past ~709; the clamp makes the exact tail irrelevant
    if logit < -700.0:
        return PD_FLOOR
    pd_raw = 1.0 / (1.0 + math.exp(-logit))
    return _clamp(pd_raw, PD_FLOOR, PD_CAP)


def loss_given_default(debt_to_equity: float, current_ratio: float) -> float:
    """
    Loss given default from leverage and liquidity.

    Returns
    -------
    float
        LGD clamped to [0.1, 0.9].
    """
    debt_adjustment = min(LGD_DEBT_CAP, debt_to_equity * LGD_DEBT_SENSITIVITY)
    liquidity_adjustment = max(LGD_LIQUIDITY_FLOOR, -current_ratio * LGD_LIQUIDITY_SENSITIVITY)
    return _clamp(BASE_LGD + debt_adjustment + liquidity_adjustment, LGD_FLOOR, LGD_CAP)


def credit_rating(pd: float) -> str:
    """
    Map a probability of default onto the letter-grade ladder.

    Lower PD never yields a worse grade.
    """
    if math.isnan(pd):
        raise DomainError("pd", pd, "must be a number")
    for threshold, grade in RATING_THRESHOLDS:
        if pd < threshold:
            return grade
    return WORST_RATING


def rating_rank(rating: str) -> int:
    """Position of a grade on the ladder (0 = AAA, best)."""
    try:
        return RATING_LADDER.index(rating)
    except ValueError:
        raise DomainError("rating", rating, f"must be one of {RATING_LADDER}") from None


def assess_credit_risk(
    profile: CreditProfile,
    coefficients: CreditModelCoefficients = DEFAULT_COEFFICIENTS,
) -> CreditRiskMetrics:
    """
    Full credit assessment of a single obligor.

    Parameters
    ----------
    profile : CreditProfile
        Firm ratios and exposure.
    coefficients : CreditModelCoefficients
        Scorecard weights.

    Returns
    -------
    CreditRiskMetrics
        PD, LGD, EAD, expected/unexpected loss, 99% credit VaR and rating.
    """
    pd = probability_of_default(profile, coefficients)
    lgd = loss_given_default(profile.debt_to_equity, profile.current_ratio)
    ead = profile.exposure_amount

    expected_loss = pd * lgd * ead
    unexpected_loss = math.sqrt(pd * (1.0 - pd)) * lgd * ead
    credit_var = inverse_normal_cdf(CREDIT_VAR_CONFIDENCE) * unexpected_loss + expected_loss
    rating = credit_rating(pd)

    logger.debug("Credit assessment: PD=%.4f LGD=%.4f rating=%s", pd, lgd, rating)

    return CreditRiskMetrics(
        probability_of_default=pd,
        loss_given_default=lgd,
        exposure_at_default=ead,
        expected_loss=expected_loss,
        unexpected_loss=unexpected_loss,
        credit_var=credit_var,
        credit_rating=rating,
    )
