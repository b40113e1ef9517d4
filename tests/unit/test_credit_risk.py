"""
Tests for the credit scorecard, LGD model and rating ladder.
"""

import math

import pytest

from risk_analytics.credit_risk import (
    PD_CAP,
    PD_FLOOR,
    RATING_LADDER,
    CreditModelCoefficients,
    assess_credit_risk,
    credit_rating,
    loss_given_default,
    probability_of_default,
    rating_rank,
)
from risk_analytics.distributions import inverse_normal_cdf
from risk_analytics.exceptions import DomainError
from risk_analytics.types import CreditProfile


def make_profile(**overrides):
    values = dict(
        credit_score=700,
        debt_to_equity=1.0,
        current_ratio=1.5,
        interest_coverage=5.0,
        industry_risk_score=5.0,
        exposure_amount=1_000_000,
    )
    values.update(overrides)
    return CreditProfile(**values)


class TestAssessCreditRisk:

    def test_investment_grade_example(self, credit_profile):
        metrics = assess_credit_risk(credit_profile)
        assert metrics.probability_of_default < 0.05
        assert metrics.probability_of_default == pytest.approx(0.0338, abs=5e-4)
        assert metrics.credit_rating == "A"
        assert rating_rank("A-") >= rating_rank(metrics.credit_rating) >= rating_rank("A+")

    def test_expected_loss_identity(self, credit_profile):
        m = assess_credit_risk(credit_profile)
        assert m.expected_loss == pytest.approx(
            m.probability_of_default * m.loss_given_default * m.exposure_at_default
        )

    def test_unexpected_loss_and_credit_var(self, credit_profile):
        m = assess_credit_risk(credit_profile)
        pd_ = m.probability_of_default
        expected_ul = math.sqrt(pd_ * (1 - pd_)) * m.loss_given_default * m.exposure_at_default
        assert m.unexpected_loss == pytest.approx(expected_ul)
        assert m.credit_var == pytest.approx(inverse_normal_cdf(0.99) * expected_ul + m.expected_loss)
        assert m.credit_var > m.expected_loss

    def test_exposure_passes_through(self, credit_profile):
        assert assess_credit_risk(credit_profile).exposure_at_default == 300_000

    def test_zero_exposure_gives_zero_losses(self):
        m = assess_credit_risk(make_profile(exposure_amount=0.0))
        assert m.expected_loss == 0.0
        assert m.unexpected_loss == 0.0
        assert m.credit_var == 0.0

    def test_custom_coefficients(self, credit_profile):
        harsher = CreditModelCoefficients(intercept=1.0)
        assert (
            assess_credit_risk(credit_profile, harsher).probability_of_default
            > assess_credit_risk(credit_profile).probability_of_default
        )

    def test_to_dict(self, credit_profile):
        data = assess_credit_risk(credit_profile).to_dict()
        assert data["credit_rating"] == "A"
        assert "credit_var" in data


class TestProbabilityOfDefault:

    def test_floor(self):
        assert probability_of_default(make_profile(credit_score=1e6)) == PD_FLOOR

    def test_cap(self):
        assert probability_of_default(make_profile(credit_score=-1e6)) == PD_CAP

    def test_within_bounds(self):
        for score in range(300, 900, 50):
            pd_ = probability_of_default(make_profile(credit_score=score))
            assert PD_FLOOR <= pd_ <= PD_CAP

    def test_higher_score_lowers_pd(self):
        assert probability_of_default(make_profile(credit_score=800)) < probability_of_default(
            make_profile(credit_score=600)
        )

    def test_more_leverage_raises_pd(self):
        assert probability_of_default(make_profile(debt_to_equity=3.0)) > probability_of_default(
            make_profile(debt_to_equity=0.5)
        )


class TestLossGivenDefault:

    def test_example_value(self):
        # 0.45 + 0.05 - 0.105
        assert loss_given_default(0.5, 2.1) == pytest.approx(0.395)

    def test_debt_adjustment_capped(self):
        assert loss_given_default(100.0, 0.0) == pytest.approx(0.75)

    def test_liquidity_adjustment_floored(self):
        assert loss_given_default(0.0, 100.0) == pytest.approx(0.25)

    def test_clamped_to_lower_bound(self):
        assert loss_given_default(-10.0, 10.0) == 0.1

    def test_within_bounds(self):
        for de in (-5.0, 0.0, 0.5, 2.0, 10.0):
            for cr in (-10.0, 0.0, 1.0, 5.0):
                assert 0.1 <= loss_given_default(de, cr) <= 0.9


class TestRating:

    @pytest.mark.parametrize(
        "pd_,grade",
        [
            (0.0005, "AAA"),
            (0.001, "AA+"),
            (0.003, "AA"),
            (0.007, "AA-"),
            (0.015, "A+"),
            (0.03, "A"),
            (0.07, "A-"),
            (0.12, "BBB+"),
            (0.2, "BBB"),
            (0.3, "BBB-"),
            (0.5, "BB+"),
            (0.7, "BB"),
            (0.9, "B"),
        ],
    )
    def test_thresholds(self, pd_, grade):
        assert credit_rating(pd_) == grade

    def test_monotone_in_pd(self):
        pds = [i / 1000 for i in range(1, 1000)]
        ranks = [rating_rank(credit_rating(p)) for p in pds]
        assert all(b >= a for a, b in zip(ranks, ranks[1:]))

    def test_ladder_has_thirteen_grades(self):
        assert len(RATING_LADDER) == 13
        assert RATING_LADDER[0] == "AAA"
        assert RATING_LADDER[-1] == "B"

    def test_nan_raises(self):
        with pytest.raises(DomainError):
            credit_rating(float("nan"))

    def test_unknown_grade_raises(self):
        with pytest.raises(DomainError):
            rating_rank("ZZZ")


class TestCreditProfileValidation:

    def test_negative_exposure(self):
        with pytest.raises(DomainError):
            make_profile(exposure_amount=-1.0)

    def test_non_finite_input(self):
        with pytest.raises(DomainError):
            make_profile(credit_score=float("nan"))
