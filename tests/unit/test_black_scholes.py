"""
Tests for Black-Scholes pricing and Greeks.
"""

import math

import numpy as np
import pytest
from scipy import stats

from risk_analytics.black_scholes import (
    call_greeks,
    call_price,
    d1,
    d2,
    generate_risk_surface,
    price_option,
    price_option_params,
    put_greeks,
    put_price,
)
from risk_analytics.exceptions import DomainError
from risk_analytics.types import OptionParameters

CASES = [
    (175.0, 180.0, 0.25, 0.05, 0.25, 0.02),
    (100.0, 100.0, 1.0, 0.05, 0.20, 0.0),
    (50.0, 40.0, 0.5, 0.01, 0.35, 0.03),
    (250.0, 300.0, 2.0, 0.04, 0.15, 0.01),
    (10.0, 12.0, 0.05, 0.0, 0.6, 0.0),
]


def reference_prices(S, K, T, r, sigma, q):
    d_1 = (math.log(S / K) + (r - q + 0.5 * sigma ** 2) * T) / (sigma * math.sqrt(T))
    d_2 = d_1 - sigma * math.sqrt(T)
    call = S * math.exp(-q * T) * stats.norm.cdf(d_1) - K * math.exp(-r * T) * stats.norm.cdf(d_2)
    put = K * math.exp(-r * T) * stats.norm.cdf(-d_2) - S * math.exp(-q * T) * stats.norm.cdf(-d_1)
    return call, put, d_1, d_2


class TestPricing:

    def test_reference_example(self):
        result = price_option(175.0, 180.0, 0.25, 0.05, 0.25, 0.02)
        assert result.call_price == pytest.approx(7.07, abs=0.02)
        assert result.put_price == pytest.approx(10.71, abs=0.02)
        assert result.greeks.delta == pytest.approx(0.457, abs=0.005)

    def test_at_the_money_textbook_value(self):
        assert call_price(100, 100, 1.0, 0.05, 0.20) == pytest.approx(10.4506, abs=1e-3)

    @pytest.mark.parametrize("S,K,T,r,sigma,q", CASES)
    def test_matches_scipy_closed_form(self, S, K, T, r, sigma, q):
        call, put, _, _ = reference_prices(S, K, T, r, sigma, q)
        assert call_price(S, K, T, r, sigma, q) == pytest.approx(call, abs=1e-4)
        assert put_price(S, K, T, r, sigma, q) == pytest.approx(put, abs=1e-4)

    @pytest.mark.parametrize("S,K,T,r,sigma,q", CASES)
    def test_put_call_parity(self, S, K, T, r, sigma, q):
        result = price_option(S, K, T, r, sigma, q)
        forward_gap = S * math.exp(-q * T) - K * math.exp(-r * T)
        assert result.call_price - result.put_price == pytest.approx(forward_gap, abs=1e-8)

    @pytest.mark.parametrize("S,K,T,r,sigma,q", CASES)
    def test_d1_d2(self, S, K, T, r, sigma, q):
        _, _, d_1, d_2 = reference_prices(S, K, T, r, sigma, q)
        assert d1(S, K, T, r, sigma, q) == pytest.approx(d_1, rel=1e-12)
        assert d2(S, K, T, r, sigma, q) == pytest.approx(d_2, rel=1e-12, abs=1e-12)

    def test_prices_non_negative(self):
        deep_otm = price_option(10.0, 100.0, 0.1, 0.01, 0.1)
        assert deep_otm.call_price >= -1e-12
        assert deep_otm.put_price > 0

    def test_params_record_matches_positional_call(self):
        params = OptionParameters(175.0, 180.0, 0.25, 0.05, 0.25, 0.02)
        assert price_option_params(params) == price_option(175.0, 180.0, 0.25, 0.05, 0.25, 0.02)

    def test_to_dict_nests_greeks(self):
        data = price_option(100, 100, 1.0, 0.05, 0.2).to_dict()
        assert set(data) == {"call_price", "put_price", "greeks"}
        assert set(data["greeks"]) == {"delta", "gamma", "theta", "vega", "rho"}


class TestGreeks:

    @pytest.mark.parametrize("S,K,T,r,sigma,q", CASES)
    def test_call_greeks_match_reference(self, S, K, T, r, sigma, q):
        _, _, d_1, d_2 = reference_prices(S, K, T, r, sigma, q)
        g = call_greeks(S, K, T, r, sigma, q)
        disc_q = math.exp(-q * T)
        disc_r = math.exp(-r * T)
        pdf = stats.norm.pdf(d_1)

        assert g.delta == pytest.approx(disc_q * stats.norm.cdf(d_1), abs=1e-6)
        assert g.gamma == pytest.approx(disc_q * pdf / (S * sigma * math.sqrt(T)), rel=1e-9)
        assert g.vega == pytest.approx(S * disc_q * pdf * math.sqrt(T) / 100, rel=1e-9)
        assert g.rho == pytest.approx(K * T * disc_r * stats.norm.cdf(d_2) / 100, abs=1e-5)
        expected_theta = (
            -S * pdf * sigma * disc_q / (2 * math.sqrt(T))
            - r * K * disc_r * stats.norm.cdf(d_2)
            + q * S * disc_q * stats.norm.cdf(d_1)
        ) / 365
        assert g.theta == pytest.approx(expected_theta, abs=1e-6)

    @pytest.mark.parametrize("S,K,T,r,sigma,q", CASES)
    def test_put_shares_gamma_and_vega(self, S, K, T, r, sigma, q):
        call = call_greeks(S, K, T, r, sigma, q)
        put = put_greeks(S, K, T, r, sigma, q)
        assert put.gamma == call.gamma
        assert put.vega == call.vega

    @pytest.mark.parametrize("S,K,T,r,sigma,q", CASES)
    def test_delta_bounds(self, S, K, T, r, sigma, q):
        assert 0.0 <= call_greeks(S, K, T, r, sigma, q).delta <= 1.0
        assert -1.0 <= put_greeks(S, K, T, r, sigma, q).delta <= 0.0

    def test_put_delta_parity(self):
        S, K, T, r, sigma, q = CASES[0]
        call = call_greeks(S, K, T, r, sigma, q)
        put = put_greeks(S, K, T, r, sigma, q)
        assert call.delta - put.delta == pytest.approx(math.exp(-q * T), abs=1e-12)

    def test_result_greeks_are_call_convention(self):
        result = price_option(*CASES[0])
        assert result.greeks == call_greeks(*CASES[0])


class TestDomain:

    @pytest.mark.parametrize(
        "args",
        [
            (100, 100, 0.0, 0.05, 0.2),
            (100, 100, -1.0, 0.05, 0.2),
            (100, 100, 1.0, 0.05, 0.0),
            (100, 100, 1.0, 0.05, -0.2),
            (0.0, 100, 1.0, 0.05, 0.2),
            (100, -5.0, 1.0, 0.05, 0.2),
            (float("nan"), 100, 1.0, 0.05, 0.2),
            (100, 100, float("inf"), 0.05, 0.2),
        ],
    )
    def test_invalid_inputs_raise(self, args):
        with pytest.raises(DomainError):
            price_option(*args)

    def test_error_names_parameter(self):
        with pytest.raises(DomainError) as excinfo:
            price_option(100, 100, 1.0, 0.05, 0.0)
        assert excinfo.value.parameter == "volatility"


class TestRiskSurface:

    def test_default_grid(self):
        surface = generate_risk_surface(100.0)
        assert surface.values.shape == (21, 21)
        np.testing.assert_allclose(surface.strikes[[0, 10, -1]], [80.0, 100.0, 120.0])
        np.testing.assert_allclose(surface.expiries[[0, 1, -1]], [0.1, 0.195, 2.0])
        assert surface.values[10, 20] == pytest.approx(call_price(100.0, 100.0, 2.0, 0.05, 0.25))

    def test_call_surface_shape(self):
        values = generate_risk_surface(100.0).values
        # calls lose value with strike and gain value with time
        assert np.all(np.diff(values, axis=0) < 0)
        assert np.all(np.diff(values, axis=1) > 0)

    def test_put_surface(self):
        surface = generate_risk_surface(50.0, "put", r=0.02, sigma=0.3, strikes=[45.0, 55.0],
                                        expiries=[0.5])
        assert surface.values.shape == (2, 1)
        assert surface.values[1, 0] == pytest.approx(put_price(50.0, 55.0, 0.5, 0.02, 0.3))

    def test_to_dict(self):
        data = generate_risk_surface(100.0, strikes=[100.0], expiries=[1.0]).to_dict()
        assert data["option_type"] == "call"
        assert data["values"] == [[pytest.approx(call_price(100.0, 100.0, 1.0, 0.05, 0.25))]]

    def test_invalid_option_type(self):
        with pytest.raises(DomainError):
            generate_risk_surface(100.0, "straddle")
