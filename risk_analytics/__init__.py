"""
Quantitative Risk-Analytics Engine
==================================
Pure computational core behind the portfolio risk dashboards:
- Statistical primitives (erf, normal CDF/PDF, inverse normal)
- Black-Scholes option pricing with Greeks
- Credit risk scoring (PD, LGD, expected/unexpected loss, credit VaR, rating)
- Deterministic macro stress-test catalog
- Parametric and Monte Carlo VaR with Expected Shortfall
- Risk-adjusted performance ratios and portfolio aggregation
"""

__version__ = "1.0.0"
