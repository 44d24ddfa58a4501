"""
Analysis Engine Module

Portfolio analytics from holdings and price/factor data:
- Delta-adjusted exposure weights
- Daily returns and synthesized portfolio returns
- Statistics (cumulative return, volatility, Sharpe, Sortino, drawdown)
- Correlation matrices and Fama-French factor regressions
- Concentration, classification groups and scenario shocks
"""

__version__ = "0.1.0"
