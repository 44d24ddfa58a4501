"""
Portfolio concentration utilities.
Pure functions for HHI, top-N weight, classification group weights and shock proxies.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from analysis.calculations.exposure import Holding


class ConcentrationError(Exception):
    """Raised when concentration calculation fails."""
    pass


def herfindahl_index(weights: Iterable[float]) -> float:
    """
    Calculate the Herfindahl-Hirschman Index of a set of weights.

    HHI = sum(w_i^2)

    Args:
        weights: Fractions of total (usually summing to 1)

    Returns:
        HHI as decimal (1 = everything in one bucket)
    """
    return sum(w * w for w in weights)


def holding_concentration(holdings: List[Holding], top_n: int = 5) -> Dict[str, Any]:
    """
    Concentration of the book by raw market value.

    Weights here are market value over total market value, not the
    delta-adjusted exposure weights.

    Args:
        holdings: Valid holdings (see exposure.normalize_holdings)
        top_n: Number of largest positions to report

    Returns:
        Dictionary with total_market_value, hhi, top_weight, top_holdings,
        num_holdings

    Raises:
        ConcentrationError: If there are no holdings or total is not positive
    """
    if not holdings:
        raise ConcentrationError("No holdings provided")

    total = sum(h.market_value for h in holdings)
    if total <= 0:
        raise ConcentrationError("Total market value must be positive")

    ranked = sorted(holdings, key=lambda h: h.market_value, reverse=True)[:top_n]

    return {
        'total_market_value': total,
        'hhi': herfindahl_index(h.market_value / total for h in holdings),
        'top_weight': sum(h.market_value for h in ranked) / total,
        'top_holdings': [
            {'ticker': h.ticker, 'weight': h.market_value / total} for h in ranked
        ],
        'num_holdings': len(holdings),
    }


def group_weights(
    classified: List[Dict[str, Any]],
    key: str,
    total: float
) -> Dict[str, float]:
    """
    Sum market-value weights by a classification field.

    Args:
        classified: Rows with 'market_value' and the classification fields
        key: Field to group by ('sector', 'region' or 'factor')
        total: Total market value used as denominator

    Returns:
        {group: weight}, groups in first-seen order
    """
    if total <= 0:
        raise ConcentrationError("Total market value must be positive")

    out: Dict[str, float] = {}
    for row in classified:
        group = row.get(key) or 'Unknown'
        out[group] = out.get(group, 0.0) + row['market_value'] / total
    return out


def scenario_shocks(
    weights: Mapping[str, float],
    shocks: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    Rough first-order impact of single-factor price shocks.

    impact = move * sum(weight of listed tickers). When none of the listed
    tickers are held the shock's default_weight (0 unless configured) is used.

    Args:
        weights: Exposure weights by effective ticker
        shocks: [{'name', 'move', 'tickers', 'default_weight'?}, ...]

    Returns:
        List of {'name', 'move', 'exposure', 'impact'}
    """
    results = []
    for shock in shocks:
        exposure = sum(weights.get(t, 0.0) for t in shock.get('tickers', []))
        if not exposure:
            exposure = float(shock.get('default_weight', 0.0))
        move = float(shock['move'])
        results.append({
            'name': shock['name'],
            'move': move,
            'exposure': exposure,
            'impact': move * exposure,
        })
    return results


def concentration_interpretation(hhi: Optional[float]) -> str:
    """
    Provide interpretation of HHI value.

    Args:
        hhi: Herfindahl-Hirschman Index value

    Returns:
        String interpretation of concentration level
    """
    if hhi is None:
        return "No data"
    elif hhi < 0.15:
        return "Low concentration (diversified)"
    elif hhi < 0.25:
        return "Moderate concentration"
    else:
        return "High concentration"
