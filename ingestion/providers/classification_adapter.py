"""
Yahoo spark adapter - coarse region/sector classification from quote metadata.
Network IO allowed here; classification rules are kept deliberately simple.
"""

import logging
import os
import re
from typing import Any, Dict, List

import requests
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

SPARK_URL = 'https://query1.finance.yahoo.com/v7/finance/spark'

# Exchange name fragments -> region
EXCHANGE_REGIONS = [
    (('nasdaq', 'nyse', 'arca', 'amex'), 'US'),
    (('toronto', 'tsx'), 'Canada'),
    (('sao paulo', 'bovespa'), 'LatAm'),
    (('london',), 'Europe'),
    (('hong kong', 'tokyo', 'shanghai', 'shenzhen'), 'Asia'),
]


class ClassificationError(Exception):
    """Raised when classification lookup fails."""
    pass


def infer_region(meta: Dict[str, Any], ticker: str) -> str:
    """
    Infer listing region from spark metadata.

    Five-letter symbols ending in Y are treated as OTC ADRs (ex-US).
    """
    name = str(meta.get('exchangeName') or meta.get('fullExchangeName') or '').lower()
    market = str(meta.get('market') or '').lower()

    if market == 'us_market':
        return 'US'
    for fragments, region in EXCHANGE_REGIONS:
        if any(fragment in name for fragment in fragments):
            return region

    if re.fullmatch(r'[A-Z]{5}', ticker) and ticker.endswith('Y'):
        return 'ex-US'
    return 'Unknown'


def classify_from_meta(ticker: str, meta: Dict[str, Any]) -> Dict[str, str]:
    """Build a classification row from one symbol's spark metadata."""
    is_etf = str(meta.get('instrumentType') or '').upper() == 'ETF'
    return {
        'region': infer_region(meta, ticker),
        'sector': 'ETF' if is_etf else 'Unknown',
        'factor': 'Beta/Index Exposure' if is_etf else 'Unassigned',
        'source': 'yahoo_spark',
    }


def fetch_spark_classifications(tickers: List[str]) -> Dict[str, Any]:
    """
    Classify tickers from a single Yahoo spark request.

    Args:
        tickers: Uppercase ticker symbols

    Returns:
        Dictionary with:
        - classifications: {ticker: {'region', 'sector', 'factor', 'source'}}
        - failures: messages for tickers missing from the response

    Raises:
        ClassificationError: If the request fails
    """
    if not tickers:
        return {'classifications': {}, 'failures': []}

    timeout = int(os.getenv('REQUESTS_TIMEOUT_S', '30'))

    try:
        response = requests.get(
            SPARK_URL,
            params={'symbols': ','.join(tickers), 'range': '5d', 'interval': '1d'},
            headers={
                'Accept': 'application/json,text/plain,*/*',
                'User-Agent': 'Mozilla/5.0 (compatible; portfolio-factor-workbench/1.0)',
            },
            timeout=timeout
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Spark classification request failed: {e}")
        raise ClassificationError(f"spark request failed: {e}") from e

    results = (payload.get('spark') or {}).get('result') or []

    classifications = {}
    for row in results:
        symbol = str(row.get('symbol') or '').upper()
        if not symbol:
            continue
        responses = row.get('response') or [{}]
        meta = responses[0].get('meta') or {}
        classifications[symbol] = classify_from_meta(symbol, meta)

    failures = [f"{t}: missing spark row" for t in tickers if t not in classifications]
    logger.info(f"Classified {len(classifications)} of {len(tickers)} tickers via spark")

    return {'classifications': classifications, 'failures': failures}
