"""
Kenneth French data library adapter - daily Fama-French 5 factors and momentum.
Downloads the zipped CSV files and returns their text; parsing happens in transforms.
"""

import io
import logging
import os
import zipfile

import requests
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://mba.tuck.dartmouth.edu/pages/faculty/ken.french/ftp'
FIVE_FACTORS_DAILY = 'F-F_Research_Data_5_Factors_2x3_daily_CSV.zip'
MOMENTUM_DAILY = 'F-F_Momentum_Factor_daily_CSV.zip'


class FrenchFactorsError(Exception):
    """Raised when a French data library download fails."""
    pass


def fetch_french_csv(filename: str) -> str:
    """
    Download one zipped CSV from the French data library.

    Args:
        filename: Zip file name under the library's ftp directory

    Returns:
        Text of the first file inside the archive

    Raises:
        FrenchFactorsError: If the download or unzip fails
    """
    base_url = os.getenv('FRENCH_DATA_BASE_URL', DEFAULT_BASE_URL).rstrip('/')
    timeout = int(os.getenv('REQUESTS_TIMEOUT_S', '30'))
    url = f"{base_url}/{filename}"

    try:
        response = requests.get(
            url,
            headers={'User-Agent': 'portfolio-factor-workbench/1.0'},
            timeout=timeout
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"French data library request failed for {filename}: {e}")
        raise FrenchFactorsError(f"Failed to download {filename}: {e}") from e

    try:
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            names = archive.namelist()
            if not names:
                raise FrenchFactorsError(f"Empty archive: {filename}")
            text = archive.read(names[0]).decode('utf-8', errors='replace')
    except zipfile.BadZipFile as e:
        raise FrenchFactorsError(f"Invalid zip file: {filename}") from e

    logger.info(f"Downloaded {filename} ({len(text)} chars)")
    return text


def fetch_five_factors_csv() -> str:
    """Daily Fama-French 5-factor (2x3) file, values in percent."""
    return fetch_french_csv(FIVE_FACTORS_DAILY)


def fetch_momentum_csv() -> str:
    """Daily momentum factor file, values in percent."""
    return fetch_french_csv(MOMENTUM_DAILY)
