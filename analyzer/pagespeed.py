import logging

import requests

from analyzer.errors import ProviderError
from analyzer.scoring import CategoryScores


PAGESPEED_API = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
CATEGORIES = ("PERFORMANCE", "SEO", "ACCESSIBILITY", "BEST_PRACTICES")

logger = logging.getLogger(__name__)


def fetch_category_scores(url: str, api_key: str, timeout: float = 60) -> CategoryScores:
    """Ask PageSpeed Insights for the four Lighthouse categories of ``url``.

    Raises ProviderError on any transport error, non-200 status or a body
    without ``lighthouseResult.categories``.
    """
    params = [("url", url), ("key", api_key)] + [("category", c) for c in CATEGORIES]
    logger.info("Calling PageSpeed API for %s", url)
    try:
        response = requests.get(PAGESPEED_API, params=params, timeout=timeout)
    except requests.exceptions.Timeout:
        raise ProviderError(f"PageSpeed timed out after {timeout}s for {url}")
    except requests.exceptions.RequestException as e:
        raise ProviderError(f"PageSpeed request failed for {url}: {e}")

    if response.status_code != 200:
        raise ProviderError(f"PageSpeed returned HTTP {response.status_code} for {url}: {response.text[:300]}")

    try:
        data = response.json()
    except ValueError:
        raise ProviderError(f"PageSpeed returned a non-JSON body for {url}")

    if not isinstance(data, dict):
        raise ProviderError(f"PageSpeed returned an unexpected body for {url}")
    lighthouse = data.get("lighthouseResult")
    categories = lighthouse.get("categories") if isinstance(lighthouse, dict) else None
    if not isinstance(categories, dict):
        raise ProviderError(f"PageSpeed response for {url} has no lighthouse categories")
    if any(not isinstance(entry, dict) for entry in categories.values()):
        raise ProviderError(f"PageSpeed response for {url} has malformed category entries")

    scores = CategoryScores.from_lighthouse(categories)
    logger.info("PageSpeed scores for %s: %s", url, scores.to_dict())
    return scores


def get_scores(url: str, api_key: str, timeout: float = 60) -> CategoryScores:
    """Like fetch_category_scores, but degrades to neutral scores on failure."""
    try:
        return fetch_category_scores(url, api_key, timeout=timeout)
    except ProviderError as e:
        logger.warning("PageSpeed failed, using neutral scores: %s", e)
        return CategoryScores.neutral()
