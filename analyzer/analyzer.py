import logging
from datetime import datetime, timezone
from urllib.parse import urlparse

from analyzer.pagespeed import get_scores
from analyzer.recommendations import (
    PRIORITIES,
    GENERIC_RECOMMENDATIONS,
    generate_recommendations,
    rule_recommendations,
)
from analyzer.scoring import CategoryScores


logger = logging.getLogger(__name__)


def is_valid_url(url) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def analyze(url, email, name, settings) -> dict:
    """Score ``url`` and attach six recommendations.

    Calls are sequential: PageSpeed first, then Gemini with the scores.
    Provider failures are absorbed into neutral scores and rule-based
    recommendations; only unexpected errors propagate.
    """
    scores = get_scores(url, settings.pagespeed_api_key, timeout=settings.pagespeed_timeout)
    recommendations = generate_recommendations(
        url,
        scores,
        settings.gemini_api_key,
        settings.gemini_model,
        timeout=settings.gemini_timeout,
    )
    return {
        "url": url,
        "email": email,
        "name": name or "User",
        "timestamp": _now_iso(),
        "overallScore": scores.overall,
        "performance": scores.performance,
        "seo": scores.seo,
        "mobile": scores.mobile,
        "accessibility": scores.accessibility,
        "recommendations": recommendations,
    }


def build_detailed_report(url, settings) -> dict:
    if settings.pagespeed_api_key:
        scores = get_scores(url, settings.pagespeed_api_key, timeout=settings.pagespeed_timeout)
    else:
        logger.warning("PAGESPEED_API_KEY missing, detailed report uses neutral scores")
        scores = CategoryScores.neutral()

    detailed = rule_recommendations(scores)
    titles = {rec["title"] for rec in detailed}
    detailed.extend(dict(rec) for rec in GENERIC_RECOMMENDATIONS if rec["title"] not in titles)

    priority_matrix = {priority: [] for priority in PRIORITIES}
    for rec in detailed:
        priority_matrix[rec["priority"]].append(rec["title"])

    action_plan = []
    for priority in PRIORITIES:
        for rec in detailed:
            if rec["priority"] == priority:
                action_plan.append({
                    "step": len(action_plan) + 1,
                    "title": rec["title"],
                    "priority": priority,
                    "impact": rec["impact"],
                })

    return {
        "url": url,
        "generatedAt": _now_iso(),
        "scores": scores.to_dict(),
        "detailedRecommendations": detailed,
        "competitorAnalysis": {},
        "actionPlan": action_plan,
        "priorityMatrix": priority_matrix,
    }
