import json
import logging

from google import genai
from google.genai import types

from analyzer.errors import ProviderError


RECOMMENDATION_COUNT = 6
THRESHOLD = 70
PRIORITIES = ("High", "Medium", "Low")

logger = logging.getLogger(__name__)


RECOMMENDATION_PROMPT = """
Analyze this website and give {{COUNT}} actionable recommendations.

URL: {{URL}}
Performance: {{PERFORMANCE}}
SEO: {{SEO}}
Mobile: {{MOBILE}}
Accessibility: {{ACCESSIBILITY}}

Return ONLY valid JSON array with exactly {{COUNT}} recommendations:
[
 { "title":"Recommendation Title", "description":"Detailed description", "priority":"High", "impact":"Expected impact" }
]

Priority must be one of High, Medium or Low.
Do not include any markdown formatting or code blocks, just the JSON array.
"""


# (score attribute, recommendation) pairs; a rule fires when the score is below THRESHOLD.
SCORE_RULES = [
    ("performance", {
        "title": "Optimize Images",
        "description": "Compress images, use WebP format, and implement lazy loading to reduce page load time.",
        "priority": "High",
        "impact": "2-5s faster load time",
    }),
    ("seo", {
        "title": "Fix Meta Tags",
        "description": "Add proper title tags, meta descriptions, and Open Graph tags for better search visibility.",
        "priority": "High",
        "impact": "Better search rankings",
    }),
    ("mobile", {
        "title": "Mobile Optimization",
        "description": "Fix responsive layout issues and adjust font sizes for better mobile user experience.",
        "priority": "High",
        "impact": "Better mobile UX",
    }),
    ("accessibility", {
        "title": "Improve Accessibility",
        "description": "Add alt text to images, improve color contrast, and add ARIA labels for screen readers.",
        "priority": "Medium",
        "impact": "Wider audience reach",
    }),
]

ALWAYS_RECOMMENDED = [
    {
        "title": "Enable HTTPS",
        "description": "Install SSL certificate to secure your website and improve trust with visitors.",
        "priority": "High",
        "impact": "Trust + SEO boost",
    },
    {
        "title": "Minify CSS and JavaScript",
        "description": "Reduce file sizes by removing unnecessary characters and whitespace from code.",
        "priority": "Medium",
        "impact": "Faster page loads",
    },
]

GENERIC_RECOMMENDATIONS = [
    {
        "title": "Leverage Browser Caching",
        "description": "Set long cache lifetimes for static assets so repeat visitors load pages from their browser cache.",
        "priority": "Medium",
        "impact": "Faster repeat visits",
    },
    {
        "title": "Add Structured Data",
        "description": "Describe your business, products and articles with schema.org markup so search engines can show rich results.",
        "priority": "Low",
        "impact": "Richer search listings",
    },
    {
        "title": "Improve Core Web Vitals",
        "description": "Reserve space for images and embeds, defer non-critical scripts and preload the hero image to stabilise LCP and CLS.",
        "priority": "Medium",
        "impact": "Smoother page experience",
    },
    {
        "title": "Strengthen Calls to Action",
        "description": "Use one clear, benefit-driven primary call to action above the fold and repeat it after key sections.",
        "priority": "Low",
        "impact": "More enquiries",
    },
]


def build_prompt(url: str, scores) -> str:
    replacements = {
        "{{COUNT}}": str(RECOMMENDATION_COUNT),
        "{{URL}}": url,
        "{{PERFORMANCE}}": str(scores.performance),
        "{{SEO}}": str(scores.seo),
        "{{MOBILE}}": str(scores.mobile),
        "{{ACCESSIBILITY}}": str(scores.accessibility),
    }
    prompt = RECOMMENDATION_PROMPT
    for placeholder, value in replacements.items():
        prompt = prompt.replace(placeholder, value)
    return prompt


def extract_json_array(text: str):
    """Return the outermost ``[...]`` substring of ``text``, or None."""
    content = (text or "").strip()
    start = content.find("[")
    end = content.rfind("]")
    if start == -1 or end == -1 or end < start:
        return None
    return content[start:end + 1]


def parse_recommendations(text: str) -> list:
    extracted = extract_json_array(text)
    if extracted is None:
        raise ProviderError("No JSON array found in model response")
    try:
        parsed = json.loads(extracted)
    except json.JSONDecodeError as e:
        raise ProviderError(f"Model response is not valid JSON: {e}")
    if not isinstance(parsed, list):
        raise ProviderError("Model response is not a JSON array")
    items = [_coerce(item) for item in parsed if isinstance(item, dict)]
    items = [item for item in items if item["title"]]
    if not items:
        raise ProviderError("Model returned an empty recommendation list")
    return items


def _coerce(item: dict) -> dict:
    priority = str(item.get("priority") or "").strip().capitalize()
    if priority not in PRIORITIES:
        priority = "Medium"
    return {
        "title": str(item.get("title") or "").strip(),
        "description": str(item.get("description") or "").strip(),
        "priority": priority,
        "impact": str(item.get("impact") or "").strip(),
    }


def rule_recommendations(scores) -> list:
    """Every rule that applies to ``scores``, plus the always-on items."""
    items = [dict(rec) for attr, rec in SCORE_RULES if getattr(scores, attr) < THRESHOLD]
    items.extend(dict(rec) for rec in ALWAYS_RECOMMENDED)
    return items


def fallback_recommendations(scores) -> list:
    return _pad(rule_recommendations(scores), GENERIC_RECOMMENDATIONS)


def normalize_recommendations(items: list, scores) -> list:
    """Truncate or pad ``items`` to exactly RECOMMENDATION_COUNT entries."""
    items = list(items)[:RECOMMENDATION_COUNT]
    return _pad(items, rule_recommendations(scores) + GENERIC_RECOMMENDATIONS)


def _pad(items: list, candidates: list) -> list:
    result = list(items)[:RECOMMENDATION_COUNT]
    seen = {item["title"].lower() for item in result}
    for candidate in candidates:
        if len(result) >= RECOMMENDATION_COUNT:
            break
        if candidate["title"].lower() in seen:
            continue
        result.append(dict(candidate))
        seen.add(candidate["title"].lower())
    return result


def call_gemini(prompt: str, api_key: str, model: str, timeout: float = 30) -> str:
    client = genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout * 1000)),
    )
    try:
        response = client.models.generate_content(model=model, contents=prompt)
    except Exception as e:
        raise ProviderError(f"Gemini call failed: {e}")
    text = getattr(response, "text", None)
    if not text:
        raise ProviderError("Gemini returned an empty response")
    return text


def generate_recommendations(url: str, scores, api_key: str, model: str, timeout: float = 30) -> list:
    """Six recommendations for ``url``; falls back to the rule table on any failure."""
    try:
        logger.info("Calling Gemini (%s) for recommendations", model)
        raw = call_gemini(build_prompt(url, scores), api_key, model, timeout=timeout)
        items = parse_recommendations(raw)
        logger.info("Gemini recommendations parsed: %d", len(items))
        return normalize_recommendations(items, scores)
    except Exception as e:
        logger.warning("Gemini recommendations unavailable, using fallback: %s", e)
        return fallback_recommendations(scores)
