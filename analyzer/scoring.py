import math
from dataclasses import dataclass, asdict


NEUTRAL_SCORE = 50


def round_half_up(value) -> int:
    # Python's round() is banker's rounding; scores use half-up.
    return int(math.floor(float(value) + 0.5))


def to_percent(fraction) -> int:
    """Convert a 0..1 Lighthouse category score to a 0..100 integer."""
    try:
        value = float(fraction or 0)
    except (TypeError, ValueError):
        value = 0.0
    return max(0, min(100, round_half_up(value * 100)))


def derive_mobile(performance: int, best_practices: int) -> int:
    # Approximation: PageSpeed has no separate mobile category in this flow.
    return round_half_up((performance + best_practices) / 2)


def overall_score(performance: int, seo: int, accessibility: int, mobile: int) -> int:
    return round_half_up((performance + seo + accessibility + mobile) / 4)


@dataclass
class CategoryScores:
    performance: int
    seo: int
    accessibility: int
    best_practices: int
    mobile: int

    @property
    def overall(self) -> int:
        return overall_score(self.performance, self.seo, self.accessibility, self.mobile)

    @classmethod
    def from_lighthouse(cls, categories: dict) -> "CategoryScores":
        categories = categories or {}

        def score(key):
            entry = categories.get(key)
            # A non-object category entry counts as missing.
            return to_percent(entry.get("score") if isinstance(entry, dict) else None)

        performance = score("performance")
        best_practices = score("best-practices")
        return cls(
            performance=performance,
            seo=score("seo"),
            accessibility=score("accessibility"),
            best_practices=best_practices,
            mobile=derive_mobile(performance, best_practices),
        )

    @classmethod
    def neutral(cls) -> "CategoryScores":
        return cls(
            performance=NEUTRAL_SCORE,
            seo=NEUTRAL_SCORE,
            accessibility=NEUTRAL_SCORE,
            best_practices=NEUTRAL_SCORE,
            mobile=NEUTRAL_SCORE,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["overall"] = self.overall
        return data
