"""
Scoring engine for the Phishing Email Scorer.

Runs the indicator catalog over one email and produces a Verdict:
classification, confidence (0-99), severity tier, and a human-readable
explanation of which indicators fired.

Design: additive point scoring.
Each matched indicator adds its fixed weight exactly once; the email is
phishing once the total reaches PHISHING_THRESHOLD. Confidence and tier
are step functions of that total.

The engine is pure: no I/O, no shared mutable state, and it never raises
for string input. The one random component (confidence jitter in the top
band) comes from an injectable `rng` so tests can pin it.
"""

import logging
import random
from collections import namedtuple

from indicators import CATALOG, EmailText, match_indicators

logger = logging.getLogger(__name__)


PHISHING_THRESHOLD = 25

# Above this score a phishing verdict is escalated from High to Critical.
CRITICAL_THRESHOLD = 50

TIER_MINIMAL = "Minimal"
TIER_HIGH = "High"
TIER_CRITICAL = "Critical"

# The top confidence band adds 0-3 points of jitter and is capped at 99.
CONFIDENCE_CAP = 99
CONFIDENCE_FLOOR = 60

RECOMMEND_PHISHING = "Do not respond or click any links. Delete immediately and report to IT."
RECOMMEND_LEGITIMATE = "Email appears legitimate, but always verify sender identity for sensitive requests."

NO_INDICATORS = "No significant phishing indicators found"
FALLBACK_PATTERNS = "Multiple risk factors"


Verdict = namedtuple("Verdict", [
    "is_phishing",
    "score",
    "confidence",
    "tier",
    "matched_indicators",
    "recommendation",
    "risk_score",
    "summary",
])


def analyze(sender, subject, body, rng=None):
    """
    Score one email and return a fresh Verdict.

    Args:
        sender: raw From address (may be empty, which is itself scored)
        subject: subject line (may be empty)
        body: plain-text body; callers are expected to reject empty bodies
        rng: object with randint(a, b), e.g. random.Random(seed).
             Defaults to the module-level `random` generator.

    None for any field is treated as an empty string.
    """
    sender = sender or ""
    subject = subject or ""
    body = body or ""

    text = normalize(sender, subject, body)

    # ── All fields blank: nothing to score ──
    # The missing-sender rule would otherwise fire on an empty call.
    if not text.original.strip():
        return _build_verdict(0, [], rng)

    matches = match_indicators(text, CATALOG)
    score = sum(indicator.weight for indicator, _ in matches)
    labels = [label for _, label in matches]

    verdict = _build_verdict(score, labels, rng)
    logger.debug("Scored email: score=%d phishing=%s indicators=%s",
                 verdict.score, verdict.is_phishing, list(verdict.matched_indicators))
    return verdict


def normalize(sender, subject, body):
    """
    Build the text views every rule reads from.

    Each field is lower-cased on its own, then joined as
    body + " " + subject + " " + sender. The same join without
    lower-casing is kept for the capitalization ratio.
    """
    original = body + " " + subject + " " + sender
    normalized = body.lower() + " " + subject.lower() + " " + sender.lower()
    return EmailText(
        normalized=normalized,
        original=original,
        sender=sender.lower(),
        raw_sender=sender,
    )


def compute_confidence(score, rng=None):
    """Map a score to a confidence percentage (0-99)."""
    if score >= 60:
        rng = rng or random
        return min(95 + rng.randint(0, 3), CONFIDENCE_CAP)
    if score >= 40:
        return 85 + score // 5
    if score >= PHISHING_THRESHOLD:
        return 70 + score // 3
    return max(75 - score * 2, CONFIDENCE_FLOOR)


def map_tier(score):
    """Map a numeric score to a severity tier."""
    if score < PHISHING_THRESHOLD:
        return TIER_MINIMAL
    if score > CRITICAL_THRESHOLD:
        return TIER_CRITICAL
    return TIER_HIGH


def verdict_to_dict(verdict):
    """Serialize a Verdict to the JSON shape returned by the HTTP API."""
    return {
        "isPhishing": verdict.is_phishing,
        "score": verdict.score,
        "confidence": verdict.confidence,
        "tier": verdict.tier,
        "matchedIndicators": list(verdict.matched_indicators),
        "recommendation": verdict.recommendation,
        "riskScore": verdict.risk_score,
        "summary": verdict.summary,
    }


def _build_verdict(score, labels, rng):
    is_phishing = score >= PHISHING_THRESHOLD

    if is_phishing:
        risk_score = "{} points (High Risk)".format(score)
        summary = ", ".join(labels) if labels else FALLBACK_PATTERNS
        recommendation = RECOMMEND_PHISHING
    else:
        risk_score = "{} points (Low Risk)".format(score)
        if labels:
            summary = "Low-risk patterns detected: {}".format(", ".join(labels))
        else:
            summary = NO_INDICATORS
        recommendation = RECOMMEND_LEGITIMATE

    return Verdict(
        is_phishing=is_phishing,
        score=score,
        confidence=compute_confidence(score, rng),
        tier=map_tier(score),
        matched_indicators=tuple(labels),
        recommendation=recommendation,
        risk_score=risk_score,
        summary=summary,
    )
