"""
Cloud Function entry point for the Phishing Email Scorer.

Receives sender, subject, and body from a frontend, runs them through
the scoring engine, and returns the verdict with the list of indicators
that fired.
"""

import os
import json
import logging

import functions_framework

from scoring import analyze, verdict_to_dict

# Shared secret for request authentication.
# Stored as env var in Cloud Function config, never hardcoded.
API_SECRET = os.environ.get("API_SECRET", "dev-secret-key")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

EMAIL_FIELDS = ("sender", "subject", "body")

DEFAULT_SENDER = "unknown@example.com"
DEFAULT_SUBJECT = "No subject"


@functions_framework.http
def analyze_email(request):
    """
    HTTP entry point. Expects a POST with a JSON body:
        {"sender": str, "subject": str, "body": str}

    Returns JSON with the verdict, confidence, tier, and matched indicators.
    """

    # ── CORS preflight ──
    if request.method == "OPTIONS":
        return ("", 204, {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "POST",
            "Access-Control-Allow-Headers": "Content-Type, X-API-Key",
            "Access-Control-Max-Age": "3600"
        })

    cors_headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": "*"
    }

    # ── Auth check ──
    api_key = request.headers.get("X-API-Key", "")
    if api_key != API_SECRET:
        logger.warning("Rejected request with missing or invalid API key")
        return (json.dumps({"error": "unauthorized"}), 401, cors_headers)

    # ── Parse request ──
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        logger.warning("Rejected request with invalid JSON body")
        return (json.dumps({"error": "invalid JSON body"}), 400, cors_headers)

    fields = {}
    for name in EMAIL_FIELDS:
        value = data.get(name)
        if value is not None and not isinstance(value, str):
            logger.warning("Rejected request: field %r is %s", name, type(value).__name__)
            return (json.dumps({"error": "fields must be strings"}), 400, cors_headers)
        fields[name] = value or ""

    # The engine expects a body, same rule the frontend's Analyze button enforces
    if not fields["body"].strip():
        return (json.dumps({"error": "missing required email data"}), 400, cors_headers)

    # ── Score and verdict ──
    verdict = analyze(fields["sender"], fields["subject"], fields["body"])
    logger.info("Analyzed email: score=%d tier=%s phishing=%s",
                verdict.score, verdict.tier, verdict.is_phishing)

    response = verdict_to_dict(verdict)
    response["sender"] = fields["sender"] or DEFAULT_SENDER
    response["subject"] = fields["subject"] or DEFAULT_SUBJECT

    return (json.dumps(response), 200, cors_headers)
