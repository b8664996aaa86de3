"""
Indicator catalog for the Phishing Email Scorer.

Every detection rule is a declarative Indicator record:

    Indicator(name, category, weight, test, describe)

`test` receives an EmailText and returns True when the rule fires.
`describe` is optional; when present it builds the reported label from the
input (used by the combined domain-pattern rule), otherwise `name` is
reported as-is.

The catalog is built once at import time and is an ordered tuple; the
order here is the order matched indicators are reported in.

Design note: heuristic pattern detectors, not ML.
Full explainability: every point of the score traces to a concrete rule.
"""

import re
from collections import namedtuple


Indicator = namedtuple("Indicator", ["name", "category", "weight", "test", "describe"],
                       defaults=(None,))

# Text views of one email, built once per call by scoring.normalize().
# `normalized` drives every lexical rule; `original` keeps the caller's
# casing and is only read by the capitalization check.
EmailText = namedtuple("EmailText", ["normalized", "original", "sender", "raw_sender"])


# ═══════════════════════════════════════════════
# Categories & Weights
# ═══════════════════════════════════════════════

HIGH_RISK = "HighRisk"
MEDIUM_RISK = "MediumRisk"
DOMAIN_PATTERN = "DomainPattern"
BRAND_SPOOF = "BrandSpoof"
SUSPICIOUS_URL = "SuspiciousUrl"
MISSING_SENDER = "MissingSender"
STYLE_ANOMALY = "StyleAnomaly"

HIGH_RISK_WEIGHT = 20
MEDIUM_RISK_WEIGHT = 12
DOMAIN_PATTERN_WEIGHT = 25
BRAND_SPOOF_WEIGHT = 15
SUSPICIOUS_URL_WEIGHT = 15
MISSING_SENDER_WEIGHT = 10
STYLE_ANOMALY_WEIGHT = 8


# ═══════════════════════════════════════════════
# Pattern Databases
# ═══════════════════════════════════════════════

# ── Lexical patterns ──
# Matched against the lower-cased blob, so no re.IGNORECASE needed.
# A rule is a regex string or a list of alternatives. A (first, second)
# tuple alternative means "first, then second later on the same line";
# it is checked in two forward passes instead of a `first.*second` regex,
# which backtracks quadratically on long lines.

HIGH_RISK_PATTERNS = [
    ("Account verification request", r"verify (your|account|identity|information)"),
    ("Account suspension threat",
     r"suspend(ed)? (your )?account|account (has been |will be |is )?suspended"),
    ("Suspicious link instruction", r"click (here|below|link|now)"),
    ("Confirmation request", r"confirm (your|identity|password|account)"),
    ("Prize/lottery scam", r"\bwon\b|winner|prize|lottery"),
    ("Monetary promise", [r"\$\d{3,}|money|cash", ("claim", "amount")]),
    ("Sensitive info request",
     [(r"bank|credit card|social security|ssn|password|\bpin\b", "details")]),
    ("Urgency pressure", [r"urgent(ly)?|immediate(ly)?|act now", (r"expires?", r"hours?")]),
    ("Fee request (advance fee fraud)", r"processing fee|transfer fee|handling charge"),
    ("Payment issue threat",
     [("update", "payment"), ("billing", "problem"), ("payment", "failed")]),
]

MEDIUM_RISK_PATTERNS = [
    ("Generic greeting", r"dear (customer|user|member|sir|madam|valued)"),
    ("Suspicious activity claim", r"unusual activity|suspicious activity"),
    ("Time pressure tactics", r"limited time|offer expires|don't miss|act fast"),
    ("Access restoration", r"re-?activate|restore access|unlock account"),
    ("Fake security alert", r"security (alert|warning|notice)"),
]

# ── Sender Reputation ──

# Substrings that rarely appear in a legitimate sender address:
# free/abused TLDs and hyphenated "security theatre" domain fragments.
SUSPICIOUS_SENDER_PATTERNS = [
    ".tk", ".ml", ".ga", ".cf", ".gq",
    "-verify", "secure-", "-secure", "-login", "-account", "billing-",
]

# Brands attackers mention while sending from a domain they don't own.
SPOOFED_BRANDS = [
    "paypal", "amazon", "google", "microsoft",
    "apple", "facebook", "netflix", "bank",
]

# ── Link Analysis ──

# TLDs with free/cheap registration, heavily abused in phishing links
SUSPICIOUS_TLDS = [".tk", ".ml", ".ga", ".cf", ".gq"]

URL_SHORTENERS = [
    "bit.ly", "tinyurl.com", "t.co", "goo.gl", "ow.ly",
    "is.gd", "buff.ly", "rebrand.ly", "cutt.ly",
    "rb.gy", "shorturl.at", "tiny.cc",
]

LINE_BREAK = re.compile(r"[\n\r\u2028\u2029]")
URL_PATTERN = re.compile(r"https?://\S+")
IPV4_HOST = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")

# ── Style ──

MAX_EXCLAMATIONS = 3
MAX_CAPS_RATIO = 0.3
MIN_CAPS_CHECK_LENGTH = 20
ASCII_CAPS = re.compile(r"[A-Z]")


# ═══════════════════════════════════════════════
# Rule Predicates
# ═══════════════════════════════════════════════

def _lexical(pattern):
    """Build a predicate matching a rule's alternatives against the normalized blob."""
    alternatives = [pattern] if isinstance(pattern, str) else pattern
    checks = [_in_order(*alt) if isinstance(alt, tuple) else _search(alt)
              for alt in alternatives]

    def test(text):
        return any(check(text.normalized) for check in checks)

    return test


def _search(pattern):
    compiled = re.compile(pattern)

    def check(blob):
        return compiled.search(blob) is not None

    return check


def _in_order(first, second):
    """
    `first` followed by `second` on the same line.

    For the word lists used here the leftmost `first` match also ends
    earliest, so if `second` doesn't follow it, it follows no other
    `first` on that line either.
    """
    first_re = re.compile(first)
    second_re = re.compile(second)

    def check(blob):
        for line in LINE_BREAK.split(blob):
            head = first_re.search(line)
            if head and second_re.search(line, head.end()):
                return True
        return False

    return check


def _matched_sender_patterns(text):
    return [p for p in SUSPICIOUS_SENDER_PATTERNS if p in text.sender]


def _has_suspicious_sender(text):
    return bool(_matched_sender_patterns(text))


def _describe_sender_patterns(text):
    return "Suspicious domain pattern: {}".format(", ".join(_matched_sender_patterns(text)))


def _brand_spoof(brand):
    """
    Sender mentions a trusted brand but isn't on that brand's .com domain.

    Only fires when the sender itself contains the brand name. A spoofed
    sender that never names the brand (e.g. support@random-host.net) is
    not caught by this rule.
    """
    real_domain = brand + ".com"

    def test(text):
        return (brand in text.normalized
                and brand in text.sender
                and real_domain not in text.sender)

    return test


def has_suspicious_url(text):
    """
    Scan every http(s) token for a low-reputation TLD, a link shortener,
    or a raw IPv4 host in place of a domain name.
    """
    for url in URL_PATTERN.findall(text.normalized):
        host = _extract_host(url)
        if not host:
            continue
        if any(host.endswith(tld) for tld in SUSPICIOUS_TLDS):
            return True
        if any(host == s or host.endswith("." + s) for s in URL_SHORTENERS):
            return True
        if IPV4_HOST.match(host):
            return True
    return False


def _missing_sender(text):
    return not text.raw_sender.strip()


def _excessive_exclamations(text):
    return text.normalized.count("!") > MAX_EXCLAMATIONS


def caps_ratio(original, length):
    """
    ASCII capitals in the original-case text over `length` characters.

    `length` is the normalized blob's length; lower() can change the
    length of non-ASCII text, so the two aren't interchangeable.
    """
    if not length:
        return 0.0
    return len(ASCII_CAPS.findall(original)) / length


def _excessive_caps(text):
    length = len(text.normalized)
    return (length > MIN_CAPS_CHECK_LENGTH
            and caps_ratio(text.original, length) > MAX_CAPS_RATIO)


# ═══════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════

def _build_catalog():
    catalog = []

    for name, pattern in HIGH_RISK_PATTERNS:
        catalog.append(Indicator(name, HIGH_RISK, HIGH_RISK_WEIGHT, _lexical(pattern)))

    for name, pattern in MEDIUM_RISK_PATTERNS:
        catalog.append(Indicator(name, MEDIUM_RISK, MEDIUM_RISK_WEIGHT, _lexical(pattern)))

    catalog.append(Indicator(
        "Suspicious domain pattern", DOMAIN_PATTERN, DOMAIN_PATTERN_WEIGHT,
        _has_suspicious_sender, _describe_sender_patterns))

    for brand in SPOOFED_BRANDS:
        catalog.append(Indicator(
            "Possible domain spoofing: mentions {} but sender doesn't match".format(brand),
            BRAND_SPOOF, BRAND_SPOOF_WEIGHT, _brand_spoof(brand)))

    catalog.append(Indicator(
        "Suspicious shortened or IP-based URL", SUSPICIOUS_URL, SUSPICIOUS_URL_WEIGHT,
        has_suspicious_url))

    catalog.append(Indicator(
        "Missing sender information", MISSING_SENDER, MISSING_SENDER_WEIGHT, _missing_sender))

    catalog.append(Indicator(
        "Excessive exclamation marks", STYLE_ANOMALY, STYLE_ANOMALY_WEIGHT, _excessive_exclamations))
    catalog.append(Indicator(
        "Excessive capitalization", STYLE_ANOMALY, STYLE_ANOMALY_WEIGHT, _excessive_caps))

    return tuple(catalog)


CATALOG = _build_catalog()


def match_indicators(text, catalog=CATALOG):
    """
    Evaluate every rule independently against one email.

    Returns a list of (indicator, label) pairs in catalog order. Each rule
    appears at most once no matter how many substrings it matched.
    """
    matches = []
    for indicator in catalog:
        if indicator.test(text):
            label = indicator.describe(text) if indicator.describe else indicator.name
            matches.append((indicator, label))
    return matches


# ═══════════════════════════════════════════════
# Helper Functions
# ═══════════════════════════════════════════════

def _extract_host(url):
    """Extract the host from a URL string, dropping credentials and port."""
    match = re.match(r"https?://(?:[^@/\s]*@)?([^/:?#\s]+)", url)
    if match:
        return match.group(1).lower().rstrip(".,;!)'\"")
    return ""
