"""
Email domain lists used to screen rating submissions.

Kept as plain data so the lists can be edited without touching the
classification logic in ``classify_email_domain``.
"""
import re
from enum import Enum


# Root labels (digits stripped) that mark throwaway or placeholder addresses.
DISPOSABLE_ROOT_MARKERS = frozenset({"test", "example", "fake", "lol", "temp"})

BLOCKED_DOMAINS = frozenset(
    {
        "mailinator.com",
        "guerrillamail.com",
        "guerrillamail.net",
        "10minutemail.com",
        "tempmail.com",
        "temp-mail.org",
        "throwawaymail.com",
        "yopmail.com",
        "yopmail.net",
        "sharklasers.com",
        "getnada.com",
        "dispostable.com",
        "maildrop.cc",
        "mailnesia.com",
        "trashmail.com",
        "fakeinbox.com",
        "emailondeck.com",
        "mintemail.com",
        "spamgourmet.com",
        "mohmal.com",
        "burnermail.io",
        "mailcatch.com",
        "moakt.com",
        "33mail.com",
    }
)

SUSPICIOUS_SUBSTRINGS = (
    "temp",
    "fake",
    "trash",
    "disposable",
    "throwaway",
    "mailinator",
    "guerrilla",
    "tempmail",
    "10minute",
    "sharklasers",
)

CONSUMER_PROVIDERS = frozenset(
    {
        "gmail.com",
        "googlemail.com",
        "yahoo.com",
        "yahoo.co.uk",
        "yahoo.ca",
        "yahoo.com.au",
        "ymail.com",
        "outlook.com",
        "hotmail.com",
        "hotmail.co.uk",
        "live.com",
        "msn.com",
        "icloud.com",
        "me.com",
        "mac.com",
        "aol.com",
        "protonmail.com",
        "proton.me",
        "pm.me",
        "zoho.com",
        "gmx.com",
        "gmx.de",
        "gmx.net",
        "web.de",
        "mail.com",
        "yandex.com",
        "yandex.ru",
        "fastmail.com",
        "hey.com",
        "tutanota.com",
        "comcast.net",
        "verizon.net",
        "att.net",
        "sbcglobal.net",
        "btinternet.com",
        "orange.fr",
        "qq.com",
        "163.com",
        "naver.com",
    }
)

COMPANY_DOMAINS = frozenset(
    {
        "google.com",
        "youtube.com",
        "microsoft.com",
        "apple.com",
        "amazon.com",
        "meta.com",
        "fb.com",
        "netflix.com",
        "ibm.com",
        "oracle.com",
        "salesforce.com",
        "adobe.com",
        "intel.com",
        "nvidia.com",
        "spotify.com",
        "twitter.com",
        "x.com",
        "linkedin.com",
        "uber.com",
        "airbnb.com",
    }
)

EDUCATIONAL_SUFFIXES = (".edu", ".ac.uk", ".edu.au")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class DomainVerdict(str, Enum):
    ALLOWED = "allowed"
    DISPOSABLE = "disposable"
    BLOCKED = "blocked"
    SUSPICIOUS = "suspicious"
    UNRECOGNIZED = "unrecognized"


def is_valid_email_shape(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].strip().lower()


def root_label(domain: str) -> str:
    return re.sub(r"\d", "", domain.split(".", 1)[0])


def classify_email_domain(domain: str) -> DomainVerdict:
    domain = domain.strip().lower()
    if root_label(domain) in DISPOSABLE_ROOT_MARKERS:
        return DomainVerdict.DISPOSABLE
    if domain in BLOCKED_DOMAINS:
        return DomainVerdict.BLOCKED
    if any(marker in domain for marker in SUSPICIOUS_SUBSTRINGS):
        return DomainVerdict.SUSPICIOUS
    if domain in CONSUMER_PROVIDERS or domain in COMPANY_DOMAINS:
        return DomainVerdict.ALLOWED
    if domain.endswith(EDUCATIONAL_SUFFIXES):
        return DomainVerdict.ALLOWED
    return DomainVerdict.UNRECOGNIZED
