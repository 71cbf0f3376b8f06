"""
URL parsing utilities for Search Console property identifiers and site domains.
"""
import re
from urllib.parse import urlparse, parse_qs, unquote
from typing import Optional

SEARCH_CONSOLE_UI_HOST = "search.google.com"

_SC_DOMAIN_IN_PATH = re.compile(r"sc-domain:([^/?#&]+)")


def resolve_search_console_site_url(value: Optional[str]) -> Optional[str]:
    """
    Turn whatever the user stored as a site's Search Console URL into an API siteUrl.

    Accepted forms:
        sc-domain:example.com                                   -> unchanged
        https://example.com/                                    -> unchanged (URL-prefix property)
        https://search.google.com/search-console?resource_id=.. -> decoded resource_id
        .../search-console/.../sc-domain:example.com            -> sc-domain:example.com
        example.com                                             -> sc-domain:example.com

    Returns None if nothing usable can be extracted.
    """
    if not value:
        return None
    value = value.strip()
    if not value:
        return None

    if value.startswith("sc-domain:"):
        return value

    if value.startswith(("http://", "https://")):
        parsed = urlparse(value)
        if parsed.netloc.lower() != SEARCH_CONSOLE_UI_HOST:
            return value

        resource_ids = parse_qs(parsed.query).get("resource_id")
        if resource_ids and resource_ids[0]:
            return unquote(resource_ids[0])

        match = _SC_DOMAIN_IN_PATH.search(unquote(value))
        if match:
            return f"sc-domain:{match.group(1)}"
        return None

    if "." in value:
        return f"sc-domain:{normalize_domain(value)}"

    return None


def normalize_domain(site_url: str) -> str:
    """
    Reduce a property id, URL or bare domain to a lower-cased host.

    sc-domain:Example.com, https://www.example.com/blog and example.com
    all normalize to example.com.
    """
    domain = (site_url or "").strip()
    domain = re.sub(r"^sc-domain:", "", domain)
    domain = re.sub(r"^https?://", "", domain)
    domain = re.sub(r"^www\.", "", domain, flags=re.IGNORECASE)
    domain = domain.split("/")[0]
    return domain.lower().strip()


def domains_match(a: str, b: str) -> bool:
    """True if two domains are the same host, ignoring a www. prefix on either side"""
    a, b = normalize_domain(a), normalize_domain(b)
    return a == b or a == f"www.{b}" or b == f"www.{a}"


def site_name_from_domain(domain: str) -> str:
    """example.com -> Example"""
    parts = domain.split(".")
    if len(parts) >= 2 and parts[0]:
        return parts[0][:1].upper() + parts[0][1:]
    return domain
