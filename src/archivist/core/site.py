"""
Site adapters: every choice that is specific to the target site.

The archiver knows one site, but the site has been observed with two URL
schemes for articles and two tolerances for incomplete pages. Each
combination is a named, frozen SiteAdapter so the choice is explicit and can
be swapped from the command line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Pattern, Tuple

from .errors import ConfigError


class MissingFieldPolicy(Enum):
    SKIP = "skip"    # missing date or category skips the page
    EMPTY = "empty"  # missing date or category is saved as an empty string


@dataclass(frozen=True)
class DenyRule:
    """Deny a URL whose path-and-query contains any of `needles`."""

    reason: str
    needles: Tuple[str, ...]

    def matches(self, path_and_query: str) -> bool:
        return any(needle in path_and_query for needle in self.needles)


LIULI_DENY_RULES: Tuple[DenyRule, ...] = (
    DenyRule("tag page", ("tag",)),
    DenyRule("lang page", ("lang=",)),
    DenyRule("bbs page", ("/community", "/bbs")),
    DenyRule("ad page", ("/wp2",)),
    DenyRule("author page", ("/author",)),
    DenyRule("about page", ("/about.html",)),
)


@dataclass(frozen=True)
class SiteAdapter:
    name: str
    article_id_pattern: Pattern[str]
    missing_field_policy: MissingFieldPolicy = MissingFieldPolicy.SKIP
    deny_rules: Tuple[DenyRule, ...] = LIULI_DENY_RULES
    article_selector: str = "#content article"
    title_selector: str = "h1.entry-title"
    content_selector: str = "div.entry-content"
    date_selector: str = "time.entry-date"
    date_attribute: str = "datetime"
    category_selector: str = "[rel='category tag']"
    tag_selector: str = "[rel='tag']"


LIULI = SiteAdapter(
    name="liuli",
    article_id_pattern=re.compile(r"/wp/(\d+)", re.ASCII),
    missing_field_policy=MissingFieldPolicy.SKIP,
)

LIULI_HTML = SiteAdapter(
    name="liuli-html",
    article_id_pattern=re.compile(r"(\d+)\.html", re.ASCII),
    missing_field_policy=MissingFieldPolicy.EMPTY,
)

SITES: Dict[str, SiteAdapter] = {site.name: site for site in (LIULI, LIULI_HTML)}

DEFAULT_SITE = LIULI.name


def get_site(name: str) -> SiteAdapter:
    try:
        return SITES[name]
    except KeyError:
        raise ConfigError(f"Unknown site '{name}' (known: {', '.join(sorted(SITES))})") from None
