"""Version string normalization for upstream release identifiers.

Upstream sources describe versions in very different shapes: JSON fields
("132.0b3", "140.3.1esr"), directory-listing filenames
("thunderbird-146.0a1.apk") and source-control tags ("THUNDERBIRD_14_0b1").
Everything here degrades to None on input it does not understand.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

DEFAULT_TAG_PREFIX = "THUNDERBIRD_"
DEFAULT_NIGHTLY_PATTERN = r"thunderbird-([0-9]+\.[0-9]+a1)\.apk"

_MAJOR_RE = re.compile(r"[0-9]+")
_PRERELEASE_SEGMENT_RE = re.compile(r"^([0-9]+)([ab])([0-9]+)$", re.IGNORECASE)
_BETA_RE = re.compile(r"b[0-9]+", re.IGNORECASE)
_ALPHA_RE = re.compile(r"a[0-9]+", re.IGNORECASE)


@dataclass(frozen=True)
class TagVersions:
    """Versions derived from a tag listing."""

    beta: Optional[str] = None
    release: Optional[str] = None


def extract_major(version: Optional[str]) -> Optional[str]:
    """
    Extract the major version token from a version string.

    Args:
        version: Version string (e.g., "132.0b3", "145.0a1esr")

    Returns:
        The leftmost run of ASCII digits (e.g., "132"), or None if there is none
    """
    if not version:
        return None
    match = _MAJOR_RE.search(version)
    return match.group(0) if match else None


def parse_tag(tag: Optional[str], prefix: str = DEFAULT_TAG_PREFIX) -> Optional[str]:
    """
    Convert a source-control tag name to a version string.

    Examples:
        THUNDERBIRD_14_0 -> "14.0"
        THUNDERBIRD_14_0b1 -> "14.0b1"
        THUNDERBIRD_14_0_1 -> "14.0.1"

    Args:
        tag: Tag name
        prefix: Product prefix the tag must start with

    Returns:
        Dotted version string, or None if the tag does not carry the prefix
    """
    if not tag or not tag.startswith(prefix):
        return None

    remainder = tag[len(prefix) :]
    if not remainder:
        return None

    major, *rest = remainder.split("_")
    version = major
    for segment in rest:
        prerelease = _PRERELEASE_SEGMENT_RE.match(segment)
        if prerelease:
            number, phase, build = prerelease.groups()
            version += f".{number}{phase.lower()}{build}"
        else:
            version += f".{segment}"
    return version


def classify_tags(names: Iterable[str], prefix: str = DEFAULT_TAG_PREFIX) -> TagVersions:
    """
    Pick the beta and release versions from an ordered tag listing.

    Tags are scanned in the order the provider returned them; the first tag
    with a ``bN`` suffix is the beta and the first tag without any ``aN``/``bN``
    suffix is the release.

    Args:
        names: Tag names, newest first as returned by the provider
        prefix: Product prefix; other tags are ignored

    Returns:
        TagVersions with whichever versions were found
    """
    beta: Optional[str] = None
    release: Optional[str] = None

    for name in names:
        if not isinstance(name, str) or not name.startswith(prefix):
            continue
        is_beta = bool(_BETA_RE.search(name))
        if beta is None and is_beta:
            beta = parse_tag(name, prefix)
        if release is None and not is_beta and not _ALPHA_RE.search(name):
            release = parse_tag(name, prefix)
        if beta and release:
            break

    return TagVersions(beta=beta, release=release)


def extract_listing_version(text: Optional[str], pattern: str = DEFAULT_NIGHTLY_PATTERN) -> Optional[str]:
    """
    Find the version embedded in a build filename on a directory listing page.

    Args:
        text: HTML or plain-text directory listing
        pattern: Regex whose first group captures the version

    Returns:
        The captured version, or None when no filename matches
    """
    if not text:
        return None
    match = re.search(pattern, text, re.IGNORECASE)
    return match.group(1) if match else None
