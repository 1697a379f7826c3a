"""Overpass QL query validation.

Pure logic with no FastAPI imports and no I/O.  Rejects malformed or abusive
queries before any upstream call is made.

The checks are regex heuristics over the raw query text, not a parser.
Each rule is a small predicate so its false-positive/false-negative
behaviour can be exercised on its own.
"""

import logging
import re

from overpass_proxy.config import settings
from overpass_proxy.models.schemas import ValidationResult

logger = logging.getLogger(__name__)

_OUTPUT_FORMAT = re.compile(r"\[out:(json|xml|csv|custom|popup)\]")
_BBOX_SETTING = re.compile(r"\[bbox[:\[]")
_TIMEOUT_SETTING = re.compile(r"\[timeout:\d+\]")

_QUERY_STATEMENT = re.compile(r"(^|\s|;|\()(node|way|relation|nwr|area)\s*[\[({]")
_RECURSION = re.compile(r"[<>]")
_OUTPUT_STATEMENT = re.compile(r"\bout\b")

_UNBOUNDED_SELECTOR = re.compile(r"\b(node|way|relation|nwr)\s*\[")
_GEOGRAPHIC_CONSTRAINTS = [
    re.compile(r"\(around:"),
    re.compile(r"\[bbox"),
    re.compile(r"area[\[({]"),
    re.compile(r"\{\{bbox\}\}"),
    re.compile(r"poly:"),
]

# (.;>;): recurse down from the current set
_FULL_RECURSIVE_EXPANSION = re.compile(r"\(\s*\.\s*;\s*>\s*;\s*\)")
_AROUND_RADIUS = re.compile(r"around:(\d+)")


# ------------------------------------------------------------------
# Rule predicates
# ------------------------------------------------------------------


def has_output_format(query: str) -> bool:
    return bool(_OUTPUT_FORMAT.search(query))


def has_bbox_setting(query: str) -> bool:
    return bool(_BBOX_SETTING.search(query))


def has_timeout_setting(query: str) -> bool:
    return bool(_TIMEOUT_SETTING.search(query))


def has_query_statement(query: str) -> bool:
    """True if a node/way/relation/nwr/area statement opens a filter."""
    return bool(_QUERY_STATEMENT.search(query))


def has_recursion(query: str) -> bool:
    return bool(_RECURSION.search(query))


def has_output_statement(query: str) -> bool:
    return bool(_OUTPUT_STATEMENT.search(query))


def count_statements(query: str) -> int:
    """Approximate the statement count by counting ``;`` separators."""
    return query.count(";")


def has_unbounded_selector(query: str) -> bool:
    return bool(_UNBOUNDED_SELECTOR.search(query))


def has_geographic_constraint(query: str) -> bool:
    """True if any of around / bbox / area / {{bbox}} / poly is present."""
    return any(pattern.search(query) for pattern in _GEOGRAPHIC_CONSTRAINTS)


def has_full_recursive_expansion(query: str) -> bool:
    return bool(_FULL_RECURSIVE_EXPANSION.search(query))


def around_radii(query: str) -> list[str]:
    """Return every ``around:N`` radius as a digit string, in order.

    Leading zeros are dropped.  Radii stay strings so an arbitrarily long
    run of digits is never handed to ``int()``.
    """
    return [match.lstrip("0") or "0" for match in _AROUND_RADIUS.findall(query)]


def radius_exceeds(radius: str, limit: int) -> bool:
    """Compare a digit string from :func:`around_radii` against *limit*."""
    if len(radius) > len(str(limit)):
        return True
    return int(radius) > limit


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


def validate(
    query: str,
    max_statements: int | None = None,
    max_around_radius_m: int | None = None,
) -> ValidationResult:
    """Run the rejection rules in order; the first failing rule wins.

    Assumes the caller has already checked that *query* is a non-empty
    string within the configured length limit.  Never raises.
    """
    if max_statements is None:
        max_statements = settings.max_statements
    if max_around_radius_m is None:
        max_around_radius_m = settings.max_around_radius_m

    normalized = query.strip()
    result = _check(normalized, max_statements, max_around_radius_m)
    if not result.valid:
        logger.info("Query rejected: %s", result.reason)
    return result


def _check(
    query: str, max_statements: int, max_around_radius_m: int
) -> ValidationResult:
    if not has_output_format(query) and not has_bbox_setting(query):
        return ValidationResult.reject(
            "Invalid Overpass query: missing output format declaration "
            "(e.g., [out:json])"
        )

    if not has_query_statement(query) and not has_recursion(query):
        return ValidationResult.reject(
            "Invalid Overpass query: no query statements found "
            "(node, way, relation, area)"
        )

    if not has_output_statement(query):
        return ValidationResult.reject(
            "Invalid Overpass query: missing output statement (out)"
        )

    statement_count = count_statements(query)
    if statement_count > max_statements:
        return ValidationResult.reject(
            f"Query too complex: {statement_count} statements exceeds "
            f"limit of {max_statements}"
        )

    if has_unbounded_selector(query) and not has_geographic_constraint(query):
        return ValidationResult.reject(
            "Invalid Overpass query: queries must include geographic "
            "constraints (around, bbox, area, or poly)"
        )

    if has_full_recursive_expansion(query) and not has_timeout_setting(query):
        return ValidationResult.reject(
            "Invalid Overpass query: recursive expansions require timeout setting"
        )

    for radius in around_radii(query):
        if radius_exceeds(radius, max_around_radius_m):
            return ValidationResult.reject(
                f"Invalid Overpass query: around radius {radius}m exceeds "
                f"maximum of {max_around_radius_m}m "
                f"({max_around_radius_m // 1000}km)"
            )

    return ValidationResult.accept()
