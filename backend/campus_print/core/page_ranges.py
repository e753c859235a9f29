"""Page-Range Parser — turns user colour-page specs into canonical page index sets.

Invariants:
    - parse_page_spec is PURE and deterministic: same input, same tuple
    - Output is ascending, duplicate-free, 1-based, clipped to [1, max_pages]
    - "" selects no pages, "all" (exact case) selects every page
    - Malformed tokens always raise ValidationError; out-of-range indices are
      dropped unless strict=True, in which case they raise ValidationError

Design Decisions:
    - Tuples over sets: ordering is part of the contract, tuples compare and hash
    - Multi-file orders shift each file's set by the page count of preceding
      files, so every file is specified in its own 1-based numbering
"""

import re
from collections.abc import Iterable, Sequence

from campus_print.core.errors import ValidationError


ALL_PAGES = "all"
NO_PAGES = ""

_SINGLE = re.compile(r"^\d+$")
_RANGE = re.compile(r"^(\d+)\s*-\s*(\d+)$")


def parse_page_spec(
    spec: str, max_pages: int, *, strict: bool = False,
) -> tuple[int, ...]:
    """Parse "1,3,5-7" style specs into ascending page indices within bounds."""
    if max_pages < 0:
        raise ValidationError(f"max_pages must be >= 0, got {max_pages}", "max_pages")
    spec = spec.strip()
    if spec == NO_PAGES:
        return ()

    pages: set[int] = set()
    for raw_token in spec.split(","):
        token = raw_token.strip()
        if not token:
            continue
        if token == ALL_PAGES:
            pages.update(range(1, max_pages + 1))
            continue
        first, last = _parse_token(token)
        if strict and (first < 1 or last > max_pages):
            raise ValidationError(
                f"Page selection '{token}' is outside 1-{max_pages}", "colorSpec",
            )
        pages.update(range(max(first, 1), min(last, max_pages) + 1))
    return tuple(sorted(pages))


def _parse_token(token: str) -> tuple[int, int]:
    if _SINGLE.match(token):
        value = int(token)
        return value, value
    match = _RANGE.match(token)
    if not match:
        raise ValidationError(f"Invalid page selection '{token}'", "colorSpec")
    first, last = int(match.group(1)), int(match.group(2))
    if first > last:
        raise ValidationError(
            f"Invalid page range '{token}': start is after end", "colorSpec",
        )
    return first, last


def shift_and_union(
    file_specs: Sequence[tuple[int, str]], *, strict: bool = False,
) -> tuple[int, ...]:
    """Resolve per-file (page_count, spec) pairs into one global page numbering.

    File k's pages are offset by the total page count of files 0..k-1.
    """
    pages: list[int] = []
    offset = 0
    for page_count, spec in file_specs:
        pages.extend(
            offset + p for p in parse_page_spec(spec, page_count, strict=strict)
        )
        offset += page_count
    return tuple(sorted(set(pages)))


def format_page_set(pages: Iterable[int], total_pages: int) -> str:
    """Render a resolved page set in canonical stored form ("", "all", "1-2,11")."""
    ordered = sorted(set(pages))
    if not ordered:
        return NO_PAGES
    if total_pages > 0 and ordered == list(range(1, total_pages + 1)):
        return ALL_PAGES

    runs: list[str] = []
    start = prev = ordered[0]
    for page in ordered[1:]:
        if page == prev + 1:
            prev = page
            continue
        runs.append(_format_run(start, prev))
        start = prev = page
    runs.append(_format_run(start, prev))
    return ",".join(runs)


def _format_run(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"
