from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence

from bs4 import BeautifulSoup, Tag
from bs4.element import CData, NavigableString

from top10_backend.models.top10 import Category, ExtractionResult, RankedEntry, Section

logger = logging.getLogger(__name__)

MAX_RANK = 10
SUFFICIENCY_THRESHOLD = 8
MAX_SIBLING_HOPS = 10
MAX_ANCESTOR_LEVELS = 3

_TITLE_LINK_SELECTOR = 'a[href*="/title/"]'
_TABLE_TITLE_LINK_SELECTOR = f"td.table-td {_TITLE_LINK_SELECTOR}"
_HEADER_SELECTORS = ("h3.table-th", "h3, h2, .table-th")
_SECTION_HEADING_SELECTOR = "h1, h2, h3, h4, .title, .heading"

_WS_RE = re.compile(r"\s+")
_STANDALONE_INT_RE = re.compile(r"^\d+$")
_NUMBERED_ITEM_RE = re.compile(r"(\d+)\.?\s*([^\d\n]{2,100}?)(?=\s*(?:\d+\.|\d+\s|\Z))")
_LEADING_NON_WORD_RE = re.compile(r"^\W+")
_TRAILING_DURATION_RE = re.compile(r"\d+\s*d\s*$")
_TRAILING_DASHES_RE = re.compile(r"[–\-]+\s*$")
_COLUMN_GAP_RE = re.compile(r"\s{3,}")
_NON_TEXT_PARENTS = {"script", "style", "template"}

StageFn = Callable[[BeautifulSoup, Section], list[RankedEntry]]


def _as_soup(html: str | BeautifulSoup) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or "", "html.parser")


def _clean_text(node: Tag) -> str:
    return _WS_RE.sub(" ", node.get_text()).strip()


def _entry(rank: int, title: str, category: Category, poster_url: str = "") -> RankedEntry:
    return RankedEntry(rank=rank, title=title, category=category, poster_url=poster_url)


# --- Stage 1: header-anchored table scan ---


def _find_section_header(soup: BeautifulSoup, section: Section) -> Tag | None:
    label = f"TOP 10 {section.value}"
    for selector in _HEADER_SELECTORS:
        for node in soup.select(selector):
            if label in _clean_text(node):
                return node
    return None


def _rank_from_row(row: Tag | None) -> int | None:
    if row is None:
        return None
    for cell in row.find_all("td"):
        text = _clean_text(cell)
        if not _STANDALONE_INT_RE.match(text):
            continue
        value = int(text)
        if 1 <= value <= MAX_RANK:
            return value
    return None


def _poster_from_row(row: Tag | None) -> str:
    if row is None:
        return ""
    img = row.find("img")
    if img is None:
        return ""
    return str(img.get("src") or img.get("data-src") or "")


def _entries_from_ranked_rows(links: Sequence[Tag], category: Category) -> list[RankedEntry]:
    entries: list[RankedEntry] = []
    claimed: set[int] = set()
    for position, link in enumerate(links, start=1):
        title = _clean_text(link)
        if not title:
            continue
        row = link.find_parent("tr")
        rank = _rank_from_row(row) or position
        if not 1 <= rank <= MAX_RANK or rank in claimed:
            continue
        claimed.add(rank)
        entries.append(_entry(rank, title, category, _poster_from_row(row)))
    return entries


def _document_positions(soup: BeautifulSoup) -> dict[int, int]:
    return {id(node): index for index, node in enumerate(soup.descendants) if isinstance(node, Tag)}


def _scan_header_ancestors(soup: BeautifulSoup, header: Tag, category: Category) -> list[RankedEntry]:
    positions: dict[int, int] | None = None
    container = header.parent
    for level in range(MAX_ANCESTOR_LEVELS):
        if container is None:
            break
        links = container.select(_TABLE_TITLE_LINK_SELECTOR)
        if not links:
            container = container.parent
            continue

        logger.info("Found %d title links %d ancestor level(s) above the header", len(links), level + 1)
        if positions is None:
            positions = _document_positions(soup)
        header_position = positions.get(id(header), -1)

        entries: list[RankedEntry] = []
        for link in links:
            title = _clean_text(link)
            if not title or len(entries) >= MAX_RANK:
                continue
            # The direct parent may still hold an unrelated table above the header.
            if level == 0 and positions.get(id(link), -1) <= header_position:
                continue
            entries.append(_entry(len(entries) + 1, title, category))
        return entries
    return []


def scan_header_table(soup: BeautifulSoup, section: Section) -> list[RankedEntry]:
    category = section.category
    header = _find_section_header(soup, section)

    if header is None:
        logger.warning("Could not find %s section header; scanning all table title links", section.value)
        entries: list[RankedEntry] = []
        for position, link in enumerate(soup.select(_TABLE_TITLE_LINK_SELECTOR)[:MAX_RANK], start=1):
            title = _clean_text(link)
            if title:
                entries.append(_entry(position, title, category))
        return entries

    for sibling in header.find_next_siblings(limit=MAX_SIBLING_HOPS):
        links = sibling.select(_TABLE_TITLE_LINK_SELECTOR)
        if links:
            logger.info("Found %d title links in %s section", len(links), section.value)
            entries = _entries_from_ranked_rows(links, category)
            if entries:
                return entries
            break

    logger.info("No %s content in header siblings; searching ancestor containers", section.value)
    return _scan_header_ancestors(soup, header, category)


# --- Stage 2: section-heading scan ---


def _squash(text: str) -> str:
    return _WS_RE.sub("", text)


def scan_section_headings(soup: BeautifulSoup, section: Section) -> list[RankedEntry]:
    keyword = _squash(section.value.lower())
    heading: Tag | None = None
    for node in soup.select(_SECTION_HEADING_SELECTOR):
        text = _clean_text(node).lower()
        if "top 10" in text and keyword in _squash(text):
            heading = node
            break
    if heading is None:
        return []

    entries: list[RankedEntry] = []
    for sibling in heading.find_next_siblings(limit=MAX_SIBLING_HOPS):
        for link in sibling.select(_TITLE_LINK_SELECTOR):
            title = _clean_text(link)
            if title and len(entries) < MAX_RANK:
                entries.append(_entry(len(entries) + 1, title, section.category))
    return entries


# --- Stage 3: aggressive text scan ---


def _flatten_text(soup: BeautifulSoup) -> str:
    parts: list[str] = []
    for string in soup.find_all(string=True):
        if type(string) not in (NavigableString, CData):
            continue
        parent = string.parent
        if parent is not None and parent.name in _NON_TEXT_PARENTS:
            continue
        parts.append(str(string))
    return "".join(parts)


def _section_window(text: str, section: Section) -> str | None:
    label = r"\s+".join(re.escape(part) for part in section.value.split())
    match = re.search(rf"TOP\s*10\s*{label}(.*?)(?:TOP\s*10|\Z)", text, re.IGNORECASE | re.DOTALL)
    if not match:
        return None
    return match.group(1)


def clean_numbered_title(raw: str) -> str:
    title = raw.strip()
    title = _LEADING_NON_WORD_RE.sub("", title)
    title = _TRAILING_DURATION_RE.sub("", title)
    title = _TRAILING_DASHES_RE.sub("", title)
    title = _COLUMN_GAP_RE.split(title)[0]
    return title.strip()


def scan_numbered_text(soup: BeautifulSoup, section: Section) -> list[RankedEntry]:
    window = _section_window(_flatten_text(soup), section)
    if window is None:
        return []

    entries: list[RankedEntry] = []
    for match in _NUMBERED_ITEM_RE.finditer(window):
        rank = int(match.group(1))
        title = clean_numbered_title(match.group(2))
        if 1 <= rank <= MAX_RANK and 1 < len(title) < 100:
            entries.append(_entry(rank, title, section.category))
    return entries


# --- Rank reconciliation ---


def _merge_by_rank(accumulated: Sequence[RankedEntry], candidates: Iterable[RankedEntry]) -> list[RankedEntry]:
    merged = list(accumulated)
    claimed = {entry.rank for entry in merged}
    for candidate in candidates:
        if candidate.rank in claimed:
            continue
        claimed.add(candidate.rank)
        merged.append(candidate)
    return merged


def _reconcile(entries: Iterable[RankedEntry]) -> list[RankedEntry]:
    final: list[RankedEntry] = []
    seen: set[int] = set()
    for entry in sorted(entries, key=lambda e: e.rank):
        if entry.rank in seen or not 1 <= entry.rank <= MAX_RANK:
            continue
        seen.add(entry.rank)
        final.append(entry)
    return final


def _fill_missing_ranks(
    soup: BeautifulSoup,
    entries: Sequence[RankedEntry],
    category: Category,
) -> tuple[list[RankedEntry], int]:
    filled = {entry.rank for entry in entries}
    if len(filled) >= MAX_RANK:
        return list(entries), 0

    added: list[RankedEntry] = []
    for link in soup.select(_TITLE_LINK_SELECTOR):
        if len(filled) >= MAX_RANK:
            break
        title = _clean_text(link)
        if not title:
            continue
        rank = next(r for r in range(1, MAX_RANK + 1) if r not in filled)
        filled.add(rank)
        added.append(_entry(rank, title, category))
        logger.info("Filled rank %d: %s", rank, title)

    return sorted([*entries, *added], key=lambda e: e.rank), len(added)


EXTRACTION_STAGES: tuple[tuple[str, StageFn], ...] = (
    ("header_table", scan_header_table),
    ("section_headings", scan_section_headings),
    ("numbered_text", scan_numbered_text),
)


def parse_top10_section(html: str | BeautifulSoup, section: Section | str) -> ExtractionResult:
    """
    Recover the ranked list for one section ("TV Shows" or "Movies").

    Stages run in order; a later stage only runs while fewer than
    `SUFFICIENCY_THRESHOLD` entries have been accumulated, and never takes a
    rank an earlier stage already claimed. Missing ranks are then filled from
    any remaining title links on the page.
    """

    soup = _as_soup(html)
    section = Section(section)

    accumulated: list[RankedEntry] = []
    stages_used: list[str] = []
    for name, stage in EXTRACTION_STAGES:
        if stages_used and len(accumulated) >= SUFFICIENCY_THRESHOLD:
            break
        if stages_used:
            logger.warning("Only %d %s items so far, trying %s parsing", len(accumulated), section.value, name)
        stages_used.append(name)
        accumulated = _merge_by_rank(accumulated, stage(soup, section))

    reconciled = _reconcile(accumulated)
    from_cascade = len(reconciled)
    entries, gap_filled = _fill_missing_ranks(soup, reconciled, section.category)

    logger.info("%s final results: %d items (%d gap-filled)", section.value, len(entries), gap_filled)
    return ExtractionResult(
        entries=entries,
        stages_used=tuple(stages_used),
        gap_filled=gap_filled,
        low_confidence=from_cascade < SUFFICIENCY_THRESHOLD or len(entries) < MAX_RANK,
    )


def extract_top10(html: str | BeautifulSoup, section: Section | str) -> list[RankedEntry]:
    return parse_top10_section(html, section).entries


def sections_for_type(list_type: str) -> tuple[Section, ...]:
    normalized = (list_type or "").strip().lower()
    if normalized == "tv":
        return (Section.TV_SHOWS,)
    if normalized == "movies":
        return (Section.MOVIES,)
    if normalized == "both":
        return (Section.TV_SHOWS, Section.MOVIES)
    raise ValueError(f"Unsupported list type: {list_type!r} (expected 'tv', 'movies' or 'both')")


def parse_netflix_top10(html: str, list_type: str = "tv") -> list[RankedEntry]:
    soup = _as_soup(html)
    results: list[RankedEntry] = []
    for section in sections_for_type(list_type):
        results.extend(parse_top10_section(soup, section).entries)
    return results
