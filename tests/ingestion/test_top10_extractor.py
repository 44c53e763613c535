from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from top10_backend.ingestion.top10_extractor import (
    clean_numbered_title,
    extract_top10,
    parse_netflix_top10,
    parse_top10_section,
    scan_header_table,
    scan_numbered_text,
    sections_for_type,
)
from top10_backend.models.top10 import Category, Section


def _fixture(name: str) -> str:
    repo_root = Path(__file__).resolve().parents[2]
    return (repo_root / "tests" / "fixtures" / "flixpatrol" / name).read_text(encoding="utf-8")


def _table_row(rank: str, slug: str, title: str) -> str:
    return (
        "<tr>"
        f'<td class="table-td">{rank}</td>'
        f'<td class="table-td"><a href="/title/{slug}/">{title}</a></td>'
        "</tr>"
    )


def test_header_table_reconstructs_exact_rank_mapping() -> None:
    result = parse_top10_section(_fixture("top10_well_formed.html"), Section.TV_SHOWS)

    assert [(e.rank, e.title) for e in result.entries] == [
        (1, "Squid Game"),
        (2, "Wednesday"),
        (3, "Pulang Araw"),
        (4, "Lavender Fields"),
        (5, "Squid Game"),
        (6, "Black Doves"),
        (7, "Outlast"),
        (8, "The Trunk"),
        (9, "No Good Deed"),
        (10, "Senna"),
    ]
    assert result.stages_used == ("header_table",)
    assert result.gap_filled == 0
    assert result.low_confidence is False
    assert all(e.category is Category.SERIES for e in result.entries)


def test_header_table_reads_poster_from_src_or_lazy_attribute() -> None:
    entries = extract_top10(_fixture("top10_well_formed.html"), "TV Shows")
    by_rank = {e.rank: e for e in entries}

    assert by_rank[1].poster_url == "https://img.example.com/squid-game.jpg"
    assert by_rank[2].poster_url == "https://img.example.com/wednesday.jpg"
    assert by_rank[3].poster_url == ""


def test_movies_section_is_parsed_independently() -> None:
    entries = extract_top10(_fixture("top10_well_formed.html"), Section.MOVIES)

    assert [e.title for e in entries][:3] == ["Hello, Love, Again", "Carry-On", "Spellbound"]
    assert [e.rank for e in entries] == list(range(1, 11))
    assert all(e.category is Category.MOVIE for e in entries)
    assert all(e.region == "Philippines" and e.source == "Netflix" for e in entries)


def test_parse_netflix_top10_both_returns_tv_then_movies() -> None:
    entries = parse_netflix_top10(_fixture("top10_well_formed.html"), "both")

    assert len(entries) == 20
    assert [e.category for e in entries[:10]] == [Category.SERIES] * 10
    assert [e.category for e in entries[10:]] == [Category.MOVIE] * 10


def test_ancestor_widening_recovers_restructured_table() -> None:
    result = parse_top10_section(_fixture("top10_restructured.html"), Section.TV_SHOWS)

    assert len(result.entries) >= 8
    assert [(e.rank, e.title) for e in result.entries] == [
        (1, "Alpha Squad"),
        (2, "Bravo House"),
        (3, "Charlie Road"),
        (4, "Delta Files"),
        (5, "Echo Park"),
        (6, "Foxtrot Lane"),
        (7, "Golf Club"),
        (8, "Hotel Manila"),
        (9, "India Ink"),
        (10, "Juliet Rising"),
    ]
    assert result.stages_used == ("header_table",)


def test_missing_header_falls_back_to_document_order() -> None:
    rows = "".join(_table_row("", f"t{i}", f"Show {chr(64 + i)}") for i in range(1, 13))
    html = f"<html><body><table>{rows}</table></body></html>"

    entries = scan_header_table(BeautifulSoup(html, "html.parser"), Section.TV_SHOWS)

    assert [e.rank for e in entries] == list(range(1, 11))
    assert entries[0].title == "Show A"
    assert entries[-1].title == "Show J"


def test_numbered_text_stage_recovers_plain_text_lists() -> None:
    html = (
        "<html><body><div class='legacy'>"
        "TOP 10 TV Shows 1. Alpha Squad 2. Bravo House 3. Charlie Road 4. Delta Files "
        "5. Echo Park 6. Foxtrot Lane 7. Golf Club 8. Hotel Manila 9. India Ink 10. Juliet Rising "
        "TOP 10 Movies 1. Kilo Nights 2. Lima Beans"
        "</div></body></html>"
    )

    result = parse_top10_section(html, Section.TV_SHOWS)

    assert [(e.rank, e.title) for e in result.entries] == [
        (1, "Alpha Squad"),
        (2, "Bravo House"),
        (3, "Charlie Road"),
        (4, "Delta Files"),
        (5, "Echo Park"),
        (6, "Foxtrot Lane"),
        (7, "Golf Club"),
        (8, "Hotel Manila"),
        (9, "India Ink"),
        (10, "Juliet Rising"),
    ]
    assert result.stages_used == ("header_table", "section_headings", "numbered_text")

    movies = scan_numbered_text(BeautifulSoup(html, "html.parser"), Section.MOVIES)
    assert [(e.rank, e.title) for e in movies] == [(1, "Kilo Nights"), (2, "Lima Beans")]


def test_numbered_text_stage_handles_line_separated_items() -> None:
    html = "<html><body><h2>Charts</h2><p>TOP 10 Movies</p><p>1. Kilo Nights</p>\n<p>2. Lima Beans</p></body></html>"

    entries = scan_numbered_text(BeautifulSoup(html, "html.parser"), Section.MOVIES)

    assert [(e.rank, e.title) for e in entries] == [(1, "Kilo Nights"), (2, "Lima Beans")]


def test_numbered_text_ignores_script_content() -> None:
    html = "<html><head><script>var s = 'TOP 10 Movies 1. Hidden Title';</script></head><body></body></html>"

    assert scan_numbered_text(BeautifulSoup(html, "html.parser"), Section.MOVIES) == []


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("  - Alpha Squad ", "Alpha Squad"),
        ("Alpha Squad --", "Alpha Squad"),
        ("Alpha Squad    Netflix    TV", "Alpha Squad"),
    ],
)
def test_clean_numbered_title(raw: str, expected: str) -> None:
    assert clean_numbered_title(raw) == expected


def test_gap_fill_assigns_every_page_link_to_lowest_open_ranks() -> None:
    rows = "".join(
        _table_row(str(rank), f"t{rank}", title)
        for rank, title in enumerate(["Alpha", "Bravo", "Charlie", "Delta", "Echo", "Foxtrot"], start=1)
    )
    html = (
        "<html><body>"
        '<nav><a href="/title/alpha/">Alpha</a><a href="/title/golf/">Golf</a>'
        '<a href="/title/hotel/">Hotel</a><a href="/title/india/">India</a>'
        '<a href="/title/juliet/">Juliet</a><a href="/title/kilo/">Kilo</a></nav>'
        '<section><h3 class="table-th">TOP 10 TV Shows</h3>'
        f"<div><table>{rows}</table></div></section>"
        "</body></html>"
    )

    result = parse_top10_section(html, Section.TV_SHOWS)

    assert [(e.rank, e.title) for e in result.entries] == [
        (1, "Alpha"),
        (2, "Bravo"),
        (3, "Charlie"),
        (4, "Delta"),
        (5, "Echo"),
        (6, "Foxtrot"),
        (7, "Alpha"),
        (8, "Golf"),
        (9, "Hotel"),
        (10, "India"),
    ]
    assert result.gap_filled == 4
    assert result.low_confidence is True


def test_gap_fill_keeps_duplicate_titles_at_distinct_ranks() -> None:
    links = "".join(
        f'<a href="/title/t{i}/">{title}</a>'
        for i, title in enumerate(["Squid Game", "Wednesday", "Squid Game", "Outlast", "Senna"])
    )
    html = f"<html><body><div>{links}</div></body></html>"

    result = parse_top10_section(html, Section.TV_SHOWS)

    assert [(e.rank, e.title) for e in result.entries] == [
        (1, "Squid Game"),
        (2, "Wednesday"),
        (3, "Squid Game"),
        (4, "Outlast"),
        (5, "Senna"),
    ]
    assert result.gap_filled == 5
    assert result.low_confidence is True


def test_section_headings_stage_fills_ranks_the_table_missed() -> None:
    rows = "".join(
        _table_row(str(rank), f"t{rank}", title)
        for rank, title in enumerate(["Alpha", "Bravo", "Charlie", "Delta", "Echo"], start=1)
    )
    links = "".join(
        f'<li><a href="/title/h{i}/">{title}</a></li>'
        for i, title in enumerate(
            ["Kilo", "Lima", "Mike", "November", "Oscar", "Papa", "Quebec", "Romeo", "Sierra", "Tango"], start=1
        )
    )
    html = (
        "<html><body>"
        '<div class="table-th">TOP 10 TV Shows</div>'
        f"<div><table>{rows}</table></div>"
        '<h2 class="heading">Top 10 TV Shows this week</h2>'
        f"<ul>{links}</ul>"
        "</body></html>"
    )

    result = parse_top10_section(html, Section.TV_SHOWS)

    assert [(e.rank, e.title) for e in result.entries] == [
        (1, "Alpha"),
        (2, "Bravo"),
        (3, "Charlie"),
        (4, "Delta"),
        (5, "Echo"),
        (6, "Papa"),
        (7, "Quebec"),
        (8, "Romeo"),
        (9, "Sierra"),
        (10, "Tango"),
    ]
    assert result.stages_used == ("header_table", "section_headings")
    assert result.gap_filled == 0
    assert result.low_confidence is False


def test_earlier_stage_keeps_rank_when_text_stage_disagrees() -> None:
    rows = "".join(
        _table_row(str(rank), f"t{rank}", title)
        for rank, title in enumerate(["Alpha", "Bravo", "Charlie"], start=1)
    )
    html = (
        "<html><body>"
        "<p>TOP 10 TV Shows 1. Zulu Nights 4. Delta Force 5. Echo Base</p>"
        '<h3 class="table-th">TOP 10 TV Shows</h3>'
        f"<div><table>{rows}</table></div>"
        "</body></html>"
    )

    result = parse_top10_section(html, Section.TV_SHOWS)
    by_rank = {e.rank: e.title for e in result.entries}

    assert result.stages_used == ("header_table", "section_headings", "numbered_text")
    assert by_rank[1] == "Alpha"
    assert by_rank[4] == "Delta Force"
    assert by_rank[5] == "Echo Base"
    assert "Zulu Nights" not in by_rank.values()


def test_result_never_exceeds_ten_entries_and_ranks_are_unique() -> None:
    rows = "".join(_table_row(str((i % 12) + 1), f"t{i}", f"Title {chr(65 + i)}") for i in range(15))
    html = f'<html><body><h3 class="table-th">TOP 10 TV Shows</h3><div><table>{rows}</table></div></body></html>'

    entries = extract_top10(html, Section.TV_SHOWS)
    ranks = [e.rank for e in entries]

    assert len(entries) <= 10
    assert len(ranks) == len(set(ranks))
    assert all(1 <= r <= 10 for r in ranks)


def test_empty_document_is_an_empty_low_confidence_result() -> None:
    result = parse_top10_section("<html><body><p>Nothing here</p></body></html>", Section.MOVIES)

    assert result.entries == []
    assert result.low_confidence is True


def test_sections_for_type_rejects_unknown_type() -> None:
    assert sections_for_type("both") == (Section.TV_SHOWS, Section.MOVIES)
    with pytest.raises(ValueError):
        sections_for_type("anime")
