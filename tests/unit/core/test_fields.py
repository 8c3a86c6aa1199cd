"""Unit tests for core/fields.py"""

import pytest

from mdderive.core.fields import HeadingLevel, build_fields, coerce_depth, resolve_field
from mdderive.core.models import ContentRecord, Heading
from mdderive.core.pipeline import MarkdownPipeline


TITLE_MD = "# Title\n\nSome body text."
DEPTHS_MD = "# One\n\n## Two a\n\n## Two b\n\n### Three\n"


@pytest.fixture(name="fields")
def fields_fixture(pipeline):
    return build_fields(pipeline)


def test_build_fields_surface(fields):
    """The field surface mirrors the host schema: names, return shapes, argument defaults."""
    assert list(fields) == ["html", "src", "excerpt", "headings", "time_to_read"]
    assert fields["excerpt"].args == {"prune_length": 140}
    assert fields["headings"].args == {"depth": None}
    assert fields["headings"].type == "[Heading]"
    assert fields["time_to_read"].type == "Int"


def test_build_fields_other_kind_is_empty(pipeline):
    assert build_fields(pipeline, kind="File") == {}
    assert list(build_fields(pipeline, kind="Markdown"))


def test_build_fields_uses_configured_prune_length():
    fields = build_fields(MarkdownPipeline(prune_length=60))
    assert fields["excerpt"].args == {"prune_length": 60}


# --- html / src ---

@pytest.mark.asyncio
async def test_html_field(fields, make_record):
    html = await resolve_field(fields, "html", make_record(TITLE_MD))
    assert html == "<h1>Title</h1>\n<p>Some body text.</p>\n"


@pytest.mark.asyncio
async def test_html_keeps_raw_markup(fields, make_record):
    html = await resolve_field(fields, "html", make_record('<div class="x">raw</div>\n\nText <b>bold</b>\n'))
    assert '<div class="x">raw</div>' in html
    assert "Text <b>bold</b>" in html


@pytest.mark.asyncio
async def test_src_field_passthrough(fields, pipeline, make_record):
    record = make_record("  *raw*  source\n")
    assert await resolve_field(fields, "src", record) == "  *raw*  source\n"
    assert record.id not in pipeline.parse_cache


# --- excerpt ---

@pytest.mark.asyncio
async def test_excerpt_default_returns_all_text(fields, make_record):
    assert await resolve_field(fields, "excerpt", make_record(TITLE_MD)) == "Title Some body text."


@pytest.mark.asyncio
async def test_excerpt_prune_length_9(fields, make_record):
    excerpt = await resolve_field(fields, "excerpt", make_record(TITLE_MD), prune_length=9)
    assert excerpt == "Title..."
    assert len(excerpt) <= 9


@pytest.mark.asyncio
async def test_excerpt_never_exceeds_prune_length(fields, make_record):
    record = make_record("# Heading here\n\nA longer paragraph, with punctuation and several words.\n")
    full = await resolve_field(fields, "excerpt", record)
    for n in range(0, len(full) + 5):
        excerpt = await resolve_field(fields, "excerpt", record, prune_length=n)
        assert len(excerpt) <= n
        kept = excerpt[:-3] if excerpt.endswith("...") else excerpt
        assert full.startswith(kept)
        assert kept == "" or len(kept) == len(full) or not full[len(kept)].isalnum()


@pytest.mark.asyncio
async def test_excerpt_joins_text_nodes_with_spaces(fields, make_record):
    excerpt = await resolve_field(fields, "excerpt", make_record("line one\nline two\n\n- item\n"))
    assert excerpt == "line one line two item"


@pytest.mark.asyncio
async def test_excerpt_rejects_negative_length(fields, make_record):
    with pytest.raises(ValueError, match="prune_length"):
        await resolve_field(fields, "excerpt", make_record(), prune_length=-1)


# --- headings ---

@pytest.mark.asyncio
async def test_headings_for_title_document(fields, make_record):
    headings = await resolve_field(fields, "headings", make_record(TITLE_MD))
    assert headings == [Heading(value="Title", depth=1)]


@pytest.mark.asyncio
async def test_headings_filtered_by_depth(fields, make_record):
    """depth=2 on headings at depths [1, 2, 2, 3] returns the two h2s in order."""
    headings = await resolve_field(fields, "headings", make_record(DEPTHS_MD), depth=2)
    assert [(h.value, h.depth) for h in headings] == [("Two a", 2), ("Two b", 2)]


@pytest.mark.asyncio
async def test_headings_depth_accepts_enum_and_name(fields, make_record):
    record = make_record(DEPTHS_MD)
    by_enum = await resolve_field(fields, "headings", record, depth=HeadingLevel.h3)
    by_name = await resolve_field(fields, "headings", record, depth="h3")
    assert by_enum == by_name == [Heading(value="Three", depth=3)]


@pytest.mark.asyncio
async def test_headings_filter_does_not_mutate_cached_list(fields, pipeline, make_record):
    record = make_record(DEPTHS_MD)
    await resolve_field(fields, "headings", record, depth=1)
    assert len(await pipeline.get_headings(record)) == 4


@pytest.mark.asyncio
async def test_headings_use_first_text_run(fields, make_record):
    headings = await resolve_field(fields, "headings", make_record("## **Bold** tail\n\n#\n"))
    assert headings == [Heading(value="Bold", depth=2), Heading(value=None, depth=1)]


@pytest.mark.asyncio
@pytest.mark.parametrize("depth", [0, 7, "h7", True])
async def test_headings_invalid_depth(fields, make_record, depth):
    with pytest.raises(ValueError, match="depth"):
        await resolve_field(fields, "headings", make_record(), depth=depth)


def test_coerce_depth_none():
    assert coerce_depth(None) is None
    assert coerce_depth(4) is HeadingLevel.h4


# --- time_to_read ---

@pytest.mark.asyncio
async def test_time_to_read_empty_source_is_one(fields, make_record):
    assert await resolve_field(fields, "time_to_read", make_record("")) == 1


@pytest.mark.asyncio
async def test_time_to_read_counts_rendered_words(fields, make_record):
    record = make_record("word " * 400)
    assert await resolve_field(fields, "time_to_read", record) == 2


@pytest.mark.asyncio
async def test_time_to_read_ignores_markup(fields, make_record):
    record = make_record('<span class="a b c d e">hi</span>\n\n' + "[x](http://example.com/a/b/c) " * 10)
    assert await resolve_field(fields, "time_to_read", record) == 1


@pytest.mark.asyncio
async def test_time_to_read_uses_pipeline_speed(make_record):
    fields = build_fields(MarkdownPipeline(words_per_minute=10))
    assert await resolve_field(fields, "time_to_read", make_record("word " * 45)) == 5


# --- resolve_field ---

@pytest.mark.asyncio
async def test_resolve_field_unknown_name(fields, make_record):
    with pytest.raises(ValueError, match="Unknown field"):
        await resolve_field(fields, "timeToRead", make_record())


@pytest.mark.asyncio
async def test_resolve_field_unknown_argument(fields, make_record):
    with pytest.raises(ValueError, match="does not accept"):
        await resolve_field(fields, "html", make_record(), depth=1)


@pytest.mark.asyncio
async def test_fields_share_one_parse(fields, make_record, parse_calls):
    record = ContentRecord(id="shared", src=TITLE_MD)
    for name in ["html", "excerpt", "headings", "time_to_read"]:
        await resolve_field(fields, name, record)
    assert len(parse_calls) == 1
