"""Field resolvers exposed to the host schema: html, src, excerpt, headings, time_to_read"""

from dataclasses import dataclass, field
from enum import IntEnum
from functools import partial
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from mdderive.core.models import ContentRecord, Heading
from mdderive.core.utils.text import prune, time_to_read
from mdderive.core.utils.tree import text_values

if TYPE_CHECKING:
    from mdderive.core.pipeline import MarkdownPipeline


class HeadingLevel(IntEnum):
    h1 = 1
    h2 = 2
    h3 = 3
    h4 = 4
    h5 = 5
    h6 = 6


@dataclass(frozen=True)
class FieldDefinition:
    """One queryable field: return shape, accepted arguments with defaults, and resolver."""
    name: str
    type: str
    resolve: Callable[..., Awaitable[Any]]
    args: dict[str, Any] = field(default_factory=dict)


def coerce_depth(depth: Union[int, str, HeadingLevel, None]) -> Optional[HeadingLevel]:
    """Normalize a depth argument (1-6, 'h1'-'h6', or HeadingLevel); None means no filter."""
    if depth is None:
        return None
    try:
        if isinstance(depth, str):
            return HeadingLevel[depth]
        if isinstance(depth, bool):
            raise ValueError(depth)
        return HeadingLevel(depth)
    except (KeyError, ValueError) as e:
        raise ValueError(f"depth must be between 1 and 6, got {depth!r}") from e


async def resolve_html(pipeline: "MarkdownPipeline", record: ContentRecord) -> str:
    return await pipeline.get_html(record)


async def resolve_src(pipeline: "MarkdownPipeline", record: ContentRecord) -> str:
    return record.src


async def resolve_excerpt(pipeline: "MarkdownPipeline", record: ContentRecord, prune_length: int = 140) -> str:
    """Plain text of every text node joined by spaces, pruned at a word boundary."""
    if prune_length < 0:
        raise ValueError(f"prune_length must be >= 0, got {prune_length}")
    result = await pipeline.get_parsed(record)
    return prune(" ".join(text_values(result.syntax_tree)), prune_length)


async def resolve_headings(
    pipeline: "MarkdownPipeline",
    record: ContentRecord,
    depth: Union[int, str, HeadingLevel, None] = None,
    ) -> list[Heading]:
    level = coerce_depth(depth)
    headings = await pipeline.get_headings(record)
    if level is None:
        return list(headings)
    return [h for h in headings if h.depth == level]


async def resolve_time_to_read(pipeline: "MarkdownPipeline", record: ContentRecord) -> int:
    html = await pipeline.get_html(record)
    return time_to_read(html, pipeline.words_per_minute)


def build_fields(pipeline: "MarkdownPipeline", kind: Optional[str] = None) -> dict[str, FieldDefinition]:
    """Field surface for records of the pipeline's Markdown kind; empty for any other kind."""
    if kind is not None and kind != pipeline.markdown_kind:
        return {}
    return {
        "html": FieldDefinition("html", "String", partial(resolve_html, pipeline)),
        "src": FieldDefinition("src", "String", partial(resolve_src, pipeline)),
        "excerpt": FieldDefinition(
            "excerpt", "String", partial(resolve_excerpt, pipeline),
            args={"prune_length": pipeline.prune_length},
        ),
        "headings": FieldDefinition(
            "headings", "[Heading]", partial(resolve_headings, pipeline),
            args={"depth": None},
        ),
        "time_to_read": FieldDefinition("time_to_read", "Int", partial(resolve_time_to_read, pipeline)),
    }


async def resolve_field(
    fields: dict[str, FieldDefinition],
    name: str,
    record: ContentRecord,
    **args: Any,
    ) -> Any:
    """Resolve one field by name, filling unspecified arguments from their defaults."""
    try:
        definition = fields[name]
    except KeyError as e:
        raise ValueError(f"Unknown field '{name}'; expected one of {sorted(fields)}") from e
    unknown = set(args) - set(definition.args)
    if unknown:
        raise ValueError(f"Field '{name}' does not accept {sorted(unknown)}")
    return await definition.resolve(record, **{**definition.args, **args})
