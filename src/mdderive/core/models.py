"""Data models shared by the cache, plugin runner, and field resolvers"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Optional

from markdown_it.tree import SyntaxTreeNode
from pydantic import BaseModel, ConfigDict, Field

from mdderive.core.utils.tree import collect_headings


class Heading(BaseModel):
    """A document heading: first text run and nesting depth (1-6)."""
    model_config = ConfigDict(frozen=True)

    value: Optional[str] = None     # None when the heading has no plain text run
    depth: int = Field(ge=1, le=6)


@dataclass(eq=False)
class ContentRecord:
    """Host-owned unit of ingested content; derived fields are attached lazily."""
    id:          str
    src:         str = ""
    kind:        str = "Markdown"
    frontmatter: dict[str, Any] = field(default_factory=dict)
    path:        Optional[str] = None
    ast:         Optional[SyntaxTreeNode] = None     # set once per cache epoch
    html:        Optional[str] = None
    headings:    Optional[list[Heading]] = None

    def clear_derived(self) -> None:
        """Drop every field attached by the pipeline."""
        self.ast = None
        self.html = None
        self.headings = None


@dataclass
class HostContext:
    """Collaborators supplied by the content-graph host."""
    files:       list[ContentRecord] = field(default_factory=list)  # snapshot of File-kind records
    lookup:      Callable[[str], Optional[ContentRecord]] = lambda _id: None
    link_prefix: str = ""


@dataclass(eq=False)
class ParseResult:
    """Syntax tree produced by one pipeline run, plus the parser env."""
    record:      ContentRecord
    syntax_tree: SyntaxTreeNode
    env:         dict[str, Any] = field(default_factory=dict)
    epoch:       int = 0
    html:        Optional[str] = None
    source:      str = ""    # text the parser saw, after mutate hooks

    @cached_property
    def headings(self) -> list[Heading]:
        return [Heading(value=value, depth=depth) for value, depth in collect_headings(self.syntax_tree)]
