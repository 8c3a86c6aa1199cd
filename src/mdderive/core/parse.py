"""markdown-it parser construction, source parsing, and HTML rendering"""

from typing import Any

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.footnote import footnote_plugin


def make_parser(preset: str = 'gfm-like', footnotes: bool = True) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset; raw HTML passes through verbatim."""
    parser = MarkdownIt(preset, options_update={"linkify": False, "html": True})
    if footnotes:
        parser.use(footnote_plugin)
    return parser


def parse_source(parser: MarkdownIt, src: str) -> tuple[SyntaxTreeNode, dict[str, Any]]:
    """Parse src into a syntax tree. Returns (tree, env)."""
    env: dict[str, Any] = {}
    tokens = parser.parse(src, env)
    return SyntaxTreeNode(tokens), env


def render_html(parser: MarkdownIt, tree: SyntaxTreeNode, env: dict[str, Any] | None = None) -> str:
    """Flatten tree back into a token stream and serialize it to HTML."""
    return parser.renderer.render(tree.to_tokens(), parser.options, env or {})
