"""Shared syntax-tree walking utilities"""

from markdown_it.tree import SyntaxTreeNode


def heading_level(node: SyntaxTreeNode) -> int | None:
    """Return the heading level (1-6) for a heading node, else None."""
    if node.type == 'heading' and node.tag and node.tag[0] == 'h' and node.tag[1:].isdigit():
        return int(node.tag[1:])
    return None


def text_values(node: SyntaxTreeNode) -> list[str]:
    """Return the content of every non-empty plain-text leaf under node, in document order."""
    return [n.content for n in node.walk() if n.type == 'text' and n.content]


def collect_headings(tree: SyntaxTreeNode) -> list[tuple[str | None, int]]:
    """Return (first text value, depth) for each heading in document order."""
    headings = []
    for node in tree.walk():
        level = heading_level(node)
        if level is None:
            continue
        values = text_values(node)
        headings.append((values[0] if values else None, level))
    return headings
