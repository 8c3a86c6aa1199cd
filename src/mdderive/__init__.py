"""mdderive: lazily derived Markdown fields for content records"""

from mdderive.core.models import ContentRecord, Heading, HostContext, ParseResult
from mdderive.core.pipeline import MarkdownPipeline
from mdderive.core.plugins import PluginDescriptor, TransformPlugin


__all__ = [
    "ContentRecord",
    "Heading",
    "HostContext",
    "MarkdownPipeline",
    "ParseResult",
    "PluginDescriptor",
    "TransformPlugin",
]
