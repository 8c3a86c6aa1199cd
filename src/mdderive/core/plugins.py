"""Transformation plugin interface and resolution via import paths or entry points."""

from __future__ import annotations

import importlib
import importlib.metadata
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from mdderive.core.errors import PluginNotFoundError

if TYPE_CHECKING:
    from markdown_it.tree import SyntaxTreeNode

    from mdderive.core.models import ContentRecord


ENTRY_POINT_GROUP = "mdderive.plugins"
DEFAULT_ATTRIBUTE = "plugin"


@dataclass(frozen=True)
class SourceContext:
    """Argument passed to a plugin's mutate_source hook.

    Hooks rewrite the source by assigning ``context.record.src``. The record
    is a per-run copy; the host's record keeps its raw source.
    """
    record: ContentRecord
    files: list[ContentRecord]
    lookup: Callable[[str], Optional[ContentRecord]]
    plugin_options: dict[str, Any]


@dataclass(frozen=True)
class AnnotateContext:
    """Argument passed to a plugin's annotate hook, after parsing."""
    syntax_tree: SyntaxTreeNode
    record: ContentRecord
    lookup: Callable[[str], Optional[ContentRecord]]
    files: list[ContentRecord]
    plugin_options: dict[str, Any]
    link_prefix: str


Hook = Callable[[Any], Union[Awaitable[None], None]]


class TransformPlugin:
    """A plugin declaring which of the two optional hooks it implements.

    Either hook may be a plain function or a coroutine function. A hook
    left as None is skipped by the pipeline.
    """

    def __init__(
        self,
        name: str,
        mutate_source: Optional[Hook] = None,
        annotate: Optional[Hook] = None,
        ):
        self.name = name
        self.mutate_source = mutate_source
        self.annotate = annotate

    def __repr__(self) -> str:
        hooks = [h for h in ("mutate_source", "annotate") if getattr(self, h) is not None]
        return f"TransformPlugin({self.name!r}, hooks={hooks})"


class PluginDescriptor(BaseModel):
    """One configured plugin: what to resolve and the options it receives."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    resolve: Union[str, TransformPlugin]
    options: dict[str, Any] = Field(default_factory=dict)


async def call_hook(hook: Hook, context: Any) -> None:
    """Invoke a hook, awaiting its result when it returns an awaitable."""
    result = hook(context)
    if inspect.isawaitable(result):
        await result


def discover() -> list[str]:
    """Return the names of plugins registered under the entry point group."""
    return sorted(ep.name for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP))


def _load_entry_point(name: str) -> object:
    for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
        if ep.name == name:
            return ep.load()
    raise PluginNotFoundError(name, f"no entry point in group '{ENTRY_POINT_GROUP}'")


def _load_import_path(reference: str) -> object:
    module_path, _, attr = reference.partition(":")
    attr = attr or DEFAULT_ATTRIBUTE
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise PluginNotFoundError(reference, str(e)) from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise PluginNotFoundError(reference, f"module has no attribute '{attr}'") from e


def load_plugin(reference: Union[str, TransformPlugin]) -> TransformPlugin:
    """Resolve a plugin reference.

    ``pkg.module:attr`` reads attr from the module, ``pkg.module`` reads its
    ``plugin`` attribute, and a bare name is looked up as an entry point.
    """
    if isinstance(reference, TransformPlugin):
        return reference
    if "." in reference or ":" in reference:
        obj = _load_import_path(reference)
    else:
        obj = _load_entry_point(reference)
    if not isinstance(obj, TransformPlugin):
        raise PluginNotFoundError(reference, f"expected a TransformPlugin, got {type(obj).__name__}")
    return obj
