"""Plugin pipeline runner and owner of the per-record parse and HTML caches"""

import asyncio
import dataclasses
from typing import Any, Awaitable, Iterable, Optional, Sequence

from mdderive.config import Settings
from mdderive.core.cache import TaskCache
from mdderive.core.errors import ParseError, PluginError, RenderError
from mdderive.core.models import ContentRecord, Heading, HostContext, ParseResult
from mdderive.core.parse import make_parser, parse_source, render_html
from mdderive.core.plugins import (
    AnnotateContext,
    PluginDescriptor,
    SourceContext,
    TransformPlugin,
    call_hook,
    load_plugin,
)
from mdderive.core.utils.logging import get_logger
from mdderive.core.utils.text import AVG_WPM


logger = get_logger(__name__)


async def join_all(aws: Iterable[Awaitable[Any]]) -> list[Any]:
    """Dispatch every awaitable in order, wait for all to settle, then raise the first failure."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    await asyncio.wait(tasks)
    failures = [exc for exc in (task.exception() for task in tasks) if exc is not None]
    if failures:
        raise failures[0]
    return [task.result() for task in tasks]


class MarkdownPipeline:
    """Parses Markdown records through the configured plugins, caching one result per record id.

    Parsed results and rendered HTML share one lifetime per id: both are
    dropped together by ``invalidate``.
    """

    def __init__(
        self,
        plugins: Sequence[PluginDescriptor] = (),
        host: Optional[HostContext] = None,
        parser_config: str = 'gfm-like',
        footnotes: bool = True,
        retain_failures: bool = False,
        words_per_minute: int = AVG_WPM,
        prune_length: int = 140,
        markdown_kind: str = "Markdown",
        ):
        self.host = host or HostContext()
        self.parser = make_parser(parser_config, footnotes)
        self.plugins: list[tuple[TransformPlugin, dict[str, Any]]] = [
            (load_plugin(d.resolve), d.options) for d in plugins
        ]
        self.words_per_minute = words_per_minute
        self.prune_length = prune_length
        self.markdown_kind = markdown_kind
        self.parse_cache: TaskCache[ParseResult] = TaskCache("ast", retain_failures)
        self.html_cache: TaskCache[str] = TaskCache("html", retain_failures)

    @classmethod
    def from_settings(cls, settings: Settings, host: Optional[HostContext] = None) -> "MarkdownPipeline":
        return cls(
            plugins=settings.plugins,
            host=host,
            parser_config=settings.parser_config,
            footnotes=settings.footnotes,
            retain_failures=settings.retain_failures,
            words_per_minute=settings.words_per_minute,
            prune_length=settings.prune_length,
            markdown_kind=settings.markdown_kind,
        )

    # --- plugin phases ---

    async def _mutate(self, plugin: TransformPlugin, options: dict, record: ContentRecord) -> None:
        logger.debug("mutate_source_started", plugin=plugin.name, record_id=record.id)
        context = SourceContext(
            record=record,
            files=self.host.files,
            lookup=self.host.lookup,
            plugin_options=options,
        )
        try:
            await call_hook(plugin.mutate_source, context)
        except Exception as e:
            logger.warning("plugin_failed", plugin=plugin.name, phase="mutate_source", record_id=record.id, error=str(e))
            raise PluginError(record.id, plugin.name, "mutate_source", e) from e

    async def _annotate(self, plugin: TransformPlugin, options: dict, record: ContentRecord, tree) -> None:
        logger.debug("annotate_started", plugin=plugin.name, record_id=record.id)
        context = AnnotateContext(
            syntax_tree=tree,
            record=record,
            lookup=self.host.lookup,
            files=self.host.files,
            plugin_options=options,
            link_prefix=self.host.link_prefix,
        )
        try:
            await call_hook(plugin.annotate, context)
        except Exception as e:
            logger.warning("plugin_failed", plugin=plugin.name, phase="annotate", record_id=record.id, error=str(e))
            raise PluginError(record.id, plugin.name, "annotate", e) from e

    async def run(self, record: ContentRecord, epoch: Optional[int] = None) -> ParseResult:
        """Mutate source, parse once, annotate. Bypasses the cache; use get_parsed.

        Mutate hooks work on a copy of the record, so record.src keeps the
        host's text and every run starts from it.
        """
        if epoch is None:
            epoch = self.parse_cache.epoch(record.id)

        working = dataclasses.replace(record, frontmatter=dict(record.frontmatter))
        await join_all(
            self._mutate(plugin, options, working)
            for plugin, options in self.plugins if plugin.mutate_source is not None
        )

        logger.debug("parse_started", record_id=record.id, length=len(working.src))
        try:
            tree, env = parse_source(self.parser, working.src)
        except Exception as e:
            logger.error("parse_failed", record_id=record.id, error=str(e))
            raise ParseError(record.id, f"Markdown parse failed: {e}") from e

        await join_all(
            self._annotate(plugin, options, record, tree)
            for plugin, options in self.plugins if plugin.annotate is not None
        )

        result = ParseResult(record=record, syntax_tree=tree, env=env, epoch=epoch, source=working.src)
        if self.is_current(result):
            record.ast = tree
        logger.debug("parse_finished", record_id=record.id, epoch=epoch)
        return result

    # --- cached accessors ---

    def is_current(self, result: ParseResult) -> bool:
        """True while no invalidation has happened since result's run started."""
        return result.epoch == self.parse_cache.epoch(result.record.id)

    async def get_parsed(self, record: ContentRecord) -> ParseResult:
        """Return the cached parse for record, running the pipeline at most once per epoch."""
        epoch = self.parse_cache.epoch(record.id)
        return await self.parse_cache.get(record.id, lambda: self.run(record, epoch))

    async def _render(self, record: ContentRecord) -> str:
        result = await self.get_parsed(record)
        try:
            html = render_html(self.parser, result.syntax_tree, result.env)
        except Exception as e:
            logger.error("render_failed", record_id=record.id, error=str(e))
            raise RenderError(record.id, f"HTML rendering failed: {e}") from e
        result.html = html
        if self.is_current(result):
            record.html = html
        logger.debug("html_rendered", record_id=record.id, length=len(html))
        return html

    async def get_html(self, record: ContentRecord) -> str:
        return await self.html_cache.get(record.id, lambda: self._render(record))

    async def get_headings(self, record: ContentRecord) -> list[Heading]:
        result = await self.get_parsed(record)
        headings = result.headings
        if self.is_current(result):
            record.headings = headings
        return headings

    # --- invalidation ---

    def invalidate(self, record_id: str) -> None:
        """Drop every cached value for record_id; absent ids are a no-op."""
        evicted = self.parse_cache.invalidate(record_id)
        evicted = self.html_cache.invalidate(record_id) or evicted
        existing = self.host.lookup(record_id)
        if existing is not None:
            existing.clear_derived()
        if evicted:
            logger.info("cache_invalidated", record_id=record_id)

    def on_record_created(self, record: ContentRecord) -> None:
        """Host hook: a record was (re)created, e.g. its file changed on disk."""
        if record.kind != self.markdown_kind:
            return
        record.clear_derived()
        self.invalidate(record.id)
