"""File-backed content host: discovers Markdown files and owns their records"""

from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from mdderive.core.models import ContentRecord, HostContext


MD_EXTENSIONS = {'.md', '.mdx'}
FILE_KIND = "File"
FENCE = "---"


def split_frontmatter(raw: str, origin: str = "<string>") -> tuple[dict[str, Any], str]:
    """Split a leading ``---`` fenced YAML block off raw.

    The Markdown record keeps only the body. A file whose first line is not
    a fence, or whose fence is never closed, has no frontmatter.
    """
    lines = raw.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FENCE:
        return {}, raw
    for end, line in enumerate(lines[1:], start=1):
        if line.rstrip() == FENCE:
            break
    else:
        return {}, raw

    try:
        data = yaml.safe_load("".join(lines[1:end]))
    except yaml.YAMLError as e:
        raise ValueError(f"{origin}: invalid YAML frontmatter: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"{origin}: frontmatter must be a mapping, got {type(data).__name__}")
    return data, "".join(lines[end + 1:])


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() in MD_EXTENSIONS


def markdown_id(file_id: str) -> str:
    """Id of the Markdown record derived from a File record."""
    return f"{file_id} >>> Markdown"


class FileHost:
    """Builds one File record and one Markdown record per discovered file.

    Listeners registered with ``subscribe`` are called with each record
    (re)created by ``reload``; pass ``MarkdownPipeline.on_record_created``
    to keep the pipeline's caches in step with the files on disk.
    """

    def __init__(self, root: Path, link_prefix: str = "", markdown_kind: str = "Markdown"):
        self.root = root
        self.link_prefix = link_prefix
        self.markdown_kind = markdown_kind
        self.records: dict[str, ContentRecord] = {}
        self.files: list[ContentRecord] = []
        self._listeners: list[Callable[[ContentRecord], None]] = []
        for path in self.scan(root):
            self._ingest(path)

    @staticmethod
    def scan(root: Path) -> list[Path]:
        """Markdown files under root, sorted; hidden directories are skipped."""
        if root.is_file():
            return [root] if is_markdown(root) else []
        found = []
        for path in root.rglob("*"):
            hidden = any(part.startswith(".") for part in path.relative_to(root).parent.parts)
            if not hidden and path.is_file() and is_markdown(path):
                found.append(path)
        return sorted(found)

    def subscribe(self, listener: Callable[[ContentRecord], None]) -> None:
        self._listeners.append(listener)

    def lookup(self, record_id: str) -> Optional[ContentRecord]:
        return self.records.get(record_id)

    def context(self) -> HostContext:
        """Collaborators for the pipeline; ``files`` is the live File record list."""
        return HostContext(files=self.files, lookup=self.lookup, link_prefix=self.link_prefix)

    @property
    def markdown_records(self) -> list[ContentRecord]:
        return [r for r in self.records.values() if r.kind == self.markdown_kind]

    def _ingest(self, path: Path) -> ContentRecord:
        raw = path.read_text(encoding='utf-8')
        frontmatter, body = split_frontmatter(raw, str(path))
        file_id = str(path)

        file_record = ContentRecord(id=file_id, kind=FILE_KIND, path=file_id, src=raw)
        self.files[:] = [f for f in self.files if f.id != file_id] + [file_record]
        self.records[file_id] = file_record

        record = ContentRecord(
            id=markdown_id(file_id),
            src=body,
            kind=self.markdown_kind,
            frontmatter=frontmatter,
            path=file_id,
        )
        self.records[record.id] = record
        return record

    def reload(self, path: Path) -> ContentRecord:
        """Re-read path, recreate its records, and notify listeners."""
        record = self._ingest(path)
        for listener in self._listeners:
            listener(record)
        return record
