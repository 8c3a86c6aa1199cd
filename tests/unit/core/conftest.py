"""Shared fixtures for core unit tests"""

import itertools

import pytest

from mdderive.core.models import ContentRecord
from mdderive.core.pipeline import MarkdownPipeline


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** text.

## Heading 2

- item one
- item two

## Second h2

### Heading 3

<div class="raw">kept <em>verbatim</em></div>
"""


@pytest.fixture(name="make_record")
def make_record_fixture():
    """Factory for Markdown records with unique ids."""
    counter = itertools.count()

    def _make(src: str = SAMPLE_MD, record_id: str = None) -> ContentRecord:
        return ContentRecord(id=record_id or f"doc-{next(counter)}", src=src)

    return _make


@pytest.fixture(name="pipeline")
def pipeline_fixture():
    return MarkdownPipeline()


@pytest.fixture(name="parse_calls")
def parse_calls_fixture(monkeypatch):
    """Count calls to parse_source made by the pipeline."""
    import mdderive.core.pipeline as pipeline_module

    calls = []
    original = pipeline_module.parse_source

    def counting(parser, src):
        calls.append(src)
        return original(parser, src)

    monkeypatch.setattr(pipeline_module, "parse_source", counting)
    return calls
