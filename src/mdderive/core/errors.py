"""Error kinds raised while deriving fields from Markdown records"""


class MarkdownDeriveError(RuntimeError):
    """Base class for failures in the parse, plugin, and render stages."""

    def __init__(self, record_id: str, message: str):
        self.record_id = record_id
        super().__init__(f"{message} (record {record_id!r})")


class ParseError(MarkdownDeriveError):
    """Raised when the Markdown parser fails on a record's source."""


class RenderError(MarkdownDeriveError):
    """Raised when the syntax tree cannot be serialized to HTML."""


class PluginError(MarkdownDeriveError):
    """Raised when a plugin hook fails during a pipeline run.

    Attributes:
        plugin: Name of the failing plugin
        phase: ``mutate_source`` or ``annotate``
    """

    def __init__(self, record_id: str, plugin: str, phase: str, cause: BaseException):
        self.plugin = plugin
        self.phase = phase
        super().__init__(record_id, f"Plugin {plugin!r} failed in {phase}: {cause}")


class PluginNotFoundError(LookupError):
    """Raised when a plugin reference cannot be resolved."""

    def __init__(self, reference: str, reason: str | None = None):
        self.reference = reference
        msg = f"No plugin found for reference '{reference}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
