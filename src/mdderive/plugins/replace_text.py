"""Apply literal text replacements to the raw source before parsing"""

from mdderive.core.plugins import SourceContext, TransformPlugin


def mutate_source(context: SourceContext) -> None:
    replacements = context.plugin_options.get("replacements") or {}
    src = context.record.src
    for old, new in replacements.items():
        src = src.replace(old, str(new))
    context.record.src = src


plugin = TransformPlugin("replace_text", mutate_source=mutate_source)
