"""Prefix root-relative link and image URLs with the site's link prefix"""

from mdderive.core.plugins import AnnotateContext, TransformPlugin


URL_ATTRS = {"link": "href", "image": "src"}


def annotate(context: AnnotateContext) -> None:
    prefix = context.plugin_options.get("prefix", context.link_prefix).rstrip("/")
    if not prefix:
        return
    for node in context.syntax_tree.walk():
        attr = URL_ATTRS.get(node.type)
        if attr is None:
            continue
        url = node.attrs.get(attr)
        if not isinstance(url, str) or not url.startswith("/") or url.startswith("//"):
            continue
        if url == prefix or url.startswith(prefix + "/"):
            continue
        node.attrs[attr] = prefix + url


plugin = TransformPlugin("prefix_links", annotate=annotate)
