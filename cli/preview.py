"""Standalone preview documents and output files for a conversion."""

import html as html_lib
from pathlib import Path

from common.types import ConversionArtifact

PLACEHOLDER_HTML = '<div class="psd-converted"><p>Base layout generated - customise as needed</p></div>'
PLACEHOLDER_CSS = '.psd-converted { padding: 20px; background: #f5f5f5; min-height: 400px; }'


def build_preview_document(markup: str, css: str, title: str) -> str:
    """
    Combine generated HTML and CSS into one self-contained page.

    When the markup is already a full document the stylesheet is injected
    before `</head>`; otherwise the markup is wrapped in a minimal page.
    Empty HTML or CSS is replaced with a placeholder.

    Args:
        markup: Generated HTML (fragment or full document)
        css: Generated stylesheet
        title: Page title for wrapped fragments

    Returns:
        Preview HTML
    """
    if not markup.strip():
        markup = PLACEHOLDER_HTML
    if not css.strip():
        css = PLACEHOLDER_CSS

    style_block = f"<style>\n{css}\n</style>"
    lowered = markup.lower()
    head_close = lowered.find('</head>')
    if head_close != -1:
        return markup[:head_close] + style_block + "\n" + markup[head_close:]

    return (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n"
        "<head>\n"
        "    <meta charset=\"UTF-8\">\n"
        "    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\">\n"
        f"    <title>PSD Preview - {html_lib.escape(title)}</title>\n"
        f"    {style_block}\n"
        "</head>\n"
        "<body>\n"
        f"{markup}\n"
        "</body>\n"
        "</html>\n"
    )


def write_conversion_outputs(
    artifact: ConversionArtifact,
    preview_html: str,
    output_dir: Path,
    base_name: str,
) -> dict[str, Path]:
    """
    Write the markup, stylesheet and preview page to output_dir.

    Returns:
        Mapping of 'html', 'css', 'preview' to the written paths
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        'html': output_dir / f"{base_name}.html",
        'css': output_dir / f"{base_name}.css",
        'preview': output_dir / f"{base_name}-preview.html",
    }
    paths['html'].write_text(artifact.html, encoding='utf-8')
    paths['css'].write_text(artifact.css, encoding='utf-8')
    paths['preview'].write_text(preview_html, encoding='utf-8')
    return paths
