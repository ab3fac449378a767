from __future__ import annotations

import re

DEFAULT_PAGE_CSS = """
<style>
  @page { size: A4; margin: 25mm 0 20mm 0; }
  @page :first { margin-top: 0mm; margin-bottom: 20mm; }
  body { margin: 0; font-family: Arial, sans-serif; }
  .avoid-break, img, table { break-inside: avoid; page-break-inside: avoid; }
  .keep-together { break-inside: avoid; page-break-inside: avoid; }
  * { box-sizing: border-box; }
</style>
"""

_HEAD_OPEN_RE = re.compile(r'<head[^>]*>', re.IGNORECASE)
_HEAD_PROBE_RE = re.compile(r'<head[\s>]', re.IGNORECASE)
_HTML_OPEN_RE = re.compile(r'<html[^>]*>', re.IGNORECASE)
_HTML_PROBE_RE = re.compile(r'<html[\s>]', re.IGNORECASE)


def inject_print_css(html: str, css: str = DEFAULT_PAGE_CSS) -> str:
    """Put ``css`` at the start of <head>, creating <head> or a whole document as needed."""
    source = str(html or '')
    if _HEAD_PROBE_RE.search(source):
        return _HEAD_OPEN_RE.sub(lambda m: m.group(0) + css, source, count=1)
    if _HTML_PROBE_RE.search(source):
        return _HTML_OPEN_RE.sub(lambda m: f'{m.group(0)}<head>{css}</head>', source, count=1)
    return f'<!doctype html><html><head>{css}</head><body>{source}</body></html>'
