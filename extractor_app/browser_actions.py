"""
Small HTML components for the two actions that must run inside the user's
click in the browser: clipboard writes and CSV downloads.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)

COPIED_RESET_MS = 2000
CSV_MIME = "text/csv"
CSV_FILE_PREFIX = "extraction-"

HtmlRenderer = Callable[..., None]

_BUTTON_CSS = (
    "<style>"
    "button{font:14px sans-serif;padding:4px 12px;border:1px solid #cbd5e1;"
    "border-radius:6px;background:#fff;cursor:pointer}"
    "button:hover{background:#f1f5f9}"
    "</style>"
)


def _js_string(text: str) -> str:
    return json.dumps(text).replace("</", "<\\/")


def copy_button_html(text: str, label: str, copied_label: str) -> str:
    """
    Button that copies ``text`` on click. The label switches to
    ``copied_label`` only after the write succeeded and switches back after
    COPIED_RESET_MS; a failed write is only logged to the console.
    """
    return (
        f"{_BUTTON_CSS}"
        '<button id="copy">'
        "</button>\n"
        "<script>\n"
        f"const text = {_js_string(text)};\n"
        f"const label = {_js_string(label)};\n"
        f"const copiedLabel = {_js_string(copied_label)};\n"
        "const btn = document.getElementById('copy');\n"
        "btn.textContent = label;\n"
        "function fallbackCopy(value) {\n"
        "  const ta = document.createElement('textarea');\n"
        "  ta.value = value;\n"
        "  document.body.appendChild(ta);\n"
        "  ta.select();\n"
        "  const ok = document.execCommand('copy');\n"
        "  ta.remove();\n"
        "  if (!ok) throw new Error('execCommand copy failed');\n"
        "}\n"
        "btn.addEventListener('click', () => {\n"
        "  const write = navigator.clipboard\n"
        "    ? navigator.clipboard.writeText(text)\n"
        "    : Promise.reject(new Error('Clipboard API unavailable'));\n"
        "  write\n"
        "    .catch(() => fallbackCopy(text))\n"
        "    .then(() => {\n"
        "      btn.textContent = copiedLabel;\n"
        f"      setTimeout(() => {{ btn.textContent = label; }}, {COPIED_RESET_MS});\n"
        "    })\n"
        "    .catch((err) => console.error('Failed to copy:', err));\n"
        "});\n"
        "</script>"
    )


def csv_download_html(csv_text: str, label: str) -> str:
    """
    Button that saves ``csv_text`` as ``extraction-<ms>.csv``. The name is
    stamped at click time and the object URL is revoked right after use.
    """
    return (
        f"{_BUTTON_CSS}"
        '<button id="csv">'
        "</button>\n"
        "<script>\n"
        f"const csv = {_js_string(csv_text)};\n"
        "const btn = document.getElementById('csv');\n"
        f"btn.textContent = {_js_string(label)};\n"
        "btn.addEventListener('click', () => {\n"
        f"  const blob = new Blob([csv], {{ type: {_js_string(CSV_MIME)} }});\n"
        "  const url = URL.createObjectURL(blob);\n"
        "  const a = document.createElement('a');\n"
        "  a.href = url;\n"
        f"  a.download = {_js_string(CSV_FILE_PREFIX)} + Date.now() + '.csv';\n"
        "  document.body.appendChild(a);\n"
        "  a.click();\n"
        "  a.remove();\n"
        "  URL.revokeObjectURL(url);\n"
        "});\n"
        "</script>"
    )


def _streamlit_html(html: str, height: int) -> None:
    import streamlit.components.v1 as components

    components.html(html, height=height)


def render_html(html: str, height: int = 40, renderer: Optional[HtmlRenderer] = None) -> bool:
    renderer = renderer or _streamlit_html
    try:
        renderer(html, height=height)
    except Exception:
        logger.exception("Failed to render browser action")
        return False
    return True


def render_copy_button(
    text: str,
    label: str = "Copy All",
    copied_label: str = "Copied!",
    renderer: Optional[HtmlRenderer] = None,
) -> bool:
    return render_html(copy_button_html(text, label, copied_label), renderer=renderer)


def render_csv_download(
    csv_text: str,
    label: str = "CSV",
    renderer: Optional[HtmlRenderer] = None,
) -> bool:
    return render_html(csv_download_html(csv_text, label), renderer=renderer)
