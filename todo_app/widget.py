"""
Widget resource: serves the bundled to-do widget as a single HTML document.

The JS/CSS bundle is built separately into the assets directory; this module
only inlines it and tells the widget where the API lives.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import mcp.types as types

from .errors import UnknownResourceError, WidgetAssetsError

logger = logging.getLogger(__name__)

WIDGET_URI = "ui://widget/todo.html"
WIDGET_MIME_TYPE = "text/html+skybridge"
WIDGET_NAME = "todo-widget"
COMPONENT_NAME = "todo"

CONNECT_DOMAINS = [
    "https://chatgpt.com",
    "https://*.oaistatic.com",
    "https://files.openai.com",
    "https://cdn.openai.com",
]
RESOURCE_DOMAINS = [
    "https://*.oaistatic.com",
    "https://files.openai.com",
    "https://cdn.openai.com",
    "https://chatgpt.com",
]


class WidgetResource:
    def __init__(self, assets_dir, api_base_url: Optional[str] = None,
                 connect_domain: Optional[str] = None):
        self.assets_dir = Path(assets_dir)
        self.api_base_url = api_base_url
        self.connect_domain = connect_domain

    def html(self) -> str:
        if not self.assets_dir.is_dir():
            raise WidgetAssetsError(
                f"Widget assets not found. Expected directory {self.assets_dir}. "
                "Build assets before starting the server."
            )
        js_path = self.assets_dir / f"{COMPONENT_NAME}.js"
        if not js_path.is_file():
            raise WidgetAssetsError(
                f'Widget JS for "{COMPONENT_NAME}" not found at {js_path}. Build assets first.'
            )
        logger.debug("Loading widget bundle from %s", self.assets_dir)
        js = js_path.read_text(encoding="utf-8")

        css_path = self.assets_dir / f"{COMPONENT_NAME}.css"
        css = css_path.read_text(encoding="utf-8") if css_path.is_file() else ""

        parts = [f'<div id="{COMPONENT_NAME}-root"></div>']
        if css:
            parts.append(f"<style>{css}</style>")
        parts.append(f"<script>window.__API_BASE_URL__ = {json.dumps(self.api_base_url)};</script>")
        parts.append(f'<script type="module">{js}</script>')
        return "\n".join(parts)

    def meta(self) -> dict:
        connect_domains = list(CONNECT_DOMAINS)
        if self.connect_domain:
            connect_domains.append(self.connect_domain)
        return {
            "openai/widgetDescription": (
                "A to-do list widget for managing tasks and tracking completion."
            ),
            "openai/widgetPrefersBorder": True,
            "openai/widgetDomain": "https://chatgpt.com",
            "openai/widgetCSP": {
                "connect_domains": connect_domains,
                "resource_domains": list(RESOURCE_DOMAINS),
            },
        }

    def resource(self) -> types.Resource:
        return types.Resource(uri=WIDGET_URI, name=WIDGET_NAME, mimeType=WIDGET_MIME_TYPE)

    def read(self, uri: str) -> types.ReadResourceResult:
        if str(uri) != WIDGET_URI:
            raise UnknownResourceError(str(uri))
        contents = types.TextResourceContents(
            uri=WIDGET_URI,
            mimeType=WIDGET_MIME_TYPE,
            text=self.html(),
            **{"_meta": self.meta()},
        )
        return types.ReadResourceResult(contents=[contents])
