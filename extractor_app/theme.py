from __future__ import annotations

from typing import Literal

from extractor_app.storage import THEME_KEY, KeyValueStore


Theme = Literal["light", "dark"]

DARK_CSS = """
<style>
.stApp { background-color: #0f172a; color: #e2e8f0; }
[data-testid="stSidebar"] { background-color: #111827; }
.stApp h1, .stApp h2, .stApp h3, .stApp h4, .stApp p, .stApp label { color: #e2e8f0; }
</style>
"""


def load_theme(store: KeyValueStore) -> Theme:
    return "dark" if store.get(THEME_KEY) == "dark" else "light"


def next_theme(theme: str) -> Theme:
    return "light" if theme == "dark" else "dark"


def save_theme(store: KeyValueStore, theme: Theme) -> None:
    store.set(THEME_KEY, theme)
