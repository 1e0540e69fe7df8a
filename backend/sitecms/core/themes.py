# sitecms/core/themes.py

from __future__ import annotations

from typing import Dict, Tuple

DEFAULT_THEME = "default"

# id -> (name, description)
THEMES: Dict[str, Tuple[str, str]] = {
    "default": ("Sahara Gold", "Warm gold and terracotta tones inspired by Moroccan deserts"),
    "ocean-breeze": ("Ocean Breeze", "Cool blues and teals for a fresh, coastal feel"),
    "forest-green": ("Forest Retreat", "Deep greens and earthy browns for a natural aesthetic"),
    "midnight-purple": ("Midnight Purple", "Rich purples and deep indigos for a luxurious look"),
    "rose-gold": ("Rose Gold", "Elegant rose and soft pink tones for a sophisticated style"),
    "slate-modern": ("Slate Modern", "Clean grays and subtle blues for a professional look"),
    "sunset-orange": ("Sunset Glow", "Vibrant oranges and warm reds for an energetic vibe"),
    "mono-elegant": ("Mono Elegant", "Timeless black and white with subtle warmth"),
}


def is_known_theme(theme_id: str | None) -> bool:
    return (theme_id or "") in THEMES


def theme_catalog() -> list[dict]:
    return [{"id": tid, "name": name, "description": desc} for tid, (name, desc) in THEMES.items()]
