"""
Purpose: Message lookup for everything the dispatcher or a driver reads
(SMS text, error messages, CSV headers, notifications).

Catalogs are JSON files shipped next to this module, one per language.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

LOCALES_DIR = Path(__file__).parent / "locales"
AVAILABLE_LANGUAGES = ("cs", "en", "de")
DEFAULT_LANGUAGE = "cs"
FALLBACK_LANGUAGE = "en"

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def load_catalog(language: str) -> Dict[str, Any]:
    path = LOCALES_DIR / f"{language}.json"
    with path.open(encoding="utf-8") as f:
        return json.load(f)


class Translator:
    """
    Resolves dotted keys ("sms.route") against a language catalog.

    Unknown languages fall back to English; missing keys return the key
    itself so a gap in a catalog never breaks a message.
    """

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        if language not in AVAILABLE_LANGUAGES:
            logger.warning(f"Language {language!r} not available, falling back to {FALLBACK_LANGUAGE}")
            language = FALLBACK_LANGUAGE
        self.language = language
        self._catalog = load_catalog(language)

    def __call__(self, key: str, params: Optional[Dict[str, Any]] = None) -> str:
        node: Any = self._catalog
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                logger.warning(f"Translation key not found: {key!r} ({self.language})")
                return key
            node = node[part]

        if not isinstance(node, str):
            logger.warning(f"Translation key {key!r} is not a message ({self.language})")
            return key

        for name, value in (params or {}).items():
            node = node.replace(f"{{{name}}}", str(value))
        return node
