"""
Device-local autocomplete suggestions.

Places where money was spent and where income came from are remembered
on this device only, in a small JSON file. They are never written to the
family document and never synced.
"""

import json
from pathlib import Path
from typing import Optional

import structlog

from semesmart.config import get_settings
from semesmart.models.family import Member

LOCATIONS_KEY = "transactionLocations"
INCOME_SOURCES_KEY = "incomeSources"

logger = structlog.get_logger(__name__)


def suggest_income_source(member: Optional[Member]) -> Optional[str]:
    """'<income source> de <name>' for members with a known source."""
    if member is None or not member.income_source:
        return None
    return f"{member.income_source} de {member.name}"


class LocalSuggestionStore:
    """Two sorted, de-duplicated string lists kept in a JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else get_settings().app.suggestions_file

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, list[str]]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("suggestions_unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(raw, dict):
            return {}
        return {
            key: [item for item in value if isinstance(item, str)]
            for key, value in raw.items()
            if isinstance(value, list)
        }

    def _save(self, content: dict[str, list[str]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(content, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def _values(self, key: str) -> list[str]:
        return self._load().get(key, [])

    def _remember(self, key: str, value: Optional[str]) -> list[str]:
        """
        Add a value to one list.

        Blank values and values already present leave the file untouched.
        """
        content = self._load()
        values = content.get(key, [])
        cleaned = (value or "").strip()
        if not cleaned or cleaned in values:
            return values

        content[key] = sorted([*values, cleaned])
        self._save(content)
        return content[key]

    def locations(self) -> list[str]:
        return self._values(LOCATIONS_KEY)

    def income_sources(self) -> list[str]:
        return self._values(INCOME_SOURCES_KEY)

    def remember_location(self, value: Optional[str]) -> list[str]:
        return self._remember(LOCATIONS_KEY, value)

    def remember_income_source(self, value: Optional[str]) -> list[str]:
        return self._remember(INCOME_SOURCES_KEY, value)
