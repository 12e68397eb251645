"""
Engine Order Store - Active search engines and the custom engine registry.

Two key-value entries:
  searchEngines        → JSON list of active engine ids, in display order
  customSearchEngines  → JSON list of {id, name, placeholder, url}

Active ids are either built-in (searxng, youtube, images, lucky) or the id
of a custom engine. Ids that resolve to neither are dropped when the order
is loaded, never when it is written. If nothing survives, the default order
is substituted and persisted.

Custom engine urls carry a {query} marker where the search text goes.
"""

import json
import re
import time
from dataclasses import asdict, dataclass, field
from typing import Optional

from loguru import logger

from startpage.storage import KeyValueStore, StorageError

SEARCH_ENGINES_KEY = "searchEngines"
CUSTOM_ENGINES_KEY = "customSearchEngines"

QUERY_MARKER = "{query}"
URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)

# Built-in engines: id → display name and search box placeholder
BUILT_IN_ENGINES = {
    "searxng": {"name": "SearXNG", "placeholder": "search SearXNG"},
    "youtube": {"name": "YouTube", "placeholder": "search YouTube"},
    "images": {"name": "Images", "placeholder": "search Images"},
    "lucky": {"name": "Lucky", "placeholder": "I'm Feeling Lucky"},
}

DEFAULT_ENGINE_ORDER = ["searxng"]


@dataclass
class CustomEngine:
    """A user-defined search engine."""
    id: str
    name: str
    placeholder: str
    url: str

    @classmethod
    def from_dict(cls, data) -> Optional["CustomEngine"]:
        """Build from a stored record, or None if it is malformed."""
        if not isinstance(data, dict):
            return None
        values = [data.get(key) for key in ("id", "name", "placeholder", "url")]
        if not all(isinstance(value, str) and value for value in values):
            return None
        return cls(*values)


@dataclass
class EngineState:
    """Snapshot handed to the presentation layer."""
    order: list[str]
    custom_engines: list[CustomEngine]


@dataclass
class SanitizeReport:
    """Outcome of validating the stored active order on load."""
    kept: list[str] = field(default_factory=list)
    dropped: list = field(default_factory=list)
    used_default: bool = False

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


@dataclass
class FormResult:
    """Result of submitting a custom engine form."""
    engine: Optional[CustomEngine] = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_engine_fields(name: str, placeholder: str, url: str) -> dict[str, str]:
    """
    Check custom engine form fields.

    Returns:
        Dict of field name → error message; empty if everything is valid
    """
    errors = {}

    if not name.strip():
        errors["name"] = "Engine name is required"

    if not placeholder.strip():
        errors["placeholder"] = "Placeholder text is required"

    url = url.strip()
    if not url:
        errors["url"] = "URL is required"
    elif QUERY_MARKER not in url:
        errors["url"] = f"URL must include {QUERY_MARKER} placeholder"
    elif not URL_PATTERN.match(url):
        errors["url"] = "URL must start with http:// or https://"

    return errors


def generate_engine_id(name: str, taken=(), now: Optional[float] = None) -> str:
    """
    Build an id from the engine name plus a numeric suffix.

    The suffix is the last four digits of the millisecond clock, bumped
    until the id is not in `taken`.

    Example:
        generate_engine_id("My Engine")  # "my-engine-4821"
    """
    slug = re.sub(r"\s+", "-", name.strip().lower())
    millis = int((time.time() if now is None else now) * 1000)
    suffix = millis % 10000

    engine_id = f"{slug}-{suffix:04d}"
    while engine_id in taken:
        suffix = (suffix + 1) % 10000
        engine_id = f"{slug}-{suffix:04d}"
    return engine_id


class EngineOrderStore:
    """
    Ordered active engines plus the custom engine registry.

    In-memory state only changes after the matching write succeeded.
    Write failures are logged and the operation returns None.
    """

    def __init__(self, kv: KeyValueStore, default_order=None):
        self.kv = kv
        self.default_order = list(DEFAULT_ENGINE_ORDER if default_order is None else default_order)
        self._order: list[str] = []
        self._custom: list[CustomEngine] = []

    # Read accessors

    @property
    def active_engines(self) -> list[str]:
        return list(self._order)

    @property
    def custom_engines(self) -> list[CustomEngine]:
        return list(self._custom)

    def read_all(self) -> EngineState:
        return EngineState(order=self.active_engines, custom_engines=self.custom_engines)

    def known_ids(self) -> set[str]:
        return set(BUILT_IN_ENGINES) | {engine.id for engine in self._custom}

    def get_custom_engine(self, engine_id: str) -> Optional[CustomEngine]:
        return next((e for e in self._custom if e.id == engine_id), None)

    def engine_name(self, engine_id: str) -> str:
        if engine_id in BUILT_IN_ENGINES:
            return BUILT_IN_ENGINES[engine_id]["name"]
        engine = self.get_custom_engine(engine_id)
        return engine.name if engine else engine_id

    def engine_placeholder(self, engine_id: str) -> str:
        if engine_id in BUILT_IN_ENGINES:
            return BUILT_IN_ENGINES[engine_id]["placeholder"]
        engine = self.get_custom_engine(engine_id)
        return engine.placeholder if engine else "search"

    # Loading

    def initialize(self) -> SanitizeReport:
        """
        Load the registry and the active order, healing bad data.

        Returns:
            SanitizeReport describing which stored ids were dropped
        """
        self._custom = self._load_custom_engines()
        report = self._load_order()
        self._order = list(report.kept)
        logger.debug(f"Active search engines: {self._order}")
        return report

    def _read_json(self, key: str):
        """
        Read and decode a key.

        Returns:
            Decoded value, or None if absent or unparsable
        """
        raw = self.kv.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Stored value for {key!r} is not valid JSON, resetting it")
            return None

    def _write_json(self, key: str, value) -> None:
        self.kv.set(key, json.dumps(value))

    def _try_write(self, key: str, value) -> None:
        """Best-effort write used while healing stored data on load."""
        try:
            self._write_json(key, value)
        except StorageError:
            logger.exception(f"Failed to persist default value for {key!r}")

    def _load_custom_engines(self) -> list[CustomEngine]:
        try:
            data = self._read_json(CUSTOM_ENGINES_KEY)
        except StorageError:
            logger.exception("Failed to read custom search engines")
            return []

        if not isinstance(data, list):
            if data is not None:
                logger.warning("Custom search engines data is not a list, resetting it")
            self._try_write(CUSTOM_ENGINES_KEY, [])
            return []

        engines = []
        for record in data:
            engine = CustomEngine.from_dict(record)
            if engine is None:
                logger.warning(f"Skipping malformed custom search engine: {record!r}")
                continue
            engines.append(engine)
        return engines

    def _load_order(self) -> SanitizeReport:
        try:
            data = self._read_json(SEARCH_ENGINES_KEY)
        except StorageError:
            logger.exception("Failed to read active search engines")
            return SanitizeReport(kept=list(self.default_order), used_default=True)

        if not isinstance(data, list):
            self._try_write(SEARCH_ENGINES_KEY, self.default_order)
            return SanitizeReport(kept=list(self.default_order), used_default=True)

        report = self.sanitize(data)
        if report.dropped:
            logger.info(
                f"Dropped {report.dropped_count} unknown search engine id(s): {report.dropped}"
            )
        if report.used_default:
            logger.warning(f"No valid search engines stored, using default {self.default_order}")
            self._try_write(SEARCH_ENGINES_KEY, self.default_order)
        return report

    def sanitize(self, ids: list) -> SanitizeReport:
        """
        Keep only ids that resolve to a built-in or registered engine.

        Relative order of the kept ids is preserved. If none survive, the
        report carries the default order instead.
        """
        known = self.known_ids()
        report = SanitizeReport()
        for engine_id in ids:
            if isinstance(engine_id, str) and engine_id in known:
                report.kept.append(engine_id)
            else:
                report.dropped.append(engine_id)

        if not report.kept:
            report.kept = list(self.default_order)
            report.used_default = True
        return report

    # Active order mutations

    def _save_order(self, order: list[str]) -> Optional[list[str]]:
        try:
            self._write_json(SEARCH_ENGINES_KEY, order)
        except StorageError:
            logger.exception("Failed to save active search engines")
            return None
        self._order = order
        return self.active_engines

    def toggle(self, engine_id: str) -> Optional[list[str]]:
        """Remove the engine if active, otherwise append it at the end."""
        if engine_id in self._order:
            order = [e for e in self._order if e != engine_id]
        else:
            order = [*self._order, engine_id]
        return self._save_order(order)

    def move_up(self, engine_id: str) -> Optional[list[str]]:
        return self._move(engine_id, -1)

    def move_down(self, engine_id: str) -> Optional[list[str]]:
        return self._move(engine_id, 1)

    def _move(self, engine_id: str, offset: int) -> Optional[list[str]]:
        if engine_id not in self._order:
            return self.active_engines

        index = self._order.index(engine_id)
        target = index + offset
        if not 0 <= target < len(self._order):
            return self.active_engines

        order = list(self._order)
        order[index], order[target] = order[target], order[index]
        return self._save_order(order)

    # Custom engine registry

    def _save_custom(self, engines: list[CustomEngine]) -> bool:
        try:
            self._write_json(CUSTOM_ENGINES_KEY, [asdict(e) for e in engines])
        except StorageError:
            logger.exception("Failed to save custom search engines")
            return False
        self._custom = engines
        return True

    def add_custom_engine(self, name: str, placeholder: str, url: str) -> Optional[FormResult]:
        """
        Validate and register a new engine, then activate it.

        Returns:
            FormResult with the new engine, FormResult with field errors
            (nothing changed), or None if storage failed
        """
        errors = validate_engine_fields(name, placeholder, url)
        if errors:
            return FormResult(errors=errors)

        engine = CustomEngine(
            id=generate_engine_id(name, taken=self.known_ids()),
            name=name.strip(),
            placeholder=placeholder.strip(),
            url=url.strip(),
        )
        if not self._save_custom([*self._custom, engine]):
            return None
        logger.info(f"Added custom search engine {engine.id}")

        if engine.id not in self._order and self.toggle(engine.id) is None:
            return None
        return FormResult(engine=engine)

    def edit_custom_engine(self, engine_id: str, name: str, placeholder: str,
                           url: str) -> Optional[FormResult]:
        """Replace an engine's fields. The id and its active state are kept."""
        errors = validate_engine_fields(name, placeholder, url)
        if self.get_custom_engine(engine_id) is None:
            errors["id"] = "Unknown search engine"
        if errors:
            return FormResult(errors=errors)

        engine = CustomEngine(
            id=engine_id,
            name=name.strip(),
            placeholder=placeholder.strip(),
            url=url.strip(),
        )
        engines = [engine if e.id == engine_id else e for e in self._custom]
        if not self._save_custom(engines):
            return None
        return FormResult(engine=engine)

    def delete_custom_engine(self, engine_id: str) -> Optional[EngineState]:
        """
        Remove an engine from the active order and then from the registry.

        The order is written first. If that write fails nothing changes; if
        the registry write fails the engine is left defined but inactive,
        never active without a definition.
        """
        if engine_id in self._order:
            if self._save_order([e for e in self._order if e != engine_id]) is None:
                return None

        engines = [e for e in self._custom if e.id != engine_id]
        if not self._save_custom(engines):
            return None
        logger.info(f"Deleted custom search engine {engine_id}")
        return self.read_all()
