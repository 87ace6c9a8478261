from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Set, Union

logger = logging.getLogger(__name__)

BLACKLIST_THRESHOLD = 3
SESSION_KEY = 'suggestion_dismissals'


class JsonFileDismissalStore:
    """Dismissal counts kept in a JSON file on the client machine."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + '.bak')

    def _set_aside(self, reason: str) -> None:
        # Keep the damaged file so the next save does not destroy earlier counts
        try:
            self.path.replace(self.backup_path)
        except OSError:
            logger.warning("%s dismissal state at %s could not be moved aside", reason, self.path)
            return
        logger.warning(
            "%s dismissal state at %s moved to %s; starting from empty counts",
            reason, self.path, self.backup_path,
        )

    def load(self) -> Dict[str, int]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError):
            self._set_aside("Unreadable")
            return {}
        if not isinstance(data, dict):
            self._set_aside("Unexpected")
            return {}
        return {str(k): int(v) for k, v in data.items() if isinstance(v, int)}

    def save(self, counts: Dict[str, int]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(counts, sort_keys=True), encoding='utf-8')


class SessionDismissalStore:
    """Dismissal counts kept in the browser-bound Django session."""

    def __init__(self, session, key: str = SESSION_KEY):
        self.session = session
        self.key = key

    def load(self) -> Dict[str, int]:
        return dict(self.session.get(self.key) or {})

    def save(self, counts: Dict[str, int]) -> None:
        self.session[self.key] = counts
        self.session.modified = True


class DismissalThrottle:
    """
    Hides a suggestion category once it has been dismissed
    ``BLACKLIST_THRESHOLD`` times. Counts only grow; there is no reset.
    """

    def __init__(self, store, threshold: int = BLACKLIST_THRESHOLD):
        self.store = store
        self.threshold = threshold

    def record_dismissal(self, category: str) -> int:
        counts = self.store.load()
        counts[category] = counts.get(category, 0) + 1
        self.store.save(counts)
        if counts[category] == self.threshold:
            logger.info("Suggestion category %s blacklisted after %s dismissals", category, self.threshold)
        return counts[category]

    def dismissal_count(self, category: str) -> int:
        return self.store.load().get(category, 0)

    def is_blacklisted(self, category: str) -> bool:
        return self.dismissal_count(category) >= self.threshold

    def current_blacklist(self) -> Set[str]:
        return {category for category, count in self.store.load().items() if count >= self.threshold}

    def filter_suggestions(self, suggestions: Iterable[dict], key: str = 'type') -> List[dict]:
        blacklist = self.current_blacklist()
        return [s for s in suggestions if s.get(key) not in blacklist]
