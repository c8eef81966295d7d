"""In-process read-through cache for rule sets, rules and poverty levels."""

import logging
import threading
import time
from datetime import date
from typing import Any, Callable, Optional, Tuple

from cachetools import TTLCache

from app.services.rule_engine.base import RuleSetVersionSnapshot, RuleSnapshot

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 900
DEFAULT_MAX_ENTRIES = 1024
DEFAULT_KEY_PREFIX = "eligibility:v2"
_DEFAULT_JURISDICTION = "__default__"


class RuleCache:
    """
    Time-limited cache of immutable rule data.

    Values are snapshots and tuples, so cached entries can be shared between
    concurrent requests. Empty rule lists are never stored. Expired entries
    are evicted on every write, and the least recently used entry makes room
    once ``max_entries`` is reached.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix
        self.max_entries = max_entries
        self._entries: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=clock)
        # TTLCache is not thread-safe on its own
        self._lock = threading.Lock()

    # ==================== Keys ====================

    def rule_set_key(self, jurisdiction_code: str, effective_date: date) -> str:
        return f"{self.key_prefix}:ruleset:{jurisdiction_code.upper()}:{effective_date.isoformat()}"

    def rules_key(self, rule_set_version_id: str) -> str:
        return f"{self.key_prefix}:rules:{rule_set_version_id}"

    def poverty_level_key(
        self, jurisdiction_code: Optional[str], year: int, household_size: int
    ) -> str:
        jurisdiction = jurisdiction_code.upper() if jurisdiction_code else _DEFAULT_JURISDICTION
        return f"{self.key_prefix}:fpl:{jurisdiction}:{year}:{household_size}"

    # ==================== Rule Sets ====================

    def get_rule_set(
        self, jurisdiction_code: str, effective_date: date
    ) -> Optional[RuleSetVersionSnapshot]:
        return self._get(self.rule_set_key(jurisdiction_code, effective_date))

    def set_rule_set(
        self,
        jurisdiction_code: str,
        effective_date: date,
        rule_set: RuleSetVersionSnapshot,
    ) -> None:
        self._set(self.rule_set_key(jurisdiction_code, effective_date), rule_set)

    # ==================== Rules ====================

    def get_rules(self, rule_set_version_id: str) -> Optional[Tuple[RuleSnapshot, ...]]:
        return self._get(self.rules_key(rule_set_version_id))

    def set_rules(self, rule_set_version_id: str, rules) -> None:
        rules = tuple(rules)
        if not rules:
            return
        self._set(self.rules_key(rule_set_version_id), rules)

    # ==================== Poverty Levels ====================

    def get_poverty_level(
        self, jurisdiction_code: Optional[str], year: int, household_size: int
    ) -> Optional[int]:
        return self._get(self.poverty_level_key(jurisdiction_code, year, household_size))

    def set_poverty_level(
        self,
        jurisdiction_code: Optional[str],
        year: int,
        household_size: int,
        annual_amount_cents: int,
    ) -> None:
        self._set(
            self.poverty_level_key(jurisdiction_code, year, household_size),
            annual_amount_cents,
        )

    # ==================== Invalidation ====================

    def invalidate_jurisdiction(self, jurisdiction_code: str) -> int:
        """
        Drop cached rule sets and poverty levels for a jurisdiction.

        Cached rule lists are keyed by version id and expire on their own.

        Returns:
            Number of entries removed
        """
        code = jurisdiction_code.strip().upper()
        prefixes = (
            f"{self.key_prefix}:ruleset:{code}:",
            f"{self.key_prefix}:fpl:{code}:",
        )
        with self._lock:
            self._entries.expire()
            stale = [key for key in list(self._entries.keys()) if key.startswith(prefixes)]
            for key in stale:
                self._entries.pop(key, None)
        logger.info(f"Invalidated {len(stale)} cached entries for {code}")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)

    def _get(self, key: str) -> Any:
        with self._lock:
            value = self._entries.get(key)
        if value is None:
            logger.debug(f"Cache miss: {key}")
            return None
        logger.debug(f"Cache hit: {key}")
        return value

    def _set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value
