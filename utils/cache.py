import re
import time
from threading import RLock
from typing import Any, Callable, Dict, Optional, Pattern, Tuple, Union
from config.settings import settings

_MISSING = object()


class TTLCache:
    """
    Простой кэш в памяти с временем жизни на каждую запись

    Просроченные записи удаляются лениво, при обращении к ним.
    """

    def __init__(self, default_ttl: float = settings.CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float, float]] = {}
        self._lock = RLock()

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock(), self.default_ttl if ttl is None else ttl)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            value, stored_at, ttl = entry
            if self._clock() - stored_at > ttl:
                del self._entries[key]
                return default
            return value

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        with self._lock:
            keys_to_remove = [k for k in self._entries if regex.search(k)]
            for key in keys_to_remove:
                del self._entries[key]
        return len(keys_to_remove)

    def purge_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [k for k, (_, stored_at, ttl) in self._entries.items() if now - stored_at > ttl]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


cache = TTLCache()


def create_cache_key(*parts: Union[str, int]) -> str:
    return ":".join(str(part) for part in parts)


class CacheKeys:
    STORES = "stores"
    USER_STORES = "user_stores"

    @staticmethod
    def user_stores(owner_id: int) -> str:
        return create_cache_key(CacheKeys.USER_STORES, owner_id)

    @staticmethod
    def menus(store_id: int) -> str:
        return create_cache_key("menus", store_id)

    @staticmethod
    def delivery_areas(store_id: int) -> str:
        return create_cache_key("delivery_areas", store_id)

