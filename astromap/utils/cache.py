from __future__ import annotations
from collections import OrderedDict
import dataclasses, hashlib, json, sqlite3, time, os, threading
from typing import Any, Dict, Mapping, Optional, Tuple

from astromap.core.constants import CFG, SolverConfig
from astromap.core.validators import parse_weights, require_finite

class TTLCache:
    """In-memory LRU whose entries also expire after their ttl (seconds)."""
    def __init__(self, capacity: int = 1024, clock=time.time):
        self.capacity = capacity
        self.store: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self.lock = threading.Lock()
        self.clock = clock

    def get(self, key: str):
        with self.lock:
            hit = self.store.get(key)
            if hit is None:
                return None
            expires_at, value = hit
            if self.clock() >= expires_at:
                del self.store[key]
                return None
            self.store.move_to_end(key)
            return value

    def set(self, key: str, value: Any, ttl: float):
        with self.lock:
            self.store[key] = (self.clock() + ttl, value)
            self.store.move_to_end(key)
            if len(self.store) > self.capacity:
                self.store.popitem(last=False)

    def __len__(self) -> int:
        return len(self.store)

class SQLiteCache:
    def __init__(self, path: str, clock=time.time):
        self.path = path
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.lock = threading.Lock()
        self.clock = clock
        self._init()

    def _init(self):
        cur = self.conn.cursor()
        cur.execute("""CREATE TABLE IF NOT EXISTS cache (
            k TEXT PRIMARY KEY,
            v TEXT NOT NULL,
            created_at REAL NOT NULL,
            expires_at REAL NOT NULL
        )""")
        self.conn.commit()

    def get(self, key: str) -> Optional[Any]:
        with self.lock:
            cur = self.conn.cursor()
            cur.execute("SELECT v, expires_at FROM cache WHERE k=?", (key,))
            row = cur.fetchone()
            if not row: return None
            if self.clock() >= row[1]:
                cur.execute("DELETE FROM cache WHERE k=?", (key,))
                self.conn.commit()
                return None
            return json.loads(row[0])

    def set(self, key: str, value: Any, ttl: float):
        s = json.dumps(value, separators=(',',':'))
        ts = self.clock()
        with self.lock:
            cur = self.conn.cursor()
            cur.execute("REPLACE INTO cache (k,v,created_at,expires_at) VALUES (?,?,?,?)", (key, s, ts, ts + ttl))
            self.conn.commit()

    def close(self):
        with self.lock:
            self.conn.close()

# settings that change how a result is executed or stored, never its content
_KEY_EXCLUDED_SETTINGS = ("max_workers", "cache_ttl_seconds")


def analysis_cache_key(
    birth_date: str,
    birth_time: str,
    timezone: str,
    weights: Optional[Mapping[str, Any]],
    cfg: Optional[SolverConfig] = None,
    ascendant: Optional[float] = None,
) -> str:
    """Stable key: sha256 over canonical JSON (weights normalized over every planet, solver settings included)."""
    settings = dataclasses.asdict(cfg or CFG)
    for name in _KEY_EXCLUDED_SETTINGS:
        settings.pop(name, None)
    payload: Dict[str, Any] = {
        "date": birth_date,
        "time": birth_time,
        "tz": timezone,
        "weights": parse_weights(weights),
        "solver": settings,
        "ascendant": None if ascendant is None else require_finite("ascendant", ascendant),
    }
    blob = json.dumps(payload, sort_keys=True, separators=(',',':'))
    return "analysis:" + hashlib.sha256(blob.encode("utf-8")).hexdigest()
