"""
Keyed stores backing the period buckets and rolling totals

A store exposes three operations, each on integer values:
get_last (point read), add (additive update) and set_max (max update).
Writes made between begin() and commit() are staged and become visible to
other readers only when the whole block commits.

Committing is split in two so that several stores move together:
prepare() does everything that can fail (writing files) and publish()
only swaps the prepared state in.
"""
import json
import logging
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

from dex_ticker.utils import parse_decimal

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Host-owned keyed store with per-block atomic commits"""

    @abstractmethod
    def get_last(self, key: str) -> Optional[int]:
        """Latest value for key, None if it was never written"""

    @abstractmethod
    def add(self, key: str, delta: int) -> None:
        """Add delta to the value at key (missing keys start at zero)"""

    @abstractmethod
    def set_max(self, key: str, value: int) -> None:
        """Keep the larger of the stored value and value"""

    @abstractmethod
    def begin(self) -> None:
        pass

    @abstractmethod
    def prepare(self) -> None:
        """Get the staged block ready to publish without exposing it"""

    @abstractmethod
    def publish(self) -> None:
        """Expose a prepared block"""

    @abstractmethod
    def rollback(self) -> None:
        pass

    def commit(self) -> None:
        self.prepare()
        self.publish()


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store; staged writes live in an overlay until commit"""

    def __init__(self, name: str = "store"):
        self.name = name
        self._values: Dict[str, int] = {}
        self._pending: Optional[Dict[str, int]] = None

    def __len__(self) -> int:
        return len(self._values)

    @property
    def in_transaction(self) -> bool:
        return self._pending is not None

    def get_last(self, key: str) -> Optional[int]:
        if self._pending is not None and key in self._pending:
            return self._pending[key]
        return self._values.get(key)

    def add(self, key: str, delta: int) -> None:
        self._write(key, (self.get_last(key) or 0) + delta)

    def set_max(self, key: str, value: int) -> None:
        current = self.get_last(key)
        if current is None or value > current:
            self._write(key, value)

    def _write(self, key: str, value: int) -> None:
        # Outside a block transaction writes apply immediately
        if self._pending is None:
            self._values[key] = value
        else:
            self._pending[key] = value

    def begin(self) -> None:
        if self._pending is not None:
            raise RuntimeError(f"Store {self.name} already has an open block transaction")
        self._pending = {}

    def prepare(self) -> None:
        if self._pending is None:
            raise RuntimeError(f"Store {self.name} has no open block transaction")

    def publish(self) -> None:
        if self._pending is None:
            raise RuntimeError(f"Store {self.name} has no open block transaction")
        self._values.update(self._pending)
        self._pending = None

    def rollback(self) -> None:
        self._pending = None


class FileKeyValueStore(InMemoryKeyValueStore):
    """
    In-memory store persisted to a JSON file on every commit.
    Values are written as strings since they routinely exceed 2^53.

    The whole map is rewritten per block, so a commit costs time proportional
    to the number of stored keys, not to the keys the block touched.
    """

    def __init__(self, path: Path, name: Optional[str] = None):
        super().__init__(name or Path(path).stem)
        self.path = Path(path)
        self._tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        self._prepared = False
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return

        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        for key, value in raw.items():
            parsed = parse_decimal(value)
            if parsed == 0 and str(value).strip() not in ("0", "0.0"):
                logger.warning(f"Unparsable value {value!r} for {key} in {self.path}, loading as 0")
            self._values[key] = int(parsed)

        logger.info(f"Loaded {len(self._values)} keys from {self.path}")

    def prepare(self) -> None:
        super().prepare()
        self._write_snapshot({**self._values, **self._pending})
        self._prepared = True

    def publish(self) -> None:
        if not self._prepared:
            raise RuntimeError(f"Store {self.name} was not prepared")
        os.replace(self._tmp_path, self.path)
        self._prepared = False
        super().publish()

    def rollback(self) -> None:
        super().rollback()
        self._prepared = False
        if self._tmp_path.exists():
            self._tmp_path.unlink()

    def _write_snapshot(self, values: Dict[str, int]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._tmp_path, "w", encoding="utf-8") as f:
            json.dump({key: str(value) for key, value in values.items()}, f)
            f.flush()
            os.fsync(f.fileno())


@contextmanager
def block_transaction(*stores: KeyValueStore) -> Iterator[None]:
    """
    Stage every write made inside the block, commit them together on success
    and discard them all if anything raises.

    Every store is prepared before any is published, so a failed file write
    leaves all stores, on disk and in memory, as they were before the block.
    """
    for store in stores:
        store.begin()
    try:
        yield
        for store in stores:
            store.prepare()
    except BaseException:
        for store in stores:
            store.rollback()
        raise
    for store in stores:
        store.publish()
