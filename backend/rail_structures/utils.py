import json
import logging
import os
import uuid
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

PNR_LENGTH = 8
SURGE_PER_SEAT = 0.01


def generate_pnr() -> str:
    """Generate an 8 character uppercase booking reference"""
    return uuid.uuid4().hex[:PNR_LENGTH].upper()


def calculate_fare(base_fare: float, occupied_seats: int) -> float:
    """Fare surges by 1% of the base fare per occupied seat.

    ``occupied_seats`` already counts the seat being priced.
    """
    return base_fare * (1.0 + SURGE_PER_SEAT * occupied_seats)


class DataHandler:
    """Handles JSON storage and retrieval inside a data directory"""

    def __init__(self, data_dir):
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)

    def path_for(self, filename):
        return os.path.join(self.data_dir, filename)

    def exists(self, filename):
        return os.path.exists(self.path_for(filename))

    def set_aside(self, filename, suffix=".corrupt"):
        """Move an unreadable file out of the way, returning its new path"""
        filepath = self.path_for(filename)
        target = filepath + suffix
        try:
            os.replace(filepath, target)
        except OSError as e:
            logger.error("Could not move %s aside: %s", filename, e)
            return None
        logger.warning("Moved unreadable %s to %s", filename, target)
        return target

    def save_data(self, filename, data):
        """Save data to JSON file through a temp file"""
        filepath = self.path_for(filename)
        tmp = filepath + ".tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, filepath)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error saving data to %s: %s", filename, e)
            return False

    def load_data(self, filename, default=None):
        """Load data from JSON file, ``default`` when missing or unreadable"""
        filepath = self.path_for(filename)
        try:
            if os.path.exists(filepath):
                with open(filepath, "r", encoding="utf-8") as f:
                    return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Error loading data from %s: %s", filename, e)

        return default


class HashTable:
    """Hash table with chaining for booking lookup by PNR.

    The bucket array doubles once the load factor passes the threshold, so
    chains stay short as bookings accumulate.
    """

    def __init__(self, size: int = 128) -> None:
        self.size = max(8, size)
        self.buckets: List[List[tuple]] = [[] for _ in range(self.size)]
        self.count = 0
        self.load_factor_threshold = 0.75

    def _index(self, key: str) -> int:
        return hash(key) % self.size

    def load_factor(self) -> float:
        return self.count / self.size

    def _rehash(self) -> None:
        old_buckets = self.buckets
        self.size *= 2
        self.buckets = [[] for _ in range(self.size)]
        for bucket in old_buckets:
            for key, value in bucket:
                self.buckets[self._index(key)].append((key, value))
        logger.debug("Rehashed PNR table to %d buckets", self.size)

    def set(self, key: str, value: Any) -> None:
        bucket = self.buckets[self._index(key)]
        for i, (k, _) in enumerate(bucket):
            if k == key:
                bucket[i] = (key, value)
                return
        bucket.append((key, value))
        self.count += 1
        if self.load_factor() > self.load_factor_threshold:
            self._rehash()

    def get(self, key: str) -> Optional[Any]:
        for k, value in self.buckets[self._index(key)]:
            if k == key:
                return value
        return None

    def delete(self, key: str) -> Optional[Any]:
        bucket = self.buckets[self._index(key)]
        for i, (k, value) in enumerate(bucket):
            if k == key:
                del bucket[i]
                self.count -= 1
                return value
        return None

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return self.count


class WaitingQueue:
    """FIFO queue of passengers waiting for a seat"""
    def __init__(self, items=None):
        self.queue = list(items or [])

    def enqueue(self, item):
        """Add passenger at the back"""
        self.queue.append(item)

    def dequeue(self):
        """Remove and return the passenger at the front"""
        if not self.is_empty():
            return self.queue.pop(0)
        return None

    def front(self):
        if not self.is_empty():
            return self.queue[0]
        return None

    def is_empty(self):
        return len(self.queue) == 0

    def size(self):
        return len(self.queue)

    def snapshot(self):
        """Ordered copy of the queue, front first"""
        return list(self.queue)

    def __len__(self):
        return len(self.queue)

    def __iter__(self):
        return iter(self.snapshot())
