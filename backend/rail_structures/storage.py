"""
Snapshot persistence for trains and bookings.

A store loads the full state once at start-up and saves it after every
mutating engine call. Stores never touch the engine's live objects: they only
see the ``Snapshot`` they are handed and return freshly built records.

``JsonSnapshotStore`` keeps two files in a data directory::

    trains.json    [ {trainId, name, source, destination, totalSeats,
                      bookedSeats, baseFare}, ... ]
    bookings.json  { "passengers": [ {name, age, gender, pnr, trainId,
                                      seatNo, fare}, ... ],
                     "waiting":    [ ...same shape, front first... ] }
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .passengers import Passenger
from .trains import Train
from .utils import DataHandler

logger = logging.getLogger(__name__)

TRAINS_FILE = 'trains.json'
BOOKINGS_FILE = 'bookings.json'


@dataclass
class Snapshot:
    """Full engine state. ``trains`` is None when stored train data was unusable."""
    trains: Optional[List[Train]] = field(default_factory=list)
    confirmed: List[Passenger] = field(default_factory=list)
    waiting: List[Passenger] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trains': None if self.trains is None else [t.to_dict() for t in self.trains],
            'passengers': [p.to_dict() for p in self.confirmed],
            'waiting': [p.to_dict() for p in self.waiting],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Snapshot:
        trains = data.get('trains')
        return cls(
            trains=None if trains is None else [Train.from_dict(t) for t in trains],
            confirmed=[Passenger.from_dict(p) for p in data.get('passengers', [])],
            waiting=[Passenger.from_dict(p) for p in data.get('waiting', [])],
        )


class SnapshotStore(ABC):
    """Load/save contract used by the reservation engine"""

    @abstractmethod
    def load_snapshot(self) -> Optional[Snapshot]:
        """Return the stored state, or None when nothing usable is stored.

        Bookings that load cleanly are returned even when the train data is
        missing or corrupt; the snapshot's ``trains`` is None in that case.
        """

    @abstractmethod
    def save_snapshot(self, snapshot: Snapshot) -> bool:
        """Persist the state; False when the write failed"""


class JsonSnapshotStore(SnapshotStore):
    """Stores trains.json and bookings.json in a data directory.

    An unreadable file is moved aside to ``<name>.corrupt`` before the next
    save can overwrite it.
    """

    def __init__(self, data_dir: str) -> None:
        self.data_dir = data_dir
        self.handler = DataHandler(data_dir)

    def load_snapshot(self) -> Optional[Snapshot]:
        trains = self._load_trains()
        confirmed, waiting = self._load_bookings()
        if trains is None and not confirmed and not waiting:
            return None
        return Snapshot(trains=trains, confirmed=confirmed, waiting=waiting)

    def _load_trains(self) -> Optional[List[Train]]:
        data = self.handler.load_data(TRAINS_FILE)
        if not isinstance(data, list):
            if self.handler.exists(TRAINS_FILE):
                logger.warning("Ignoring %s: expected a list of trains", TRAINS_FILE)
                self.handler.set_aside(TRAINS_FILE)
            return None
        try:
            return [Train.from_dict(item) for item in data]
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Ignoring corrupt %s: %s", TRAINS_FILE, e)
            self.handler.set_aside(TRAINS_FILE)
            return None

    def _load_bookings(self):
        data = self.handler.load_data(BOOKINGS_FILE)
        if not isinstance(data, dict):
            if self.handler.exists(BOOKINGS_FILE):
                logger.warning("Ignoring %s: expected an object", BOOKINGS_FILE)
                self.handler.set_aside(BOOKINGS_FILE)
            return [], []
        try:
            confirmed = [Passenger.from_dict(p) for p in data.get('passengers') or []]
            waiting = [Passenger.from_dict(p) for p in data.get('waiting') or []]
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Ignoring corrupt %s: %s", BOOKINGS_FILE, e)
            self.handler.set_aside(BOOKINGS_FILE)
            return [], []
        return confirmed, waiting

    def save_snapshot(self, snapshot: Snapshot) -> bool:
        trains_ok = self.handler.save_data(
            TRAINS_FILE, [train.to_dict() for train in snapshot.trains or []]
        )
        bookings_ok = self.handler.save_data(BOOKINGS_FILE, {
            'passengers': [p.to_dict() for p in snapshot.confirmed],
            'waiting': [p.to_dict() for p in snapshot.waiting],
        })
        return trains_ok and bookings_ok


class MemorySnapshotStore(SnapshotStore):
    """Keeps the last saved state in memory, in its serialized form"""

    def __init__(self, snapshot: Optional[Snapshot] = None, fail_saves: bool = False) -> None:
        self.data: Optional[Dict[str, Any]] = snapshot.to_dict() if snapshot else None
        self.fail_saves = fail_saves
        self.save_count = 0

    def load_snapshot(self) -> Optional[Snapshot]:
        if self.data is None:
            return None
        return Snapshot.from_dict(self.data)

    def save_snapshot(self, snapshot: Snapshot) -> bool:
        self.save_count += 1
        if self.fail_saves:
            logger.error("In-memory store refused save #%d", self.save_count)
            return False
        self.data = snapshot.to_dict()
        return True
