"""
Train registry
Trains are kept in insertion order and resolved by train_id on every access
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class Train:
    """A scheduled train with a fixed seat capacity"""
    train_id: str
    name: str
    source: str
    destination: str
    total_seats: int
    booked_seats: int = 0
    base_fare: float = 0.0

    @property
    def available_seats(self) -> int:
        return max(0, self.total_seats - self.booked_seats)

    def has_vacancy(self) -> bool:
        return self.booked_seats < self.total_seats

    def copy(self) -> Train:
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert train to its stored form"""
        return {
            'trainId': self.train_id,
            'name': self.name,
            'source': self.source,
            'destination': self.destination,
            'totalSeats': self.total_seats,
            'bookedSeats': self.booked_seats,
            'baseFare': self.base_fare,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Train:
        """Create train from its stored form"""
        return cls(
            train_id=str(data.get('trainId') or ''),
            name=str(data.get('name') or ''),
            source=str(data.get('source') or ''),
            destination=str(data.get('destination') or ''),
            total_seats=int(data.get('totalSeats') or 0),
            booked_seats=int(data.get('bookedSeats') or 0),
            base_fare=float(data.get('baseFare') or 0.0),
        )


def default_trains() -> List[Train]:
    """Fixture trains used when no train data can be loaded"""
    return [
        Train("123A", "Express One", "Mumbai", "Pune", 100, 0, 200.0),
        Train("456B", "Coastal Mail", "Chennai", "Bangalore", 80, 0, 350.0),
        Train("789C", "InterCity", "Delhi", "Agra", 120, 0, 150.0),
    ]


class TrainRegistry:
    """Ordered collection of trains"""

    def __init__(self, trains: Optional[List[Train]] = None) -> None:
        self.trains: List[Train] = list(trains or [])

    def add(self, train: Train) -> None:
        # Duplicate ids are the caller's problem; lookups return the first match.
        self.trains.append(train)

    def find_by_id(self, train_id: str) -> Optional[Train]:
        for train in self.trains:
            if train.train_id == train_id:
                return train
        return None

    def search(self, source: str, destination: str) -> List[Train]:
        """Case-insensitive exact match on source and destination"""
        src = (source or '').casefold()
        dst = (destination or '').casefold()
        return [
            train
            for train in self.trains
            if train.source.casefold() == src and train.destination.casefold() == dst
        ]

    def list_trains(self) -> List[Train]:
        return list(self.trains)

    def __len__(self) -> int:
        return len(self.trains)

    def __iter__(self) -> Iterator[Train]:
        return iter(self.list_trains())
