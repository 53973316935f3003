"""
Passenger booking records and booking outcomes
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional


class BookingStatus(Enum):
    """Result of a booking attempt"""
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    TRAIN_NOT_FOUND = "train_not_found"


@dataclass
class Passenger:
    """A booking record.

    While waiting the record is only a request: ``pnr`` is empty and
    ``seat_no``/``fare`` are meaningless. ``train_id`` on a waiting request is
    the preferred train and may be empty.
    """
    name: str
    age: int
    gender: str
    pnr: str = ''
    train_id: str = ''
    seat_no: int = 0
    fare: float = 0.0

    def copy(self, **changes) -> Passenger:
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'age': self.age,
            'gender': self.gender,
            'pnr': self.pnr,
            'trainId': self.train_id,
            'seatNo': self.seat_no,
            'fare': self.fare,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Passenger:
        return cls(
            name=str(data.get('name') or ''),
            age=int(data.get('age') or 0),
            gender=str(data.get('gender') or ''),
            pnr=str(data.get('pnr') or ''),
            train_id=str(data.get('trainId') or ''),
            seat_no=int(data.get('seatNo') or 0),
            fare=float(data.get('fare') or 0.0),
        )


@dataclass
class BookingOutcome:
    status: BookingStatus
    train_id: str
    passenger: Optional[Passenger] = None
    saved: bool = True

    @property
    def confirmed(self) -> bool:
        return self.status is BookingStatus.CONFIRMED

    @property
    def waitlisted(self) -> bool:
        return self.status is BookingStatus.WAITLISTED

    @property
    def pnr(self) -> Optional[str]:
        return self.passenger.pnr if self.confirmed else None

    @property
    def seat_no(self) -> Optional[int]:
        return self.passenger.seat_no if self.confirmed else None

    @property
    def fare(self) -> Optional[float]:
        return self.passenger.fare if self.confirmed else None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'status': self.status.value,
            'train_id': self.train_id,
        }
        if self.confirmed:
            result.update({
                'pnr': self.pnr,
                'seat_no': self.seat_no,
                'fare': self.fare,
            })
        if self.passenger is not None:
            result['passenger'] = self.passenger.to_dict()
        return result


@dataclass
class Cancellation:
    """Result of cancelling a PNR, with the waiting-list promotion it triggered"""
    cancelled: bool
    promotion: Optional[BookingOutcome] = None
    saved: bool = True
