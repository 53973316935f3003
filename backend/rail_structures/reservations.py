"""
Reservation engine
1. TrainRegistry for trains (seat counts live on the train)
2. List + HashTable for confirmed passengers (booking order, O(1) PNR lookup)
3. WaitingQueue (FIFO) for passengers without a seat

Every public operation runs under one re-entrant lock, and every mutating
operation ends with a snapshot save. A failed save is logged; the in-memory
change stands.
"""
from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Dict, List, Optional

from .passengers import BookingOutcome, BookingStatus, Cancellation, Passenger
from .storage import Snapshot, SnapshotStore
from .trains import Train, TrainRegistry, default_trains
from .utils import HashTable, WaitingQueue, calculate_fare, generate_pnr

logger = logging.getLogger(__name__)


class ReservationSystem:
    """Owns trains, confirmed bookings and the waiting list"""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store
        self.registry = TrainRegistry()
        self.passengers: List[Passenger] = []
        self.pnr_table = HashTable()
        self.waiting_list = WaitingQueue()
        self.last_save_ok = True
        self._lock = RLock()
        self.load()

    # ===================== PERSISTENCE =====================
    def load(self) -> None:
        """Replace in-memory state with the stored snapshot, seeding default trains if needed"""
        with self._lock:
            snapshot = self.store.load_snapshot() or Snapshot(trains=None)
            if snapshot.trains is None:
                snapshot.trains = self._seed_trains(snapshot.confirmed)
                logger.warning("No usable train data, seeding %d default trains "
                               "(keeping %d bookings, %d waiting)", len(snapshot.trains),
                               len(snapshot.confirmed), len(snapshot.waiting))
                self._apply(snapshot)
                self._persist()
                return
            self._apply(snapshot)
            logger.info("Loaded %d trains, %d bookings, %d waiting",
                        len(self.registry), len(self.passengers), len(self.waiting_list))

    @staticmethod
    def _seed_trains(confirmed: List[Passenger]) -> List[Train]:
        trains = default_trains()
        # Occupancy of a seeded train comes from the bookings that survived.
        for train in trains:
            held = sum(1 for p in confirmed if p.train_id == train.train_id)
            train.booked_seats = min(held, train.total_seats)
        return trains

    def _apply(self, snapshot: Snapshot) -> None:
        self.registry = TrainRegistry([train.copy() for train in snapshot.trains])
        self.passengers = [p.copy() for p in snapshot.confirmed]
        self.pnr_table = HashTable(size=max(128, len(self.passengers) * 2 + 1))
        for passenger in self.passengers:
            self.pnr_table.set(passenger.pnr, passenger)
        self.waiting_list = WaitingQueue(p.copy() for p in snapshot.waiting)

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(
                trains=[train.copy() for train in self.registry],
                confirmed=[p.copy() for p in self.passengers],
                waiting=[p.copy() for p in self.waiting_list],
            )

    def _persist(self) -> bool:
        try:
            ok = self.store.save_snapshot(self.snapshot())
        except Exception:
            logger.exception("Snapshot save raised; in-memory state kept")
            ok = False
        if not ok:
            logger.error("Failed to save reservation snapshot")
        self.last_save_ok = ok
        return ok

    # ===================== TRAINS =====================
    def add_train(self, train: Train) -> bool:
        """Register a new train; False if the id is already taken"""
        with self._lock:
            if self.registry.find_by_id(train.train_id) is not None:
                logger.info("Train %s already exists", train.train_id)
                return False
            self.registry.add(train.copy())
            logger.info("Added train %s (%s -> %s, %d seats)",
                        train.train_id, train.source, train.destination, train.total_seats)
            self._persist()
            return True

    def find_train(self, train_id: str) -> Optional[Train]:
        with self._lock:
            train = self.registry.find_by_id(train_id)
            return train.copy() if train else None

    def search_trains(self, source: str, destination: str) -> List[Train]:
        with self._lock:
            return [train.copy() for train in self.registry.search(source, destination)]

    def list_trains(self) -> List[Train]:
        with self._lock:
            return [train.copy() for train in self.registry]

    # ===================== BOOKINGS =====================
    def book_ticket(self, train_id: str, passenger: Passenger) -> BookingOutcome:
        """Seat the passenger on the train, or put them on the waiting list when full"""
        with self._lock:
            outcome = self._book(train_id, passenger)
            if outcome.status is not BookingStatus.TRAIN_NOT_FOUND:
                outcome.saved = self._persist()
            return outcome

    def _book(self, train_id: str, passenger: Passenger) -> BookingOutcome:
        train = self.registry.find_by_id(train_id)
        if train is None:
            logger.info("Booking for %s failed: train %s not found", passenger.name, train_id)
            return BookingOutcome(BookingStatus.TRAIN_NOT_FOUND, train_id)

        if train.has_vacancy():
            train.booked_seats += 1
            # Seat number is the occupancy count after this booking.
            confirmed = passenger.copy(
                pnr=self._new_pnr(),
                train_id=train.train_id,
                seat_no=train.booked_seats,
                fare=calculate_fare(train.base_fare, train.booked_seats),
            )
            self.passengers.append(confirmed)
            self.pnr_table.set(confirmed.pnr, confirmed)
            logger.info("Booked %s on %s (PNR %s, seat %d, fare %.2f)",
                        confirmed.name, train.train_id, confirmed.pnr,
                        confirmed.seat_no, confirmed.fare)
            return BookingOutcome(BookingStatus.CONFIRMED, train.train_id, confirmed.copy())

        pending = passenger.copy(pnr='', seat_no=0, fare=0.0)
        self.waiting_list.enqueue(pending)
        logger.info("Train %s full: %s added to waiting list (position %d)",
                    train.train_id, pending.name, len(self.waiting_list))
        return BookingOutcome(BookingStatus.WAITLISTED, train.train_id, pending.copy())

    def _new_pnr(self) -> str:
        pnr = generate_pnr()
        while self.pnr_table.contains(pnr):
            pnr = generate_pnr()
        return pnr

    def cancel_ticket(self, pnr: str) -> bool:
        """Cancel a confirmed booking and hand the freed seat to the front of the waiting list"""
        return self.cancel_with_promotion(pnr).cancelled

    def cancel_with_promotion(self, pnr: str) -> Cancellation:
        """Like cancel_ticket, also reporting the promotion and whether the save succeeded"""
        with self._lock:
            passenger = self.pnr_table.get(pnr)
            if passenger is None:
                return Cancellation(cancelled=False)

            self.pnr_table.delete(pnr)
            self.passengers = [p for p in self.passengers if p is not passenger]
            train = self.registry.find_by_id(passenger.train_id)
            if train is not None:
                train.booked_seats = max(0, train.booked_seats - 1)
            logger.info("Cancelled PNR %s (%s on %s)", pnr, passenger.name, passenger.train_id)

            promotion = None
            if not self.waiting_list.is_empty():
                promotion = self._promote_next(passenger.train_id)

            saved = self._persist()
            if promotion is not None:
                promotion.saved = saved
            return Cancellation(cancelled=True, promotion=promotion, saved=saved)

    def _promote_next(self, vacated_train_id: str) -> BookingOutcome:
        request = self.waiting_list.dequeue()
        # A request without a train preference takes the seat just vacated.
        target = request.train_id or vacated_train_id
        outcome = self._book(target, request)
        if outcome.status is BookingStatus.TRAIN_NOT_FOUND:
            self.waiting_list.enqueue(request)
            logger.warning("Waiting passenger %s wants unknown train %s; moved to back of queue",
                           request.name, target)
        elif outcome.confirmed:
            logger.info("Promoted %s from waiting list to %s", request.name, target)
        return outcome

    def find_passenger(self, pnr: str) -> Optional[Passenger]:
        with self._lock:
            passenger = self.pnr_table.get(pnr)
            return passenger.copy() if passenger else None

    def list_passengers(self) -> List[Passenger]:
        with self._lock:
            return [p.copy() for p in self.passengers]

    def waiting_passengers(self) -> List[Passenger]:
        with self._lock:
            return [p.copy() for p in self.waiting_list]

    # ===================== STATISTICS =====================
    def statistics(self) -> Dict[str, Any]:
        with self._lock:
            trains = self.registry.list_trains()
            total_seats = sum(t.total_seats for t in trains)
            booked = sum(t.booked_seats for t in trains)
            revenue = sum(p.fare for p in self.passengers)
            return {
                'total_trains': len(trains),
                'total_seats': total_seats,
                'booked_seats': booked,
                'available_seats': sum(t.available_seats for t in trains),
                'confirmed_passengers': len(self.passengers),
                'waiting_passengers': len(self.waiting_list),
                'total_revenue': round(revenue, 2),
                'last_save_ok': self.last_save_ok,
            }
