import pytest

from rail_structures.reservations import ReservationSystem
from rail_structures.storage import MemorySnapshotStore, Snapshot
from rail_structures.trains import Train


@pytest.fixture
def store():
    return MemorySnapshotStore(Snapshot(trains=[
        Train("T1", "Solo Shuttle", "Mumbai", "Pune", 1, 0, 100.0),
        Train("T2", "Twin Express", "Mumbai", "Pune", 2, 0, 250.0),
        Train("T3", "Hill Queen", "Delhi", "Shimla", 3, 0, 400.0),
    ]))


@pytest.fixture
def system(store):
    return ReservationSystem(store)
