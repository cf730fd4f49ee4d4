from __future__ import annotations

from typing import Dict, Iterable, Tuple

from .errors import (
    DuplicateIdError,
    InvalidArrivalError,
    InvalidBurstError,
    RegistrationClosedError,
)
from .models import ProcessDescriptor, pid_sort_key


def _is_tick(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ProcessStore:
    """
    Holds the immutable process descriptors of one simulation.

    Descriptors are validated on registration. Once the store is closed
    (the engine closes it when it takes ownership) no further process can be
    registered.
    """

    def __init__(self, descriptors: Iterable[ProcessDescriptor] = ()) -> None:
        self._by_pid: Dict[str, ProcessDescriptor] = {}
        self._closed = False
        self.extend(descriptors)

    def register(self, descriptor: ProcessDescriptor) -> None:
        if self._closed:
            raise RegistrationClosedError(
                f"Cannot register {descriptor.pid!r}: the registration phase is closed"
            )
        if descriptor.pid in self._by_pid:
            raise DuplicateIdError(descriptor.pid)
        if not _is_tick(descriptor.burst_time) or descriptor.burst_time <= 0:
            raise InvalidBurstError(descriptor.pid, descriptor.burst_time)
        if not _is_tick(descriptor.arrival_time) or descriptor.arrival_time < 0:
            raise InvalidArrivalError(descriptor.pid, descriptor.arrival_time)
        self._by_pid[descriptor.pid] = descriptor

    def extend(self, descriptors: Iterable[ProcessDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def all(self) -> Tuple[ProcessDescriptor, ...]:
        """
        All descriptors ordered by arrival time, then id.
        """
        return tuple(
            sorted(self._by_pid.values(), key=lambda d: (d.arrival_time, pid_sort_key(d.pid)))
        )

    def copy(self) -> "ProcessStore":
        return ProcessStore(self.all())

    def __len__(self) -> int:
        return len(self._by_pid)

    def __contains__(self, pid: object) -> bool:
        return pid in self._by_pid
