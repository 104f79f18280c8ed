from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":", 1)
    return int(hours) * 60 + int(minutes)


@dataclass(frozen=True)
class SelectedSlot:
    san_id: int
    start_time: str
    end_time: str

    def overlaps(self, other: "SelectedSlot") -> bool:
        if other.san_id != self.san_id:
            return False
        new_start, new_end = to_minutes(other.start_time), to_minutes(other.end_time)
        start, end = to_minutes(self.start_time), to_minutes(self.end_time)
        return not (new_end <= start or new_start >= end)

    def as_payload(self) -> dict[str, Any]:
        return {"san_id": self.san_id, "start_time": self.start_time, "end_time": self.end_time}

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "SelectedSlot":
        return cls(int(data["san_id"]), str(data["start_time"]), str(data["end_time"]))


class SlotSelection:
    """Working set of court slots the user intends to book.

    Selecting an exact duplicate toggles it off. Selecting a slot that overlaps
    already selected slots on the same court replaces them.
    """

    def __init__(self, slots: Iterable[SelectedSlot] | None = None):
        self._slots: list[SelectedSlot] = list(slots or [])

    def toggle(self, slot: SelectedSlot) -> bool:
        """Return True when the slot ends up selected."""
        if slot in self._slots:
            self._slots.remove(slot)
            return False
        self._slots = [existing for existing in self._slots if not existing.overlaps(slot)]
        self._slots.append(slot)
        return True

    def clear(self) -> None:
        self._slots = []

    @property
    def slots(self) -> list[SelectedSlot]:
        return list(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[SelectedSlot]:
        return iter(list(self._slots))

    def __contains__(self, slot: object) -> bool:
        return slot in self._slots

    def to_payload(self) -> list[dict[str, Any]]:
        return [slot.as_payload() for slot in self._slots]

    @classmethod
    def from_payload(cls, items: Iterable[Mapping[str, Any]] | None) -> "SlotSelection":
        return cls(SelectedSlot.from_payload(item) for item in items or [])
