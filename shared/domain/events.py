"""
Storage Events

Events exchanged between execution contexts that share one durable store.
"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass
class StorageChanged(DomainEvent):
    """
    Event: a context replaced the value stored under ``key``

    ``new_value`` is the serialized value that was written. Receivers
    treat it as a hint and re-read the durable store.
    """
    key: str
    new_value: str | None
    origin: str

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({'key': self.key, 'origin': self.origin})
        return data
