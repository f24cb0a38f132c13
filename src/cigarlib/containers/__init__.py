"""
This module contains the value objects the alignment operations read from: aligned reads, reference windows and
pileups. Components that are naturally grouped (per-read pileup observations) have a batched counterpart.
"""
from abc import ABC, abstractmethod
from typing import Iterable


# Classes --------------------------------------------------------------------------------------------------------------
class Batch(ABC):
    """
    Abstract base class for all batch containers.

    Batches are ordered, immutable containers of components. They enforce the
    Sequence protocol (len, getitem, iter).
    """
    __slots__ = ()
    @abstractmethod
    def __len__(self) -> int: ...
    @classmethod
    @abstractmethod
    def empty(cls) -> 'Batch':
        """Creates an empty batch."""
        ...
    @property
    @abstractmethod
    def component(self):
        """Returns the component class stored in this batch."""
        ...
    @classmethod
    @abstractmethod
    def build(cls, components: Iterable[object]) -> 'Batch':
        """Constructs a batch from an iterable of components."""
        ...
    @classmethod
    @abstractmethod
    def concat(cls, batches: Iterable['Batch']) -> 'Batch':
        """Concatenates multiple batches into one."""
        ...
    @abstractmethod
    def __getitem__(self, item): ...
    def __iter__(self):
        for i in range(len(self)): yield self[i]
