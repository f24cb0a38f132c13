from typing import Protocol, runtime_checkable


@runtime_checkable
class HasCigar(Protocol):
    """Protocol for objects that carry a CIGAR (e.g. AlignedRead)."""
    @property
    def cigar(self) -> 'Cigar': ...


@runtime_checkable
class HasPileupOffset(Protocol):
    """Protocol for a single per-read observation at a pileup site (e.g. PileupElement)."""

    @property
    def read(self) -> 'AlignedRead': ...

    @property
    def offset(self) -> int: ...

    @property
    def is_deletion(self) -> bool: ...

    @property
    def is_insertion_at_beginning_of_read(self) -> bool: ...
