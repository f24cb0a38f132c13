"""Per-read observations at a single reference site, and ordered batches of them."""
from typing import Iterable
from itertools import chain

from cigarlib.containers import Batch
from cigarlib.containers.read import AlignedRead


# Classes --------------------------------------------------------------------------------------------------------------
class PileupElement:
    """
    One read's observation at a pileup site.

    Args:
        read: The read covering the site.
        offset: 0-based offset into the read's bases of the observed base.
        is_deletion: Whether the site falls inside a deletion of the read.
        is_insertion_at_beginning_of_read: Whether the read starts with an insertion at the site.
    """
    __slots__ = ('read', 'offset', 'is_deletion', 'is_insertion_at_beginning_of_read')

    def __init__(self, read: AlignedRead, offset: int, is_deletion: bool = False,
                 is_insertion_at_beginning_of_read: bool = False):
        self.read = read
        self.offset = offset
        self.is_deletion = is_deletion
        self.is_insertion_at_beginning_of_read = is_insertion_at_beginning_of_read

    def __repr__(self):
        return f"PileupElement({self.read!r}, offset={self.offset}{', deletion' if self.is_deletion else ''})"

    @property
    def base(self) -> int:
        """The observed base, as a byte value."""
        return int(self.read.bases[self.offset])

    @property
    def quality(self) -> int:
        return int(self.read.qualities[self.offset])


class Pileup(Batch):
    """
    Ordered, immutable collection of pileup elements at one site.

    Examples:
        >>> read = AlignedRead(b'ACGT', [30, 30, 20, 10], '4M', 100, reference_index=0, reference_name=b'chr1')
        >>> pileup = Pileup.build([PileupElement(read, 3), PileupElement(read, 0)])
        >>> len(pileup)
        2
    """
    __slots__ = ('_elements',)

    def __init__(self, elements: Iterable[PileupElement] = ()):
        self._elements: tuple[PileupElement, ...] = tuple(elements)

    @classmethod
    def empty(cls) -> 'Pileup': return cls()

    @classmethod
    def build(cls, components: Iterable[PileupElement]) -> 'Pileup': return cls(components)

    @classmethod
    def concat(cls, batches: Iterable['Pileup']) -> 'Pileup':
        return cls(chain.from_iterable(batches))

    @property
    def component(self): return PileupElement

    def __len__(self): return len(self._elements)
    def __repr__(self): return f"<Pileup: {len(self)} elements>"

    def __getitem__(self, item):
        if isinstance(item, slice): return Pileup(self._elements[item])
        return self._elements[item]

    @property
    def reads(self) -> list[AlignedRead]: return [e.read for e in self._elements]
