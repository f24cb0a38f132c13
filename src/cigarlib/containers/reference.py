"""A contiguous slice of reference sequence, and the site of interest within it."""
from typing import Union, Iterable

import numpy as np

from cigarlib.containers.read import as_byte_array


# Classes --------------------------------------------------------------------------------------------------------------
class ReferenceWindow:
    """
    Reference bases covering the 1-based, inclusive genomic range ``[start, stop]``.

    Examples:
        >>> window = ReferenceWindow(b'ACGTA', 100, 104)
        >>> len(window), window.index_of(102)
        (5, 2)
    """
    __slots__ = ('bases', 'start', 'stop')

    def __init__(self, bases: Union[bytes, str, Iterable[int]], start: int, stop: int = None):
        self.bases: np.ndarray = as_byte_array(bases)
        self.start = start
        self.stop = start + len(self.bases) - 1 if stop is None else stop
        if self.stop < self.start - 1: raise ValueError(f'Window stop {self.stop} is before its start {self.start}')
        if len(self.bases) < len(self):
            raise ValueError(f'{len(self.bases)}bp of bases cannot cover the window {self.start}-{self.stop}')

    def __len__(self): return self.stop - self.start + 1
    def __repr__(self): return f"ReferenceWindow({self.start}-{self.stop})"
    def __contains__(self, position: int): return self.start <= position <= self.stop

    def index_of(self, position: int) -> int:
        """Returns the 0-based index into ``bases`` of a 1-based genomic position."""
        return position - self.start


class ReferenceContext:
    """
    A reference window together with the locus the window was drawn around.

    Args:
        window: The reference window.
        locus: 1-based position of the site of interest.
    """
    __slots__ = ('window', 'locus')

    def __init__(self, window: ReferenceWindow, locus: int):
        self.window = window
        self.locus = locus

    def __repr__(self): return f"ReferenceContext({self.locus} in {self.window!r})"

    @property
    def bases(self) -> np.ndarray: return self.window.bases
