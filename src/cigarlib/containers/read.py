"""A single aligned sequencing read, read-only once built, and its placement on the reference."""
from typing import Any, Union, Iterable, Final, Optional
from enum import IntEnum

import numpy as np

from cigarlib.core.cigar import Cigar


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class ReadError(Exception):
    """Raised when a read lacks data an operation needs."""


# Classes --------------------------------------------------------------------------------------------------------------
class Strand(IntEnum):
    """
    Strand a read is aligned to.
    """
    FORWARD = 1
    REVERSE = -1

    def __str__(self): return '+' if self is Strand.FORWARD else '-'

    @classmethod
    def from_symbol(cls, s: Any) -> 'Strand':
        """
        Coerces a strand symbol into a ``Strand``. Anything that is not recognisably reverse is forward.

        Examples:
            >>> Strand.from_symbol(b'-')
            <Strand.REVERSE: -1>
            >>> Strand.from_symbol(True)  # i.e. the SAM 0x10 flag
            <Strand.REVERSE: -1>
        """
        if isinstance(s, cls): return s
        if isinstance(s, bool): return cls.REVERSE if s else cls.FORWARD
        if isinstance(s, (int, np.integer)): return cls.REVERSE if s < 0 else cls.FORWARD
        if isinstance(s, bytes): s = s.decode('ascii')
        if isinstance(s, str) and s == '-': return cls.REVERSE
        return cls.FORWARD


class AlignedRead:
    """
    A read, its base qualities and its alignment to a reference sequence.

    Bases and qualities are held as read-only ``uint8`` arrays so the object can be shared freely
    between threads. Placement follows the SAM conventions, including its sentinels for "no
    placement": a reference index of ``-1``, a reference name of ``*`` and an alignment start of ``0``.
    ``None`` is accepted wherever a reference index or name is unknown.

    Args:
        bases: Read bases as stored in the record.
        qualities: Phred-scaled base qualities in stored order, one per base.
        cigar: The alignment, as a ``Cigar`` or SAM text.
        alignment_start: 1-based position of the first reference-consuming base.
        strand: Strand the read aligns to (anything ``Strand.from_symbol`` accepts).
        reference_index: Index of the reference sequence in the sequence dictionary.
        reference_name: Name of the reference sequence.
        mapping_quality: Mapping quality.
        unmapped_flag: Whether the SAM 0x4 flag is set.
        mate_reference_index: Index of the mate's reference sequence.
        mate_reference_name: Name of the mate's reference sequence.
        mate_alignment_start: 1-based alignment start of the mate.
        mate_unmapped_flag: Whether the SAM 0x8 flag is set.
        original_qualities: Optional qualities before recalibration (the SAM ``OQ`` tag).

    Examples:
        >>> read = AlignedRead(b'ACGT', [30, 30, 20, 10], '4M', 100, reference_index=0, reference_name=b'chr1')
        >>> read.is_unmapped
        False
    """
    __slots__ = ('bases', 'qualities', 'cigar', 'alignment_start', 'strand', 'reference_index', 'reference_name',
                 'mapping_quality', 'unmapped_flag', 'mate_reference_index', 'mate_reference_name',
                 'mate_alignment_start', 'mate_unmapped_flag', 'original_qualities')
    NO_ALIGNMENT_START: Final = 0
    NO_ALIGNMENT_REFERENCE_INDEX: Final = -1
    NO_ALIGNMENT_REFERENCE_NAME: Final = b'*'

    def __init__(self, bases: Union[bytes, str], qualities: Union[bytes, Iterable[int]], cigar: Union[Cigar, bytes, str],
                 alignment_start: int = NO_ALIGNMENT_START, strand: Any = Strand.FORWARD,
                 reference_index: Optional[int] = NO_ALIGNMENT_REFERENCE_INDEX,
                 reference_name: Optional[Union[bytes, str]] = NO_ALIGNMENT_REFERENCE_NAME,
                 mapping_quality: int = 0, unmapped_flag: bool = False,
                 mate_reference_index: Optional[int] = NO_ALIGNMENT_REFERENCE_INDEX,
                 mate_reference_name: Optional[Union[bytes, str]] = NO_ALIGNMENT_REFERENCE_NAME,
                 mate_alignment_start: int = NO_ALIGNMENT_START, mate_unmapped_flag: bool = False,
                 original_qualities: Union[bytes, Iterable[int]] = None):
        bases, qualities = as_byte_array(bases), as_byte_array(qualities)
        if len(qualities) != len(bases):
            raise ReadError(f'Read has {len(bases)} bases but {len(qualities)} qualities')
        _set = object.__setattr__
        _set(self, 'bases', bases)
        _set(self, 'qualities', qualities)
        _set(self, 'cigar', cigar if isinstance(cigar, Cigar) or cigar is None else Cigar.parse(cigar))
        _set(self, 'alignment_start', alignment_start)
        _set(self, 'strand', Strand.from_symbol(strand))
        _set(self, 'reference_index', reference_index)
        _set(self, 'reference_name', _as_name(reference_name))
        _set(self, 'mapping_quality', mapping_quality)
        _set(self, 'unmapped_flag', unmapped_flag)
        _set(self, 'mate_reference_index', mate_reference_index)
        _set(self, 'mate_reference_name', _as_name(mate_reference_name))
        _set(self, 'mate_alignment_start', mate_alignment_start)
        _set(self, 'mate_unmapped_flag', mate_unmapped_flag)
        _set(self, 'original_qualities', None if original_qualities is None else as_byte_array(original_qualities))

    def __setattr__(self, name, value): raise AttributeError(f"{type(self).__name__} is read-only")
    def __delattr__(self, name): raise AttributeError(f"{type(self).__name__} is read-only")
    def __len__(self): return len(self.bases)

    def __repr__(self):
        name = (self.reference_name or self.NO_ALIGNMENT_REFERENCE_NAME).decode('ascii', 'ignore')
        return f"AlignedRead({name}:{self.alignment_start}{self.strand}, cigar={self.cigar}, length={len(self)})"

    @property
    def is_reverse(self) -> bool: return self.strand is Strand.REVERSE

    @property
    def is_reference_unmapped(self) -> bool:
        """Returns ``True`` if the read does not belong to a contig, i.e. its reference name is ``*``."""
        return self.reference_name == self.NO_ALIGNMENT_REFERENCE_NAME

    @property
    def is_unmapped(self) -> bool:
        """
        Returns ``True`` if the read is unmapped.

        SAM allows several ways of saying so: the 0x4 flag, or a record without a usable placement.
        Only a valid reference (index or name) together with a valid start counts as a placement, so a
        record with a reference name but no sequence dictionary index is still treated as mapped.
        """
        if self.unmapped_flag: return True
        return not _is_placed(self.reference_index, self.reference_name, self.alignment_start)

    @property
    def is_mate_unmapped(self) -> bool:
        """Returns ``True`` if the read's mate is unmapped, by the same rules as ``is_unmapped``."""
        if self.mate_unmapped_flag: return True
        return not _is_placed(self.mate_reference_index, self.mate_reference_name, self.mate_alignment_start)

    @property
    def is_uniquely_mapped(self) -> bool:
        """Returns ``True`` if the read is mapped and mapped uniquely (MAPQ > 0)."""
        return not self.is_unmapped and self.mapping_quality > 0

    def qualities_in_cycle_order(self) -> np.ndarray:
        """
        Returns the base qualities in the order the bases were read on the machine, starting from cycle 1.

        Unmapped and forward-strand reads return their stored array; reverse-strand reads return a
        reversed copy.
        """
        return self._in_cycle_order(self.qualities)

    def original_qualities_in_cycle_order(self) -> np.ndarray:
        """
        Like ``qualities_in_cycle_order`` for the qualities before recalibration.

        Raises:
            ReadError: If the read carries no original qualities.
        """
        if self.original_qualities is None: raise ReadError(f'{self!r} has no original base qualities')
        return self._in_cycle_order(self.original_qualities)

    def _in_cycle_order(self, qualities: np.ndarray) -> np.ndarray:
        if self.is_unmapped or not self.is_reverse: return qualities
        return qualities[::-1].copy()


# Functions ------------------------------------------------------------------------------------------------------------
def as_byte_array(data: Union[bytes, bytearray, str, np.ndarray, Iterable[int]]) -> np.ndarray:
    """Returns ``data`` as a read-only ``uint8`` array, without copying bytes."""
    if isinstance(data, str): data = data.encode('ascii')
    if isinstance(data, (bytes, bytearray, memoryview)): return np.frombuffer(bytes(data), dtype=np.uint8)
    arr = np.array(data, dtype=np.uint8)
    arr.flags.writeable = False
    return arr


def check_read_covers(cigar: Cigar, bases: np.ndarray):
    """
    Raises ``ReadError`` if ``cigar`` consumes more read bases than ``bases`` holds.

    Raises:
        UnsupportedCigarOperation: If the CIGAR contains an operator outside the SAM set.
    """
    if (needed := cigar.read_length) > len(bases):
        raise ReadError(f'{cigar} consumes {needed} read bases but the read has {len(bases)}')


def _as_name(name: Optional[Union[bytes, str]]) -> Optional[bytes]:
    return name.encode('ascii') if isinstance(name, str) else name


def _is_placed(reference_index: Optional[int], reference_name: Optional[bytes], alignment_start: int) -> bool:
    has_index = reference_index is not None and reference_index != AlignedRead.NO_ALIGNMENT_REFERENCE_INDEX
    has_name = reference_name is not None and reference_name != AlignedRead.NO_ALIGNMENT_REFERENCE_NAME
    return (has_index or has_name) and alignment_start != AlignedRead.NO_ALIGNMENT_START
