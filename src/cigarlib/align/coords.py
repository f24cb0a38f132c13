"""
Translation between read offsets and the alignment array, a reference-length projection of the read bases.

The alignment array holds one byte per reference-consuming CIGAR base. Matched bases are copied from the read,
deleted or skipped bases hold ``DELETION_BASE``, and a base directly followed by an insertion is replaced by its
``*_FOLLOWED_BY_INSERTION_BASE`` marker, so insertions stay visible although they occupy no slot.
"""
from typing import Final, Union

import numpy as np

from cigarlib.core.cigar import (Cigar, CigarOp, UnsupportedCigarOperation, raise_unsupported,
                                 OP_M, OP_I, OP_D, OP_N, OP_S, OP_H, OP_P, OP_EQ, OP_X)
from cigarlib.containers.read import as_byte_array, check_read_covers
from cigarlib.lib.protocols import HasPileupOffset
from cigarlib.lib.resources import jit


# Functions ------------------------------------------------------------------------------------------------------------
def alignment_offset(cigar: Cigar, offset: int, is_insertion_at_beginning_of_read: bool, is_deletion: bool,
                     alignment_start: int, reference_locus: int) -> int:
    """
    Maps a pileup offset on the read to the matching offset in the alignment array.

    Args:
        cigar: The read's alignment.
        offset: 0-based offset of the pileup base on the read.
        is_insertion_at_beginning_of_read: Whether the pileup element is an insertion at the read start.
        is_deletion: Whether the pileup element falls in a deletion. The offset is then recomputed from
            ``reference_locus``, since a deleted base has no offset on the read.
        alignment_start: 1-based alignment start of the read.
        reference_locus: 1-based position of the pileup site.

    Returns:
        The 0-based index into the alignment array. Offsets at an insertion or soft-clip boundary map to the
        start of the following base.

    Raises:
        UnsupportedCigarOperation: If the CIGAR contains an operator outside the SAM set.

    Examples:
        >>> alignment_offset(Cigar.parse('2M2D3M'), 3, False, False, 100, 105)
        5
    """
    if is_insertion_at_beginning_of_read: return 0

    if is_deletion:
        offset = reference_locus - alignment_start
        if len(cigar) and cigar[0].op is CigarOp.S: offset += cigar[0].length

    pos = 0
    alignment_pos = 0
    for op, length in cigar:
        if op is CigarOp.I or op is CigarOp.S:
            pos += length
            if pos >= offset: return alignment_pos
        elif op is CigarOp.D:
            if not is_deletion:
                alignment_pos += length
            elif pos + length - 1 >= offset:
                return alignment_pos + (offset - pos)
            else:
                pos += length
                alignment_pos += length
        elif op is CigarOp.M or op is CigarOp.EQ or op is CigarOp.X:
            if pos + length - 1 >= offset: return alignment_pos + (offset - pos)
            pos += length
            alignment_pos += length
        elif op is CigarOp.H or op is CigarOp.P or op is CigarOp.N:
            continue
        else:
            raise UnsupportedCigarOperation(op)

    return alignment_pos


def pileup_alignment_offset(cigar: Cigar, element: HasPileupOffset, alignment_start: int, reference_locus: int) -> int:
    """Same as ``alignment_offset``, reading the offset and its flags from a pileup element."""
    return alignment_offset(cigar, element.offset, element.is_insertion_at_beginning_of_read, element.is_deletion,
                            alignment_start, reference_locus)


def alignment_array(cigar: Cigar, read_bases: Union[bytes, str, np.ndarray]) -> bytes:
    """
    Projects the read bases onto the reference span of the alignment.

    Args:
        cigar: The read's alignment.
        read_bases: The read bases the CIGAR describes.

    Returns:
        A ``bytes`` object whose length is the CIGAR's reference length.

    Raises:
        UnsupportedCigarOperation: If the CIGAR contains an operator outside the SAM set.
        ReadError: If the CIGAR consumes more bases than ``read_bases`` holds.

    Examples:
        >>> alignment_array(Cigar.parse('2M1I1M1D1M'), b'ACGTA')
        b'AXTDA'
    """
    read_bases = as_byte_array(read_bases)
    check_read_covers(cigar, read_bases)
    out, bad = _alignment_array_kernel(cigar.ops, cigar.lengths, read_bases, _INSERTION_MARKERS)
    raise_unsupported(cigar, bad)
    return out.tobytes()


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _alignment_array_kernel(ops, lengths, read, markers):
    """
    Fills the alignment array. Returns the array and the index of the first unsupported element (or -1).
    """
    size = 0
    for i in range(len(ops)):
        op = ops[i]
        if op == OP_M or op == OP_EQ or op == OP_X or op == OP_D or op == OP_N:
            size += lengths[i]
        elif op != OP_I and op != OP_S and op != OP_H and op != OP_P:
            return np.empty(0, dtype=np.uint8), i

    out = np.empty(size, dtype=np.uint8)
    align_pos = 0; read_pos = 0
    for i in range(len(ops)):
        op = ops[i]; n = lengths[i]
        if op == OP_I:
            if align_pos > 0:
                marker = markers[out[align_pos - 1]]
                if marker != 0: out[align_pos - 1] = marker
            read_pos += n
        elif op == OP_S:
            read_pos += n
        elif op == OP_D or op == OP_N:
            for j in range(n): out[align_pos + j] = DELETION_BASE
            align_pos += n
        elif op == OP_M or op == OP_EQ or op == OP_X:
            for j in range(n): out[align_pos + j] = read[read_pos + j]
            align_pos += n; read_pos += n
    return out, -1


# Constants ------------------------------------------------------------------------------------------------------------
DELETION_BASE: Final = ord('D')
A_FOLLOWED_BY_INSERTION_BASE: Final = 87
C_FOLLOWED_BY_INSERTION_BASE: Final = 88
T_FOLLOWED_BY_INSERTION_BASE: Final = 89
G_FOLLOWED_BY_INSERTION_BASE: Final = 90

# Byte -> marker lookup; 0 leaves the byte untouched
_INSERTION_MARKERS = np.zeros(256, dtype=np.uint8)
_INSERTION_MARKERS[ord('A')] = A_FOLLOWED_BY_INSERTION_BASE
_INSERTION_MARKERS[ord('C')] = C_FOLLOWED_BY_INSERTION_BASE
_INSERTION_MARKERS[ord('T')] = T_FOLLOWED_BY_INSERTION_BASE
_INSERTION_MARKERS[ord('G')] = G_FOLLOWED_BY_INSERTION_BASE
