"""
Left-alignment of indels.

An insertion or deletion inside a repeat can be placed at any copy of the repeat without changing the sequence
the alignment spells out. Reads carrying the same event are only comparable once every one of them places it at
the same copy; by convention, the leftmost one.
"""
from typing import Optional, Union
from warnings import warn

import numpy as np

from cigarlib import ReferenceTruncationWarning
from cigarlib.core.cigar import Cigar, CigarOp, CigarElement, UnsupportedCigarOperation
from cigarlib.containers.read import as_byte_array


# Functions ------------------------------------------------------------------------------------------------------------
def left_align_indel(cigar: Cigar, reference: Union[bytes, str, np.ndarray], read: Union[bytes, str, np.ndarray],
                     reference_index: int = 0, read_index: int = 0) -> Cigar:
    """
    Moves the indel of an alignment to the leftmost position that spells out the same sequence.

    If the alignment says that one ``AT`` is deleted from the reference repeat ``TATATATA``, the returned CIGAR
    always deletes the leftmost ``AT``. Alignments without an indel, with more than one indel, or starting with
    their indel are returned as they are, as is any alignment whose indel cannot move.

    Args:
        cigar: The alignment of ``read`` to ``reference``.
        reference: The reference sequence.
        read: The read sequence.
        reference_index: 0-based position on ``reference`` where the CIGAR starts.
        read_index: 0-based position on ``read`` where the CIGAR starts; non-zero when the CIGAR only covers
            part of the read.

    Returns:
        A CIGAR with the indel at its leftmost equivalent position. If moving it consumed the whole preceding
        element, empty elements are dropped, as is a deletion left leading the CIGAR.

    Raises:
        UnsupportedCigarOperation: If an element before the indel is outside the SAM set.

    Examples:
        >>> str(left_align_indel(Cigar.parse('1M2D4M'), b'CAAAAAG', b'CAAAG'))  # already leftmost
        '1M2D4M'
        >>> str(left_align_indel(Cigar.parse('4M1D2M'), b'CAAAAAG', b'CAAAAG'))
        '1M1D5M'
    """
    indel_indices = cigar.indel_indices()
    # An alignment starting with its indel has no room on the read to move it further left
    if len(indel_indices) != 1 or indel_indices[0] < 1: return cigar

    reference = as_byte_array(reference)
    read = as_byte_array(read)
    indel_index = indel_indices[0]
    indel_length = cigar[indel_index].length

    expected = _indel_string(cigar, indel_index, reference, read, reference_index, read_index)
    if expected is None: return cigar

    candidate = cigar
    attempts = 0
    while attempts < indel_length:
        if candidate[indel_index - 1].length == 0: break
        candidate = _shift_left(candidate, indel_index)
        observed = _indel_string(candidate, indel_index, reference, read, reference_index, read_index)

        # the move used up the element before the indel, i.e. we ran off the start of the read
        off_the_end = candidate.has_empty_element()

        if observed is not None and np.array_equal(expected, observed):
            cigar = candidate
            attempts = 0
            if off_the_end: cigar = cigar.without_empty_elements()
        else:
            attempts += 1

        if off_the_end: break

    return cigar


def _shift_left(cigar: Cigar, indel_index: int) -> Cigar:
    """Moves the indel one base left by trading a base of the preceding element to the following one."""
    elements = list(cigar)
    before = elements[indel_index - 1]
    elements[indel_index - 1] = CigarElement(before.op, before.length - 1)
    if indel_index + 1 < len(elements):
        after = elements[indel_index + 1]
        elements[indel_index + 1] = CigarElement(after.op, after.length + 1)
    else:
        elements.append(CigarElement(CigarOp.M, 1))
    return Cigar(elements)


def _indel_string(cigar: Cigar, indel_index: int, reference: np.ndarray, read: np.ndarray, reference_index: int,
                  read_index: int) -> Optional[np.ndarray]:
    """
    Builds the sequence the alignment spells out over the whole reference: the reference with the indel applied.

    Returns ``None`` when the indel does not fit on the reference or read.
    """
    indel = cigar[indel_index]
    indel_length = indel.length

    total_reference_bases = 0
    for op, length in cigar[:indel_index]:
        if op is CigarOp.M or op is CigarOp.EQ or op is CigarOp.X:
            read_index += length
            reference_index += length
            total_reference_bases += length
        elif op is CigarOp.S:
            read_index += length
        elif op is CigarOp.N:
            reference_index += length
            total_reference_bases += length
        elif not op.is_supported:
            raise UnsupportedCigarOperation(op)

    n_ref = len(reference)
    # Very large known indels may run past the reference we were given
    if total_reference_bases + indel_length > n_ref:
        truncated = n_ref - total_reference_bases
        warn(f'{indel} extends past the end of the {n_ref}bp reference; truncated to {truncated}bp',
             ReferenceTruncationWarning)
        indel_length = truncated

    alt_length = n_ref - indel_length if indel.op is CigarOp.D else n_ref + indel_length
    # the bases before the indel must not be aligned off the end of the reference
    if reference_index > alt_length or reference_index > n_ref: return None
    alt = np.empty(alt_length, dtype=np.uint8)
    alt[:reference_index] = reference[:reference_index]
    current = reference_index

    if indel.op is CigarOp.D:
        reference_index += indel_length
        if reference_index > n_ref: return None
    else:
        inserted = read[read_index:read_index + indel_length]
        if len(inserted) != indel_length: return None
        alt[current:current + indel_length] = inserted
        current += indel_length

    # nor may the bases after it
    if n_ref - reference_index > alt_length - current: return None
    alt[current:] = reference[reference_index:]
    return alt
