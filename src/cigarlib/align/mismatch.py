"""
Counting read mismatches against a reference, over a whole read or within a reference window.
"""
from dataclasses import dataclass
from typing import Iterable, Union

import numpy as np

from cigarlib.core.cigar import raise_unsupported, OP_M, OP_I, OP_D, OP_N, OP_S, OP_H, OP_P, OP_EQ, OP_X
from cigarlib.containers.read import AlignedRead, as_byte_array, check_read_covers
from cigarlib.containers.reference import ReferenceContext
from cigarlib.lib.protocols import HasPileupOffset
from cigarlib.lib.resources import jit


# Classes --------------------------------------------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MismatchCount:
    """Number of mismatching bases and the sum of their base qualities."""
    count: int = 0
    quality_sum: int = 0


# Functions ------------------------------------------------------------------------------------------------------------
def count_mismatches(read: AlignedRead, reference: Union[bytes, str, np.ndarray], reference_index: int,
                     read_start: int = 0, read_length: int = None) -> MismatchCount:
    """
    Counts the mismatches of a read against the reference it is aligned to.

    ``X`` elements count every base as a mismatch, as SAM requires, and ``=`` elements count none; ``M``
    elements are compared base by base, including ``N`` and other ambiguity codes. Bases aligned past the end
    of ``reference`` are ignored.

    Args:
        read: The aligned read.
        reference: Reference bases the CIGAR is aligned against.
        reference_index: 0-based position in ``reference`` where the alignment starts.
        read_start: First read offset to count.
        read_length: Number of read bases to count (defaults to the whole read). The window is honoured
            base by base within ``M`` elements and element by element otherwise.

    Returns:
        The mismatch count and the sum of the mismatching bases' qualities.

    Raises:
        UnsupportedCigarOperation: If the CIGAR contains an operator outside the SAM set.
        ReadError: If the CIGAR consumes more bases than the read has.

    Examples:
        >>> read = AlignedRead(b'AAAAA', [30, 30, 30, 20, 30], '5M', 1)
        >>> count_mismatches(read, b'AAATA', 0)
        MismatchCount(count=1, quality_sum=20)
    """
    if read_length is None: read_length = len(read)
    cigar = read.cigar
    check_read_covers(cigar, read.bases)
    count, quality_sum, bad = _mismatch_count_kernel(
        cigar.ops, cigar.lengths, read.bases, read.qualities, as_byte_array(reference), reference_index,
        read_start, read_start + read_length - 1
    )
    raise_unsupported(cigar, bad)
    return MismatchCount(int(count), int(quality_sum))


def mismatching_qualities(read: AlignedRead, reference: Union[bytes, str, np.ndarray], reference_index: int) -> int:
    """Returns the sum of the base qualities of all mismatching bases of the read."""
    return count_mismatches(read, reference, reference_index).quality_sum


def mismatches_in_window(element: HasPileupOffset, context: ReferenceContext, ignore_target_site: bool,
                         use_quality_sum: bool = False) -> int:
    """
    Returns the number of mismatches of a pileup element's read within the reference window.

    Args:
        element: The pileup element whose read is compared.
        context: The reference window and the locus at its centre.
        ignore_target_site: If ``True``, a mismatch at the context's locus is not counted.
        use_quality_sum: If ``True``, sum the mismatching bases' qualities instead of counting them.

    Raises:
        UnsupportedCigarOperation: If the CIGAR contains an operator outside the SAM set.
        ReadError: If the CIGAR consumes more bases than the read has.
    """
    read = element.read
    cigar = read.cigar
    check_read_covers(cigar, read.bases)
    window = context.window
    total, bad = _window_mismatch_kernel(
        cigar.ops, cigar.lengths, read.bases, read.qualities, window.bases, read.alignment_start,
        window.start, window.stop, context.locus, ignore_target_site, use_quality_sum
    )
    raise_unsupported(cigar, bad)
    return int(total)


def mismatches_in_pileup(pileup: Iterable[HasPileupOffset], context: ReferenceContext, ignore_target_site: bool,
                         use_quality_sum: bool = False) -> int:
    """Sums ``mismatches_in_window`` over every element of a pileup."""
    return sum(mismatches_in_window(e, context, ignore_target_site, use_quality_sum) for e in pileup)


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _mismatch_count_kernel(ops, lengths, read, quals, ref, ref_index, start, end):
    """Returns (count, quality sum, index of the first unsupported element or -1)."""
    count = 0; qual_sum = 0; read_idx = 0
    n_ref = len(ref)
    for i in range(len(ops)):
        if read_idx > end: break
        op = ops[i]; n = lengths[i]
        if op == OP_X:
            count += n
            for j in range(n): qual_sum += int(quals[read_idx + j])
            ref_index += n; read_idx += n
        elif op == OP_EQ:
            ref_index += n; read_idx += n
        elif op == OP_M:
            for j in range(n):
                if ref_index >= n_ref or read_idx < start:
                    ref_index += 1; read_idx += 1
                    continue
                if read_idx > end: break
                if read[read_idx] != ref[ref_index]:
                    count += 1; qual_sum += int(quals[read_idx])
                ref_index += 1; read_idx += 1
        elif op == OP_I or op == OP_S:
            read_idx += n
        elif op == OP_D or op == OP_N:
            ref_index += n
        elif op != OP_H and op != OP_P:
            return 0, 0, i
    return count, qual_sum, -1


@jit(nopython=True, cache=True, nogil=True)
def _window_mismatch_kernel(ops, lengths, read, quals, ref, alignment_start, window_start, window_stop, locus,
                            ignore_target, use_quals):
    """Returns (mismatch count or quality sum, index of the first unsupported element or -1)."""
    total = 0; read_idx = 0
    pos = alignment_start
    ref_idx = max(0, pos - window_start)
    for i in range(len(ops)):
        op = ops[i]; n = lengths[i]
        if op == OP_M or op == OP_EQ or op == OP_X:
            for j in range(n):
                if pos > window_stop: break  # past the window
                if pos >= window_start:
                    ref_chr = ref[ref_idx]; ref_idx += 1
                    if not (ignore_target and locus == pos) and read[read_idx] != ref_chr:
                        total += int(quals[read_idx]) if use_quals else 1
                read_idx += 1; pos += 1
        elif op == OP_I or op == OP_S:
            read_idx += n
        elif op == OP_D or op == OP_N:
            pos += n
            if pos > window_start: ref_idx += min(n, pos - window_start)
        elif op != OP_H and op != OP_P:
            return 0, i
    return total, -1
