"""
Counters describing the shape of an alignment.
"""
from typing import Optional, Union

import numpy as np

from cigarlib.core.cigar import Cigar, CigarOp, raise_unsupported, OP_M, OP_I, OP_D, OP_N, OP_S, OP_H, OP_P, OP_EQ, OP_X
from cigarlib.containers.read import AlignedRead, check_read_covers
from cigarlib.lib.protocols import HasCigar
from cigarlib.lib.resources import jit


# Functions ------------------------------------------------------------------------------------------------------------
def alignment_block_count(alignment: Union[Cigar, HasCigar, None]) -> int:
    """
    Returns the number of alignment blocks, i.e. ``M`` elements. Indels, clips and ``=``/``X`` elements are ignored.

    Examples:
        >>> alignment_block_count(Cigar.parse('5M2I3M1D4M'))
        3
    """
    if (cigar := _cigar_of(alignment)) is None: return 0
    return int(np.count_nonzero(cigar.ops == CigarOp.M))


def aligned_base_count(alignment: Union[Cigar, HasCigar, None]) -> int:
    """Returns the total length of the ``M`` elements."""
    return _summed_lengths(alignment, CigarOp.M)


def aligned_base_count_with_soft_clips(alignment: Union[Cigar, HasCigar, None]) -> int:
    """Returns the total length of the ``M`` and ``S`` elements."""
    return _summed_lengths(alignment, CigarOp.M, CigarOp.S)


def hard_clipped_base_count(alignment: Union[Cigar, HasCigar, None]) -> int:
    """Returns the total length of the ``H`` elements."""
    return _summed_lengths(alignment, CigarOp.H)


def high_quality_soft_clip_count(read: AlignedRead, quality_threshold: int) -> int:
    """
    Counts soft-clipped bases whose quality is strictly above ``quality_threshold``.

    Raises:
        UnsupportedCigarOperation: If the CIGAR contains an operator outside the SAM set.
        ReadError: If the CIGAR consumes more bases than the read has.
    """
    cigar = read.cigar
    check_read_covers(cigar, read.qualities)
    count, bad = _soft_clip_kernel(cigar.ops, cigar.lengths, read.qualities, quality_threshold)
    raise_unsupported(cigar, bad)
    return int(count)


def _cigar_of(alignment: Union[Cigar, HasCigar, None]) -> Optional[Cigar]:
    if isinstance(alignment, HasCigar): return alignment.cigar
    return alignment


def _summed_lengths(alignment: Union[Cigar, HasCigar, None], *ops: CigarOp) -> int:
    if (cigar := _cigar_of(alignment)) is None: return 0
    return int(cigar.lengths[np.isin(cigar.ops, ops)].sum())


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _soft_clip_kernel(ops, lengths, quals, threshold):
    count = 0; pos = 0
    for i in range(len(ops)):
        op = ops[i]; n = lengths[i]
        if op == OP_S:
            for j in range(n):
                if quals[pos + j] > threshold: count += 1
            pos += n
        elif op == OP_M or op == OP_I or op == OP_EQ or op == OP_X:
            pos += n
        elif op != OP_H and op != OP_P and op != OP_D and op != OP_N:
            return 0, i
    return count, -1
