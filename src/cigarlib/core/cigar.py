"""
Module for representing CIGAR strings and the consumption semantics of their operators.
"""
from typing import Iterable, Iterator, NamedTuple, Union, Any, Final
from enum import IntEnum

import numpy as np

from cigarlib.lib.resources import jit


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class CigarError(Exception):
    """Raised when a CIGAR string is malformed."""


class UnsupportedCigarOperation(CigarError):
    """
    Raised when a traversal meets an operator it does not handle.

    Attributes:
        op: The offending operator (a ``CigarOp``, or the raw symbol when it could not be decoded).
    """
    def __init__(self, op: Any):
        self.op = op
        symbol = op.symbol.decode('ascii') if isinstance(op, CigarOp) else op
        super().__init__(f'The {symbol!r} cigar operator is not currently supported')


# Classes --------------------------------------------------------------------------------------------------------------
class CigarOp(IntEnum):
    """
    CIGAR operators, numbered as in the BAM specification.

    Examples:
        >>> CigarOp.from_symbol(b'=')
        <CigarOp.EQ: 7>
        >>> CigarOp.D.consumes_reference
        True
    """
    M = 0
    I = 1
    D = 2
    N = 3
    S = 4
    H = 5
    P = 6
    EQ = 7
    X = 8
    B = 9

    @property
    def symbol(self) -> bytes: return _SYMBOLS[self]
    @property
    def consumes_read(self) -> bool: return bool(READ_CONSUMERS[self])
    @property
    def consumes_reference(self) -> bool: return bool(REFERENCE_CONSUMERS[self])
    @property
    def is_supported(self) -> bool: return bool(SUPPORTED[self])
    @property
    def is_indel(self) -> bool: return self is CigarOp.I or self is CigarOp.D

    @classmethod
    def from_symbol(cls, s: Any) -> 'CigarOp':
        """
        Coerces an operator, op code or SAM symbol into a ``CigarOp``.

        Raises:
            UnsupportedCigarOperation: If the value names no known operator.
        """
        if isinstance(s, cls): return s
        if isinstance(s, (int, np.integer)):
            if 0 <= s < len(_SYMBOLS): return cls(int(s))
            raise UnsupportedCigarOperation(int(s))
        if isinstance(s, str): s = s.encode('ascii')
        if isinstance(s, bytes) and len(s) == 1 and (code := _BYTE_TO_OP[s[0]]) != _INVALID: return cls(int(code))
        raise UnsupportedCigarOperation(s)


class CigarElement(NamedTuple):
    """A single ``(operator, length)`` run of a CIGAR."""
    op: CigarOp
    length: int

    def __str__(self): return f'{self.length}{self.op.symbol.decode("ascii")}'


class Cigar:
    """
    Immutable, ordered sequence of CIGAR elements.

    Elements are kept as a tuple of ``CigarElement``; the parallel ``ops`` and ``lengths``
    arrays are built on first use and handed to the numerical kernels.

    Args:
        elements: ``CigarElement`` instances or ``(op, length)`` pairs, where ``op`` is anything
            ``CigarOp.from_symbol`` accepts.

    Examples:
        >>> cigar = Cigar.parse(b'3S4M2D2M')
        >>> cigar.read_length, cigar.reference_length
        (9, 8)
        >>> str(cigar[1:])
        '4M2D2M'
    """
    __slots__ = ('_elements', '_ops', '_lengths')

    def __init__(self, elements: Iterable[Union[CigarElement, tuple[Any, int]]] = ()):
        self._elements: tuple[CigarElement, ...] = tuple(
            CigarElement(CigarOp.from_symbol(op), int(n)) for op, n in elements
        )
        if any(e.length < 0 for e in self._elements): raise CigarError('CIGAR element lengths must be non-negative')
        self._ops = None
        self._lengths = None

    @classmethod
    def parse(cls, text: Union[bytes, str]) -> 'Cigar':
        """
        Parses SAM CIGAR text. ``*`` and the empty string give an empty CIGAR.

        Raises:
            UnsupportedCigarOperation: If the text contains a symbol that is not a CIGAR operator.
            CigarError: If the text ends with a dangling length.
        """
        if isinstance(text, str): text = text.encode('ascii')
        if not text or text == b'*': return cls()
        ops, counts, bad = _parse_cigar_kernel(np.frombuffer(text, dtype=np.uint8), _BYTE_TO_OP)
        if bad >= len(text): raise CigarError(f'Malformed CIGAR "{text.decode("ascii")}": missing trailing operator')
        if bad >= 0: raise UnsupportedCigarOperation(text[bad:bad + 1].decode('ascii', 'replace'))
        return cls._from_arrays(ops, counts)

    @classmethod
    def _from_arrays(cls, ops: np.ndarray, lengths: np.ndarray) -> 'Cigar':
        self = cls.__new__(cls)
        self._elements = tuple(CigarElement(CigarOp(int(o)), int(n)) for o, n in zip(ops, lengths))
        self._ops = ops
        self._lengths = lengths.astype(np.int64)
        return self

    def __len__(self): return len(self._elements)
    def __iter__(self) -> Iterator[CigarElement]: return iter(self._elements)
    def __hash__(self): return hash(self._elements)
    def __str__(self): return ''.join(map(str, self._elements)) or '*'
    def __bytes__(self): return str(self).encode('ascii')
    def __repr__(self): return f"Cigar('{self}')"

    def __getitem__(self, item):
        if isinstance(item, slice): return Cigar(self._elements[item])
        return self._elements[item]

    def __eq__(self, other):
        if isinstance(other, Cigar): return self._elements == other._elements
        if isinstance(other, (str, bytes)): return self == Cigar.parse(other)
        return NotImplemented

    @property
    def elements(self) -> tuple[CigarElement, ...]: return self._elements

    @property
    def ops(self) -> np.ndarray:
        if self._ops is None: self._ops = np.array([e.op for e in self._elements], dtype=np.uint8)
        return self._ops

    @property
    def lengths(self) -> np.ndarray:
        if self._lengths is None: self._lengths = np.array([e.length for e in self._elements], dtype=np.int64)
        return self._lengths

    @property
    def read_length(self) -> int:
        """Sum of the lengths of read-consuming elements (M, I, S, =, X)."""
        self.check()
        return int(self.lengths[READ_CONSUMERS[self.ops]].sum())

    @property
    def reference_length(self) -> int:
        """Sum of the lengths of reference-consuming elements (M, D, N, =, X)."""
        self.check()
        return int(self.lengths[REFERENCE_CONSUMERS[self.ops]].sum())

    def check(self) -> 'Cigar':
        """
        Raises ``UnsupportedCigarOperation`` for the first element no traversal can handle.

        Returns:
            The CIGAR itself, so the call can be chained.
        """
        raise_unsupported(self, first_unsupported(self.ops))
        return self

    def indel_indices(self) -> list[int]:
        """Returns the indices of the insertion and deletion elements."""
        return [i for i, e in enumerate(self._elements) if e.op.is_indel]

    def has_empty_element(self) -> bool:
        return any(e.length == 0 for e in self._elements)

    def without_empty_elements(self) -> 'Cigar':
        """
        Drops zero-length elements. A deletion that would become the leading element is dropped too.
        """
        kept = []
        for e in self._elements:
            if e.length != 0 and (kept or e.op is not CigarOp.D): kept.append(e)
        return Cigar(kept)


# Functions ------------------------------------------------------------------------------------------------------------
def first_unsupported(ops: np.ndarray) -> int:
    """Returns the index of the first unsupported op code, or -1 when every op is supported."""
    bad = np.flatnonzero(~SUPPORTED[ops])
    return int(bad[0]) if len(bad) else -1


def raise_unsupported(cigar: Cigar, index: int):
    """Turns a kernel's element index discriminator into an ``UnsupportedCigarOperation``."""
    if index >= 0: raise UnsupportedCigarOperation(cigar[index].op)


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _parse_cigar_kernel(cigar, map_table):
    """
    Parses CIGAR bytes into op codes and counts.

    The last value is -1 on success, the offset of the first unknown symbol, or ``len(cigar)``
    when the text ends in a length with no operator.
    """
    n = len(cigar)
    ops = np.empty(n, dtype=np.uint8)
    counts = np.empty(n, dtype=np.int64)
    idx = 0; curr_count = 0; pending = False
    for i in range(n):
        b = cigar[i]
        if 48 <= b <= 57:
            curr_count = (curr_count * 10) + int(b - 48); pending = True
        else:
            op = map_table[b]
            if op == 255: return ops[:idx], counts[:idx], i
            ops[idx] = op; counts[idx] = curr_count
            idx += 1; curr_count = 0; pending = False
    if pending: return ops[:idx], counts[:idx], n
    return ops[:idx], counts[:idx], -1


# Constants ------------------------------------------------------------------------------------------------------------
_SYMBOLS: Final = (b'M', b'I', b'D', b'N', b'S', b'H', b'P', b'=', b'X', b'B')
_INVALID: Final = 255
_BYTE_TO_OP = np.full(256, _INVALID, dtype=np.uint8)
for _code, _sym in enumerate(_SYMBOLS): _BYTE_TO_OP[ord(_sym)] = _code

# Consumption logic, indexed by op code
READ_CONSUMERS = np.array([True, True, False, False, True, False, False, True, True, False], dtype=bool)
REFERENCE_CONSUMERS = np.array([True, False, True, True, False, False, False, True, True, False], dtype=bool)
SUPPORTED = np.array([True] * 9 + [False], dtype=bool)

# Plain integer op codes for the kernels
OP_M, OP_I, OP_D, OP_N, OP_S, OP_H, OP_P, OP_EQ, OP_X, OP_B = range(10)
