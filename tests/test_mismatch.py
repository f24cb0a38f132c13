import pytest
from cigarlib.align.mismatch import (MismatchCount, count_mismatches, mismatching_qualities, mismatches_in_window,
                                     mismatches_in_pileup)
from cigarlib.containers.pileup import Pileup, PileupElement
from cigarlib.containers.read import ReadError
from cigarlib.containers.reference import ReferenceWindow, ReferenceContext
from cigarlib.core.cigar import UnsupportedCigarOperation
from .common import make_read

QUALS = [10, 20, 30, 40, 50]


class TestCountMismatches:
    def test_perfect_match(self):
        read = make_read(b'AAAAA', '5M', qualities=QUALS)
        assert count_mismatches(read, b'AAAAA', 0) == MismatchCount(0, 0)

    def test_single_mismatch(self):
        read = make_read(b'AAAAA', '5M', qualities=QUALS)
        assert count_mismatches(read, b'AAATA', 0) == MismatchCount(1, QUALS[3])

    def test_reference_index(self):
        read = make_read(b'AAAAA', '5M', qualities=QUALS)
        assert count_mismatches(read, b'GGAAATA', 2) == MismatchCount(1, 40)

    def test_explicit_mismatches_always_count(self):
        read = make_read(b'AAAAA', '2M3X', qualities=QUALS)
        assert count_mismatches(read, b'AAAAA', 0) == MismatchCount(3, 30 + 40 + 50)

    def test_explicit_matches_never_count(self):
        read = make_read(b'AAAAA', '5=', qualities=QUALS)
        assert count_mismatches(read, b'CCCCC', 0) == MismatchCount(0, 0)

    def test_past_reference_end(self):
        read = make_read(b'AAATT', '5M', qualities=QUALS)
        assert count_mismatches(read, b'AAA', 0) == MismatchCount(0, 0)

    @pytest.mark.parametrize('read_start, read_length, expected', [
        (0, 3, MismatchCount(0, 0)),
        (3, 2, MismatchCount(1, 40)),
        (0, 4, MismatchCount(1, 40)),
        (4, 1, MismatchCount(0, 0)),
    ])
    def test_read_window(self, read_start, read_length, expected):
        read = make_read(b'AAAAA', '5M', qualities=QUALS)
        assert count_mismatches(read, b'AAATA', 0, read_start, read_length) == expected

    @pytest.mark.parametrize('bases, cigar, reference', [
        (b'ACTGT', '2M1I2M', b'ACGT'),
        (b'ACGT', '2M1D2M', b'ACAGT'),
        (b'ACGT', '2M2N2M', b'ACTTGT'),
        (b'TTACG', '2S3M', b'ACG'),
        (b'ACG', '2H3M1P', b'ACG'),
    ])
    def test_cursor_movement(self, bases, cigar, reference):
        read = make_read(bases, cigar)
        assert count_mismatches(read, reference, 0) == MismatchCount(0, 0)

    def test_mismatch_after_deletion(self):
        read = make_read(b'ACGA', '2M1D2M', qualities=[1, 2, 3, 4])
        assert count_mismatches(read, b'ACAGT', 0) == MismatchCount(1, 4)

    def test_mismatching_qualities(self):
        read = make_read(b'ACGTA', '5M', qualities=QUALS)
        assert mismatching_qualities(read, b'TCGTT', 0) == 10 + 50

    def test_unsupported(self):
        read = make_read(b'ACGT', '2M1B2M')
        with pytest.raises(UnsupportedCigarOperation):
            count_mismatches(read, b'ACGT', 0)

    def test_read_shorter_than_cigar(self):
        read = make_read(b'AAA', '5M')
        with pytest.raises(ReadError, match='consumes 5 read bases'):
            count_mismatches(read, b'AAAAA', 0)


# Reference positions 100..109
WINDOW = ReferenceWindow(b'ACGTACGTAC', 100, 109)


class TestMismatchesInWindow:
    @pytest.mark.parametrize('locus', range(100, 110))
    def test_matching_read_with_target_site_ignored(self, locus):
        read = make_read(b'GTACG', '5M', 102)
        assert mismatches_in_window(PileupElement(read, 0), ReferenceContext(WINDOW, locus), True) == 0

    def test_mismatch(self):
        read = make_read(b'GTTCG', '5M', 102, qualities=QUALS)
        element = PileupElement(read, 2)
        assert mismatches_in_window(element, ReferenceContext(WINDOW, 105), False) == 1
        assert mismatches_in_window(element, ReferenceContext(WINDOW, 104), False) == 1
        assert mismatches_in_window(element, ReferenceContext(WINDOW, 104), True) == 0
        assert mismatches_in_window(element, ReferenceContext(WINDOW, 105), True) == 1

    def test_quality_sum(self):
        read = make_read(b'CTTCG', '5M', 102, qualities=QUALS)
        context = ReferenceContext(WINDOW, 104)
        assert mismatches_in_window(PileupElement(read, 0), context, False, use_quality_sum=True) == 10 + 30
        assert mismatches_in_window(PileupElement(read, 0), context, True, use_quality_sum=True) == 10

    def test_read_starting_before_window(self):
        # positions 98 and 99 have no reference and are skipped
        read = make_read(b'TTACG', '5M', 98)
        assert mismatches_in_window(PileupElement(read, 2), ReferenceContext(WINDOW, 101), False) == 0

    def test_read_ending_after_window(self):
        # positions 110 and 111 lie past the window
        read = make_read(b'TACGG', '5M', 107)
        assert mismatches_in_window(PileupElement(read, 0), ReferenceContext(WINDOW, 108), False) == 0

    def test_deletion(self):
        read = make_read(b'ACACG', '2M2D3M', 100)
        assert mismatches_in_window(PileupElement(read, 0), ReferenceContext(WINDOW, 104), False) == 0

    def test_deletion_across_window_start(self):
        # the deletion covers 98..101, only 100 and 101 advance the window cursor
        read = make_read(b'NGTA', '1M4D3M', 97)
        assert mismatches_in_window(PileupElement(read, 1), ReferenceContext(WINDOW, 103), False) == 0

    @pytest.mark.parametrize('bases, cigar, start', [
        (b'TNACGT', '1M3D5M', 95),  # deletion ends at 98
        (b'TACGT', '1M4D4M', 95),  # deletion ends at 99, right before the window
    ])
    def test_deletion_before_window_start(self, bases, cigar, start):
        read = make_read(bases, cigar, start)
        assert mismatches_in_window(PileupElement(read, 0), ReferenceContext(WINDOW, 104), False) == 0

    def test_mismatch_after_deletion_before_window_start(self):
        read = make_read(b'TNACAT', '1M3D5M', 95, qualities=[30, 30, 30, 30, 7, 30])
        context = ReferenceContext(WINDOW, 104)
        assert mismatches_in_window(PileupElement(read, 0), context, False) == 1
        assert mismatches_in_window(PileupElement(read, 0), context, False, use_quality_sum=True) == 7

    def test_soft_clip(self):
        read = make_read(b'NNGTAC', '2S4M', 102)
        assert mismatches_in_window(PileupElement(read, 2), ReferenceContext(WINDOW, 103), False) == 0

    def test_unsupported(self):
        read = make_read(b'GTACG', '2M1B3M', 102)
        with pytest.raises(UnsupportedCigarOperation):
            mismatches_in_window(PileupElement(read, 0), ReferenceContext(WINDOW, 104), False)

    def test_read_shorter_than_cigar(self):
        read = make_read(b'GTA', '5M', 102)
        with pytest.raises(ReadError):
            mismatches_in_window(PileupElement(read, 0), ReferenceContext(WINDOW, 104), False)


class TestMismatchesInPileup:
    def test_sum(self):
        context = ReferenceContext(WINDOW, 104)
        pileup = Pileup.build([
            PileupElement(make_read(b'GTTCG', '5M', 102, qualities=QUALS), 2),
            PileupElement(make_read(b'ACGAAC', '6M', 100, qualities=[5] * 6), 4),
            PileupElement(make_read(b'TACGTA', '6M', 103), 1),
        ])
        assert mismatches_in_pileup(pileup, context, False) == 2
        assert mismatches_in_pileup(pileup, context, False, use_quality_sum=True) == 30 + 5
        # only the second read mismatches away from the target site
        assert mismatches_in_pileup(pileup, context, True) == 1

    def test_empty(self):
        assert mismatches_in_pileup(Pileup.empty(), ReferenceContext(WINDOW, 104), False) == 0
