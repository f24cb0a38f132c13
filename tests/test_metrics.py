import pytest
from cigarlib.align.metrics import (alignment_block_count, aligned_base_count, aligned_base_count_with_soft_clips,
                                    hard_clipped_base_count, high_quality_soft_clip_count)
from cigarlib.containers.read import ReadError
from cigarlib.core.cigar import Cigar, UnsupportedCigarOperation
from .common import make_read


class TestCounts:
    def test_alignment_block_count(self):
        assert alignment_block_count(Cigar.parse('5M2I3M1D4M')) == 3
        assert alignment_block_count(Cigar.parse('5M')) == 1

    @pytest.mark.parametrize('cigar', ['4M', '2S4M', '4M1I1D2H', '3=4M2X', '1P4M5N', '2H4M3S'])
    def test_alignment_block_count_ignores_other_ops(self, cigar):
        assert alignment_block_count(Cigar.parse(cigar)) == 1

    def test_aligned_base_count(self):
        assert aligned_base_count(Cigar.parse('5M2I3M1D4M')) == 12
        assert aligned_base_count(Cigar.parse('3=2X4M')) == 4

    def test_aligned_base_count_with_soft_clips(self):
        assert aligned_base_count_with_soft_clips(Cigar.parse('2S5M3S')) == 10
        assert aligned_base_count_with_soft_clips(Cigar.parse('2H5M1I')) == 5

    def test_hard_clipped_base_count(self):
        assert hard_clipped_base_count(Cigar.parse('3H5M2H')) == 5
        assert hard_clipped_base_count(Cigar.parse('3S5M')) == 0

    def test_read(self):
        read = make_read(b'ACGTACGT', '2S4M2S', 100)
        assert alignment_block_count(read) == 1
        assert aligned_base_count(read) == 4
        assert aligned_base_count_with_soft_clips(read) == 8

    def test_missing_cigar(self):
        assert alignment_block_count(None) == 0
        assert aligned_base_count(None) == 0
        assert hard_clipped_base_count(make_read(b'ACGT', None, 100)) == 0

    def test_empty_cigar(self):
        assert aligned_base_count(Cigar.parse('*')) == 0


class TestHighQualitySoftClips:
    def test_count(self):
        read = make_read(b'ACGTACGT', '3S3M2S', 100, qualities=[10, 40, 40, 30, 30, 30, 5, 50])
        assert high_quality_soft_clip_count(read, 20) == 3

    def test_threshold_is_strict(self):
        read = make_read(b'ACGTACGT', '3S3M2S', 100, qualities=[10, 40, 40, 30, 30, 30, 5, 50])
        assert high_quality_soft_clip_count(read, 40) == 1

    def test_reference_only_ops_do_not_move_cursor(self):
        read = make_read(b'ACGTAC', '2H2S2M1D2M', 100, qualities=[30, 10, 0, 0, 0, 0])
        assert high_quality_soft_clip_count(read, 20) == 1

    def test_insertions_move_cursor(self):
        read = make_read(b'ACGT', '2M1I1S', 100, qualities=[0, 0, 50, 60])
        assert high_quality_soft_clip_count(read, 20) == 1

    def test_no_soft_clips(self):
        assert high_quality_soft_clip_count(make_read(b'ACGT', '4M', 100, qualities=[60] * 4), 0) == 0

    def test_unsupported(self):
        with pytest.raises(UnsupportedCigarOperation):
            high_quality_soft_clip_count(make_read(b'ACGT', '2S1B2M', 100), 20)

    def test_read_shorter_than_cigar(self):
        with pytest.raises(ReadError):
            high_quality_soft_clip_count(make_read(b'ACGT', '2S2M2S', 100), 20)
