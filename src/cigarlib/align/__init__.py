"""
Operations over a single read's alignment: coordinate translation, mismatch counting, shape metrics and indel
left-alignment. All of them are pure functions of their arguments.
"""
from cigarlib.align.coords import alignment_offset, pileup_alignment_offset, alignment_array
from cigarlib.align.mismatch import (MismatchCount, count_mismatches, mismatching_qualities, mismatches_in_window,
                                     mismatches_in_pileup)
from cigarlib.align.metrics import (alignment_block_count, aligned_base_count, aligned_base_count_with_soft_clips,
                                    hard_clipped_base_count, high_quality_soft_clip_count)
from cigarlib.align.indel import left_align_indel
