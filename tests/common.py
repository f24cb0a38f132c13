from cigarlib.containers.read import AlignedRead


def make_read(bases, cigar, alignment_start=1, qualities=None, **kwargs):
    """A mapped read on reference 0 ('chr1'), with quality 30 at every base unless given."""
    if qualities is None: qualities = [30] * len(bases)
    kwargs.setdefault('reference_index', 0)
    kwargs.setdefault('reference_name', b'chr1')
    kwargs.setdefault('mapping_quality', 60)
    return AlignedRead(bases, qualities, cigar, alignment_start, **kwargs)
