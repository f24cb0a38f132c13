"""
Coordinate algebra and canonicalization over CIGAR-described read alignments.
"""
from importlib.metadata import version, PackageNotFoundError


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class CigarlibWarning(Warning): pass
class ReferenceTruncationWarning(CigarlibWarning): pass


# Constants ------------------------------------------------------------------------------------------------------------
try: __version__ = version(__name__)
except PackageNotFoundError: __version__ = '0.0.0'
