"""
Exceptions raised by the stitching pipeline.

All of them derive from ValueError so callers that already guard the
pipeline with ``except ValueError`` keep working.
"""


class StitchingError(ValueError):
    """Base class for structural failures of the stitching pipeline."""


class OutOfBoundsError(StitchingError, IndexError):
    """A descriptor or visualization window extends past the image edges."""


class DegenerateDescriptorError(StitchingError):
    """A descriptor patch is flat and cannot be normalized."""


class InsufficientCorrespondencesError(StitchingError):
    """Fewer correspondences than a homography fit needs."""
