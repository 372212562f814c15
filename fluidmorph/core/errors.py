class FluidMorphError(Exception):
    pass


class MissingInput(FluidMorphError, RuntimeError):
    """Raised when transform mode is requested without a second raster."""


class PreconditionViolation(FluidMorphError, ValueError):
    """Raised when rasters, sample sets or settings don't line up."""
