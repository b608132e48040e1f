class CreativeError(Exception):
    """Base class for failures while processing a creative."""


class DecodeError(CreativeError):
    """Image bytes could not be decoded."""


class RasterUnavailable(CreativeError):
    """A raster buffer could not be created or converted by the backend."""
