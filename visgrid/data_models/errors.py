"""Exceptions raised by the gridding engine

Configuration and shape problems are fatal. Flagged samples, footprints that fall off the grid and
out-of-range w values are not errors: they are counted in GriddingStatistics and skipped.
"""

__all__ = ['ConfigurationError', 'DataShapeError']


class ConfigurationError(ValueError):
    """ Invalid gridder parameters, raised before any data are processed
    """
    pass


class DataShapeError(ValueError):
    """ Grid, image or visibility shapes are inconsistent for the requested operation
    """
    pass
