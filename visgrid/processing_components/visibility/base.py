""" Base simple visibility operations, placed here to avoid circular dependencies

"""

__all__ = ['create_visibility', 'copy_visibility', 'vis_summary']

import copy
import logging

import numpy
from astropy import units as u
from astropy.coordinates import SkyCoord

from visgrid.data_models.errors import DataShapeError
from visgrid.data_models.memory_data_models import Visibility

log = logging.getLogger('logger')


def vis_summary(vis: Visibility):
    """Return string summarizing the Visibility

    """
    return "%d rows, %d channels, %d polarisations, %.3f GB" % (vis.nrows, vis.nchan, vis.npol, vis.size())


def create_visibility(uvw, frequency, npol=1, vis=None, weight=None, flags=None, phasecentre=None) -> Visibility:
    """ Create a Visibility from uvw coordinates

    :param uvw: uvw coordinates [nrows, 3] (m)
    :param frequency: Frequencies [nchan] (Hz)
    :param npol: Number of polarisations
    :param vis: Visibility values [nrows, nchan, npol], zero if None
    :param weight: Weights [nrows, nchan, npol], unity if None
    :param flags: Flags [nrows, nchan, npol], unflagged if None
    :param phasecentre: Phasecentre (SkyCoord)
    :return: Visibility
    """
    uvw = numpy.array(uvw, dtype='float')
    if len(uvw.shape) != 2 or uvw.shape[1] != 3:
        raise DataShapeError("uvw must be [nrows, 3]: %s" % str(uvw.shape))
    frequency = numpy.array(frequency, dtype='float').reshape(-1)
    nrows = uvw.shape[0]
    nchan = len(frequency)
    shape = (nrows, nchan, npol)
    if vis is None:
        vis = numpy.zeros(shape, dtype='complex')
    for name, column in (('vis', vis), ('weight', weight), ('flags', flags)):
        if column is not None and numpy.shape(column) != shape:
            raise DataShapeError("%s must be %s: %s" % (name, str(shape), str(numpy.shape(column))))
    if phasecentre is None:
        phasecentre = SkyCoord(ra=+15.0 * u.deg, dec=-35.0 * u.deg, frame='icrs', equinox='J2000')
    newvis = Visibility(uvw=uvw, frequency=frequency, vis=vis, weight=weight, flags=flags,
                        phasecentre=phasecentre)
    log.debug("create_visibility: created %s" % vis_summary(newvis))
    return newvis


def copy_visibility(vis: Visibility, zero=False) -> Visibility:
    """Copy a visibility

    Performs a deepcopy of the data array

    :param vis: Visibility
    :param zero: Zero the visibility values
    :return: Visibility
    """
    assert isinstance(vis, Visibility), vis

    newvis = copy.copy(vis)
    newvis.data = numpy.copy(vis.data)
    newvis.frequency = numpy.copy(vis.frequency)
    if zero:
        newvis.data['vis'][...] = 0.0
    return newvis
