""" Mapping of visibility samples onto convolution function planes

For W projection each (row, channel) sample is assigned the plane whose w is nearest to the sample's w
(in wavelengths, so scaled by the channel frequency). The planes are spaced quadratically by default:
the w-term chirp rate is proportional to w so planes need to be denser near w = 0. The mapping is
monotonic in w, and values beyond the range of the planes are clamped onto the first or last plane
and counted.

The result is a dense table of plane ids, built once per pass, so that the gridding loop does not
recompute the mapping.
"""

__all__ = ['wplane_values', 'wplane_index', 'PlaneMapper', 'nearest_plane_index_map']

import logging

import numpy

from visgrid.data_models.errors import ConfigurationError
from visgrid.data_models.memory_data_models import PlaneIndexMap, Visibility

log = logging.getLogger('logger')

wspacing_policies = ['quadratic', 'linear']


def _check_wspacing(wspacing):
    if wspacing not in wspacing_policies:
        raise ConfigurationError("Unknown w spacing policy %s: must be one of %s" % (wspacing, wspacing_policies))


def wplane_values(wmax, nplanes, wspacing='quadratic'):
    """ Representative w of each plane

    Plane p has x = (p - c) / c where c = (nplanes - 1) / 2 so that x spans [-1, 1]. For quadratic
    spacing w = wmax * sign(x) * x**2, for linear spacing w = wmax * x. A single plane is at w = 0.

    :param wmax: Maximum absolute w (wavelengths)
    :param nplanes: Number of planes
    :param wspacing: 'quadratic' or 'linear'
    :return: numpy array [nplanes]
    """
    _check_wspacing(wspacing)
    if nplanes == 1:
        return numpy.zeros([1])
    centre = (nplanes - 1) / 2.0
    x = (numpy.arange(nplanes) - centre) / centre
    if wspacing == 'quadratic':
        return wmax * numpy.sign(x) * x ** 2
    else:
        return wmax * x


def wplane_index(w, wmax, nplanes, wspacing='quadratic', tolerance=1e-8):
    """ Nearest plane for each w, clamped to [0, nplanes)

    This inverts wplane_values: x is recovered from w and rounded to the nearest plane.

    :param w: Array of w (wavelengths), any shape
    :param wmax: Maximum absolute w (wavelengths)
    :param nplanes: Number of planes
    :param wspacing: 'quadratic' or 'linear'
    :param tolerance: Fractional tolerance on the range check
    :return: plane ids with the shape of w, number with |w| > wmax
    """
    _check_wspacing(wspacing)
    w = numpy.asarray(w, dtype='float')
    if nplanes == 1:
        return numpy.zeros(w.shape, dtype='int'), 0

    centre = (nplanes - 1) / 2.0
    x = w / wmax
    if wspacing == 'quadratic':
        x = numpy.sign(x) * numpy.sqrt(numpy.abs(x))
    pixel = centre + centre * x
    planes = numpy.floor(pixel + 0.5).astype('int')
    clamped = numpy.abs(w) > wmax * (1.0 + tolerance)
    planes = numpy.clip(planes, 0, nplanes - 1)
    return planes, int(numpy.sum(clamped))


class PlaneMapper:
    """ Map each (row, channel) of a Visibility onto a w plane

    """

    def __init__(self, wmax, nplanes, wspacing='quadratic'):
        """ Create PlaneMapper

        :param wmax: Maximum absolute w (wavelengths)
        :param nplanes: Number of planes
        :param wspacing: 'quadratic' or 'linear'
        """
        _check_wspacing(wspacing)
        self.wmax = wmax
        self.nplanes = nplanes
        self.wspacing = wspacing

    @property
    def plane_values(self):
        return wplane_values(self.wmax, self.nplanes, self.wspacing)

    def map_w(self, w):
        """ Plane ids for an array of w (wavelengths)

        :param w: Array of w, any shape
        :return: plane ids with the shape of w, number with |w| > wmax
        """
        return wplane_index(w, self.wmax, self.nplanes, self.wspacing)

    def __call__(self, vis: Visibility) -> PlaneIndexMap:
        """ Build the plane index table for one pass

        :param vis: Visibility
        :return: PlaneIndexMap [nrows, nchan]
        """
        assert isinstance(vis, Visibility), vis
        w = vis.uvw_lambda[..., 2]
        planes, nclamped = self.map_w(w)
        if nclamped > 0:
            log.warning("PlaneMapper: %d samples have |w| beyond %.1f wavelengths, clamped to the outermost planes"
                        % (nclamped, self.wmax))
        log.debug("PlaneMapper: mapped %d samples onto %d planes" % (w.size, self.nplanes))
        return PlaneIndexMap(planes, self.nplanes, nclamped)


def nearest_plane_index_map(vis: Visibility, plane_frequency, tolerance=1e-8) -> PlaneIndexMap:
    """ Map each channel onto the plane with the nearest frequency

    Used for kernels that change with frequency rather than w, e.g. antenna illumination. Channels
    outside the range of plane frequencies are mapped to the nearest end and counted as clamped.

    :param vis: Visibility
    :param plane_frequency: Frequency of each plane (Hz)
    :param tolerance: Fractional tolerance on the range check
    :return: PlaneIndexMap [nrows, nchan]
    """
    plane_frequency = numpy.asarray(plane_frequency)
    chan_to_plane = numpy.argmin(numpy.abs(vis.frequency[:, numpy.newaxis] - plane_frequency[numpy.newaxis, :]),
                                 axis=1)
    fmin = numpy.min(plane_frequency) * (1.0 - tolerance)
    fmax = numpy.max(plane_frequency) * (1.0 + tolerance)
    outside = (vis.frequency < fmin) | (vis.frequency > fmax)
    nclamped = int(numpy.sum(outside)) * vis.nrows
    planes = numpy.repeat(chan_to_plane[numpy.newaxis, :], vis.nrows, axis=0)
    return PlaneIndexMap(planes, len(plane_frequency), nclamped)
