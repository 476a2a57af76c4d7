"""
Convolution function variants

Each variant is chosen at configuration time and offers the same two capabilities:

    compute_convolution_function(uvcellsize, shape, frequency): build the ConvolutionFunctionCache
    c_offset(vis, cf): map each (row, channel) of a Visibility onto a plane of the cache

The variants are:

    BoxFunction: single tap nearest neighbour gridding
    SpheroidalFunction: prolate spheroidal anti-aliasing function, one plane
    WProjectionFunction: anti-aliasing function times the Fresnel w-term chirp, one plane per w
    AntennaIlluminationFunction: anti-aliasing function times an antenna primary beam, one plane per frequency

"""

__all__ = ['ConvolutionFunction', 'BoxFunction', 'SpheroidalFunction', 'WProjectionFunction',
           'AntennaIlluminationFunction', 'primary_beam_airy', 'initialize_convolutionfunction_cache',
           'single_plane_index_map']

import logging

import numpy
from astropy import constants
from scipy.special import j1

from visgrid.data_models.errors import ConfigurationError
from visgrid.data_models.memory_data_models import ConvolutionFunctionCache, PlaneIndexMap, Visibility
from visgrid.processing_components.fourier_transforms import fresnel_chirp
from visgrid.processing_components.griddata.convolution_functions import check_kernel_parameters, \
    create_convolutionfunction_cache
from visgrid.processing_components.griddata.plane_mapping import PlaneMapper, nearest_plane_index_map

log = logging.getLogger('logger')


def single_plane_index_map(vis: Visibility) -> PlaneIndexMap:
    """ Map every sample onto plane 0

    :param vis: Visibility
    :return: PlaneIndexMap [nrows, nchan]
    """
    return PlaneIndexMap(numpy.zeros([vis.nrows, vis.nchan], dtype='int'), 1)


def primary_beam_airy(l, m, frequency, diameter=25.0, blockage=0.0):
    """ Power pattern of a circular aperture with a central blockage

    The voltage pattern is the difference of the Airy patterns of the aperture and the blockage,
    normalised to unity at the pointing centre.

    :param l: Direction cosines
    :param m: Direction cosines
    :param frequency: Frequency (Hz)
    :param diameter: Diameter of the aperture (m)
    :param blockage: Diameter of the blockage (m)
    :return: Power pattern with the shape of l
    """
    r = numpy.sqrt(l ** 2 + m ** 2)
    scale = numpy.pi * r * frequency / constants.c.value

    def airy(d):
        x = scale * d
        result = numpy.ones_like(x)
        nonzero = x > 0.0
        result[nonzero] = 2.0 * j1(x[nonzero]) / x[nonzero]
        return result

    if blockage > 0.0:
        voltage = (diameter ** 2 * airy(diameter) - blockage ** 2 * airy(blockage)) / (diameter ** 2 - blockage ** 2)
    else:
        voltage = airy(diameter)
    return voltage ** 2


class ConvolutionFunction:
    """ Interface of the convolution function variants

    """
    name = ''

    def compute_convolution_function(self, uvcellsize, shape, frequency=None) -> ConvolutionFunctionCache:
        """ Build the cache for a grid

        :param uvcellsize: UV cellsize (u, v) of the grid (wavelengths)
        :param shape: Grid shape [nchan, npol, ny, nx]
        :param frequency: Frequencies (Hz), used by frequency dependent variants
        :return: ConvolutionFunctionCache
        """
        raise NotImplementedError("%s does not compute a convolution function" % type(self).__name__)

    def c_offset(self, vis: Visibility, cf: ConvolutionFunctionCache) -> PlaneIndexMap:
        """ Map each (row, channel) onto a plane of the cache

        :param vis: Visibility
        :param cf: ConvolutionFunctionCache built by this variant
        :return: PlaneIndexMap [nrows, nchan]
        """
        raise NotImplementedError("%s does not map planes" % type(self).__name__)


class BoxFunction(ConvolutionFunction):
    """ Nearest neighbour gridding: all of a sample goes to the nearest grid cell
    """
    name = 'box'

    def compute_convolution_function(self, uvcellsize, shape, frequency=None):
        kernel = numpy.ones([1, 1, 1, 1], dtype='complex')
        cf = ConvolutionFunctionCache([kernel], [0], [0.0], 1, 1.0, kernel, uvcellsize, name=self.name)
        log.info("BoxFunction: single tap kernel")
        return cf

    def c_offset(self, vis, cf):
        return single_plane_index_map(vis)


class SpheroidalFunction(ConvolutionFunction):
    """ Prolate spheroidal anti-aliasing function, no w correction
    """
    name = 'spheroidal'

    def __init__(self, oversample=8, cutoff=1e-3, support=None, maxsupport=64):
        check_kernel_parameters(oversample, cutoff, support, maxsupport)
        self.oversample = oversample
        self.cutoff = cutoff
        self.support = support
        self.maxsupport = maxsupport

    def compute_convolution_function(self, uvcellsize, shape, frequency=None):
        return create_convolutionfunction_cache(None, [0.0], uvcellsize, shape, oversample=self.oversample,
                                                cutoff=self.cutoff, support=self.support,
                                                maxsupport=self.maxsupport, name=self.name)

    def c_offset(self, vis, cf):
        return single_plane_index_map(vis)


class WProjectionFunction(ConvolutionFunction):
    """ W projection: anti-aliasing function times the w-term chirp for each w plane

    """
    name = 'wprojection'

    def __init__(self, wmax, nwplanes, oversample=8, cutoff=1e-3, support=None, maxsupport=64,
                 wspacing='quadratic'):
        """ Create WProjectionFunction

        :param wmax: Maximum absolute w (wavelengths)
        :param nwplanes: Number of w planes
        :param oversample: Oversampling of the convolution function in uv space
        :param cutoff: Fraction of the peak at which the support is truncated
        :param support: Support for all planes, overrides the cutoff search
        :param maxsupport: Largest support allowed
        :param wspacing: 'quadratic' or 'linear'
        :raises ConfigurationError:
        """
        if not isinstance(nwplanes, (int, numpy.integer)) or nwplanes <= 0:
            raise ConfigurationError("Number of w planes must be a positive integer: %s" % str(nwplanes))
        if wmax is None or wmax <= 0.0:
            raise ConfigurationError("Maximum w must be positive: %s" % str(wmax))
        check_kernel_parameters(oversample, cutoff, support, maxsupport)
        self.mapper = PlaneMapper(wmax, nwplanes, wspacing)
        self.wmax = wmax
        self.nwplanes = nwplanes
        self.oversample = oversample
        self.cutoff = cutoff
        self.support = support
        self.maxsupport = maxsupport
        self.wspacing = wspacing

    def compute_convolution_function(self, uvcellsize, shape, frequency=None):
        return create_convolutionfunction_cache(fresnel_chirp, self.mapper.plane_values, uvcellsize, shape,
                                                oversample=self.oversample, cutoff=self.cutoff,
                                                support=self.support, maxsupport=self.maxsupport, name=self.name)

    def c_offset(self, vis, cf):
        return self.mapper(vis)


class AntennaIlluminationFunction(ConvolutionFunction):
    """ Anti-aliasing function times the primary beam of a blocked circular aperture

    There is one plane per frequency. The plane frequencies are those given here or, failing that, the
    frequencies of the image channels.
    """
    name = 'illumination'

    def __init__(self, diameter=25.0, blockage=0.0, oversample=8, cutoff=1e-3, support=None, maxsupport=64,
                 frequency=None):
        if diameter is None or diameter <= 0.0:
            raise ConfigurationError("Antenna diameter must be positive: %s" % str(diameter))
        if blockage < 0.0 or blockage >= diameter:
            raise ConfigurationError("Blockage %s must be in [0, diameter)" % str(blockage))
        check_kernel_parameters(oversample, cutoff, support, maxsupport)
        self.diameter = diameter
        self.blockage = blockage
        self.oversample = oversample
        self.cutoff = cutoff
        self.support = support
        self.maxsupport = maxsupport
        self.frequency = frequency

    def compute_convolution_function(self, uvcellsize, shape, frequency=None):
        if self.frequency is not None:
            frequency = self.frequency
        if frequency is None:
            raise ConfigurationError("Antenna illumination requires the frequencies of the planes")

        def beam(l, m, f):
            return primary_beam_airy(l, m, f, self.diameter, self.blockage)

        return create_convolutionfunction_cache(beam, numpy.array(frequency).reshape(-1), uvcellsize, shape,
                                                oversample=self.oversample, cutoff=self.cutoff,
                                                support=self.support, maxsupport=self.maxsupport, name=self.name)

    def c_offset(self, vis, cf):
        return nearest_plane_index_map(vis, cf.plane_values)


def initialize_convolutionfunction_cache(wmax, nwplanes, cutoff, oversample, uvcellsize, shape, support=None,
                                         maxsupport=64, wspacing='quadratic') -> ConvolutionFunctionCache:
    """ Build the w projection cache for a grid

    :param wmax: Maximum absolute w (wavelengths)
    :param nwplanes: Number of w planes
    :param cutoff: Fraction of the peak at which the support is truncated
    :param oversample: Oversampling of the convolution function in uv space
    :param uvcellsize: UV cellsize (u, v) of the grid (wavelengths)
    :param shape: Grid shape [nchan, npol, ny, nx]
    :param support: Support for all planes, overrides the cutoff search
    :param maxsupport: Largest support allowed
    :param wspacing: 'quadratic' or 'linear'
    :return: ConvolutionFunctionCache
    :raises ConfigurationError:
    """
    variant = WProjectionFunction(wmax, nwplanes, oversample=oversample, cutoff=cutoff, support=support,
                                  maxsupport=maxsupport, wspacing=wspacing)
    return variant.compute_convolution_function(uvcellsize, shape)
