""" Gridders: a convolution function variant, its cache, and the passes that use it

A Gridder moves through the states

    unconfigured -> initialized -> active -> finalized

The cache is built on initialize, either explicitly or lazily on first use if the Axes were given at
construction. begin_pass returns a fresh grid and sum of weights and makes the gridder active; reverse
and forward work on the grids of the pass; finalize turns a grid into a normalised, corrected image.
A further pass re-enters the active state without rebuilding the cache.

Configuration and shape problems raise ConfigurationError or DataShapeError at once. Samples that cannot
be gridded are skipped and counted in the statistics of the pass.
"""

__all__ = ['Gridder', 'create_gridder', 'gridder_states']

import logging

import numpy

from visgrid.data_models.errors import ConfigurationError, DataShapeError
from visgrid.data_models.memory_data_models import Axes, GridData, GriddingStatistics, Image, Visibility
from visgrid.data_models.parameters import get_parameter
from visgrid.processing_components.griddata.correction import ConvolutionFunctionCorrector
from visgrid.processing_components.griddata.gridding import degrid_visibility_from_griddata, \
    fft_griddata_to_image, fft_image_to_griddata, grid_visibility_to_griddata, grid_visibility_weight_to_griddata, \
    interpolation_policies
from visgrid.processing_components.griddata.kernels import AntennaIlluminationFunction, BoxFunction, \
    ConvolutionFunction, SpheroidalFunction, WProjectionFunction
from visgrid.processing_components.image.operations import create_image_from_array

log = logging.getLogger('logger')

gridder_states = ('unconfigured', 'initialized', 'active', 'finalized')


class Gridder:
    """ Gridder using one convolution function variant

    """

    def __init__(self, variant: ConvolutionFunction, axes: Axes = None, interpolation='linear'):
        """ Create Gridder

        :param variant: Convolution function variant e.g. WProjectionFunction
        :param axes: Axes of the grid, needed before first use
        :param interpolation: Sampling of the oversampled kernel, 'nearest' or 'linear'
        """
        assert isinstance(variant, ConvolutionFunction), variant
        if interpolation not in interpolation_policies:
            raise ConfigurationError("Unknown interpolation %s" % interpolation)
        self.interpolation = interpolation
        self.variant = variant
        self.axes = axes
        self.cf = None
        self.corrector = None
        self.state = 'unconfigured'
        self.statistics = GriddingStatistics()

    def __str__(self):
        s = "Gridder:\n"
        s += "\tVariant: %s\n" % self.variant.name
        s += "\tInterpolation: %s\n" % self.interpolation
        s += "\tState: %s\n" % self.state
        if self.axes is not None:
            s += "\tShape: %s\n" % str(self.axes.shape)
        return s

    def initialize(self, axes: Axes = None):
        """ Build the convolution function cache and the corrector for the axes

        :param axes: Axes of the grid, defaults to those given at construction
        :return: self
        :raises ConfigurationError: if there are no axes or the variant cannot be built for them
        """
        if axes is not None:
            self.axes = axes
        if self.axes is None:
            raise ConfigurationError("Gridder needs the axes of the grid before it can be initialized")
        self.cf = self.variant.compute_convolution_function(self.axes.uvcellsize, self.axes.shape,
                                                            self.axes.frequency)
        self.corrector = ConvolutionFunctionCorrector(self.cf, self.axes.ny, self.axes.nx)
        self.state = 'initialized'
        log.debug("Gridder: initialized %s for shape %s" % (self.variant.name, str(self.axes.shape)))
        return self

    def _ensure_initialized(self):
        if self.state == 'unconfigured':
            self.initialize()

    def create_griddata(self) -> GridData:
        """ Empty grid matching the axes

        :return: GridData
        """
        self._ensure_initialized()
        return GridData(numpy.zeros(self.axes.shape, dtype='complex'), self.axes.uvcellsize, self.axes.frequency)

    def begin_pass(self):
        """ Start a pass: reset the statistics and return a fresh grid and sum of weights

        :return: GridData, sumwt [nchan, npol]
        """
        self._ensure_initialized()
        self.statistics = GriddingStatistics()
        self.state = 'active'
        return self.create_griddata(), numpy.zeros([self.axes.nchan, self.axes.npol])

    def _check_griddata(self, griddata):
        if griddata.shape != self.axes.shape:
            raise DataShapeError("Grid shape %s does not match the gridder %s"
                                 % (str(griddata.shape), str(self.axes.shape)))

    def _accumulate(self, function, vis, griddata, sumwt):
        if self.state != 'active':
            self.begin_pass()
        if griddata is None:
            griddata = self.create_griddata()
        self._check_griddata(griddata)
        planemap = self.variant.c_offset(vis, self.cf)
        griddata, sumwt, stats = function(vis, griddata, self.cf, planemap, sumwt, interpolation=self.interpolation)
        self.statistics = self.statistics + stats
        return griddata, sumwt

    def reverse(self, vis: Visibility, griddata: GridData = None, sumwt=None):
        """ Grid visibilities into the grid of the pass

        :param vis: Visibility
        :param griddata: GridData to accumulate into, created if None
        :param sumwt: Sum of weights to accumulate into, created if None
        :return: GridData, sumwt
        """
        self._ensure_initialized()
        return self._accumulate(grid_visibility_to_griddata, vis, griddata, sumwt)

    def reverse_weights(self, vis: Visibility, griddata: GridData = None, sumwt=None):
        """ Grid the weights of visibilities, as used for weighting

        :param vis: Visibility
        :param griddata: GridData to accumulate into, created if None
        :param sumwt: Sum of weights to accumulate into, created if None
        :return: GridData, sumwt
        """
        self._ensure_initialized()
        return self._accumulate(grid_visibility_weight_to_griddata, vis, griddata, sumwt)

    def forward(self, vis: Visibility, griddata: GridData) -> Visibility:
        """ Predict visibilities from a grid, the adjoint of reverse

        :param vis: Visibility giving the sample coordinates
        :param griddata: GridData holding the transformed model
        :return: New Visibility with the predicted values
        """
        self._ensure_initialized()
        if self.state != 'active':
            self.begin_pass()
        self._check_griddata(griddata)
        planemap = self.variant.c_offset(vis, self.cf)
        newvis, stats = degrid_visibility_from_griddata(vis, griddata, self.cf, planemap,
                                                        interpolation=self.interpolation)
        self.statistics = self.statistics + stats
        return newvis

    def model_to_griddata(self, model: Image) -> GridData:
        """ Transform a model image to a grid ready for forward

        The model is divided by the taper so that the taper applied by degridding is removed.

        :param model: Image matching the axes
        :return: GridData
        """
        self._ensure_initialized()
        if model.shape != self.axes.shape:
            raise DataShapeError("Model shape %s does not match the gridder %s"
                                 % (str(model.shape), str(self.axes.shape)))
        return fft_image_to_griddata(self.corrector.correct_convolution(model), self.create_griddata())

    def finalize(self, griddata: GridData, sumwt, normalize=True) -> Image:
        """ Transform the grid of a pass to a corrected image

        :param griddata: GridData of the pass
        :param sumwt: Sum of weights of the pass [nchan, npol]
        :param normalize: Divide by the sum of weights
        :return: Image
        :raises ConfigurationError: if no pass is active
        """
        if self.state != 'active':
            raise ConfigurationError("Gridder cannot finalize in state %s" % self.state)
        self._check_griddata(griddata)
        result = numpy.real(fft_griddata_to_image(griddata))
        if normalize:
            sumwt = numpy.array(sumwt)
            for chan in range(result.shape[0]):
                for pol in range(result.shape[1]):
                    if sumwt[chan, pol] > 0.0:
                        result[chan, pol] = result[chan, pol] / sumwt[chan, pol]
                    else:
                        result[chan, pol] = 0.0
        im = create_image_from_array(result, self.axes.wcs)
        im = self.corrector.correct_convolution(im)
        self.state = 'finalized'
        log.debug("Gridder: finalized pass, %s" % str(self.statistics.as_dict()))
        return im


def create_gridder(axes: Axes = None, **kwargs) -> Gridder:
    """ Create a gridder from configuration parameters

    The parameters are read with get_parameter: gridder, wmax, nwplanes, cutoff, oversample, support,
    maxsupport, wspacing, diameter, blockage, interpolation.

    :param axes: Axes of the grid, may be given later to initialize
    :return: Gridder, not yet initialized
    :raises ConfigurationError:
    """
    name = get_parameter(kwargs, 'gridder', 'wprojection')
    oversample = get_parameter(kwargs, 'oversample', 8)
    cutoff = get_parameter(kwargs, 'cutoff', 1e-3)
    support = get_parameter(kwargs, 'support', None)
    maxsupport = get_parameter(kwargs, 'maxsupport', 64)

    if name == 'box':
        variant = BoxFunction()
    elif name == 'spheroidal':
        variant = SpheroidalFunction(oversample=oversample, cutoff=cutoff, support=support, maxsupport=maxsupport)
    elif name == 'wprojection':
        variant = WProjectionFunction(get_parameter(kwargs, 'wmax', None), get_parameter(kwargs, 'nwplanes', 1),
                                      oversample=oversample, cutoff=cutoff, support=support, maxsupport=maxsupport,
                                      wspacing=get_parameter(kwargs, 'wspacing', 'quadratic'))
    elif name == 'illumination':
        variant = AntennaIlluminationFunction(diameter=get_parameter(kwargs, 'diameter', 25.0),
                                              blockage=get_parameter(kwargs, 'blockage', 0.0),
                                              oversample=oversample, cutoff=cutoff, support=support,
                                              maxsupport=maxsupport,
                                              frequency=get_parameter(kwargs, 'frequency', None))
    else:
        raise ConfigurationError("Unknown gridder %s" % name)

    log.info("create_gridder: %s gridder" % name)
    return Gridder(variant, axes, interpolation=get_parameter(kwargs, 'interpolation', 'linear'))
