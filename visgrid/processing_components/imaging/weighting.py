"""
Functions that aid weighting the visibility data prior to imaging.

There are two classes of functions:
    - Changing the weight dependent on sample density
    - Tapering the weight spatially to emphasize a given scale size in the image

"""

__all__ = ['weight_visibility', 'taper_visibility_gaussian']

import logging

import numpy

from visgrid.data_models.errors import ConfigurationError
from visgrid.data_models.memory_data_models import Visibility
from visgrid.processing_components.griddata.gridding import griddata_visibility_reweight
from visgrid.processing_components.imaging.gridder import Gridder
from visgrid.processing_components.visibility.base import copy_visibility

log = logging.getLogger('logger')


def weight_visibility(vis: Visibility, gridder: Gridder, weighting='uniform') -> Visibility:
    """ Weight the visibility data

    Uniform weighting divides each weight by the gridded weight density at its grid cell. Natural
    weighting leaves the weights unchanged.

    :param vis: Visibility
    :param gridder: Gridder whose grid sets the cells
    :param weighting: Type of weighting (uniform or natural)
    :return: Reweighted Visibility
   """
    assert isinstance(vis, Visibility), vis

    if weighting == 'natural':
        return copy_visibility(vis)
    elif weighting != 'uniform':
        raise ConfigurationError("Unknown weighting %s" % weighting)

    griddata, _ = gridder.reverse_weights(vis)
    return griddata_visibility_reweight(vis, griddata, gridder.cf)


def taper_visibility_gaussian(vis: Visibility, beam=None) -> Visibility:
    """ Taper the visibility weights

    These are cumulative.

    :param vis: Visibility with weights to be tapered
    :param beam: desired resolution (Full width half maximum, radians)
    :return: New Visibility with weight column modified
    """
    assert isinstance(vis, Visibility), vis

    if beam is None:
        raise ConfigurationError("Beam size not specified for Gaussian taper")

    # See http://mathworld.wolfram.com/FourierTransformGaussian.html
    scale_factor = numpy.pi ** 2 * beam ** 2 / (4.0 * numpy.log(2.0))

    newvis = copy_visibility(vis)
    uvw = vis.uvw_lambda
    uvdistsq = uvw[..., 0] ** 2 + uvw[..., 1] ** 2
    wt = numpy.exp(-scale_factor * uvdistsq)
    newvis.data['weight'][...] = vis.weight * wt[..., numpy.newaxis]
    return newvis
