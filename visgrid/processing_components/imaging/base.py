"""
Functions that aid fourier transform processing. These are built on top of the core
functions in processing_components.griddata.

The measurement equation for a sufficently narrow field of view interferometer is:

.. math::

    V(u,v,w) =\\int I(l,m) e^{-2 \\pi j (ul+vm)} dl dm

and W projection removes the residual w term by convolving with the transform of the Fresnel chirp.
"""

__all__ = ['invert', 'predict']

import logging

import numpy

from visgrid.data_models.memory_data_models import Image, Visibility
from visgrid.processing_components.imaging.gridder import Gridder
from visgrid.processing_components.visibility.base import copy_visibility

log = logging.getLogger('logger')


def invert(vis: Visibility, gridder: Gridder, dopsf=False, normalize=True):
    """ Invert to make a dirty image (or the PSF) in one pass

    :param vis: Visibility to be inverted
    :param gridder: Gridder
    :param dopsf: Make the psf instead of the dirty image
    :param normalize: Normalize by the sum of weights
    :return: Image, sum of weights [nchan, npol]
    """
    assert isinstance(vis, Visibility), vis

    if dopsf:
        vis = copy_visibility(vis)
        vis.data['vis'][...] = 1.0 + 0.0j

    griddata, sumwt = gridder.begin_pass()
    griddata, sumwt = gridder.reverse(vis, griddata, sumwt)
    result = gridder.finalize(griddata, sumwt, normalize=normalize)
    log.debug("invert: %s" % str(gridder.statistics.as_dict()))
    return result, sumwt


def predict(vis: Visibility, model: Image, gridder: Gridder) -> Visibility:
    """ Predict visibilities from a model image

    :param vis: Visibility giving the sample coordinates
    :param model: Model Image matching the gridder axes
    :param gridder: Gridder
    :return: New Visibility with predicted values
    """
    assert isinstance(vis, Visibility), vis
    assert isinstance(model, Image), model

    griddata = gridder.model_to_griddata(model)
    newvis = gridder.forward(vis, griddata)
    log.debug("predict: max amplitude %g" % numpy.max(numpy.abs(newvis.vis), initial=0.0))
    return newvis
