"""
Direct Fourier transform of point sources, the reference against which the gridders are tested.

The measurement equation for a wide field of view interferometer is:

.. math::

    V(u,v,w) =\\int I(l,m) e^{-2 \\pi j (ul+vm + w(\\sqrt{1-l^2-m^2}-1))} dl dm

The w term is evaluated exactly here, so comparison with the gridders shows the error of the
paraxial Fresnel chirp as well as of the convolution.
"""

__all__ = ['dft_point_source_visibility', 'calculate_visibility_phasor']

import logging

import numpy

from visgrid.data_models.memory_data_models import Visibility
from visgrid.processing_components.visibility.base import copy_visibility

log = logging.getLogger('logger')


def calculate_visibility_phasor(l, m, vis: Visibility):
    """ Phasor of a point source at (l, m) for every (row, channel)

    :param l: Direction cosine
    :param m: Direction cosine
    :param vis: Visibility
    :return: complex array [nrows, nchan]
    """
    assert l ** 2 + m ** 2 < 1.0, "Direction (%g, %g) is beyond the horizon" % (l, m)
    n = numpy.sqrt(1.0 - l ** 2 - m ** 2) - 1.0
    uvw = vis.uvw_lambda
    return numpy.exp(-2j * numpy.pi * (uvw[..., 0] * l + uvw[..., 1] * m + uvw[..., 2] * n))


def dft_point_source_visibility(vis: Visibility, l, m, flux=1.0) -> Visibility:
    """DFT to get the visibility of a point source

    The source is added to a copy of vis.

    :param vis: Visibility
    :param l: Direction cosine of the source
    :param m: Direction cosine of the source
    :param flux: Flux, scalar or [nchan, npol]
    :return: Visibility
    """
    newvis = copy_visibility(vis)
    phasor = calculate_visibility_phasor(l, m, vis)
    flux = numpy.broadcast_to(numpy.array(flux, dtype='complex'), (vis.nchan, vis.npol))
    newvis.data['vis'] += flux[numpy.newaxis, ...] * phasor[..., numpy.newaxis]
    return newvis
