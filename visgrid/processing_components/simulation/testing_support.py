"""
Functions that aid testing in various ways.

"""

__all__ = ['create_test_visibility', 'create_test_axes', 'insert_point_source']

import logging

import numpy

from visgrid.data_models.memory_data_models import Image, Visibility
from visgrid.processing_components.image.operations import create_axes_from_image, create_image
from visgrid.processing_components.visibility.base import create_visibility

log = logging.getLogger('logger')


def create_test_visibility(nrows=100, frequency=numpy.array([1e8]), npol=1, uvmax=1000.0, wmax=0.0, seed=180555,
                           phasecentre=None) -> Visibility:
    """ Create a Visibility with random uvw coordinates

    u and v are uniform in [-uvmax, uvmax), w uniform in [-wmax, wmax), all in metres. The visibilities
    are zero with unit weights.

    :param nrows: Number of rows
    :param frequency: Frequencies (Hz)
    :param npol: Number of polarisations
    :param uvmax: Maximum |u|, |v| (m)
    :param wmax: Maximum |w| (m)
    :param seed: Seed of the random number generator
    :param phasecentre: Phasecentre (SkyCoord)
    :return: Visibility
    """
    rng = numpy.random.RandomState(seed)
    uvw = numpy.zeros([nrows, 3])
    uvw[:, 0:2] = rng.uniform(-uvmax, uvmax, [nrows, 2])
    if wmax > 0.0:
        uvw[:, 2] = rng.uniform(-wmax, wmax, [nrows])
    return create_visibility(uvw, frequency, npol=npol, phasecentre=phasecentre)


def create_test_axes(npixel=64, cellsize=numpy.deg2rad(1.0 / 3600.0), npol=1, frequency=numpy.array([1e8])):
    """ Create an empty image and its Axes

    :param npixel: Number of pixels on each axis
    :param cellsize: Cellsize (radians)
    :param npol: Number of polarisations
    :param frequency: Frequencies of the image channels (Hz)
    :return: Image, Axes
    """
    frequency = numpy.array(frequency).reshape(-1)
    model = create_image(npixel=npixel, cellsize=cellsize, npol=npol, frequency=frequency,
                         channel_bandwidth=numpy.array([1e6]))
    return model, create_axes_from_image(model)


def insert_point_source(im: Image, l, m, flux=1.0):
    """ Add a point source at the pixel nearest to (l, m)

    :param im: Image, changed in place
    :param l: Direction cosine
    :param m: Direction cosine
    :param flux: Flux
    :return: Image, and the (l, m) of the pixel used
    """
    cellsize = numpy.abs(numpy.deg2rad(im.wcs.wcs.cdelt[0:2]))
    ny, nx = im.shape[-2:]
    x = int(numpy.round(l / cellsize[0])) + nx // 2
    y = int(numpy.round(m / cellsize[1])) + ny // 2
    im.data[..., y, x] += flux
    return im, ((x - nx // 2) * cellsize[0], (y - ny // 2) * cellsize[1])
