""" Support for coordinates in FFTs

All grids and images are considered quadratic and centered around
`npixel//2`, where `npixel` is the pixel width/height. This means that `npixel//2` is
the zero frequency for FFT purposes, as is convention. Note that this
means that for even `npixel` the grid is not symmetrical, which means that
e.g. for convolution kernels odd image sizes are preferred.

"""

__all__ = ['coordinates', 'coordinates2', 'grdsf', 'fresnel_chirp', 'anti_aliasing_kernel']

import logging

import numpy

log = logging.getLogger('logger')


def coordinates(npixel: int):
    """ 1D array which spans [-.5,.5[ with 0 at position npixel/2

    """
    return (numpy.arange(npixel) - npixel // 2) / npixel


def coordinates2(ny: int, nx: int):
    """Two dimensional grids of coordinates spanning [-.5,.5[ in each dimension

    1. a step size of 1/npixel and
    2. (0,0) at pixel (floor(ny/2),floor(nx/2))

    :return: pair (y, x) of 2D coordinate arrays
    """
    mg = numpy.mgrid[0:ny, 0:nx]
    return (mg[0] - ny // 2) / ny, (mg[1] - nx // 2) / nx


def grdsf(nu):
    """Calculate PSWF using an old SDE routine re-written in Python

    Find Spheroidal function with M = 6, alpha = 1 using the rational
    approximations discussed by Fred Schwab in 'Indirect Imaging'.
    This routine was checked against Fred's SPHFN routine, and agreed
    to about the 7th significant digit.
    The griddata function is (1-NU**2)*GRDSF(NU) where NU is the distance
    to the edge. The grid correction function is just 1/GRDSF(NU) where NU
    is now the distance to the edge of the image.

    :param nu: Array of distances, any shape
    :return: spheroidal function, griddata function
    """
    p = numpy.array([[8.203343e-2, -3.644705e-1, 6.278660e-1, -5.335581e-1, 2.312756e-1],
                     [4.028559e-3, -3.697768e-2, 1.021332e-1, -1.201436e-1, 6.412774e-2]])
    q = numpy.array([[1.0000000e0, 8.212018e-1, 2.078043e-1],
                     [1.0000000e0, 9.599102e-1, 2.918724e-1]])

    _, np = p.shape
    _, nq = q.shape

    nu = numpy.abs(numpy.asarray(nu, dtype='float'))

    nuend = numpy.zeros_like(nu)
    part = numpy.zeros(nu.shape, dtype='int')
    part[(nu >= 0.0) & (nu < 0.75)] = 0
    part[nu >= 0.75] = 1
    nuend[(nu >= 0.0) & (nu < 0.75)] = 0.75
    nuend[nu >= 0.75] = 1.0

    delnusq = nu ** 2 - nuend ** 2

    top = p[part, 0]
    for k in range(1, np):
        top += p[part, k] * numpy.power(delnusq, k)

    bot = q[part, 0]
    for k in range(1, nq):
        bot += q[part, k] * numpy.power(delnusq, k)

    grdsf = numpy.zeros_like(nu)
    ok = (bot > 0.0)
    grdsf[ok] = top[ok] / bot[ok]
    grdsf[nu > 1.0] = 0.0

    # Return the spheroidal function and the griddata function
    return grdsf, (1 - nu ** 2) * grdsf


def anti_aliasing_kernel(oversample):
    """ Prolate spheroidal gridding function, sampled oversample times per grid cell

    The function has a support of three grid cells either side of the centre and is zero at the edge
    of the support. Its transform across the image is the spheroidal taper grdsf(2 * x), x in [-.5,.5[.

    :param oversample: Number of samples per grid cell
    :return: square array of 6 * oversample + 1 samples, zero of uv at the centre
    """
    nu = numpy.abs(numpy.arange(-3 * oversample, 3 * oversample + 1)) / (3.0 * oversample)
    kernel1d = grdsf(nu)[1]
    return numpy.outer(kernel1d, kernel1d)


def fresnel_chirp(l, m, w):
    """ Fresnel chirp, the paraxial approximation to the phase error from non-coplanar baselines

    .. math::

        e^{j \\pi w (l^2+m^2)}

    :param l: Horizontal image coordinates (direction cosines)
    :param m: Vertical image coordinates (direction cosines)
    :param w: Baseline distance to the projection plane (wavelengths)
    :return: complex array with the shape of l
    """
    return numpy.exp(1j * numpy.pi * w * (l ** 2 + m ** 2))
