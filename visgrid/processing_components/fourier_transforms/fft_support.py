""" Fourier transforms between image and grid space, and padding support

The transforms act on the last two axes so that [nchan, npol, ny, nx] cubes can be transformed in one call.

"""

__all__ = ['fft', 'ifft', 'pad_mid']

import numpy


def fft(a):
    """ Fourier transformation from image to grid space

    :param a: image in `lm` coordinate space
    :return: `uv` grid
    """
    if len(a.shape) == 4:
        return numpy.fft.fftshift(numpy.fft.fft2(numpy.fft.ifftshift(a, axes=[2, 3])), axes=[2, 3])
    else:
        return numpy.fft.fftshift(numpy.fft.fft2(numpy.fft.ifftshift(a)))


def ifft(a):
    """ Fourier transformation from grid to image space

    :param a: `uv` grid to transform
    :return: an image in `lm` coordinate space
    """
    if len(a.shape) == 4:
        return numpy.fft.fftshift(numpy.fft.ifft2(numpy.fft.ifftshift(a, axes=[2, 3])), axes=[2, 3])
    else:
        return numpy.fft.fftshift(numpy.fft.ifft2(numpy.fft.ifftshift(a)))


def pad_mid(ff, npixel):
    """
    Pad a far field image with zeroes to make it the given size.

    Effectively as if we were multiplying with a box function of the
    original field's size, which is equivalent to a convolution with a
    sinc pattern in the uv-grid.

    :param ff: The input far field. Should be smaller than npixel x npixel.
    :param npixel:  The desired far field size

    """

    ny, nx = ff.shape
    if npixel == ny and npixel == nx:
        return ff
    assert npixel >= ny and npixel >= nx
    return numpy.pad(ff,
                     pad_width=[(npixel // 2 - ny // 2, (npixel + 1) // 2 - (ny + 1) // 2),
                                (npixel // 2 - nx // 2, (npixel + 1) // 2 - (nx + 1) // 2)],
                     mode='constant',
                     constant_values=0.0)
