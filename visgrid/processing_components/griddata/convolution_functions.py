""" Construction of the convolution function cache

The zero-w plane is the prolate spheroidal gridding function, sampled oversample times per grid cell. Its
transform is the anti-aliasing taper, which extends beyond the field of view of the grid and falls
smoothly there. The other planes are made in the image plane as that taper multiplied by a plane
dependent term (the w-term chirp, or an antenna primary beam) and transformed back to uv. The support is
found from the cutoff and the oversampled kernel is then rearranged into [dv, du, v, u] so that the taps
for a given sub-pixel phase can be read directly.

The kernel working grid is 2 * (maxsupport + 1) cells across, which is enough to hold any kernel of
support up to maxsupport. The image plane of that grid spans oversample fields of view.
"""

__all__ = ['create_convolutionfunction_cache', 'find_support', 'extract_kernel_phases']

import logging

import numpy

from visgrid.data_models.errors import ConfigurationError
from visgrid.data_models.memory_data_models import ConvolutionFunctionCache
from visgrid.processing_components.fourier_transforms import anti_aliasing_kernel, coordinates2, fft, ifft, \
    pad_mid

log = logging.getLogger('logger')

# Support of the spheroidal gridding function (grid cells)
anti_aliasing_support = 3


def check_kernel_parameters(oversample, cutoff, support=None, maxsupport=64):
    """ Check the parameters common to all kernels

    :raises ConfigurationError:
    """
    if not isinstance(oversample, (int, numpy.integer)) or oversample < 1:
        raise ConfigurationError("Oversampling must be an integer >= 1: %s" % str(oversample))
    if not (0.0 < cutoff <= 1.0):
        raise ConfigurationError("Cutoff must be in (0, 1]: %s" % str(cutoff))
    if maxsupport < 1:
        raise ConfigurationError("Maximum support must be >= 1: %s" % str(maxsupport))
    if support is not None:
        if support < 0:
            raise ConfigurationError("Support must be >= 0: %s" % str(support))
        if support > maxsupport:
            raise ConfigurationError("Support %d exceeds the maximum support %d" % (support, maxsupport))


def find_support(kernel, oversample, cutoff):
    """ Find the support (half-width in grid cells) of an oversampled kernel

    The support is the smallest half-width beyond which the amplitude along the central row and column
    stays below cutoff times the peak.

    :param kernel: Oversampled kernel, zero of uv at the centre
    :param oversample: Oversampling factor
    :param cutoff: Fraction of the peak
    :return: support
    """
    amplitude = numpy.abs(kernel)
    ny, nx = amplitude.shape
    cy, cx = ny // 2, nx // 2
    threshold = cutoff * numpy.max(amplitude)
    extent = 0
    above = numpy.where(amplitude[cy, :] > threshold)[0]
    if len(above) > 0:
        extent = max(extent, numpy.max(numpy.abs(above - cx)))
    above = numpy.where(amplitude[:, cx] > threshold)[0]
    if len(above) > 0:
        extent = max(extent, numpy.max(numpy.abs(above - cy)))
    return int(numpy.ceil(extent / oversample))


def extract_kernel_phases(kernel, oversample, support):
    """ Rearrange an oversampled kernel into [dv, du, v, u]

    Phase index i corresponds to a sub-pixel offset (i - oversample//2) / oversample of the sample from
    its nearest grid point. Tap t (index t + support) is the grid point t cells from the nearest one, at
    a distance (offset - t) cells from the sample.

    :param kernel: Oversampled kernel, zero of uv at the centre
    :param oversample: Oversampling factor
    :param support: Support (grid cells)
    :return: complex array [oversample, oversample, 2 * support + 1, 2 * support + 1]
    :raises ConfigurationError: if the kernel does not hold the support
    """
    ny, nx = kernel.shape
    offsets = numpy.arange(oversample) - oversample // 2
    taps = numpy.arange(-support, support + 1)
    yy = ny // 2 + offsets[:, numpy.newaxis] - oversample * taps[numpy.newaxis, :]
    xx = nx // 2 + offsets[:, numpy.newaxis] - oversample * taps[numpy.newaxis, :]
    if numpy.min(yy) < 0 or numpy.max(yy) >= ny or numpy.min(xx) < 0 or numpy.max(xx) >= nx:
        raise ConfigurationError("Kernel of %s samples is too small for support %d" % (str(kernel.shape), support))
    return kernel[yy[:, numpy.newaxis, :, numpy.newaxis], xx[numpy.newaxis, :, numpy.newaxis, :]]


def _check_support(plane_support, plane, value, maxsupport, ny, nx):
    if plane_support > maxsupport:
        raise ConfigurationError("Support %d of plane %d (%s) exceeds the maximum support %d"
                                 % (plane_support, plane, str(value), maxsupport))
    if 2 * plane_support + 1 > min(ny, nx):
        raise ConfigurationError("Kernel width %d of plane %d is larger than the grid %s"
                                 % (2 * plane_support + 1, plane, str((ny, nx))))


def create_convolutionfunction_cache(plane_function, plane_values, uvcellsize, shape, oversample=8, cutoff=1e-3,
                                     support=None, maxsupport=64, name='') -> ConvolutionFunctionCache:
    """ Build the convolution function planes

    Every plane is normalised by the taps of the zero-w kernel so that, for each sub-pixel phase,
    the zero-w kernel sums to unity.

    :param plane_function: Function (l, m, value) returning the image plane term of a plane, or None
    :param plane_values: Representative value of each plane e.g. w (wavelengths)
    :param uvcellsize: UV cellsize (u, v) of the grid (wavelengths)
    :param shape: Grid shape [nchan, npol, ny, nx]
    :param oversample: Oversampling of the convolution function in uv space
    :param cutoff: Fraction of the peak at which the support is truncated
    :param support: Support for all planes, overrides the cutoff search
    :param maxsupport: Largest support allowed
    :param name: Name of the variant
    :return: ConvolutionFunctionCache
    :raises ConfigurationError: if a support exceeds maxsupport or the grid
    """
    check_kernel_parameters(oversample, cutoff, support, maxsupport)
    ny, nx = shape[-2], shape[-1]
    uvcellsize = numpy.array(uvcellsize, dtype='float').reshape(-1)
    if uvcellsize.size == 1:
        uvcellsize = numpy.repeat(uvcellsize, 2)
    field_of_view = 1.0 / uvcellsize

    ncells = 2 * (max(maxsupport, anti_aliasing_support) + 1)
    npixel = ncells * oversample
    zero_w = pad_mid(anti_aliasing_kernel(oversample).astype('complex'), npixel)
    zero_w_support = support if support is not None else find_support(zero_w, oversample, cutoff)
    _check_support(zero_w_support, 0, 0.0, maxsupport, ny, nx)
    zero_w_kernel = extract_kernel_phases(zero_w, oversample, zero_w_support)
    norm = numpy.sum(numpy.real(zero_w_kernel), axis=(-2, -1))
    if not numpy.all(norm > 0.0):
        raise ConfigurationError("Zero-w kernel of support %d has a non-positive sum" % zero_w_support)
    zero_w_kernel = zero_w_kernel / norm[..., numpy.newaxis, numpy.newaxis]

    if plane_function is not None:
        # The image plane of the oversampled kernel spans oversample fields of view
        m, l = coordinates2(npixel, npixel)
        l = l * oversample * field_of_view[0]
        m = m * oversample * field_of_view[1]
        taper = ifft(zero_w)

    planes = list()
    supports = list()
    for plane, value in enumerate(plane_values):
        if plane_function is None:
            kernel = zero_w
        else:
            kernel = fft(taper * plane_function(l, m, value))
        plane_support = support if support is not None else find_support(kernel, oversample, cutoff)
        _check_support(plane_support, plane, value, maxsupport, ny, nx)
        cf = extract_kernel_phases(kernel, oversample, plane_support)
        planes.append(cf / norm[..., numpy.newaxis, numpy.newaxis])
        supports.append(plane_support)

    cache = ConvolutionFunctionCache(planes, supports, plane_values, oversample, cutoff, zero_w_kernel,
                                     uvcellsize, name=name)
    log.info("create_convolutionfunction_cache: %s built %d planes, oversampling %d, supports %d to %d, %.3f GB"
             % (name, cache.nplanes, oversample, numpy.min(cache.supports), numpy.max(cache.supports), cache.size()))
    return cache
