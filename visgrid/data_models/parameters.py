"""Parameter handling for the gridding functions

Parameters are passed around as keyword arguments. The gridder configuration keys are:

    gridder: 'box' | 'spheroidal' | 'wprojection' | 'illumination'
    wmax: Maximum w (wavelengths)
    nwplanes: Number of w planes
    cutoff: Fraction of the kernel peak at which the support is truncated e.g. 1e-3
    oversample: Oversampling of the convolution function in uv space
    support: Support (half-width in grid cells), overrides the cutoff search
    maxsupport: Largest support allowed
    wspacing: 'quadratic' | 'linear' spacing of the w planes
    diameter, blockage: Aperture of the antenna (m) for illumination gridding

"""

__all__ = ['get_parameter']

import logging

log = logging.getLogger('logger')


def get_parameter(kwargs, key, default=None):
    """ Get a specified named value for this (calling) function

    The parameter is searched for in kwargs

    :param kwargs: Parameter dictionary
    :param key: Key e.g. 'cutoff'
    :param default: Default value
    :return: result
    """

    if kwargs is None:
        return default

    value = default
    if key in kwargs.keys():
        value = kwargs[key]
    return value
