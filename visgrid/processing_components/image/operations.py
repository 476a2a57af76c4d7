""" Image operations needed by the gridders

Images are [nchan, npol, ny, nx]. Pixel (j, i) is at direction cosines l = (i - nx//2) * cellsize,
m = (j - ny//2) * cellsize, so the longitude axis increment in the WCS is positive.
"""

__all__ = ['copy_image',
           'create_image',
           'create_image_from_array',
           'create_image_wcs',
           'create_axes_from_image']

import copy
import logging
import warnings

import numpy
from astropy import units as u
from astropy.coordinates import SkyCoord
from astropy.wcs import FITSFixedWarning
from astropy.wcs import WCS

from visgrid.data_models.memory_data_models import Axes, Image

warnings.simplefilter('ignore', FITSFixedWarning)
log = logging.getLogger('logger')


def create_image_wcs(npixel, cellsize, frequency, channel_bandwidth=None, phasecentre=None) -> WCS:
    """ WCS for a square image centred on pixel npixel//2

    The frequency increment is the channel spacing, or the bandwidth of a single channel.

    :param npixel: Number of pixels on each side
    :param cellsize: Cell size (radians)
    :param frequency: Channel frequencies (Hz)
    :param channel_bandwidth: Channel widths (Hz), default the channel spacing
    :param phasecentre: SkyCoord of the image centre
    :return: WCS with axes RA, DEC, STOKES, FREQ
    """
    if phasecentre is None:
        phasecentre = SkyCoord(ra=+15.0 * u.deg, dec=-35.0 * u.deg, frame='icrs', equinox='J2000')
    frequency = numpy.array(frequency, dtype='float').reshape(-1)
    if len(frequency) > 1:
        fstep = frequency[1] - frequency[0]
    elif channel_bandwidth is not None:
        fstep = numpy.array(channel_bandwidth).reshape(-1)[0]
    else:
        fstep = 1e6

    cdelt = numpy.rad2deg(cellsize)
    wcs = WCS(naxis=4)
    wcs.wcs.ctype = ["RA---SIN", "DEC--SIN", 'STOKES', 'FREQ']
    wcs.wcs.crpix = [npixel // 2 + 1, npixel // 2 + 1, 1.0, 1.0]
    wcs.wcs.crval = [phasecentre.ra.deg, phasecentre.dec.deg, 1.0, frequency[0]]
    wcs.wcs.cdelt = [cdelt, cdelt, 1.0, fstep]
    wcs.wcs.radesys = 'ICRS'
    wcs.wcs.equinox = 2000.0
    return wcs


def create_image(npixel=512, cellsize=0.000015, npol=1, frequency=numpy.array([1e8]),
                 channel_bandwidth=numpy.array([1e6]), phasecentre=None, nchan=None, dtype='float64') -> Image:
    """ Zero-filled image with one channel per frequency

    Pass nchan=1 with several frequencies for a multi-frequency synthesis image.

    :param npixel: Number of pixels on each side
    :param cellsize: Cell size (radians)
    :param npol: Number of polarisations
    :param frequency: Channel frequencies (Hz)
    :param channel_bandwidth: Channel widths (Hz)
    :param phasecentre: SkyCoord of the image centre
    :param nchan: Number of image channels, default len(frequency)
    :param dtype: numpy dtype of the pixels
    :return: Image
    """
    frequency = numpy.array(frequency).reshape(-1)
    if nchan is None:
        nchan = len(frequency)
    wcs = create_image_wcs(npixel, cellsize, frequency, channel_bandwidth, phasecentre)
    return create_image_from_array(numpy.zeros([nchan, npol, npixel, npixel], dtype=dtype), wcs)


def create_image_from_array(data: numpy.array, wcs: WCS) -> Image:
    """ Wrap an array as an Image, keeping a reference to the array

    :param data: Pixels [nchan, npol, ny, nx]
    :param wcs: WCS, copied; may be None
    :return: Image
    """
    if data.ndim != 4:
        log.warning("create_image_from_array: expected 4 axes, got shape %s" % str(data.shape))
    im = Image(data, None if wcs is None else wcs.deepcopy())
    if im.size() >= 1.0:
        log.debug("create_image_from_array: %s image of shape %s uses %.3f GB" %
                  (data.dtype, str(data.shape), im.size()))
    return im


def copy_image(im: Image):
    """ Deep copy of an image, sharing nothing with the original

    :param im: Image or None
    :return: Image or None
    """
    if im is None:
        return None
    assert isinstance(im, Image), im
    return Image(copy.deepcopy(im.data), None if im.wcs is None else im.wcs.deepcopy())


def create_axes_from_image(im: Image) -> Axes:
    """ Axes of the grid for an image

    :param im: Image
    :return: Axes
    """
    cellsize = numpy.abs(numpy.deg2rad(im.wcs.wcs.cdelt[0:2]))
    return Axes(im.shape, cellsize, im.frequency, wcs=im.wcs)
