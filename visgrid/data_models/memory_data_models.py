"""The data models used in visgrid:

"""

__all__ = ['Visibility',
           'Axes',
           'Image',
           'GridData',
           'ConvolutionFunctionCache',
           'PlaneIndexMap',
           'GriddingStatistics'
           ]

import logging
import warnings
from copy import deepcopy

import numpy
from astropy import constants
from astropy.wcs import FITSFixedWarning

from visgrid.data_models.errors import DataShapeError

warnings.simplefilter('ignore', FITSFixedWarning)

log = logging.getLogger('logger')


class Visibility:
    """ Visibility table with uvw, vis[:, chan, pol], weight[:, chan, pol] and flags[:, chan, pol] columns

    One record per row (a baseline at a time). The uvw coordinates are held in metres and scaled
    to wavelengths per channel using the frequency vector. The table is the read-only input
    for one gridding pass; degridding writes its predictions into a new Visibility.
    """

    def __init__(self, data=None, frequency=None, uvw=None, vis=None, weight=None, flags=None,
                 phasecentre=None):
        """Visibility

        :param data: Structured data (used in copying)
        :param frequency: Frequency [nchan] (Hz)
        :param uvw: uvw coordinates [nrows, 3] (m)
        :param vis: Complex visibility [nrows, nchan, npol]
        :param weight: Weight [nrows, nchan, npol]
        :param flags: Flags [nrows, nchan, npol], True means flagged
        :param phasecentre: Phasecentre (SkyCoord)
        """
        if data is None and uvw is not None:
            nrows, nchan, npol = vis.shape
            assert uvw.shape == (nrows, 3), "uvw must be [nrows, 3]: %s" % str(uvw.shape)
            desc = [('uvw', 'f8', (3,)),
                    ('vis', 'c16', (nchan, npol)),
                    ('weight', 'f8', (nchan, npol)),
                    ('flags', 'bool', (nchan, npol))]
            data = numpy.zeros(shape=[nrows], dtype=desc)
            data['uvw'] = uvw
            data['vis'] = vis
            if weight is None:
                data['weight'] = 1.0
            else:
                data['weight'] = weight
            if flags is not None:
                data['flags'] = flags

        self.data = data
        self.frequency = numpy.array(frequency, dtype='float')
        self.phasecentre = phasecentre

    def __str__(self):
        """Default printer for Visibility

        """
        s = "Visibility:\n"
        s += "\tNumber of rows: %s\n" % self.nrows
        s += "\tNumber of channels: %s\n" % self.nchan
        s += "\tFrequency: %s\n" % self.frequency
        s += "\tNumber of polarisations: %s\n" % self.npol
        s += "\tPhasecentre: %s\n" % self.phasecentre
        return s

    def size(self):
        """ Return size in GB
        """
        size = 0
        size += self.data.nbytes
        return size / 1024.0 / 1024.0 / 1024.0

    @property
    def nrows(self):
        return self.data.shape[0]

    @property
    def nchan(self):
        return self.data['vis'].shape[1]

    @property
    def npol(self):
        return self.data['vis'].shape[2]

    @property
    def uvw(self):
        """ UVW coordinates (metres) [nrows, 3]
        """
        return self.data['uvw']

    @property
    def u(self):
        return self.data['uvw'][:, 0]

    @property
    def v(self):
        return self.data['uvw'][:, 1]

    @property
    def w(self):
        return self.data['uvw'][:, 2]

    @property
    def vis(self):
        return self.data['vis']

    @property
    def weight(self):
        return self.data['weight']

    @property
    def flags(self):
        return self.data['flags']

    @property
    def flagged_vis(self):
        """Flagged complex visibility [nrows, nchan, npol]

        Note that a numpy or dask array is returned, not a new Visibility
        """
        return self.data['vis'] * (1 - self.flags)

    @property
    def flagged_weight(self):
        """Weight with flagged samples set to zero [nrows, nchan, npol]
        """
        return self.data['weight'] * (1 - self.flags)

    @property
    def uvw_lambda(self):
        """ UVW coordinates in wavelengths for every channel [nrows, nchan, 3]
        """
        k = self.frequency / constants.c.value
        return self.data['uvw'][:, numpy.newaxis, :] * k[numpy.newaxis, :, numpy.newaxis]


class Axes:
    """ Axes of the image and grid: shape [nchan, npol, ny, nx], image cellsize and frequency

    The uv cellsize (wavelengths per pixel) is 1 / (npixel * cellsize) on each axis.
    """

    def __init__(self, shape, cellsize, frequency, wcs=None):
        """ Create Axes

        :param shape: Image shape [nchan, npol, ny, nx]
        :param cellsize: Image cellsize (radians), scalar or (cellx, celly)
        :param frequency: Frequency of the image channels (Hz)
        :param wcs: Astropy WCS of the image, if known
        """
        self.wcs = wcs
        if len(shape) != 4:
            raise DataShapeError("Axes require a shape [nchan, npol, ny, nx]: %s" % str(shape))
        self.shape = tuple(int(s) for s in shape)
        cellsize = numpy.abs(numpy.array(cellsize, dtype='float')).reshape(-1)
        if cellsize.size == 1:
            cellsize = numpy.repeat(cellsize, 2)
        self.cellsize = cellsize
        self.frequency = numpy.array(frequency, dtype='float').reshape(-1)
        if len(self.frequency) != self.shape[0]:
            raise DataShapeError("Number of frequencies %d differs from number of image channels %d"
                                 % (len(self.frequency), self.shape[0]))

    def __str__(self):
        s = "Axes:\n"
        s += "\tShape: %s\n" % str(self.shape)
        s += "\tCellsize (rad): %s\n" % str(self.cellsize)
        s += "\tUV cellsize (wavelengths): %s\n" % str(self.uvcellsize)
        s += "\tFrequency: %s\n" % str(self.frequency)
        return s

    @property
    def nchan(self):
        return self.shape[0]

    @property
    def npol(self):
        return self.shape[1]

    @property
    def ny(self):
        return self.shape[2]

    @property
    def nx(self):
        return self.shape[3]

    @property
    def field_of_view(self):
        """ Field of view (x, y) in direction cosines
        """
        return numpy.array([self.nx * self.cellsize[0], self.ny * self.cellsize[1]])

    @property
    def uvcellsize(self):
        """ UV cellsize (u, v) in wavelengths per pixel
        """
        return 1.0 / self.field_of_view


class Image:
    """Image class with Image data (as a numpy.array) and the AstroPy `implementation of
    a World Coodinate System <http://docs.astropy.org/en/stable/wcs>`_

    Images are in canonical format:
    - 4 axes: RA, DEC, POL, FREQ

    The conventions for indexing in WCS and numpy are opposite.
    - In astropy.wcs, the order is (longitude, latitude, polarisation, frequency)
    - in numpy, the order is (frequency, polarisation, latitude, longitude)

    """

    def __init__(self, data=None, wcs=None):
        """ Create Image

        :param data: Data for image
        :param wcs: Astropy WCS object
        """
        self.data = data
        self.wcs = wcs

    def size(self):
        """ Return size in GB
        """
        size = 0
        size += self.data.nbytes
        return size / 1024.0 / 1024.0 / 1024.0

    def __copy__(self):
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update(self.__dict__)
        return result

    # noinspection PyArgumentList
    def __deepcopy__(self, memo):
        cls = self.__class__
        result = cls.__new__(cls)
        memo[id(self)] = result
        for k, v in self.__dict__.items():
            setattr(result, k, deepcopy(v, memo))
        return result

    @property
    def nchan(self):
        """ Number of channels
        """
        return self.data.shape[0]

    @property
    def npol(self):
        """ Number of polarisations
        """
        return self.data.shape[1]

    @property
    def frequency(self):
        """ Frequency values
        """
        w = self.wcs.sub(['spectral'])
        return w.wcs_pix2world(range(self.nchan), 0)[0]

    @property
    def shape(self):
        """ Shape of data array
        """
        return self.data.shape

    def __str__(self):
        """Default printer for Image

        """
        s = "Image:\n"
        s += "\tShape: %s\n" % str(self.data.shape)
        s += "\tData type: %s\n" % str(self.data.dtype)
        s += "\tWCS: %s\n" % self.wcs.__repr__()
        return s


class GridData:
    """Class to hold Gridded data for Fourier processing
    - Has four coordinates: [chan, pol, v, u]

    A grid with one channel is a multi-frequency synthesis grid onto which all visibility
    channels are collapsed. Otherwise each image channel has its own plane.

    The zero of the uv plane is at pixel [ny//2, nx//2].
    """

    def __init__(self, data=None, uvcellsize=None, frequency=None):
        """Create Griddata

        :param data: Data for griddata [nchan, npol, ny, nx]
        :param uvcellsize: UV cellsize (u, v) in wavelengths
        :param frequency: Frequency of the grid channels (Hz)
        """
        self.data = data
        self.uvcellsize = uvcellsize
        self.frequency = frequency

    def size(self):
        """ Return size in GB
        """
        size = 0
        size += self.data.nbytes
        return size / 1024.0 / 1024.0 / 1024.0

    @property
    def nchan(self):
        return self.data.shape[0]

    @property
    def npol(self):
        return self.data.shape[1]

    @property
    def ny(self):
        return self.data.shape[2]

    @property
    def nx(self):
        return self.data.shape[3]

    @property
    def shape(self):
        """ Shape of data array
        """
        assert len(self.data.shape) == 4
        return self.data.shape

    def __str__(self):
        """Default printer for GriddedData

        """
        s = "Gridded data:\n"
        s += "\tShape: %s\n" % str(self.data.shape)
        s += "\tUV cellsize: %s\n" % str(self.uvcellsize)
        s += "\tFrequency: %s\n" % str(self.frequency)
        return s


class ConvolutionFunctionCache:
    """Class to hold the convolution function planes for Fourier processing

    Each plane has axes [dv, du, v, u]: dv, du are the oversampled sub-pixel phases and v, u are
    the taps at the grid spacing, 2 * support + 1 of them. Plane p is selected for each sample
    by the PlaneIndexMap.

    The cache is built once and is read-only afterwards: the arrays are flagged as not writeable
    so that it can be shared by several passes and workers.
    """

    def __init__(self, planes, supports, plane_values, oversample, cutoff, zero_w_kernel, uvcellsize,
                 name=''):
        """Create ConvolutionFunctionCache

        :param planes: Sequence of arrays [oversample, oversample, 2*support+1, 2*support+1]
        :param supports: Support of each plane (grid cells)
        :param plane_values: Representative value of each plane e.g. w (wavelengths)
        :param oversample: Oversampling of the planes in uv space
        :param cutoff: Cutoff fraction used to find the supports
        :param zero_w_kernel: Kernel of the anti-aliasing taper alone [oversample, oversample, n, n]
        :param uvcellsize: UV cellsize (u, v) the planes were built for
        :param name: Name of the variant that built the cache
        """
        planes = tuple(numpy.array(p, dtype='complex') for p in planes)
        for p in planes:
            p.flags.writeable = False
        self._planes = planes
        self._supports = numpy.array(supports, dtype='int')
        self._supports.flags.writeable = False
        self._plane_values = numpy.array(plane_values, dtype='float')
        self._plane_values.flags.writeable = False
        self._zero_w_kernel = numpy.array(zero_w_kernel, dtype='complex')
        self._zero_w_kernel.flags.writeable = False
        self._uvcellsize = numpy.array(uvcellsize, dtype='float')
        self._uvcellsize.flags.writeable = False
        self._oversample = int(oversample)
        self._cutoff = cutoff
        self._name = name

    @property
    def planes(self):
        return self._planes

    @property
    def supports(self):
        return self._supports

    @property
    def plane_values(self):
        return self._plane_values

    @property
    def zero_w_kernel(self):
        return self._zero_w_kernel

    @property
    def uvcellsize(self):
        return self._uvcellsize

    @property
    def oversample(self):
        return self._oversample

    @property
    def cutoff(self):
        return self._cutoff

    @property
    def name(self):
        return self._name

    @property
    def nplanes(self):
        return len(self._planes)

    @property
    def maxsupport(self):
        """ Largest support of all planes
        """
        return int(numpy.max(self._supports))

    def size(self):
        """ Return size in GB
        """
        size = sum(p.nbytes for p in self._planes)
        return size / 1024.0 / 1024.0 / 1024.0

    def __str__(self):
        """Default printer for ConvolutionFunctionCache

        """
        s = "Convolution function cache:\n"
        s += "\tVariant: %s\n" % self._name
        s += "\tNumber of planes: %d\n" % self.nplanes
        s += "\tOversampling: %d\n" % self._oversample
        s += "\tSupports: %s\n" % str(self._supports)
        s += "\tPlane values: %s\n" % str(self._plane_values)
        return s


class PlaneIndexMap:
    """ Dense table of convolution function plane ids [nrows, nchan] for one pass

    """

    def __init__(self, planes, nplanes, nclamped=0):
        """ Create PlaneIndexMap

        :param planes: Plane ids [nrows, nchan]
        :param nplanes: Number of planes in the cache
        :param nclamped: Number of entries clamped onto the first or last plane
        """
        self.planes = numpy.array(planes, dtype='int')
        self.nplanes = nplanes
        self.nclamped = int(nclamped)
        assert numpy.min(self.planes, initial=0) >= 0, "Plane index underflows"
        assert numpy.max(self.planes, initial=0) < nplanes, "Plane index overflows"

    @property
    def shape(self):
        return self.planes.shape

    def __str__(self):
        s = "Plane index map:\n"
        s += "\tShape: %s\n" % str(self.planes.shape)
        s += "\tNumber of planes: %d\n" % self.nplanes
        s += "\tNumber clamped: %d\n" % self.nclamped
        return s


class GriddingStatistics:
    """ Counters of the samples processed in a pass

    ngridded counts (row, channel) samples that were used. nflagged counts rows with every sample
    flagged; a fully flagged channel of a row that is otherwise used is skipped but not counted.
    noutside counts (row, channel) samples whose whole footprint was off the grid, nclamped those with
    a w (or frequency) beyond the range of the cache that were mapped to the nearest plane.
    """

    def __init__(self, ngridded=0, nflagged=0, noutside=0, nclamped=0):
        self.ngridded = ngridded
        self.nflagged = nflagged
        self.noutside = noutside
        self.nclamped = nclamped

    def __add__(self, other):
        return GriddingStatistics(self.ngridded + other.ngridded,
                                  self.nflagged + other.nflagged,
                                  self.noutside + other.noutside,
                                  self.nclamped + other.nclamped)

    def __eq__(self, other):
        return isinstance(other, GriddingStatistics) and self.as_dict() == other.as_dict()

    def as_dict(self):
        return {'ngridded': self.ngridded, 'nflagged': self.nflagged,
                'noutside': self.noutside, 'nclamped': self.nclamped}

    def __str__(self):
        s = "Gridding statistics:\n"
        for key, value in self.as_dict().items():
            s += "\t%s: %d\n" % (key, value)
        return s
