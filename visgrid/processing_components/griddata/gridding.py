""" Imaging is based on use of the FFT to perform Fourier transforms efficiently. Since the observed visibility data
do not arrive naturally on grid points, the sampled points are resampled on the FFT grid using a convolution function to
smear out the sample points. The resulting grid points are then FFT'ed. The result can be corrected for the gridding
convolution function by division in the image plane of the transform.

This module contains functions for performing the gridding process and the inverse degridding process.

For each (row, channel) sample the location on the grid is x = u / du + nx // 2 (and likewise for v). The kernel
is held on an oversampled lattice: each lattice point is a grid cell and a sub-pixel phase that selects the kernel
taps. With interpolation='nearest' the taps of the nearest lattice point are used. With interpolation='linear'
(the default) the taps of the two lattice points either side of the sample are combined with linear weights in u
and in v; when they fall in neighbouring cells the footprint is one cell wider. Caches with oversample 1, such as
the box function, are always sampled at the nearest cell. Gridding accumulates weight * conj(kernel) * vis,
degridding is the exact adjoint, sum(grid * kernel), with the same taps.

Flagged samples and samples whose footprint is entirely off the grid are skipped. Fully flagged rows and
off-grid samples are counted in GriddingStatistics. Footprints partially on the grid are clipped at the boundary.
"""

__all__ = ['convolution_mapping_visibility',
           'grid_visibility_to_griddata',
           'grid_visibility_weight_to_griddata',
           'griddata_visibility_reweight',
           'degrid_visibility_from_griddata',
           'fft_griddata_to_image',
           'fft_image_to_griddata',
           'interpolation_policies']

import logging

import numpy

from visgrid.data_models.errors import ConfigurationError, DataShapeError
from visgrid.data_models.memory_data_models import ConvolutionFunctionCache, GridData, GriddingStatistics, \
    PlaneIndexMap, Visibility
from visgrid.processing_components.fourier_transforms import fft, ifft
from visgrid.processing_components.visibility.base import copy_visibility

log = logging.getLogger('logger')

interpolation_policies = ('nearest', 'linear')


def _check_shapes(vis, griddata, cf, planemap):
    if vis.npol != griddata.npol:
        raise DataShapeError("Visibility has %d polarisations but the grid has %d" % (vis.npol, griddata.npol))
    if planemap.shape != (vis.nrows, vis.nchan):
        raise DataShapeError("Plane index map %s does not match visibility [%d, %d]"
                             % (str(planemap.shape), vis.nrows, vis.nchan))
    if planemap.nplanes != cf.nplanes:
        raise DataShapeError("Plane index map is for %d planes but the cache has %d"
                             % (planemap.nplanes, cf.nplanes))
    if not numpy.allclose(numpy.array(griddata.uvcellsize).reshape(-1), cf.uvcellsize.reshape(-1), rtol=1e-7):
        raise DataShapeError("Grid uv cellsize %s differs from the cache %s"
                             % (str(griddata.uvcellsize), str(cf.uvcellsize)))


def _check_interpolation(interpolation):
    if interpolation not in interpolation_policies:
        raise ConfigurationError("Unknown interpolation %s, must be one of %s"
                                 % (interpolation, str(interpolation_policies)))


def _lattice_cell(oversampled, oversample):
    """ Grid cell and sub-pixel phase of points on the oversampled lattice """
    grid = (oversampled + oversample // 2) // oversample
    return grid, oversampled - grid * oversample + oversample // 2


def _oversampled_position(vis, griddata, cf):
    """ Position of each sample on the oversampled lattice, [nrows, nchan] in u and v """
    uvcellsize = numpy.array(griddata.uvcellsize, dtype='float').reshape(-1)
    if uvcellsize.size == 1:
        uvcellsize = numpy.repeat(uvcellsize, 2)
    uvw = vis.uvw_lambda
    pu = (uvw[..., 0] / uvcellsize[0] + griddata.nx // 2) * cf.oversample
    pv = (uvw[..., 1] / uvcellsize[1] + griddata.ny // 2) * cf.oversample
    return pu, pv


def _frequency_mapping(vis, griddata):
    if griddata.nchan == 1:
        chan_to_grid = numpy.zeros([vis.nchan], dtype='int')
    else:
        gridfreq = numpy.array(griddata.frequency).reshape(-1)
        chan_to_grid = numpy.argmin(numpy.abs(vis.frequency[:, numpy.newaxis] - gridfreq[numpy.newaxis, :]), axis=1)
    return numpy.repeat(chan_to_grid[numpy.newaxis, :], vis.nrows, axis=0)


def convolution_mapping_visibility(vis: Visibility, griddata: GridData, cf: ConvolutionFunctionCache):
    """Find the mappings between visibility, griddata, and convolution function

    All arrays are [nrows, nchan]: the nearest grid cell in u and v, the sub-pixel phase index into the
    cache in u and v of the nearest lattice point, and the grid channel.

    :param vis: Visibility
    :param griddata: GridData
    :param cf: ConvolutionFunctionCache
    :return: pu_grid, pu_offset, pv_grid, pv_offset, pfreq_grid
    """
    assert isinstance(vis, Visibility), vis
    pu, pv = _oversampled_position(vis, griddata, cf)
    pu_grid, pu_offset = _lattice_cell(numpy.round(pu).astype('int'), cf.oversample)
    pv_grid, pv_offset = _lattice_cell(numpy.round(pv).astype('int'), cf.oversample)
    return pu_grid, pu_offset, pv_grid, pv_offset, _frequency_mapping(vis, griddata)


def _lattice_weights(position, interpolation, oversample):
    """ Lower lattice point and the weight of the upper one, [nrows, nchan]

    The weight is zero for nearest sampling, so that only the lower (here the nearest) point is used.
    """
    if interpolation == 'nearest' or oversample == 1:
        return numpy.round(position).astype('int'), numpy.zeros_like(position)
    lower = numpy.floor(position)
    return lower.astype('int'), position - lower


def _axis_taps(lower, frac, oversample):
    """ (grid cell, phase, weight) of the lattice points used along one axis """
    grid, phase = _lattice_cell(lower, oversample)
    if frac == 0.0:
        return [(grid, phase, 1.0)]
    upper_grid, upper_phase = _lattice_cell(lower + 1, oversample)
    return [(grid, phase, 1.0 - frac), (upper_grid, upper_phase, frac)]


def _sample_kernel(plane, vtaps, utaps, support):
    """ Kernel taps for one sample, the first tap support cells below the cell of the lower lattice point

    """
    if len(vtaps) == 1 and len(utaps) == 1:
        return plane[vtaps[0][1], utaps[0][1]]
    width = 2 * support + 1
    gv0, gu0 = vtaps[0][0], utaps[0][0]
    kernel = numpy.zeros([vtaps[-1][0] - gv0 + width, utaps[-1][0] - gu0 + width], dtype=plane.dtype)
    for gv, pv, wv in vtaps:
        for gu, pu, wu in utaps:
            kernel[gv - gv0:gv - gv0 + width, gu - gu0:gu - gu0 + width] += wv * wu * plane[pv, pu]
    return kernel


def _footprint(start, width, npixel):
    """ Slices of the grid and of the kernel taps for a footprint, clipped at the grid boundary

    :return: grid slice, kernel slice, or None, None if the footprint is off the grid
    """
    end = start + width
    gstart = max(start, 0)
    gend = min(end, npixel)
    if gstart >= gend:
        return None, None
    return slice(gstart, gend), slice(gstart - start, gend - start)


def _samples(vis, griddata, cf, planemap, stats, skip_flagged=True, interpolation='linear'):
    """ Iterate over the (row, channel) samples that touch the grid

    Yields row, chan, grid channel, grid slices (v, u) and the kernel taps. Rows with every sample
    flagged count once in stats.nflagged, samples off the grid count in stats.noutside.
    """
    _check_interpolation(interpolation)
    oversample = cf.oversample
    pu, pv = _oversampled_position(vis, griddata, cf)
    qu, fu = _lattice_weights(pu, interpolation, oversample)
    qv, fv = _lattice_weights(pv, interpolation, oversample)
    pfreq_grid = _frequency_mapping(vis, griddata)
    flagged = numpy.all(vis.flags, axis=2)
    stats.nclamped += planemap.nclamped
    if skip_flagged:
        stats.nflagged += int(numpy.sum(numpy.all(flagged, axis=1)))
    for row in range(vis.nrows):
        for chan in range(vis.nchan):
            if skip_flagged and flagged[row, chan]:
                continue
            plane = planemap.planes[row, chan]
            support = cf.supports[plane]
            vtaps = _axis_taps(qv[row, chan], fv[row, chan], oversample)
            utaps = _axis_taps(qu[row, chan], fu[row, chan], oversample)
            kernel = _sample_kernel(cf.planes[plane], vtaps, utaps, support)
            vslice, vkernel = _footprint(vtaps[0][0] - support, kernel.shape[0], griddata.ny)
            uslice, ukernel = _footprint(utaps[0][0] - support, kernel.shape[1], griddata.nx)
            if vslice is None or uslice is None:
                stats.noutside += 1
                continue
            stats.ngridded += 1
            yield row, chan, pfreq_grid[row, chan], vslice, uslice, kernel[vkernel, ukernel]


def _log_statistics(context, stats):
    if stats.noutside > 0:
        log.warning("%s: %d samples fell outside the grid and were dropped" % (context, stats.noutside))
    log.debug("%s: gridded %d, flagged %d, outside %d, clamped %d"
              % (context, stats.ngridded, stats.nflagged, stats.noutside, stats.nclamped))


def grid_visibility_to_griddata(vis: Visibility, griddata: GridData, cf: ConvolutionFunctionCache,
                                planemap: PlaneIndexMap, sumwt=None, interpolation='linear'):
    """Grid Visibility onto a GridData

    The visibilities are accumulated into griddata, which is not cleared first, so that several calls
    can contribute to one pass.

    :param vis: Visibility to be gridded
    :param griddata: GridData to accumulate into
    :param cf: Convolution function cache
    :param planemap: PlaneIndexMap for vis
    :param sumwt: Sum of weights [nchan, npol] to accumulate into, created if None
    :param interpolation: Sampling of the oversampled kernel, 'nearest' or 'linear'
    :return: GridData, sumwt, GriddingStatistics
    """
    assert isinstance(vis, Visibility), vis
    _check_shapes(vis, griddata, cf, planemap)
    if sumwt is None:
        sumwt = numpy.zeros([griddata.nchan, griddata.npol])

    fwt = vis.flagged_weight
    fviswt = vis.vis * fwt

    stats = GriddingStatistics()
    for row, chan, gchan, vslice, uslice, kernel in _samples(vis, griddata, cf, planemap, stats,
                                                             interpolation=interpolation):
        griddata.data[gchan, :, vslice, uslice] += numpy.conjugate(kernel)[numpy.newaxis, ...] * \
            fviswt[row, chan, :, numpy.newaxis, numpy.newaxis]
        sumwt[gchan, :] += fwt[row, chan, :] * numpy.abs(numpy.sum(kernel)) ** 2

    _log_statistics("grid_visibility_to_griddata", stats)
    return griddata, sumwt, stats


def grid_visibility_weight_to_griddata(vis: Visibility, griddata: GridData, cf: ConvolutionFunctionCache,
                                       planemap: PlaneIndexMap, sumwt=None, interpolation='linear'):
    """Grid Visibility weight onto a GridData

    Each weight is spread over the grid with the real part of the kernel taps, so the result is the density of
    weight on the grid.

    :param vis: Visibility whose weights are to be gridded
    :param griddata: GridData to accumulate into
    :param cf: Convolution function cache
    :param planemap: PlaneIndexMap for vis
    :param sumwt: Sum of weights [nchan, npol] to accumulate into, created if None
    :param interpolation: Sampling of the oversampled kernel, 'nearest' or 'linear'
    :return: GridData, sumwt, GriddingStatistics
    """
    assert isinstance(vis, Visibility), vis
    _check_shapes(vis, griddata, cf, planemap)
    if sumwt is None:
        sumwt = numpy.zeros([griddata.nchan, griddata.npol])

    fwt = vis.flagged_weight

    stats = GriddingStatistics()
    for row, chan, gchan, vslice, uslice, kernel in _samples(vis, griddata, cf, planemap, stats,
                                                             interpolation=interpolation):
        griddata.data[gchan, :, vslice, uslice] += numpy.real(kernel)[numpy.newaxis, ...] * \
            fwt[row, chan, :, numpy.newaxis, numpy.newaxis]
        sumwt[gchan, :] += fwt[row, chan, :]

    _log_statistics("grid_visibility_weight_to_griddata", stats)
    return griddata, sumwt, stats


def griddata_visibility_reweight(vis: Visibility, griddata: GridData, cf: ConvolutionFunctionCache):
    """Reweight visibility weight using the weights in griddata

    Each weight is divided by the gridded weight density at the nearest grid cell.

    :param vis: Visibility to be reweighted
    :param griddata: GridData holding gridded weights
    :param cf: Convolution function cache used for the weight grid
    :return: New Visibility with weights corrected
    """
    assert isinstance(vis, Visibility), vis
    if vis.npol != griddata.npol:
        raise DataShapeError("Visibility has %d polarisations but the grid has %d" % (vis.npol, griddata.npol))

    newvis = copy_visibility(vis)
    real_gd = numpy.real(griddata.data)
    pu_grid, _, pv_grid, _, pfreq_grid = convolution_mapping_visibility(vis, griddata, cf)
    inside = (pu_grid >= 0) & (pu_grid < griddata.nx) & (pv_grid >= 0) & (pv_grid < griddata.ny)
    rows, chans = numpy.nonzero(inside)
    density = real_gd[pfreq_grid[rows, chans], :, pv_grid[rows, chans], pu_grid[rows, chans]]
    weight = newvis.data['weight'][rows, chans, :]
    positive = density > 0.0
    weight[positive] /= density[positive]
    newvis.data['weight'][rows, chans, :] = weight
    return newvis


def degrid_visibility_from_griddata(vis: Visibility, griddata: GridData, cf: ConvolutionFunctionCache,
                                    planemap: PlaneIndexMap, interpolation='linear'):
    """Degrid Visibility from a GridData

    Every sample is predicted, flagged or not. Weights and flags are copied unchanged.

    :param vis: Visibility giving the sample coordinates
    :param griddata: GridData containing the transformed model
    :param cf: Convolution function cache
    :param planemap: PlaneIndexMap for vis
    :param interpolation: Sampling of the oversampled kernel, 'nearest' or 'linear'
    :return: New Visibility, GriddingStatistics
    """
    assert isinstance(vis, Visibility), vis
    _check_shapes(vis, griddata, cf, planemap)

    newvis = copy_visibility(vis, zero=True)
    predicted = newvis.data['vis']

    stats = GriddingStatistics()
    for row, chan, gchan, vslice, uslice, kernel in _samples(vis, griddata, cf, planemap, stats,
                                                             skip_flagged=False, interpolation=interpolation):
        # Use einsum to replace the sum over taps for all polarisations
        predicted[row, chan, :] = numpy.einsum('pij,ij->p', griddata.data[gchan, :, vslice, uslice], kernel)

    _log_statistics("degrid_visibility_from_griddata", stats)
    return newvis, stats


def fft_griddata_to_image(griddata: GridData):
    """ FFT griddata to an image plane array

    The transform is scaled by the number of pixels so that a unit visibility gives a unit peak.

    :param griddata: GridData
    :return: complex numpy array [nchan, npol, ny, nx]
    """
    ny, nx = griddata.ny, griddata.nx
    return ifft(griddata.data) * float(nx) * float(ny)


def fft_image_to_griddata(im, griddata: GridData):
    """Fill griddata with the transform of an image

    :param im: Image (or array) with the shape of the grid
    :param griddata: GridData to fill
    :return: GridData
    """
    data = im.data if hasattr(im, 'wcs') else im
    if data.shape != griddata.shape:
        raise DataShapeError("Image shape %s differs from grid shape %s" % (str(data.shape), str(griddata.shape)))
    griddata.data[...] = fft(data.astype('complex'))
    return griddata
