""" Imaging functions run on the partitions of a workflow

The partitions are gridded independently, each into its own grid, using a cache built once before
distribution. The grids are then summed and finalised once.
"""

__all__ = ['grid_partition', 'grid_weight_partition', 'degrid_partition', 'sum_griddata_results',
           'statistics_table']

import copy
import logging

import numpy
from tabulate import tabulate

from visgrid.data_models.memory_data_models import GridData, GriddingStatistics
from visgrid.processing_components.griddata.gridding import degrid_visibility_from_griddata, \
    grid_visibility_to_griddata, grid_visibility_weight_to_griddata

log = logging.getLogger('logger')


def _empty_griddata(gridder):
    axes = gridder.axes
    griddata = GridData(numpy.zeros(axes.shape, dtype='complex'), axes.uvcellsize, axes.frequency)
    return griddata, numpy.zeros([axes.nchan, axes.npol])


def grid_partition(vis, gridder, dopsf=False):
    """ Grid one partition into its own grid

    The gridder must be initialized. Only its read-only cache and variant are used.

    :param vis: Visibility of the partition
    :param gridder: Initialized Gridder
    :param dopsf: Grid unit visibilities to make the PSF
    :return: GridData, sumwt, GriddingStatistics
    """
    if dopsf:
        vis = copy.copy(vis)
        vis.data = numpy.copy(vis.data)
        vis.data['vis'][...] = 1.0 + 0.0j
    griddata, sumwt = _empty_griddata(gridder)
    planemap = gridder.variant.c_offset(vis, gridder.cf)
    return grid_visibility_to_griddata(vis, griddata, gridder.cf, planemap, sumwt,
                                       interpolation=gridder.interpolation)


def grid_weight_partition(vis, gridder):
    """ Grid the weights of one partition into its own grid

    :param vis: Visibility of the partition
    :param gridder: Initialized Gridder
    :return: GridData, sumwt, GriddingStatistics
    """
    griddata, sumwt = _empty_griddata(gridder)
    planemap = gridder.variant.c_offset(vis, gridder.cf)
    return grid_visibility_weight_to_griddata(vis, griddata, gridder.cf, planemap, sumwt,
                                              interpolation=gridder.interpolation)


def degrid_partition(vis, griddata, gridder):
    """ Predict the visibilities of one partition

    :param vis: Visibility of the partition
    :param griddata: GridData holding the transformed model
    :param gridder: Initialized Gridder
    :return: Visibility
    """
    planemap = gridder.variant.c_offset(vis, gridder.cf)
    newvis, _ = degrid_visibility_from_griddata(vis, griddata, gridder.cf, planemap,
                                                interpolation=gridder.interpolation)
    return newvis


def sum_griddata_results(results):
    """ Sum a list of (griddata, sumwt, statistics) results

    :param results: List of (GridData, sumwt, GriddingStatistics) tuples
    :return: GridData, sumwt, GriddingStatistics
    """
    griddata, sumwt, stats = results[0]
    griddata = GridData(numpy.copy(griddata.data), griddata.uvcellsize, griddata.frequency)
    sumwt = numpy.copy(sumwt)
    for gd, wt, st in results[1:]:
        griddata.data += gd.data
        sumwt += wt
        stats = stats + st
    return griddata, sumwt, stats


def statistics_table(stats_list):
    """ Table of the statistics of each partition, and their total

    :param stats_list: List of GriddingStatistics
    :return: str
    """
    headers = ["Partition", "Gridded", "Flagged", "Outside", "Clamped"]
    table = []
    total = GriddingStatistics()
    for i, stats in enumerate(stats_list):
        table.append([i, stats.ngridded, stats.nflagged, stats.noutside, stats.nclamped])
        total = total + stats
    table.append(["Total", total.ngridded, total.nflagged, total.noutside, total.nclamped])
    return tabulate(table, headers=headers)
