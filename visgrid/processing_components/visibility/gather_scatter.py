""" Scatter a Visibility into row partitions, and gather them back

A typical use is to grid each partition independently::

    vis_list = visibility_scatter(vis, vis_slices=4)
    results = [grid_partition(v, gridder) for v in vis_list]

"""

__all__ = ['create_visibility_from_rows', 'visibility_scatter', 'visibility_gather']

import logging
from typing import List

import numpy

from visgrid.data_models.memory_data_models import Visibility
from visgrid.processing_components.visibility.base import copy_visibility

log = logging.getLogger('logger')


def create_visibility_from_rows(vis: Visibility, rows) -> Visibility:
    """ Create a Visibility from selected rows

    :param vis: Visibility
    :param rows: Boolean array or index array of rows
    :return: New Visibility
    """
    assert isinstance(vis, Visibility), vis
    newvis = copy_visibility(vis)
    newvis.data = numpy.copy(vis.data[rows])
    return newvis


def visibility_scatter(vis: Visibility, vis_slices=1) -> List[Visibility]:
    """Scatter a visibility into a list of contiguous row partitions

    :param vis: Visibility
    :param vis_slices: Number of slices to be made
    :return: list of subvisibilities
    """
    assert vis is not None

    if vis_slices == 1:
        return [vis]

    return [create_visibility_from_rows(vis, rows)
            for rows in numpy.array_split(numpy.arange(vis.nrows), vis_slices)]


def visibility_gather(visibility_list: List[Visibility], vis: Visibility) -> Visibility:
    """Gather a list of subvisibilities back into a visibility

    The list must come from visibility_scatter of vis.

    :param visibility_list: List of subvisibilities
    :param vis: Visibility that was scattered
    :return: New Visibility
    """
    newvis = copy_visibility(vis)
    newvis.data = numpy.concatenate([v.data for v in visibility_list])
    assert newvis.nrows == vis.nrows, "Gathered %d rows, expected %d" % (newvis.nrows, vis.nrows)
    return newvis
