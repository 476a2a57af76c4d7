"""Workflows for imaging: invert, predict, weight and sum the results of invert

Each visibility partition is gridded into its own grid with the cache built once, before distribution.
The grids are summed as a tree and the sum is finalised once.
"""

__all__ = ['invert_list_rsexecute_workflow', 'predict_list_rsexecute_workflow',
           'weight_list_rsexecute_workflow', 'sum_invert_results_rsexecute']

import logging

from visgrid.data_models.errors import ConfigurationError
from visgrid.data_models.memory_data_models import GridData
from visgrid.processing_components.griddata.gridding import griddata_visibility_reweight
from visgrid.processing_components.imaging.gridder import Gridder
from visgrid.workflows.rsexecute.execution_support.rsexecute import rsexecute
from visgrid.workflows.shared.imaging import degrid_partition, grid_partition, grid_weight_partition, \
    statistics_table, sum_griddata_results

log = logging.getLogger('logger')


def _initialize(gridder):
    assert isinstance(gridder, Gridder), gridder
    if gridder.state == 'unconfigured':
        gridder.initialize()
    return gridder


def sum_invert_results_rsexecute(results, split=2):
    """ Sum a set of gridding results as a tree

    :param results: List of (griddata, sumwt, statistics) tuples (or graphs)
    :param split: Split into
    :return: griddata, sum of weights, statistics (graph)
    """
    if len(results) > split:
        centre = len(results) // split
        result = [sum_invert_results_rsexecute(results[:centre], split),
                  sum_invert_results_rsexecute(results[centre:], split)]
        return rsexecute.execute(sum_griddata_results, nout=3)(result)
    else:
        return rsexecute.execute(sum_griddata_results, nout=3)(results)


def invert_list_rsexecute_workflow(vis_list, gridder, dopsf=False, normalize=True):
    """ Grid each partition of the visibility independently, sum the grids and finalise once

    :param vis_list: list of vis (or graph)
    :param gridder: Gridder, initialized here if necessary
    :param dopsf: Make the PSF instead of the dirty image
    :param normalize: Normalize by sumwt
    :return: graph for (image, sumwt, statistics)

    For example::

        result = invert_list_rsexecute_workflow(vis_list, gridder)
        dirty, sumwt, stats = rsexecute.compute(result, sync=True)

   """
    gridder = _initialize(gridder)

    results = [rsexecute.execute(grid_partition, nout=3)(vis, gridder, dopsf=dopsf) for vis in vis_list]
    stats_list = [result[2] for result in results]
    summed = sum_invert_results_rsexecute(results)

    def finalize(total, partition_statistics):
        griddata, sumwt, stats = total
        log.info("invert_list_rsexecute_workflow: samples per partition\n%s" % statistics_table(partition_statistics))
        gridder.begin_pass()
        gridder.statistics = stats
        return gridder.finalize(griddata, sumwt, normalize=normalize), sumwt, stats

    result = rsexecute.execute(finalize, nout=3)(summed, stats_list)
    return rsexecute.optimize(result)


def predict_list_rsexecute_workflow(vis_list, model, gridder):
    """ Predict each partition of the visibility from one model

    The model is transformed once and shared by all partitions.

    :param vis_list: list of vis (or graph)
    :param model: Model Image (or graph)
    :param gridder: Gridder, initialized here if necessary
    :return: List of vis graphs
    """
    gridder = _initialize(gridder)
    griddata = rsexecute.execute(gridder.model_to_griddata, nout=1)(model)
    result = [rsexecute.execute(degrid_partition, nout=1)(vis, griddata, gridder) for vis in vis_list]
    return rsexecute.optimize(result)


def weight_list_rsexecute_workflow(vis_list, gridder, weighting='uniform'):
    """ Weight the visibility data

    This is done collectively so the weights are summed over all vis_lists and then
    corrected

    :param vis_list: list of vis (or graph)
    :param gridder: Gridder, initialized here if necessary
    :param weighting: Type of weighting, uniform or natural
    :return: List of vis graphs

    For example::

         vis_list = weight_list_rsexecute_workflow(vis_list, gridder, weighting='uniform')

   """
    if weighting == 'natural':
        return vis_list
    elif weighting != 'uniform':
        raise ConfigurationError("Unknown weighting %s" % weighting)
    gridder = _initialize(gridder)

    weight_list = [rsexecute.execute(grid_weight_partition, nout=3)(vis, gridder) for vis in vis_list]
    merged_weight_grid = sum_invert_results_rsexecute(weight_list)

    def re_weight(vis, merged):
        griddata = merged[0]
        assert isinstance(griddata, GridData), griddata
        return griddata_visibility_reweight(vis, griddata, gridder.cf)

    result = [rsexecute.execute(re_weight, nout=1)(vis, merged_weight_grid) for vis in vis_list]
    return rsexecute.optimize(result)
