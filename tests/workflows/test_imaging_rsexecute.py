""" Unit tests for imaging workflows expressed via rsexecute
"""

import logging
import sys
import unittest

import numpy

from visgrid.data_models import ConfigurationError, GriddingStatistics
from visgrid.processing_components.imaging import create_gridder, dft_point_source_visibility, invert, predict, \
    weight_visibility
from visgrid.processing_components.simulation import create_test_axes, create_test_visibility, insert_point_source
from visgrid.processing_components.visibility import visibility_gather, visibility_scatter
from visgrid.workflows.rsexecute.execution_support.rsexecute import get_dask_client, rsexecute
from visgrid.workflows.rsexecute.imaging.imaging_rsexecute import invert_list_rsexecute_workflow, \
    predict_list_rsexecute_workflow, sum_invert_results_rsexecute, weight_list_rsexecute_workflow
from visgrid.workflows.shared.imaging import grid_partition, statistics_table
from . import rsexecuteTestCase

log = logging.getLogger('logger')

log.setLevel(logging.WARNING)
log.addHandler(logging.StreamHandler(sys.stdout))


class TestImagingRsexecute(rsexecuteTestCase, unittest.TestCase):

    def setUp(self):
        rsexecuteTestCase.setUp(self)
        self.cellsize = 0.001
        self.model, self.axes = create_test_axes(npixel=64, cellsize=self.cellsize)
        self.model, (self.l, self.m) = insert_point_source(self.model, 5 * self.cellsize, -3 * self.cellsize)
        vis = create_test_visibility(nrows=120, frequency=self.axes.frequency, uvmax=900.0, wmax=150.0)
        self.vis = dft_point_source_visibility(vis, self.l, self.m)
        self.vis.data['flags'][7, ...] = True
        self.vis_list = visibility_scatter(self.vis, vis_slices=4)

    def tearDown(self):
        rsexecuteTestCase.tearDown(self)

    def gridder(self):
        return create_gridder(self.axes, gridder='wprojection', wmax=60.0, nwplanes=5, oversample=4,
                              maxsupport=32)

    def test_scatter_gather(self):
        assert len(self.vis_list) == 4
        assert sum(v.nrows for v in self.vis_list) == self.vis.nrows
        gathered = visibility_gather(self.vis_list, self.vis)
        numpy.testing.assert_array_equal(gathered.vis, self.vis.vis)
        numpy.testing.assert_array_equal(gathered.uvw, self.vis.uvw)

    def test_invert(self):
        dirty, sumwt = invert(self.vis, self.gridder())
        result = invert_list_rsexecute_workflow(self.vis_list, self.gridder())
        dirty_list, sumwt_list, stats = rsexecute.compute(result, sync=True)
        numpy.testing.assert_allclose(sumwt_list, sumwt, rtol=1e-10)
        numpy.testing.assert_allclose(dirty_list.data, dirty.data, atol=1e-10)
        assert stats == GriddingStatistics(ngridded=119, nflagged=1)
        assert numpy.unravel_index(numpy.argmax(dirty_list.data), dirty_list.shape) == (0, 0, 29, 37)

    def test_invert_psf(self):
        result = invert_list_rsexecute_workflow(self.vis_list, self.gridder(), dopsf=True)
        psf, sumwt, stats = rsexecute.compute(result, sync=True)
        numpy.testing.assert_almost_equal(psf.data[0, 0, 32, 32], 1.0, 5)

    def test_sum_invert_results(self):
        gridder = self.gridder().initialize()
        results = [rsexecute.execute(grid_partition, nout=3)(v, gridder) for v in self.vis_list]
        griddata, sumwt, stats = rsexecute.compute(sum_invert_results_rsexecute(results), sync=True)
        single = grid_partition(self.vis, gridder)
        numpy.testing.assert_allclose(griddata.data, single[0].data, atol=1e-10)
        numpy.testing.assert_allclose(sumwt, single[1], rtol=1e-10)
        assert stats == single[2]

    def test_predict(self):
        predicted = predict(self.vis, self.model, self.gridder())
        result = predict_list_rsexecute_workflow(self.vis_list, self.model, self.gridder())
        predicted_list = rsexecute.compute(result, sync=True)
        assert len(predicted_list) == 4
        gathered = visibility_gather(predicted_list, self.vis)
        numpy.testing.assert_allclose(gathered.vis, predicted.vis, atol=1e-12)

    def test_weight(self):
        weighted = weight_visibility(self.vis, self.gridder(), weighting='uniform')
        result = weight_list_rsexecute_workflow(self.vis_list, self.gridder(), weighting='uniform')
        weighted_list = rsexecute.compute(result, sync=True)
        gathered = visibility_gather(weighted_list, self.vis)
        numpy.testing.assert_allclose(gathered.weight, weighted.weight, rtol=1e-10)
        assert weight_list_rsexecute_workflow(self.vis_list, self.gridder(), weighting='natural') is self.vis_list
        with self.assertRaises(ConfigurationError):
            weight_list_rsexecute_workflow(self.vis_list, self.gridder(), weighting='briggs')

    def test_log_task_stream(self):
        result = invert_list_rsexecute_workflow(self.vis_list, self.gridder(), dopsf=True)
        rsexecute.compute(result, sync=True)
        rsexecute.log_task_stream()

    def test_statistics_table(self):
        table = statistics_table([GriddingStatistics(ngridded=3), GriddingStatistics(ngridded=4, nflagged=1)])
        assert "Total" in table
        assert "Gridded" in table


class TestDaskClient(unittest.TestCase):

    def test_get_dask_client(self):
        client = get_dask_client(n_workers=1, threads_per_worker=1, processes=False, dashboard_address=':0')
        rsexecute.set_client(client=client)
        assert rsexecute.using_dask
        assert rsexecute.client is client
        assert rsexecute.type() == 'dask'
        assert rsexecute.compute(rsexecute.execute(sum)([1, 2, 3]), sync=True) == 6
        rsexecute.close()
        assert rsexecute.client is None


class TestImagingFunction(unittest.TestCase):
    """ The same workflows executed immediately, without Dask
    """

    def setUp(self):
        rsexecute.set_client(use_dask=False)
        self.model, self.axes = create_test_axes(npixel=64, cellsize=0.001)
        self.vis = create_test_visibility(nrows=40, frequency=self.axes.frequency, uvmax=900.0)

    def test_invert(self):
        assert rsexecute.type() == 'function'
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=4)
        psf, sumwt, stats = invert_list_rsexecute_workflow(visibility_scatter(self.vis, 3), gridder, dopsf=True)
        numpy.testing.assert_almost_equal(psf.data[0, 0, 32, 32], 1.0, 5)
        assert stats.ngridded == 40


if __name__ == '__main__':
    unittest.main()
