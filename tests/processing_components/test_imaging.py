""" Unit tests for imaging: invert, predict, weighting and the gridder states


"""
import logging
import sys
import unittest

import numpy
from astropy import constants

from visgrid.data_models import ConfigurationError, DataShapeError, GridData
from visgrid.processing_components.image.operations import copy_image, create_image
from visgrid.processing_components.imaging import Gridder, create_gridder, dft_point_source_visibility, invert, \
    predict, taper_visibility_gaussian, weight_visibility
from visgrid.processing_components.griddata.kernels import SpheroidalFunction
from visgrid.processing_components.simulation import create_test_axes, create_test_visibility, insert_point_source
from visgrid.processing_components.visibility import create_visibility

log = logging.getLogger('logger')

log.setLevel(logging.WARNING)
log.addHandler(logging.StreamHandler(sys.stdout))


class TestImaging(unittest.TestCase):

    def setUp(self):
        self.npixel = 64
        self.cellsize = 0.001
        self.model, self.axes = create_test_axes(npixel=self.npixel, cellsize=self.cellsize)
        self.frequency = self.axes.frequency
        self.metres = constants.c.value / self.frequency[0]

    def lattice_visibility(self, nrows=200, oversample=8, maxcell=20, w=None, seed=180555):
        """ Visibility with u, v on the oversampled lattice of the grid

        """
        rng = numpy.random.RandomState(seed)
        cells = rng.randint(-maxcell * oversample, maxcell * oversample, [nrows, 2]) / oversample
        uvw = numpy.zeros([nrows, 3])
        uvw[:, 0] = cells[:, 0] * self.axes.uvcellsize[0] * self.metres
        uvw[:, 1] = cells[:, 1] * self.axes.uvcellsize[1] * self.metres
        if w is not None:
            uvw[:, 2] = w * self.metres
        return create_visibility(uvw, self.frequency)

    def point_source(self, x=5, y=-3):
        model, (l, m) = insert_point_source(copy_image(self.model), x * self.cellsize, y * self.cellsize)
        return model, l, m

    def test_predict_point_source(self):
        model, l, m = self.point_source()
        vis = self.lattice_visibility()
        truth = dft_point_source_visibility(vis, l, m)
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=8, support=7, maxsupport=16)
        predicted = predict(vis, model, gridder)
        assert numpy.max(numpy.abs(predicted.vis - truth.vis)) < 1e-2
        assert gridder.statistics.ngridded == vis.nrows

    def test_predict_wprojection(self):
        model, l, m = self.point_source()
        wmax = 500.0
        gridder = create_gridder(self.axes, gridder='wprojection', wmax=wmax, nwplanes=5, oversample=8,
                                 cutoff=1e-4, maxsupport=32)
        gridder.initialize()
        rng = numpy.random.RandomState(1805550721)
        w = gridder.cf.plane_values[rng.randint(0, 5, 200)]
        vis = self.lattice_visibility(w=w)
        truth = dft_point_source_visibility(vis, l, m)
        predicted = predict(vis, model, gridder)
        assert numpy.max(numpy.abs(predicted.vis - truth.vis)) < 1e-2
        assert gridder.statistics.nclamped == 0

        # Without the w correction the error is much larger
        flat = create_gridder(self.axes, gridder='spheroidal', oversample=8, cutoff=1e-4, maxsupport=32)
        assert numpy.max(numpy.abs(predict(vis, model, flat).vis - truth.vis)) > 1e-2

    def test_invert_point_source(self):
        model, l, m = self.point_source()
        vis = create_test_visibility(nrows=200, frequency=self.frequency, uvmax=900.0)
        vis = dft_point_source_visibility(vis, l, m)
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=8)
        dirty, sumwt = invert(vis, gridder)
        assert dirty.shape == self.axes.shape
        assert numpy.unravel_index(numpy.argmax(dirty.data), dirty.shape) == (0, 0, 32 - 3, 32 + 5)
        numpy.testing.assert_allclose(dirty.data[0, 0, 29, 37], 1.0, atol=1e-2)
        numpy.testing.assert_allclose(sumwt[0, 0], vis.nrows, rtol=1e-6)
        assert gridder.state == 'finalized'

    def test_invert_psf(self):
        vis = create_test_visibility(nrows=200, frequency=self.frequency, uvmax=900.0)
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=8)
        psf, sumwt = invert(vis, gridder, dopsf=True)
        numpy.testing.assert_almost_equal(psf.data[0, 0, 32, 32], 1.0, 5)
        assert numpy.max(psf.data) <= psf.data[0, 0, 32, 32] + 1e-3
        # The input visibilities are unchanged
        numpy.testing.assert_array_equal(vis.vis, 0.0)

    def test_invert_unnormalized(self):
        vis = create_test_visibility(nrows=50, frequency=self.frequency, uvmax=900.0)
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=8)
        psf, sumwt = invert(vis, gridder, dopsf=True, normalize=False)
        numpy.testing.assert_allclose(psf.data[0, 0, 32, 32], sumwt[0, 0], rtol=1e-5)

    def test_invert_spectral(self):
        frequency = numpy.array([1e8, 1.2e8])
        model, axes = create_test_axes(npixel=self.npixel, cellsize=self.cellsize, frequency=frequency)
        vis = create_test_visibility(nrows=100, frequency=frequency, uvmax=900.0)
        vis.data['weight'][:, 1, :] = 2.0
        gridder = create_gridder(axes, gridder='spheroidal', oversample=8)
        psf, sumwt = invert(vis, gridder, dopsf=True)
        assert psf.shape == (2, 1, 64, 64)
        numpy.testing.assert_allclose(sumwt[:, 0], [100.0, 200.0], rtol=1e-6)
        numpy.testing.assert_almost_equal(psf.data[:, 0, 32, 32], [1.0, 1.0], 5)

    def test_invert_illumination(self):
        vis = create_test_visibility(nrows=50, frequency=self.frequency, uvmax=900.0)
        gridder = create_gridder(self.axes, gridder='illumination', diameter=25.0, oversample=4, maxsupport=32)
        psf, sumwt = invert(vis, gridder, dopsf=True)
        assert gridder.cf.nplanes == 1
        assert numpy.all(numpy.isfinite(psf.data))
        assert numpy.unravel_index(numpy.argmax(psf.data), psf.shape) == (0, 0, 32, 32)

    def test_invert_box(self):
        vis = create_test_visibility(nrows=50, frequency=self.frequency, uvmax=900.0)
        gridder = create_gridder(self.axes, gridder='box')
        psf, sumwt = invert(vis, gridder, dopsf=True)
        numpy.testing.assert_almost_equal(psf.data[0, 0, 32, 32], 1.0, 10)
        numpy.testing.assert_almost_equal(sumwt[0, 0], 50.0, 10)

    def test_weighting_uniform(self):
        # Two coincident samples and one lone sample, all on grid cells
        du = self.axes.uvcellsize[0] * self.metres
        uvw = numpy.array([[5 * du, 0.0, 0.0], [5 * du, 0.0, 0.0], [-10 * du, 10 * du, 0.0]])
        vis = create_visibility(uvw, self.frequency)
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=8)
        weighted = weight_visibility(vis, gridder, weighting='uniform')
        numpy.testing.assert_allclose(weighted.weight[0], 0.5 * weighted.weight[2], rtol=1e-8)
        numpy.testing.assert_allclose(weighted.weight[1], weighted.weight[0], rtol=1e-12)
        numpy.testing.assert_array_equal(vis.weight, 1.0)

    def test_weighting_natural(self):
        vis = create_test_visibility(nrows=10, frequency=self.frequency)
        gridder = create_gridder(self.axes, gridder='spheroidal')
        weighted = weight_visibility(vis, gridder, weighting='natural')
        numpy.testing.assert_array_equal(weighted.weight, vis.weight)
        with self.assertRaises(ConfigurationError):
            weight_visibility(vis, gridder, weighting='robust')

    def test_taper(self):
        vis = create_test_visibility(nrows=10, frequency=self.frequency, uvmax=1000.0)
        tapered = taper_visibility_gaussian(vis, beam=0.01)
        assert numpy.all(tapered.weight <= vis.weight)
        assert numpy.all(tapered.weight > 0.0)
        uvdist = numpy.hypot(vis.u, vis.v)
        order = numpy.argsort(uvdist)
        assert numpy.all(numpy.diff(tapered.weight[order, 0, 0]) <= 0.0)
        with self.assertRaises(ConfigurationError):
            taper_visibility_gaussian(vis)

    def test_gridder_states(self):
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=4)
        assert gridder.state == 'unconfigured'
        gridder.initialize()
        assert gridder.state == 'initialized'
        cf = gridder.cf
        with self.assertRaises(ConfigurationError):
            gridder.finalize(gridder.create_griddata(), numpy.ones([1, 1]))

        vis = create_test_visibility(nrows=10, frequency=self.frequency, uvmax=900.0)
        griddata, sumwt = gridder.begin_pass()
        assert gridder.state == 'active'
        griddata, sumwt = gridder.reverse(vis, griddata, sumwt)
        gridder.finalize(griddata, sumwt)
        assert gridder.state == 'finalized'
        assert gridder.statistics.ngridded == 10

        # A second pass reuses the cache and starts new statistics
        griddata, sumwt = gridder.begin_pass()
        assert gridder.state == 'active'
        assert gridder.cf is cf
        assert gridder.statistics.ngridded == 0
        assert numpy.sum(numpy.abs(griddata.data)) == 0.0
        assert "spheroidal" in str(gridder)

    def test_gridder_lazy_initialize(self):
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=4)
        vis = create_test_visibility(nrows=10, frequency=self.frequency, uvmax=900.0)
        griddata, sumwt = gridder.reverse(vis)
        assert gridder.state == 'active'
        assert gridder.cf is not None
        assert griddata.shape == self.axes.shape

    def test_gridder_without_axes(self):
        gridder = Gridder(SpheroidalFunction())
        vis = create_test_visibility(nrows=10, frequency=self.frequency)
        with self.assertRaises(ConfigurationError):
            gridder.reverse(vis)
        gridder.initialize(self.axes)
        assert gridder.state == 'initialized'

    def test_create_gridder_errors(self):
        with self.assertRaises(ConfigurationError):
            create_gridder(self.axes, gridder='nifty')
        with self.assertRaises(ConfigurationError):
            create_gridder(self.axes, gridder='wprojection')
        with self.assertRaises(ConfigurationError):
            create_gridder(self.axes, gridder='wprojection', wmax=100.0, nwplanes=0)
        with self.assertRaises(ConfigurationError):
            create_gridder(self.axes, gridder='spheroidal', support=100, maxsupport=16)
        with self.assertRaises(ConfigurationError):
            create_gridder(self.axes, gridder='wprojection', wmax=100.0, nwplanes=3, wspacing='cosine')

    def test_shape_errors(self):
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=4)
        griddata, sumwt = gridder.begin_pass()
        wrong = GridData(numpy.zeros([1, 1, 32, 32], dtype='complex'), self.axes.uvcellsize, self.frequency)
        with self.assertRaises(DataShapeError):
            gridder.finalize(wrong, sumwt)
        with self.assertRaises(DataShapeError):
            gridder.model_to_griddata(create_image(npixel=32, cellsize=self.cellsize))
        vis = create_test_visibility(nrows=10, frequency=self.frequency, npol=2)
        with self.assertRaises(DataShapeError):
            gridder.reverse(vis, griddata, sumwt)

    def test_correction_inverse(self):
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=4)
        gridder.initialize()
        rng = numpy.random.RandomState(180555)
        im = copy_image(self.model)
        im.data[...] = rng.normal(size=im.shape)
        corrector = gridder.corrector
        positive = corrector.taper > 0.0
        assert positive[32, 32]
        restored = corrector.correct_convolution(corrector.apply_convolution(im))
        numpy.testing.assert_array_almost_equal(restored.data[..., positive], im.data[..., positive], 10)
        assert numpy.all(restored.data[..., ~positive] == 0.0)
        with self.assertRaises(DataShapeError):
            corrector.correct_convolution(create_image(npixel=32, cellsize=self.cellsize))

    def test_invert_predict_adjoint(self):
        # predict is the adjoint of the unnormalised invert, up to the real part taken by invert
        vis = create_test_visibility(nrows=50, frequency=self.frequency, uvmax=900.0)
        rng = numpy.random.RandomState(180555)
        vis.data['vis'][...] = rng.normal(size=vis.vis.shape) + 1j * rng.normal(size=vis.vis.shape)
        model = copy_image(self.model)
        model.data[...] = rng.normal(size=model.shape)
        for interpolation in ['nearest', 'linear']:
            gridder = create_gridder(self.axes, gridder='spheroidal', oversample=4, interpolation=interpolation)
            predicted = predict(vis, model, gridder)
            dirty, sumwt = invert(vis, gridder, normalize=False)
            numpy.testing.assert_allclose(numpy.real(numpy.vdot(vis.vis, predicted.vis)),
                                          numpy.sum(dirty.data * model.data), rtol=1e-8)

    def test_predict_point_source_random_uv(self):
        model, l, m = self.point_source()
        vis = create_test_visibility(nrows=200, frequency=self.frequency, uvmax=900.0)
        truth = dft_point_source_visibility(vis, l, m)
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=4, support=7, maxsupport=16)
        assert gridder.interpolation == 'linear'
        predicted = predict(vis, model, gridder)
        assert numpy.max(numpy.abs(predicted.vis - truth.vis)) < 1e-2

        # The nearest oversampled phase moves each sample by up to 1/8 of a cell
        nearest = create_gridder(self.axes, gridder='spheroidal', oversample=4, support=7, maxsupport=16,
                                 interpolation='nearest')
        assert numpy.max(numpy.abs(predict(vis, model, nearest).vis - truth.vis)) > 1e-2

    def test_predict_wprojection_random_uv(self):
        model, l, m = self.point_source()
        vis = create_test_visibility(nrows=200, frequency=self.frequency, uvmax=900.0)
        gridder = create_gridder(self.axes, gridder='wprojection', wmax=500.0, nwplanes=5, oversample=8,
                                 cutoff=1e-4, maxsupport=32)
        gridder.initialize()
        rng = numpy.random.RandomState(1805550721)
        vis.data['uvw'][:, 2] = gridder.cf.plane_values[rng.randint(0, 5, vis.nrows)] * self.metres
        truth = dft_point_source_visibility(vis, l, m)
        predicted = predict(vis, model, gridder)
        assert numpy.max(numpy.abs(predicted.vis - truth.vis)) < 1e-2

    def test_invert_predict_round_trip(self):
        # Invert the visibilities of a point source, then predict from a one pixel model at the peak
        model, l, m = self.point_source()
        vis = create_test_visibility(nrows=200, frequency=self.frequency, uvmax=900.0)
        vis = dft_point_source_visibility(vis, l, m)
        gridder = create_gridder(self.axes, gridder='spheroidal', oversample=8, support=7, maxsupport=16)
        dirty, sumwt = invert(vis, gridder)
        peak = numpy.unravel_index(numpy.argmax(dirty.data), dirty.shape)
        assert peak == (0, 0, 32 - 3, 32 + 5)
        numpy.testing.assert_allclose(dirty.data[peak], 1.0, atol=1e-2)

        clean = copy_image(self.model)
        clean.data[...] = 0.0
        clean.data[peak] = dirty.data[peak]
        predicted = predict(vis, clean, gridder)
        error = numpy.max(numpy.abs(predicted.vis - vis.vis)) / numpy.max(numpy.abs(vis.vis))
        assert error < 1e-2, error

    def test_unknown_interpolation(self):
        with self.assertRaises(ConfigurationError):
            create_gridder(self.axes, gridder='spheroidal', interpolation='cubic')


if __name__ == '__main__':
    unittest.main()
