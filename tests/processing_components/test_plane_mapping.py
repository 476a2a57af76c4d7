""" Unit tests for mapping samples onto convolution function planes


"""
import logging
import unittest

import numpy
from astropy import constants

from visgrid.data_models import ConfigurationError
from visgrid.processing_components.griddata.plane_mapping import PlaneMapper, nearest_plane_index_map, \
    wplane_index, wplane_values
from visgrid.processing_components.visibility.base import create_visibility

log = logging.getLogger('logger')

log.setLevel(logging.WARNING)


class TestPlaneMapping(unittest.TestCase):

    def setUp(self):
        self.wmax = 100.0
        self.nplanes = 5

    def test_quadratic_values(self):
        values = wplane_values(self.wmax, self.nplanes)
        numpy.testing.assert_array_almost_equal(values, [-100.0, -25.0, 0.0, 25.0, 100.0])

    def test_linear_values(self):
        values = wplane_values(self.wmax, self.nplanes, wspacing='linear')
        numpy.testing.assert_array_almost_equal(values, [-100.0, -50.0, 0.0, 50.0, 100.0])

    def test_single_plane(self):
        numpy.testing.assert_array_equal(wplane_values(self.wmax, 1), [0.0])
        planes, nclamped = wplane_index(numpy.array([-1e4, 0.0, 1e4]), self.wmax, 1)
        numpy.testing.assert_array_equal(planes, 0)
        assert nclamped == 0

    def test_values_map_to_themselves(self):
        for wspacing in ['quadratic', 'linear']:
            values = wplane_values(self.wmax, 7, wspacing)
            planes, nclamped = wplane_index(values, self.wmax, 7, wspacing)
            numpy.testing.assert_array_equal(planes, numpy.arange(7))
            assert nclamped == 0

    def test_monotone(self):
        w = numpy.linspace(-1.5 * self.wmax, 1.5 * self.wmax, 301)
        for wspacing in ['quadratic', 'linear']:
            planes, _ = wplane_index(w, self.wmax, self.nplanes, wspacing)
            assert numpy.all(numpy.diff(planes) >= 0)
            assert numpy.min(planes) == 0
            assert numpy.max(planes) == self.nplanes - 1

    def test_clamping(self):
        planes, nclamped = wplane_index(numpy.array([-2.0 * self.wmax, 0.0, 2.0 * self.wmax]), self.wmax,
                                        self.nplanes)
        numpy.testing.assert_array_equal(planes, [0, 2, 4])
        assert nclamped == 2

    def test_unknown_spacing(self):
        with self.assertRaises(ConfigurationError):
            wplane_values(self.wmax, self.nplanes, wspacing='cubic')
        with self.assertRaises(ConfigurationError):
            PlaneMapper(self.wmax, self.nplanes, wspacing='cubic')

    def test_mapper(self):
        # At a frequency of c Hz, w in metres equals w in wavelengths
        uvw = numpy.zeros([4, 3])
        uvw[:, 2] = [-100.0, -20.0, 30.0, 300.0]
        vis = create_visibility(uvw, [constants.c.value, 0.5 * constants.c.value])
        mapper = PlaneMapper(self.wmax, self.nplanes)
        planemap = mapper(vis)
        assert planemap.shape == (4, 2)
        assert planemap.nplanes == self.nplanes
        numpy.testing.assert_array_equal(planemap.planes[:, 0], [0, 1, 3, 4])
        numpy.testing.assert_array_equal(planemap.planes[:, 1], [1, 1, 3, 4])
        assert planemap.nclamped == 2

    def test_nearest_plane_index_map(self):
        vis = create_visibility(numpy.zeros([3, 3]), [1e8, 1.15e8, 2e8])
        planemap = nearest_plane_index_map(vis, [1e8, 1.2e8])
        numpy.testing.assert_array_equal(planemap.planes, [[0, 1, 1]] * 3)
        assert planemap.nclamped == 3


if __name__ == '__main__':
    unittest.main()
