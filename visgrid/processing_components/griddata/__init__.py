""" Imaging is based on use of the FFT to perform Fourier transforms efficiently. Since the observed visibility data
do not arrive naturally on grid points, the sampled points are resampled on the FFT grid after using a convolution
function to smear out the sample points. The resulting grid points are then FFT'ed. The result can be corrected for the
gridding convolution function by division in the image plane of the transform.

This approach is extended to include the w term and the antenna primary beam.

This module contains functions for performing the gridding process and the inverse degridding process.

"""
from .convolution_functions import *
from .plane_mapping import *
from .kernels import *
from .gridding import *
from .correction import *
