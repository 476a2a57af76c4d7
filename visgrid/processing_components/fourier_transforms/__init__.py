""" Fourier transform conventions, coordinates and the spheroidal function

"""

from .fft_coordinates import *
from .fft_support import *
