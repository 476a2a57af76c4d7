""" visgrid data models: visibility, axes, images, grids and convolution function caches

"""

from .errors import *
from .memory_data_models import *
from .parameters import *
