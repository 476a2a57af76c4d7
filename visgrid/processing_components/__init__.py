""" visgrid processing components. These are the processing components exposed to the execution framework

"""
__all__ = [
    'griddata',
    'fourier_transforms',
    'image',
    'imaging',
    'simulation',
    'visibility']

from .fourier_transforms import *
from .visibility import *
from .image import *
from .griddata import *
from .imaging import *
from .simulation import *
