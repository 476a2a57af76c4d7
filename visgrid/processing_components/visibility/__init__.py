""" Visibility construction, copying and partitioning

"""
from .base import *
from .gather_scatter import *
