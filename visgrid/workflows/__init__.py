""" Workflows: graphs of processing components executed with Dask

"""
from .rsexecute import *
from .shared import *
