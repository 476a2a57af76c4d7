""" Workflows using the rsexecute wrapper of Dask

"""
from .execution_support import *
from .imaging import *
