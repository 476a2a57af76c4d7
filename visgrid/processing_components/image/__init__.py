""" Image operations

"""
from .operations import *
