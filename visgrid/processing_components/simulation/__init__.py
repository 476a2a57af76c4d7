""" Simulation of visibilities and images for testing

"""
from .testing_support import *
