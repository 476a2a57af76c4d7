""" Functions shared by the workflows

"""
from .imaging import *
