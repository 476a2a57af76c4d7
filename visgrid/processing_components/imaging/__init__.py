""" Functions for imaging from visibility data.

A very simple example, given Axes specifying the image size, sampling and frequency::

    gridder = create_gridder(axes, gridder='wprojection', wmax=200.0, nwplanes=33, oversample=8)
    dirty, sumwt = invert(vis, gridder)
    predicted = predict(vis, model, gridder)

"""
from .gridder import *
from .base import *
from .dft import *
from .weighting import *
