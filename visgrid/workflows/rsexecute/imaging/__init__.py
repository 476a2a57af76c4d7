from .imaging_rsexecute import *
