from .rsexecute import *
