"""Offers the base class for rsexecute-based unit tests"""


class rsexecuteTestCase(object):
    """Sets up the rsexecute global object as appropriate, and closes it when done"""

    def setUp(self):
        import os
        from visgrid.workflows.rsexecute.execution_support.rsexecute import rsexecute
        use_dask = os.environ.get('VISGRID_TESTS_USE_DASK', '1') == '1'
        if use_dask:
            rsexecute.set_client(use_dask=True, processes=False, threads_per_worker=1, n_workers=1)
        else:
            rsexecute.set_client(use_dask=False)

    def tearDown(self):
        from visgrid.workflows.rsexecute.execution_support.rsexecute import rsexecute
        rsexecute.close()
