""" Run the gridding workflows either as Dask graphs or as immediate function calls

The workflows are written once against the rsexecute singleton. With Dask enabled each call
wrapped by rsexecute.execute becomes a node of a delayed graph, which rsexecute.compute runs on a
distributed Client. With Dask disabled the same code runs the functions directly.

"""

__all__ = ['rsexecute', 'get_dask_client']

import logging
import os
import time

from dask import delayed, optimize
from dask.distributed import wait
from distributed import Client, LocalCluster
from tabulate import tabulate

log = logging.getLogger('logger')


def get_dask_client(timeout=30, n_workers=None, threads_per_worker=1, processes=True, memory_limit=None,
                    dashboard_address=':8787'):
    """ Get a Dask.distributed Client for rsexecute

    If the environment variable VISGRID_DASK_SCHEDULER is set, a client connected to that scheduler is returned.
    Otherwise a LocalCluster is started on this node.

    :param timeout: Time out for connecting to a scheduler (s)
    :param n_workers: Number of workers, one per core if None
    :param threads_per_worker: Threads per worker
    :param processes: Workers are processes rather than threads
    :param memory_limit: Memory limit per worker (bytes), None for no limit
    :param dashboard_address: Address of the diagnostics dashboard
    :return: Dask client
    """
    scheduler = os.getenv('VISGRID_DASK_SCHEDULER', None)
    if scheduler is not None:
        log.info("get_dask_client: connecting to scheduler %s" % scheduler)
        return Client(scheduler, timeout=timeout)

    cluster_kwargs = {'threads_per_worker': threads_per_worker, 'processes': processes,
                      'dashboard_address': dashboard_address}
    if n_workers is not None:
        cluster_kwargs['n_workers'] = n_workers
    if memory_limit is not None:
        cluster_kwargs['memory_limit'] = memory_limit
    client = Client(LocalCluster(**cluster_kwargs))
    nworkers = len(client.scheduler_info()['workers'])
    log.info("get_dask_client: started LocalCluster with %d workers" % nworkers)
    return client


class _rsexecutebase():
    """ Switch between delayed and immediate execution of the workflows

    Only one instance exists, available as rsexecute::

        from visgrid.workflows import invert_list_rsexecute_workflow, rsexecute
        rsexecute.set_client(use_dask=True, threads_per_worker=1, n_workers=4)
        result = invert_list_rsexecute_workflow(vis_list, gridder)
        dirty, sumwt, stats = rsexecute.compute(result, sync=True)
        rsexecute.close()

    """
    _instance = None

    def __init__(self, use_dask=True, optimize=True):
        """ Initialise rsexecute

        :param use_dask: Build Dask graphs (True) or call the functions directly
        :param optimize: Optimize the graphs before they are computed
        """
        self._using_dask = use_dask
        self._optimize = optimize
        self._client = None
        self._start_time = None

    def execute(self, func, *args, **kwargs):
        """ Wrap a function for delayed or immediate execution

        :param func: Function to wrap
        :param kwargs: Passed to dask.delayed e.g. nout=3
        :return: delayed func, or func itself if not using Dask
        """
        if self._using_dask:
            return delayed(func, *args, **kwargs)
        return func

    def type(self):
        """ Name of the execution system: 'dask' or 'function'
        """
        if self._using_dask:
            return 'dask'
        return 'function'

    def set_client(self, client=None, use_dask=True, optim=True, **kwargs):
        """ Set the Dask client, closing any existing one

        :param client: Client to use. If None and use_dask is True, one is created from kwargs
        :param use_dask: Build Dask graphs
        :param optim: Optimize the graphs before they are computed
        :param kwargs: Passed to distributed.Client e.g. n_workers, threads_per_worker, processes
        """
        if isinstance(self._client, Client):
            log.info("rsexecute.set_client: closing existing client")
            self.close()

        self._using_dask = use_dask
        self._optimize = optim
        if use_dask:
            self._client = client or Client(**kwargs)
            assert isinstance(self._client, Client), self._client
            self._start_time = time.time()
            log.debug("rsexecute.set_client: using Dask client %s" % str(self._client))
        else:
            self._client = None

    def compute(self, value, sync=False):
        """ Get the value of a graph

        Without Dask the value has already been calculated and is returned as it is. With Dask and
        sync=True the computed value is returned; otherwise a future, whose result() gives the value.

        :param value: Graph, or list of graphs
        :param sync: Wait for and return the value
        :return: value or future
        """
        if not self._using_dask:
            return value
        if self._client is None:
            return value.compute()
        start = time.time()
        future = self._client.compute(value, sync=sync)
        wait(future)
        log.debug("rsexecute.compute: Dask took %.3f seconds" % (time.time() - start))
        return future

    def optimize(self, *args, **kwargs):
        """ Optimize Dask graphs, a no-op without Dask

        :param args: Graphs, passed to dask.optimize
        :return: the optimized first graph
        """
        if self._using_dask and self._optimize:
            return optimize(*args, **kwargs)[0]
        return args[0]

    def close(self):
        """ Close the client and its cluster
        """
        if isinstance(self._client, Client):
            if self._client.cluster is not None:
                self._client.cluster.close()
            self._client.close()
            log.debug("rsexecute.close: closed Dask client")
        self._client = None

    def log_task_stream(self):
        """ Log the time spent in each function since the client was set
        """
        if not isinstance(self._client, Client):
            return
        elapsed = {}
        calls = {}
        for task in self._client.get_task_stream(start=self._start_time):
            key = task['key'] if isinstance(task['key'], str) else str(task['key'][0])
            name = key.split('-')[0]
            duration = sum(ss['stop'] - ss['start'] for ss in task['startstops'])
            elapsed[name] = elapsed.get(name, 0.0) + duration
            calls[name] = calls.get(name, 0) + 1
        total = sum(elapsed.values())
        if total <= 0.0:
            log.warning("rsexecute.log_task_stream: no tasks recorded")
            return
        table = [[name, "%.3f" % elapsed[name], "%.1f" % (100.0 * elapsed[name] / total), calls[name]]
                 for name in sorted(elapsed, key=elapsed.get, reverse=True)]
        log.info("Time used in each function\n" +
                 tabulate(table, headers=["Function", "Time (s)", "Per cent", "Calls"]))

    @property
    def client(self):
        """ Client being used, None without Dask
        """
        return self._client

    @property
    def using_dask(self):
        return self._using_dask

    @property
    def optimizing(self):
        return self._optimize


def rsexecutebase(*args, **kwargs):
    if _rsexecutebase._instance is None:
        _rsexecutebase._instance = _rsexecutebase(*args, **kwargs)
    return _rsexecutebase._instance


# Every import of this module sees the same _rsexecutebase
rsexecute = rsexecutebase(use_dask=True)
