"""
esclient.py

Elasticsearch client construction and the wrapper every operation talks to.
"""

import logging

from elasticsearch import ApiError, Elasticsearch, TransportError

from esadmin_core.exceptions import ConnectionFailure, HttpStatusError

loggit = logging.getLogger("esadmin.esclient")

# Client attributes that are API namespaces rather than API calls
NAMESPACES = {
    "cat",
    "cluster",
    "ilm",
    "indices",
    "ingest",
    "nodes",
    "slm",
    "snapshot",
    "tasks",
}


def create_es_client(
    hosts: str,
    username: str = None,
    password: str = None,
    ca_certs: str = None,
    verify_certs: bool = True,
    request_timeout: float = 30,
) -> Elasticsearch:
    """
    Build an Elasticsearch client using basic authentication.

    :param hosts: URL of the cluster (https://elasticsearch.local:9200)
    :param username: basic auth user
    :param password: basic auth password
    :param ca_certs: path to a CA bundle, if the cluster uses a private CA
    :param verify_certs: verify the server certificate
    :param request_timeout: per-request timeout in seconds
    :returns: the client
    :rtype: Elasticsearch
    """
    kwargs = {
        "verify_certs": verify_certs,
        "request_timeout": request_timeout,
    }
    if username is not None:
        kwargs["basic_auth"] = (username, password or "")
    if ca_certs:
        kwargs["ca_certs"] = ca_certs
    loggit.debug("Creating Elasticsearch client for %s", hosts)
    return Elasticsearch(hosts, **kwargs)


class _Namespace:
    def __init__(self, wrapper: "ESClientWrapper", target, prefix: str) -> None:
        self._wrapper = wrapper
        self._target = target
        self._prefix = prefix

    def __getattr__(self, attr):
        fn = getattr(self._target, attr)
        return self._wrapper._wrap(fn, f"{self._prefix}.{attr}")


class ESClientWrapper:
    """
    Thin proxy over an Elasticsearch client.

    Calls look exactly like the client's own (``wrapper.indices.get(...)``) but
    return the plain response body. Errors are normalized: a response with any
    status other than 200 raises HttpStatusError before the body is used, and
    transport failures raise ConnectionFailure.

    :param client: the Elasticsearch client to wrap
    :param name: label used in log lines ("current", "origin")
    """

    def __init__(self, client: Elasticsearch, name: str = "current") -> None:
        self.client = client
        self.name = name

    def __getattr__(self, attr):
        target = getattr(self.client, attr)
        if attr in NAMESPACES:
            return _Namespace(self, target, attr)
        return self._wrap(target, attr)

    def _wrap(self, fn, label: str):
        def call(*args, **kwargs):
            return self._call(fn, label, *args, **kwargs)

        return call

    def _call(self, fn, label: str, *args, **kwargs):
        loggit.debug("[%s] %s %s", self.name, label, kwargs)
        try:
            response = fn(*args, **kwargs)
        except ApiError as e:
            status = getattr(e.meta, "status", None)
            loggit.error("[%s] %s failed with status %s", self.name, label, status)
            raise HttpStatusError(status, e.body, label) from e
        except TransportError as e:
            loggit.error("[%s] %s could not reach the cluster: %s", self.name, label, e)
            raise ConnectionFailure(f"{label}: {e}") from e
        return self._body(response, label)

    def _body(self, response, label: str):
        meta = getattr(response, "meta", None)
        if meta is None:
            return response
        if meta.status != 200:
            raise HttpStatusError(meta.status, response.body, label)
        return response.body
