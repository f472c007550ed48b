"""
kibana.py

Minimal Kibana REST client. Fleet and saved-object management live in Kibana,
not in Elasticsearch, so these calls go to the Kibana base URL.
"""

import logging

import requests

from esadmin_core.exceptions import ConnectionFailure
from esadmin_core.responses import process_response


class KibanaClient:
    """
    Kibana REST client using basic authentication.

    Every call sends the ``kbn-xsrf`` header Kibana requires on mutating requests
    and passes the response through process_response.

    :param host: Kibana base URL (https://kibana.local:5601)
    :param username: basic auth user
    :param password: basic auth password
    :param verify: verify TLS certificates, or the path of a CA bundle
    :param timeout: per-request timeout in seconds
    :param session: an existing requests session, mostly for tests
    """

    def __init__(
        self,
        host: str,
        username: str = None,
        password: str = None,
        verify=True,
        timeout: float = 30,
        session: requests.Session = None,
    ) -> None:
        self.loggit = logging.getLogger("esadmin.kibana")
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if username is not None:
            self.session.auth = (username, password or "")
        self.session.verify = verify
        self.session.headers.update(
            {"Content-Type": "application/json", "kbn-xsrf": "true"}
        )

    def url(self, path: str, space: str = None) -> str:
        if space and space != "default":
            return f"{self.host}/s/{space}{path}"
        return f"{self.host}{path}"

    def request(
        self,
        method: str,
        path: str,
        params: dict = None,
        json: dict = None,
        space: str = None,
        expect_json: bool = True,
    ):
        """
        Send one request and return the decoded body.

        :raises HttpStatusError: for any status other than 200
        :raises MalformedResponseError: if a JSON body was expected and not found
        :raises ConnectionFailure: if Kibana cannot be reached
        """
        url = self.url(path, space)
        self.loggit.debug("%s %s params=%s", method, url, params)
        try:
            response = self.session.request(
                method, url, params=params, json=json, timeout=self.timeout
            )
        except requests.RequestException as e:
            self.loggit.error("Could not reach Kibana at %s: %s", url, e)
            raise ConnectionFailure(f"{method} {url}: {e}") from e
        return process_response(
            response.status_code, response.text, url=url, expect_json=expect_json
        )

    def get(self, path: str, **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs):
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs):
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self.request("DELETE", path, **kwargs)
