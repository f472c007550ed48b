"""
responses.py

Validation of raw HTTP responses before anything is read from them.
"""

import json
import logging

from esadmin_core.exceptions import HttpStatusError, MalformedResponseError

loggit = logging.getLogger("esadmin.responses")


def process_response(status_code: int, text: str, url: str = None, expect_json=True):
    """
    Check a response and return its decoded body.

    Any status other than 200 raises before the body is looked at. A 200
    response must carry JSON unless ``expect_json`` is False, in which case
    the text is returned unchanged (NDJSON exports, for instance).

    :param status_code: HTTP status of the response
    :param text: raw response body
    :param url: requested URL, only used in messages
    :param expect_json: whether the body must parse as JSON
    :returns: the parsed body, or the raw text
    :raises HttpStatusError: for any status other than 200
    :raises MalformedResponseError: if the body is not JSON
    """
    if status_code != 200:
        loggit.error("Request to %s failed with status %s", url, status_code)
        raise HttpStatusError(status_code, text, url)
    if not expect_json:
        return text
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        loggit.error("Response from %s is not valid JSON: %s", url, e)
        raise MalformedResponseError(
            f"Response from {url} is not valid JSON: {text!r}"
        ) from e
