"""Tests for the Elasticsearch client wrapper and response processing"""

from unittest.mock import MagicMock, Mock

import pytest
from elasticsearch import ApiError, TransportError
from esadmin_core import (
    ConnectionFailure,
    ESClientWrapper,
    HttpStatusError,
    MalformedResponseError,
    process_response,
)


def test_process_response_decodes_json():
    assert process_response(200, '{"acknowledged": true}') == {"acknowledged": True}


def test_process_response_rejects_non_200_before_parsing():
    with pytest.raises(HttpStatusError) as e:
        process_response(503, "<html>Service Unavailable</html>", url="http://kb")
    assert e.value.status == 503
    assert e.value.body == "<html>Service Unavailable</html>"


def test_process_response_201_is_an_error():
    with pytest.raises(HttpStatusError):
        process_response(201, "{}")


def test_process_response_malformed_body():
    with pytest.raises(MalformedResponseError):
        process_response(200, "not json")


def test_process_response_text():
    ndjson = '{"a":1}\n{"b":2}\n'
    assert process_response(200, ndjson, expect_json=False) == ndjson


def test_wrapper_returns_body():
    client = MagicMock()
    client.cluster.health.return_value = Mock(
        meta=Mock(status=200), body={"status": "green"}
    )
    es = ESClientWrapper(client)
    assert es.cluster.health() == {"status": "green"}
    client.cluster.health.assert_called_once_with()


def test_wrapper_passes_arguments_through():
    client = MagicMock()
    client.count.return_value = {"count": 3}
    assert ESClientWrapper(client).count(index="logs") == {"count": 3}
    client.count.assert_called_once_with(index="logs")


def test_wrapper_rejects_non_200_success():
    client = MagicMock()
    client.indices.put_settings.return_value = Mock(meta=Mock(status=201), body={})
    with pytest.raises(HttpStatusError) as e:
        ESClientWrapper(client).indices.put_settings(index="x", settings={})
    assert e.value.status == 201


def test_wrapper_converts_api_error():
    client = MagicMock()
    client.indices.get_data_stream.side_effect = ApiError(
        "index_not_found_exception", Mock(status=404), {"error": "no such data stream"}
    )
    with pytest.raises(HttpStatusError) as e:
        ESClientWrapper(client).indices.get_data_stream(name="missing")
    assert e.value.status == 404
    assert e.value.body == {"error": "no such data stream"}


def test_wrapper_converts_transport_error():
    client = MagicMock()
    client.info.side_effect = TransportError("connection refused")
    with pytest.raises(ConnectionFailure):
        ESClientWrapper(client).info()
