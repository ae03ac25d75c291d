import json
from unittest import mock

import pytest
import responses

from ciwatch.clients.factory import get_client
from ciwatch.clients.http import DEFAULT_LOG_INTAKE_URL
from ciwatch.core.enums import ClientType
from ciwatch.logs.trace_cache import AugmentedSpan, TraceCache
from ciwatch.logs.writer import LogWriter


@pytest.fixture
def traces():
    return TraceCache()


@pytest.fixture
def client():
    client = mock.Mock()
    client.send_logs.return_value = True
    return client


def make_writer(client, traces, **kwargs):
    return LogWriter(
        tags={"job": {"deploy"}, "branch": {"main"}},
        attributes={"build_id": "deploy-12"},
        client_provider=lambda: client,
        traces=traces,
        **kwargs,
    )


def sent_payload(client, index=0):
    return json.loads(client.send_logs.call_args_list[index].args[0])


def test_write(client, traces):
    writer = make_writer(client, traces)

    assert writer.write("Building in workspace /var/lib/jenkins")

    assert sent_payload(client) == {
        "ddtags": "branch:main,job:deploy",
        "build_id": "deploy-12",
        "message": "Building in workspace /var/lib/jenkins",
        "ddsource": "jenkins",
        "service": "jenkins",
    }


def test_write__empty_line(client, traces):
    writer = make_writer(client, traces)
    assert not writer.write("")
    assert not writer.write(None)
    client.send_logs.assert_not_called()


def test_write__with_trace(client, traces):
    traces.put("deploy-12", AugmentedSpan(trace_id="111", span_id="222"))
    writer = make_writer(client, traces, build_id="deploy-12")

    writer.write("Finished: SUCCESS")

    payload = sent_payload(client)
    assert payload["trace_id"] == "111"
    assert payload["span_id"] == "222"


def test_write__retries_once(client, traces):
    client.send_logs.side_effect = [False, True]
    assert make_writer(client, traces).write("line")
    assert client.send_logs.call_count == 2
    assert sent_payload(client, 0) == sent_payload(client, 1)


def test_write__gives_up_after_retry(client, traces):
    client.send_logs.return_value = False
    assert not make_writer(client, traces).write("line")
    assert client.send_logs.call_count == 2


def test_write__no_client(traces):
    writer = LogWriter(client_provider=lambda: None, traces=traces)
    assert not writer.write("line")


def test_write__errors_are_logged(client, traces, caplog):
    client.send_logs.side_effect = RuntimeError("socket closed")
    assert not make_writer(client, traces).write("line")
    assert "Failed to forward a build log line" in caplog.text


def test_write__default_client_not_configured(traces):
    assert not LogWriter(traces=traces).write("line")


@responses.activate
def test_write__through_http_client(traces, api_url, api_key):
    responses.add(responses.POST, DEFAULT_LOG_INTAKE_URL, status=500)
    responses.add(responses.POST, DEFAULT_LOG_INTAKE_URL, status=200)
    get_client(ClientType.HTTP, api_url, api_key)

    assert LogWriter(tags={"job": {"deploy"}}, traces=traces).write("line")
    assert len(responses.calls) == 2
