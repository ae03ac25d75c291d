from unittest import mock

import pytest

from ciwatch.clients.dogstatsd import DogStatsDClient
from ciwatch.core.enums import AlertType, Priority, ServiceCheckStatus
from ciwatch.core.exceptions import ConfigurationError
from ciwatch.events.models import Event, ServiceCheck


@pytest.fixture
def sock(statsd_client):
    sock = mock.Mock()
    statsd_client._socket = sock
    return sock


def sent(sock):
    return [call.args[0].decode("utf-8") for call in sock.sendto.call_args_list]


class TestConfiguration:
    def test_missing_port(self):
        with pytest.raises(ConfigurationError, match="Datadog Target Port is not set properly"):
            DogStatsDClient("test", None)

    def test_non_positive_port(self):
        with pytest.raises(ConfigurationError, match="Target Port") as e:
            DogStatsDClient("test", 0)
        assert e.value.field == "target_port"

    @pytest.mark.parametrize("port", ["http", "", 8125.5j, object()])
    def test_malformed_port(self, port):
        with pytest.raises(ConfigurationError, match="Target Port") as e:
            DogStatsDClient("test", port)
        assert e.value.field == "target_port"

    def test_port_from_text(self):
        client = DogStatsDClient("localhost", "8125")
        assert client.port == 8125
        assert client.settings == ("localhost", 8125)

    def test_missing_host(self):
        with pytest.raises(ConfigurationError, match="Target URL"):
            DogStatsDClient("", 8125)

    def test_validations_disabled(self):
        client = DogStatsDClient("https", 8000, enable_validations=False)
        client.validate_configuration()

    def test_validate(self, statsd_client):
        assert statsd_client.validate()

    def test_validate__socket_error(self, statsd_client):
        with mock.patch("socket.socket", side_effect=OSError("no sockets left")):
            assert not statsd_client.validate()


class TestDatagrams:
    def test_submit_counter(self, statsd_client, sock):
        assert statsd_client.submit_counter(
            "jenkins.job.completed", "ci-01", {"tag2:value", "tag1:value"}, 4
        )
        assert sent(sock) == [
            "jenkins.job.completed:4|c|#host:ci-01,tag1:value,tag2:value"
        ]
        assert sock.sendto.call_args.args[1] == ("localhost", 8125)

    def test_submit_counter__no_tags(self, statsd_client, sock):
        statsd_client.submit_counter("jenkins.job.completed", "", (), 1)
        assert sent(sock) == ["jenkins.job.completed:1|c"]

    def test_flush_counters__one_datagram_per_key(self, statsd_client, sock):
        tags = {"tag1": {"value"}}
        statsd_client.increment_counter("metric1", "host1", tags)
        statsd_client.increment_counter("metric1", "host1", tags)
        statsd_client.increment_counter("metric2", "host1", tags)

        result = statsd_client.flush_counters()

        assert result.submitted == 2
        assert sorted(sent(sock)) == [
            "metric1:2|c|#host:host1,tag1:value",
            "metric2:1|c|#host:host1,tag1:value",
        ]

    def test_send_failure(self, statsd_client, sock, caplog):
        sock.sendto.side_effect = OSError("Network is unreachable")
        assert not statsd_client.submit_counter("metric1", "host1", (), 1)
        assert "Network is unreachable" in caplog.text

    def test_send_event(self, statsd_client, sock):
        event = Event(
            title="Build failed",
            text="deploy #12\nfailed",
            host="ci-01",
            aggregation_key="deploy",
            tags={"job": {"deploy"}},
            alert_type=AlertType.ERROR,
            priority=Priority.LOW,
            date=1600000000,
        )
        assert statsd_client.send_event(event)
        assert sent(sock) == [
            "_e{12,18}:Build failed|deploy #12\\nfailed|d:1600000000|h:ci-01"
            "|k:deploy|p:low|t:error|#job:deploy"
        ]

    def test_send_event__non_ascii(self, statsd_client, sock):
        event = Event(title="Jörg deployed", text="ok ✓", date=1600000000)
        assert statsd_client.send_event(event)
        assert sent(sock)[0].startswith("_e{14,6}:Jörg deployed|ok ✓|")

    def test_send_service_check(self, statsd_client, sock):
        check = ServiceCheck(
            name="jenkins.job.status",
            status=ServiceCheckStatus.WARNING,
            hostname="ci-01",
            tags={"job": {"deploy"}},
            message="slow",
            timestamp=1600000000,
        )
        assert statsd_client.send_service_check(check)
        assert sent(sock) == [
            "_sc|jenkins.job.status|1|d:1600000000|h:ci-01|#job:deploy|m:slow"
        ]

    def test_send_logs_is_unsupported(self, statsd_client, sock, caplog):
        assert not statsd_client.send_logs('{"message": "hello"}')
        sock.sendto.assert_not_called()
        assert "Logs cannot be sent through DogStatsD" in caplog.text

    def test_close(self, statsd_client, sock):
        statsd_client.close()
        sock.close.assert_called_once()
        assert statsd_client._socket is None

    def test_send_after_close(self, statsd_client):
        with mock.patch("socket.socket") as socket_class:
            statsd_client.submit_counter("metric1", "host1", (), 1)
            statsd_client.close()

            assert not statsd_client.submit_counter("metric1", "host1", (), 1)
            assert not statsd_client.validate()

        socket_class.assert_called_once()
        socket_class.return_value.close.assert_called_once_with()
        assert socket_class.return_value.sendto.call_count == 1
        assert statsd_client._socket is None
