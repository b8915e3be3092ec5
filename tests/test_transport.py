from unittest.mock import MagicMock

import pytest
import requests

from braque.config import ProxyConfig
from braque.errors import TransportError
from braque.request.builder import RequestSpec
from braque.transport import RequestsTransport, proxy_mapping


def _session(status=200, text="{}", headers=None):
    response = MagicMock()
    response.status_code = status
    response.text = text
    response.headers = headers or {}
    session = MagicMock()
    session.request.return_value = response
    return session


class TestRequestsTransport:
    def test_sends_body_and_lowercases_headers(self):
        session = _session(headers={"X-RateLimit-Limit": "60", "Content-Type": "application/json"})
        transport = RequestsTransport(session=session)
        spec = RequestSpec(method="POST", url="https://h/x", headers={"host": "h"}, body='{"a":1}')

        response = transport.send(spec, timeout=3)

        session.request.assert_called_once_with(
            "POST", "https://h/x", headers={"host": "h"}, data='{"a":1}', files=None, timeout=3, proxies=None,
        )
        assert response.status == 200
        assert response.headers == {"x-ratelimit-limit": "60", "content-type": "application/json"}
        assert response.body == "{}"

    def test_no_body(self):
        session = _session()
        RequestsTransport(session=session).send(RequestSpec(method="GET", url="https://h/x"))
        assert session.request.call_args[1]["data"] is None

    def test_opens_files_for_multipart(self, tmp_path):
        upload = tmp_path / "source.tgz"
        upload.write_bytes(b"payload")
        seen = {}

        def request(method, url, **kwargs):
            handle = kwargs["files"]["source"]
            seen["content"] = handle.read()
            seen["data"] = kwargs["data"]
            return _session().request.return_value

        session = MagicMock()
        session.request.side_effect = request
        spec = RequestSpec(method="POST", url="https://h/b", data={"version": "1"}, files={"source": str(upload)})

        RequestsTransport(session=session).send(spec)

        assert seen == {"content": b"payload", "data": {"version": "1"}}

    def test_file_objects_pass_through(self):
        session = _session()
        handle = MagicMock()
        spec = RequestSpec(method="POST", url="https://h/b", files={"source": handle})

        RequestsTransport(session=session).send(spec)

        assert session.request.call_args[1]["files"] == {"source": handle}

    def test_unreadable_file(self, tmp_path):
        spec = RequestSpec(method="POST", url="https://h/b", files={"source": str(tmp_path / "missing")})
        with pytest.raises(TransportError, match="Cannot open file"):
            RequestsTransport(session=_session()).send(spec)

    def test_connection_error_becomes_transport_error(self):
        session = MagicMock()
        original = requests.ConnectionError("refused")
        session.request.side_effect = original

        with pytest.raises(TransportError) as exc:
            RequestsTransport(session=session).send(RequestSpec(method="GET", url="https://h/x"))

        assert exc.value.original_error is original

    def test_proxies_forwarded(self):
        session = _session()
        proxies = proxy_mapping(ProxyConfig(host="proxy.local", port=8888))
        RequestsTransport(session=session, proxies=proxies).send(RequestSpec(method="GET", url="https://h/x"))
        assert session.request.call_args[1]["proxies"] == {
            "http": "http://proxy.local:8888",
            "https": "http://proxy.local:8888",
        }


class TestProxyMapping:
    def test_none(self):
        assert proxy_mapping(None) is None

    def test_default_port(self):
        assert proxy_mapping(ProxyConfig(host="p"))["https"] == "http://p:3128"
