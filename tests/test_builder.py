import json
from datetime import datetime
from pathlib import Path

import pytest

from braque.auth.context import BasicAuth, OAuth2Auth
from braque.config import ClientConfig
from braque.errors import ConfigurationError
from braque.request.builder import (
    build_page_request,
    build_request,
    request_format,
    resolve_target,
    split_params,
    substitute_url,
)
from braque.routes.loader import load_routes, parse_routes
from braque.validation import INVALID_DATE

FIXTURES = Path(__file__).parent / "fixtures"
CONFIG = ClientConfig()


def _github():
    return load_routes(FIXTURES / "github-routes.json")


def _endpoint(routes, *path):
    node = routes.sections[path[0]]
    for part in path[1:]:
        node = node.children[part]
    return node


class TestUrlTemplate:
    def test_repo_template(self):
        routes = _github()
        spec = build_request({"user": "d1b1", "repo": "x"}, _endpoint(routes, "repos", "get"), None, routes.defines, CONFIG)
        assert spec.url == "https://api.github.com/repos/d1b1/x"
        assert spec.method == "GET"
        assert spec.body is None

    def test_values_are_percent_encoded(self):
        assert substitute_url("/users/:user", "user", "a b/c") == "/users/a%20b%2Fc"

    def test_longer_token_left_alone(self):
        assert substitute_url("/:id/:id2", "id", 7) == "/7/:id2"

    def test_url_params_removed_from_fields(self):
        routes = _github()
        endpoint = _endpoint(routes, "issues", "comments", "delete")
        url, fields, files = split_params({"user": "u", "repo": "r", "id": 3}, endpoint, routes.defines, "query")
        assert url == "/repos/u/r/issues/comments/3"
        assert fields == {}
        assert files == {}


class TestQueryString:
    def test_get_remaining_params_in_query(self):
        routes = _github()
        spec = build_request(
            {"user": "d1b1", "type": "owner", "page": 2},
            _endpoint(routes, "repos", "get-from-user"),
            None,
            routes.defines,
            CONFIG,
        )
        assert spec.url == "https://api.github.com/users/d1b1/repos?type=owner&page=2"
        assert spec.headers["content-length"] == "0"

    def test_undeclared_params_are_dropped(self):
        routes = _github()
        spec = build_request({"user": "u", "repo": "r", "extra": "1"}, _endpoint(routes, "repos", "get"), None, routes.defines, CONFIG)
        assert "extra" not in spec.url

    def test_object_values_are_json_stringified(self):
        routes = parse_routes({
            "defines": {"constants": {"host": "h"}},
            "search": {"find": {"url": "/search", "method": "GET", "params": {"q": {"type": "json"}, "on": {}}}},
        })
        spec = build_request(
            {"q": {"a": 1}, "on": True},
            routes.sections["search"].children["find"],
            None,
            routes.defines,
            CONFIG,
        )
        assert spec.url == "http://h/search?q=%7B%22a%22%3A1%7D&on=true"


class TestBody:
    def test_json_body(self):
        routes = _github()
        spec = build_request(
            {"name": "braque", "private": False, "config": {"a": [1]}},
            _endpoint(routes, "repos", "create"),
            None,
            routes.defines,
            CONFIG,
        )
        assert spec.method == "POST"
        assert spec.url == "https://api.github.com/user/repos"
        assert json.loads(spec.body) == {"name": "braque", "private": False, "config": {"a": [1]}}
        assert spec.headers["content-type"] == "application/json"
        assert spec.headers["content-length"] == str(len(spec.body))

    def test_form_body(self):
        routes = load_routes(FIXTURES / "heroku-routes.yaml")
        spec = build_request(
            {"app": "my app", "name": "renamed"},
            _endpoint(routes, "apps", "update"),
            None,
            routes.defines,
            CONFIG,
        )
        assert spec.url == "https://api.heroku.com/apps/my%20app"
        assert spec.body == "name=renamed"
        assert spec.headers["content-type"] == "application/x-www-form-urlencoded"

    def test_body_param_replaces_payload(self):
        routes = parse_routes({
            "defines": {"constants": {"host": "h", "requestFormat": "json"}},
            "apps": {"patch": {"url": "/apps/:app", "method": "PATCH", "params": {"app": {}, "body": {"type": "json"}}}},
        })
        spec = build_request(
            {"app": "a", "body": {"maintenance": True}},
            routes.sections["apps"].children["patch"],
            None,
            routes.defines,
            CONFIG,
        )
        assert json.loads(spec.body) == {"maintenance": True}

    def test_dates_serialize_as_iso(self):
        routes = parse_routes({
            "defines": {"constants": {"host": "h", "requestFormat": "json"}},
            "events": {"create": {"url": "/events", "method": "POST", "params": {"at": {"type": "date"}, "until": {}}}},
        })
        spec = build_request(
            {"at": datetime(2013, 5, 1, 10, 0), "until": INVALID_DATE},
            routes.sections["events"].children["create"],
            None,
            routes.defines,
            CONFIG,
        )
        assert json.loads(spec.body) == {"at": "2013-05-01T10:00:00", "until": "Invalid Date"}

    def test_endpoint_format_overrides_constants(self):
        routes = parse_routes({
            "defines": {"constants": {"host": "h", "requestFormat": "json"}},
            "forms": {"send": {"url": "/f", "method": "POST", "requestFormat": "query", "params": {"a": {}}}},
        })
        endpoint = routes.sections["forms"].children["send"]
        assert request_format(endpoint, routes.defines) == "query"


class TestFiles:
    def test_file_params_become_multipart(self):
        routes = load_routes(FIXTURES / "heroku-routes.yaml")
        spec = build_request(
            {"app": "a", "source": "/tmp/source.tgz", "version": "v1"},
            _endpoint(routes, "builds", "upload"),
            None,
            routes.defines,
            CONFIG,
        )
        assert spec.files == {"source": "/tmp/source.tgz"}
        assert spec.data == {"version": "v1"}
        assert spec.body is None
        assert "content-length" not in spec.headers
        assert "content-type" not in spec.headers

    def test_mapping_value_gives_one_field_per_entry(self):
        routes = load_routes(FIXTURES / "heroku-routes.yaml")
        spec = build_request(
            {"app": "a", "source": {"slug": "/tmp/a", "meta": "/tmp/b"}},
            _endpoint(routes, "builds", "upload"),
            None,
            routes.defines,
            CONFIG,
        )
        assert spec.files == {"slug": "/tmp/a", "meta": "/tmp/b"}


class TestTarget:
    def test_config_overrides_constants(self):
        routes = _github()
        config = ClientConfig(protocol="http", host="localhost", port=3000, url="/api")
        spec = build_request({"user": "u", "repo": "r"}, _endpoint(routes, "repos", "get"), None, routes.defines, config)
        assert spec.url == "http://localhost:3000/api/repos/u/r"
        assert spec.headers["host"] == "localhost"

    def test_missing_host(self):
        routes = parse_routes({"users": {"get": {"url": "/u", "params": {}}}})
        with pytest.raises(ConfigurationError, match="No host"):
            resolve_target(ClientConfig(), routes.defines)

    def test_default_port_by_protocol(self):
        routes = parse_routes({"defines": {"constants": {"host": "h", "protocol": "https"}}})
        assert resolve_target(ClientConfig(), routes.defines) == ("https", "h", 443)


class TestAuthAndHook:
    def test_auth_header(self):
        routes = _github()
        spec = build_request(
            {"user": "u", "repo": "r"},
            _endpoint(routes, "repos", "get"),
            BasicAuth(username="u", password="p"),
            routes.defines,
            CONFIG,
        )
        assert spec.headers["authorization"].startswith("Basic ")

    def test_token_query_param(self):
        routes = _github()
        spec = build_request(
            {"user": "u", "type": "all"},
            _endpoint(routes, "repos", "get-from-user"),
            OAuth2Auth(token="t"),
            routes.defines,
            CONFIG,
        )
        assert spec.url.endswith("/users/u/repos?type=all&access_token=t")

    def test_header_hook_runs_last(self):
        seen = {}

        def pin_version(headers):
            seen.update(headers)
            headers["accept"] = "application/vnd.github.v3+json"

        routes = _github()
        config = ClientConfig(on_headers=pin_version)
        spec = build_request(
            {"user": "u", "repo": "r"},
            _endpoint(routes, "repos", "get"),
            BasicAuth(username="u", password="p"),
            routes.defines,
            config,
        )
        assert "authorization" in seen
        assert spec.headers["accept"] == "application/vnd.github.v3+json"

    def test_page_request(self):
        spec = build_page_request("https://api.github.com/user/repos?page=2", OAuth2Auth(token="t"), CONFIG)
        assert spec.method == "GET"
        assert spec.url == "https://api.github.com/user/repos?page=2&access_token=t"
        assert spec.headers["host"] == "api.github.com"
