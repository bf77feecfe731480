from fcgigate import SERVER_SOFTWARE
from fcgigate.gateway.core.cgi_params import build_cgi_params, header_param_name
from fcgigate.gateway.models.request import RequestDescriptor


def _request(**overrides) -> RequestDescriptor:
    values = {
        "method": "GET",
        "path": "/blog/post",
        "request_uri": "/blog/post?id=7&q=a%20b",
        "query_string": "id=7&q=a%20b",
        "headers": [("host", "example.com:8080"), ("user-agent", "pytest")],
        "protocol": "HTTP/1.1",
        "remote_addr": "10.1.2.3",
        "remote_port": "51000",
        "host": "example.com",
    }
    values.update(overrides)
    return RequestDescriptor(**values)


def test_fixed_parameters():
    params = build_cgi_params(
        _request(), "/srv/www/index.php", "/srv/www", server_port="8080"
    )

    assert params["SCRIPT_FILENAME"] == "/srv/www/index.php"
    assert params["SCRIPT_NAME"] == "/blog/post"
    assert params["REQUEST_METHOD"] == "GET"
    assert params["QUERY_STRING"] == "id=7&q=a%20b"
    assert params["CONTENT_TYPE"] == ""
    assert params["CONTENT_LENGTH"] == ""
    assert params["DOCUMENT_ROOT"] == "/srv/www"
    assert params["SERVER_PROTOCOL"] == "HTTP/1.1"
    assert params["REMOTE_ADDR"] == "10.1.2.3"
    assert params["REMOTE_PORT"] == "51000"
    assert params["REQUEST_URI"] == "/blog/post?id=7&q=a%20b"
    assert params["GATEWAY_INTERFACE"] == "CGI/1.1"
    assert params["SERVER_SOFTWARE"] == SERVER_SOFTWARE
    assert params["SERVER_NAME"] == "example.com"
    assert params["SERVER_PORT"] == "8080"


def test_one_parameter_per_header():
    params = build_cgi_params(
        _request(headers=[("X-Custom", "value1"), ("Accept-Language", "uk")]), "/s.php", "/"
    )

    assert params["HTTP_X_CUSTOM"] == "value1"
    assert params["HTTP_ACCEPT_LANGUAGE"] == "uk"
    header_keys = sorted(key for key in params if key.startswith("HTTP_"))
    assert header_keys == ["HTTP_ACCEPT_LANGUAGE", "HTTP_X_CUSTOM"]


def test_repeated_header_keeps_first_value_only():
    request = _request(
        headers=[("X-Forwarded-For", "1.1.1.1"), ("x-forwarded-for", "2.2.2.2")]
    )

    params = build_cgi_params(request, "/s.php", "/")

    assert params["HTTP_X_FORWARDED_FOR"] == "1.1.1.1"


def test_content_headers():
    request = _request(
        method="POST",
        headers=[("content-type", "application/json"), ("content-length", "13")],
        body=b'{"a": "bcde"}',
    )

    params = build_cgi_params(request, "/s.php", "/")

    assert params["CONTENT_TYPE"] == "application/json"
    assert params["CONTENT_LENGTH"] == "13"
    assert params["HTTP_CONTENT_TYPE"] == "application/json"


def test_content_length_falls_back_to_body_size():
    request = _request(method="POST", headers=[("transfer-encoding", "chunked")], body=b"abc")

    params = build_cgi_params(request, "/s.php", "/")

    assert params["CONTENT_LENGTH"] == "3"


def test_header_param_name():
    assert header_param_name("x-custom-header") == "HTTP_X_CUSTOM_HEADER"
    assert header_param_name("Cookie") == "HTTP_COOKIE"


def test_parameter_sets_are_independent():
    first = build_cgi_params(_request(headers=[("X-A", "1")]), "/a.php", "/")
    second = build_cgi_params(_request(headers=[("X-B", "2")]), "/b.php", "/")

    assert "HTTP_X_B" not in first
    assert "HTTP_X_A" not in second
