import pytest

from webserv.directives import (
    ConfigError,
    LocationBuilder,
    ServerBuilder,
    is_valid_ipv4,
    parse_body_size,
    parse_int,
    parse_listen,
)
from webserv.models import DEFAULT_CLIENT_MAX_BODY_SIZE, Listen, Location


def test_parse_int_accepts_decimal():
    assert parse_int("8080") == 8080


@pytest.mark.parametrize("text", ["", "abc", "12a", "1.5", "99999999999"])
def test_parse_int_rejects(text):
    with pytest.raises(ValueError):
        parse_int(text)


@pytest.mark.parametrize("ip", ["127.0.0.1", "0.0.0.0", "255.255.255.255"])
def test_valid_ipv4(ip):
    assert is_valid_ipv4(ip) is True


@pytest.mark.parametrize(
    "ip", ["", "256.0.0.1", "1.2.3", "1.2.3.4.", "1..2.3", "1.2.3.4.5", "a.b.c.d", "0001.2.3.4"]
)
def test_invalid_ipv4(ip):
    assert is_valid_ipv4(ip) is False


def test_parse_listen_port_only_uses_any_address():
    assert parse_listen("8080") == Listen("0.0.0.0", 8080)


def test_parse_listen_ip_and_port():
    assert parse_listen("127.0.0.1:80") == Listen("127.0.0.1", 80)


@pytest.mark.parametrize("arg", ["0", "65536", "abc", "300.1.1.1:80", "127.0.0.1:", "localhost:80"])
def test_parse_listen_rejects(arg):
    with pytest.raises(ConfigError):
        parse_listen(arg)


def test_parse_body_size_plain_and_units():
    assert parse_body_size("10") == 10
    assert parse_body_size("1k") == 1024
    assert parse_body_size("1K") == parse_body_size("1k")
    assert parse_body_size("2m") == 2 * parse_body_size("1m")
    assert parse_body_size("1g") == parse_body_size("1024m")
    assert parse_body_size("1m") == parse_body_size("1024k")


@pytest.mark.parametrize("arg", ["0", "10x", "10kb", "k", "", "99999999999999999999", "9999999999999999g"])
def test_parse_body_size_rejects(arg):
    with pytest.raises(ConfigError):
        parse_body_size(arg)


def test_server_listen_and_duplicate_port():
    builder = ServerBuilder()
    builder.add_argument("listen", "8080", 1)
    assert builder.finish().listens == [Listen("0.0.0.0", 8080)]
    with pytest.raises(ConfigError, match="duplicate listen"):
        builder.add_argument("listen", "127.0.0.1:8080", 1)


def test_server_root_rules():
    builder = ServerBuilder()
    builder.add_argument("root", "./www", 1)
    assert builder.finish().root == "./www"
    with pytest.raises(ConfigError):
        builder.add_argument("root", "./other", 1)
    with pytest.raises(ConfigError):
        ServerBuilder().add_argument("root", "./www", 2)


def test_server_names_and_index_accumulate():
    builder = ServerBuilder()
    builder.add_argument("server_name", "one", 1)
    builder.add_argument("server_name", "two", 2)
    builder.add_argument("index", "index.html", 1)
    block = builder.finish()
    assert block.server_names == ["one", "two"]
    assert block.index == ["index.html"]


def test_server_error_page_flow():
    builder = ServerBuilder()
    builder.add_argument("error_page", "404", 1)
    builder.add_argument("error_page", "/404.html", 2)
    assert builder.finish().error_pages == {404: "/404.html"}


def test_server_error_page_errors():
    with pytest.raises(ConfigError):
        ServerBuilder().add_argument("error_page", "200", 1)
    with pytest.raises(ConfigError):
        ServerBuilder().add_argument("error_page", "/x.html", 2)
    with pytest.raises(ConfigError):
        ServerBuilder().add_argument("error_page", "x", 3)
    pending = ServerBuilder()
    pending.add_argument("error_page", "500", 1)
    with pytest.raises(ConfigError, match="without arg"):
        pending.finish()
    with pytest.raises(ConfigError, match="without arg"):
        pending.add_argument("error_page", "502", 1)


def test_server_body_size_and_default():
    assert ServerBuilder().finish().client_max_body_size == DEFAULT_CLIENT_MAX_BODY_SIZE
    builder = ServerBuilder()
    builder.add_argument("client_max_body_size", "1k", 1)
    assert builder.finish().client_max_body_size == parse_body_size("1k")
    with pytest.raises(ConfigError):
        builder.add_argument("client_max_body_size", "1k", 2)


def test_server_return_directive():
    builder = ServerBuilder()
    builder.add_argument("return", "301", 1)
    builder.add_argument("return", "/new", 2)
    assert builder.finish().return_directives == {301: "/new"}
    with pytest.raises(ConfigError):
        ServerBuilder().add_argument("return", "1000", 1)


def test_server_unknown_key():
    with pytest.raises(ConfigError, match="bad key autoindex"):
        ServerBuilder().add_argument("autoindex", "on", 1)


def test_server_add_location_sets_path_and_rejects_duplicate():
    builder = ServerBuilder()
    builder.add_location("/images", Location(root="./img"))
    stored = builder.finish().locations["/images"]
    assert stored.path == "/images"
    assert stored.root == "./img"
    with pytest.raises(ConfigError, match="already exists"):
        builder.add_location("/images", Location())


def test_location_root_alias_exclusive():
    builder = LocationBuilder()
    builder.add_argument("root", "./www", 1)
    with pytest.raises(ConfigError):
        builder.add_argument("alias", "./other", 1)
    other = LocationBuilder()
    other.add_argument("alias", "./other", 1)
    assert other.finish().alias == "./other"
    with pytest.raises(ConfigError):
        other.add_argument("root", "./www", 1)
    with pytest.raises(ConfigError):
        other.add_argument("alias", "./again", 1)


def test_location_allow_methods():
    builder = LocationBuilder()
    builder.add_argument("allow_methods", "GET", 1)
    builder.add_argument("allow_methods", "DELETE", 2)
    assert builder.finish().allow_methods == {"GET", "DELETE"}
    with pytest.raises(ConfigError, match="already define"):
        builder.add_argument("allow_methods", "GET", 3)
    with pytest.raises(ConfigError):
        builder.add_argument("allow_methods", "PUT", 3)


def test_location_autoindex_and_upload_path():
    builder = LocationBuilder()
    builder.add_argument("autoindex", "on", 1)
    builder.add_argument("upload_path", "./up", 1)
    builder.add_argument("index", "a.html", 1)
    location = builder.finish()
    assert location.autoindex is True
    assert location.upload_path == "./up"
    assert location.index == ["a.html"]
    builder.add_argument("autoindex", "off", 1)
    assert builder.finish().autoindex is False
    with pytest.raises(ConfigError):
        builder.add_argument("autoindex", "maybe", 1)
    with pytest.raises(ConfigError):
        builder.add_argument("autoindex", "on", 2)


def test_location_cgi_extension_flow():
    builder = LocationBuilder()
    builder.add_argument("cgi_extension", ".py", 1)
    builder.add_argument("cgi_extension", "/usr/bin/python3", 2)
    assert builder.finish().cgi_path(".py") == "/usr/bin/python3"


@pytest.mark.parametrize("ext", [".", "py", ".python", ".p.y"])
def test_location_cgi_extension_bad_format(ext):
    with pytest.raises(ConfigError, match="bad format"):
        LocationBuilder().add_argument("cgi_extension", ext, 1)


def test_location_cgi_extension_pending_and_errors():
    pending = LocationBuilder()
    pending.add_argument("cgi_extension", ".php", 1)
    with pytest.raises(ConfigError, match="without arg"):
        pending.finish()
    with pytest.raises(ConfigError):
        LocationBuilder().add_argument("cgi_extension", "/bin/x", 2)
    with pytest.raises(ConfigError):
        LocationBuilder().add_argument("cgi_extension", "x", 3)


def test_location_return_directive():
    builder = LocationBuilder()
    builder.add_argument("return", "302", 1)
    builder.add_argument("return", "/there", 2)
    assert builder.finish().return_directives == {302: "/there"}
    with pytest.raises(ConfigError):
        LocationBuilder().add_argument("return", "0", 1)


def test_location_unknown_key():
    with pytest.raises(ConfigError, match="bad key listen"):
        LocationBuilder().add_argument("listen", "80", 1)