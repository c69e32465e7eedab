# webserv

The configuration core of a small HTTP/1.1 server, in plain Python with no
third-party dependencies:

- an nginx-style configuration language (`server` and `location` blocks,
  `listen`, `server_name`, `root`, `alias`, `index`, `error_page`,
  `client_max_body_size`, `allow_methods`, `autoindex`, `upload_path`,
  `cgi_extension`, `return`), with strict validation;
- longest-prefix matching of request URIs to `location` blocks;
- helpers for request targets: query strings, file extensions and the
  first part of a multipart body;
- a small levelled, coloured logger.

## Configuration

```
server {
    listen 127.0.0.1:8080;
    server_name example.com;
    root ./www/main;
    index index.html;
    error_page 404 /errors/404.html;
    client_max_body_size 2M;

    location /cgi-bin {
        root ./www/main/cgi-bin;
        allow_methods GET POST;
        cgi_extension .py /usr/bin/python3;
    }
}
```

Each directive ends with `;`, one directive per line, and `#` starts a
comment. Locations cannot be nested, a location may have a `root` or an
`alias` but not both, and `allow_methods` accepts `GET`, `POST` and
`DELETE`. `client_max_body_size` takes an optional `k`, `m` or `g` unit
and defaults to 10485760 bytes. Text with no `server` block gives the
default configuration: one server listening on `0.0.0.0:1234`, serving
`./www/main` with `index.html`.

## Using the library

```python
from webserv.config import load_config, parse_config, format_config
from webserv.directives import ConfigError

config = load_config("site.conf")
print(format_config(config))

server = config.server(0)
location = server.matching_location("/cgi-bin/hello.py")
print(location.cgi_path(".py"))

try:
    parse_config("server {\n    listen 99999;\n}\n")
except ConfigError as error:
    print(error)  # Invalid port number in listen directive.
```

`webserv.config` also offers `default_config`, `is_server_key` and
`is_known_key`. The blocks themselves are the dataclasses
`webserv.models.ServerBlock`, `webserv.models.Location` and
`webserv.models.Listen`; `webserv.models.paths_match` tells whether a path
lies under a location path.

Single directive values can be checked with `webserv.directives.parse_listen`,
`webserv.directives.parse_body_size`, `webserv.directives.is_valid_ipv4` and
`webserv.directives.parse_int`; `ServerBuilder` and `LocationBuilder` apply
directive arguments one by one and raise `ConfigError` on bad input.

For request targets, `webserv.uri.split_query` returns the path, raw query
string and parameters of a URI, `webserv.uri.uri_extension` its extension,
and `webserv.uri.extract_multipart_content` the content of the first part
of a multipart body (`str` or `bytes`).

## Logging

`webserv.logmanager.logger` is a shared `Logger`. It writes nothing until
`enabled` is set; `DEBUG` records also need `debug`, and with `to_file` set
each record is appended to `file_name` (default `log.txt`). `log` returns
the uncoloured line, or `None` when the record is suppressed.

## What this package does not do

It does not open sockets, serve connections, parse HTTP requests, run CGI
scripts or provide a command to start a server. It reads and checks
configurations and offers the helpers above for a server built on them.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.