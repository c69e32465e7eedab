"""HTTP server configuration: parsing, location matching, URI helpers and logging."""

__version__ = "0.1.0"