"""Cross-cutting gateway infrastructure -- HTTP transport, errors, retry, logging."""
