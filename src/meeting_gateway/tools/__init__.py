"""Meeting tools exposed over MCP -- definitions and handlers."""
