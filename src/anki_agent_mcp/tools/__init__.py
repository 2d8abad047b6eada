"""MCP tools exposed to the assistant."""
