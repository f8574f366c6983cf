"""Google Tag Manager administration exposed as MCP tools."""

SERVER_NAME = "google-tag-manager-mcp-server"
SERVER_VERSION = "0.4.0"
