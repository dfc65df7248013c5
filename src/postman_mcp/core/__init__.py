"""Function catalog, dispatcher, Postman API client, and shared models.

Nothing in here imports the MCP SDK; ``postman_mcp.server`` exposes the
dispatcher over MCP tools and HTTP routes.
"""
