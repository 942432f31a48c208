"""Signal MCP - read-only access to Signal Desktop's encrypted database.

Provides configuration, errors and the setup check shared by the
integrations and the MCP server.
"""

__version__ = "0.1.0"
