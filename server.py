import os

from lift_tracker.logging_config import configure_logging
from lift_tracker.mcp_server import mcp

TRANSPORT = os.getenv("MCP_TRANSPORT", "streamable-http")

if __name__ == "__main__":
    configure_logging()
    mcp.run(transport=TRANSPORT)
