import asyncio
import os

from fastmcp import Client
from fastmcp.client.auth import BearerAuth


async def main():
    auth = BearerAuth(os.environ["API_KEY"])
    async with Client("http://localhost:8000/mcp", auth=auth) as client:
        print(await client.call_tool("list_workout_types", {}))
        print(await client.call_tool("list_sessions", {}))

asyncio.run(main())
