#!/usr/bin/env python3
"""
Smoke test for the Up Banking MCP server running in SSE mode.

Start the server first:
    up-banking-mcp --transport sse

Supports Bearer token authentication via:
  - --token <token> argument
  - MCP_AUTH_TOKEN environment variable
"""
import asyncio
import json
import os
import sys

import dotenv
from mcp import ClientSession
from mcp.client.sse import sse_client

dotenv.load_dotenv()

SERVER_URL = os.environ.get("UP_MCP_SERVER_URL", "http://localhost:8000/sse")

AUTH_TOKEN = os.environ.get("MCP_AUTH_TOKEN")

# Read-only calls only; nothing here changes categories or tags.
TOUR_TOOLS = [
    ("ping", {}),
    ("list_accounts", {}),
    ("list_transactions", {"pageSize": 5}),
    ("list_categories", {}),
    ("list_tags", {"pageSize": 10}),
]
TOUR_RESOURCES = ["up://accounts", "up://transactions/recent"]


def get_headers():
    """Get HTTP headers including auth if configured."""
    if AUTH_TOKEN:
        return {"Authorization": f"Bearer {AUTH_TOKEN}"}
    return {}


def print_result(result, limit: int = 2000):
    if result.isError:
        print("❌ Tool returned an error:")
    if not result.content:
        print("No content returned.")
        return
    text = result.content[0].text
    if len(text) > limit:
        print(f"\n{text[:limit]}...\n\n[Truncated - {len(text)} total chars]")
    else:
        print(f"\n{text}")


async def list_tools():
    """List all available tools and resources from the server."""
    print(f"Connecting to {SERVER_URL}...")

    async with sse_client(SERVER_URL, headers=get_headers()) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            print("\n" + "=" * 60)
            print("Available Tools")
            print("=" * 60)

            tools_result = await session.list_tools()
            for tool in tools_result.tools:
                print(f"\n📌 {tool.name}")
                print(f"   {tool.description.splitlines()[0]}")
                properties = (tool.inputSchema or {}).get("properties", {})
                required = set((tool.inputSchema or {}).get("required", []))
                if properties:
                    print("   Arguments:")
                    for prop_name in properties:
                        marker = " (required)" if prop_name in required else ""
                        print(f"     - {prop_name}{marker}")

            resources_result = await session.list_resources()
            templates_result = await session.list_resource_templates()
            print("\nResources:")
            for resource in resources_result.resources:
                print(f"   {resource.uri}  {resource.name}")
            for template in templates_result.resourceTemplates:
                print(f"   {template.uriTemplate}  {template.name}")

            print(f"\n✅ Total: {len(tools_result.tools)} tools available")


async def call_tool(tool_name: str, arguments: dict = None):
    """Call a specific tool and display the result."""
    print(f"\nConnecting to {SERVER_URL}...")

    async with sse_client(SERVER_URL, headers=get_headers()) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            print(f"\n🔧 Calling: {tool_name}")
            if arguments:
                print(f"   Arguments: {arguments}")

            result = await session.call_tool(tool_name, arguments=arguments or {})
            print_result(result)


async def run_tour():
    """Run every read-only tool and resource once."""
    print("=" * 60)
    print("Up Banking MCP Server - Smoke Test")
    print("=" * 60)

    failures = 0
    async with sse_client(SERVER_URL, headers=get_headers()) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            for tool_name, arguments in TOUR_TOOLS:
                print("\n" + "-" * 40)
                print(f"Testing: {tool_name} {arguments or ''}")
                print("-" * 40)
                result = await session.call_tool(tool_name, arguments=arguments)
                failures += int(bool(result.isError))
                print_result(result, limit=500)

            for uri in TOUR_RESOURCES:
                print("\n" + "-" * 40)
                print(f"Reading: {uri}")
                print("-" * 40)
                try:
                    contents = await session.read_resource(uri)
                    data = json.loads(contents.contents[0].text)
                    print(f"{len(data.get('data', []))} item(s)")
                except Exception as e:
                    failures += 1
                    print(f"❌ Error: {e}")

    print("\n" + "=" * 60)
    print("Smoke Test Complete!" if not failures else f"Smoke Test Finished with {failures} failure(s)")
    print("=" * 60)
    return failures


def parse_value(value: str):
    """Parse key=value argument values as JSON when possible (numbers, lists, null)."""
    try:
        return json.loads(value)
    except ValueError:
        return value


def print_usage():
    print("Usage:")
    print("  python smoke_mcp_server.py [--token TOKEN] list               - List tools and resources")
    print("  python smoke_mcp_server.py [--token TOKEN] call <tool> [k=v]  - Call a specific tool")
    print("  python smoke_mcp_server.py [--token TOKEN] tour               - Run all read-only tools")
    print("")
    print("Examples:")
    print("  python smoke_mcp_server.py call list_transactions pageSize=5")
    print('  python smoke_mcp_server.py call add_transaction_tags transactionId=abc \'tags=["holiday"]\'')


if __name__ == "__main__":
    args = sys.argv[1:]
    if "--token" in args:
        idx = args.index("--token")
        if idx + 1 < len(args):
            AUTH_TOKEN = args[idx + 1]
            args = args[:idx] + args[idx + 2:]
        else:
            print("Error: --token requires a value")
            sys.exit(1)

    if not args or args[0] == "list":
        asyncio.run(list_tools())
    elif args[0] == "call" and len(args) > 1:
        tool_args = {}
        for arg in args[2:]:
            if "=" in arg:
                k, v = arg.split("=", 1)
                tool_args[k] = parse_value(v)
        asyncio.run(call_tool(args[1], tool_args))
    elif args[0] == "tour":
        sys.exit(1 if asyncio.run(run_tour()) else 0)
    else:
        print_usage()
