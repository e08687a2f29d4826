"""FastMCP server exposing feed discovery as a tool.

Available tools:
* ``search_feeds(url: str) -> str`` – discovers the RSS/Atom feeds of *url* and
  returns the same JSON document as ``POST /api/search-feeds``.
"""

import json
import logging

from fastmcp import FastMCP

from feedfinder.feed_utils import render, search_feeds as run_search
from feedfinder.main.config import LOG_LEVEL

mcp = FastMCP("FeedFinder")


@mcp.tool
async def search_feeds(url: str) -> str:
    """Find RSS/Atom feeds published by the site at *url*.

    Runs the shared search workflow (SSRF guard included) and returns the JSON
    payload as a string; failures carry a generic ``error`` and an ``errorId``.
    """
    _, payload = render(await run_search(url))
    return json.dumps(payload)


def main() -> None:
    """Entry point – start the FastMCP server on stdio transport."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
