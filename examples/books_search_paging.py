#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio

from laakhay.rest import REQUIRED, CallDescriptor, HttpMethod, RestClient, offset_advance

VOLUMES_LIST = CallDescriptor(
    id="books.volumes.list",
    method=HttpMethod.GET,
    url_template="https://www.googleapis.com/books/v1/volumes",
    query_params={"q": REQUIRED, "startIndex": 0, "maxResults": 10},
    api_family="books",
)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Page through Google Books search results")
    p.add_argument("query", nargs="?", default="python programming")
    p.add_argument("pages", nargs="?", type=int, default=3)
    p.add_argument("--page-size", type=int, default=10)
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    async with RestClient(cache=True) as client:
        stream = client.page(
            VOLUMES_LIST,
            advance=offset_advance(args.page_size, start=0, total_field="totalItems"),
            param="startIndex",
            q=args.query,
            maxResults=args.page_size,
        )
        pages = await stream.collect(max_pages=args.pages)

    print(f"Results for {args.query!r}: {len(pages)} page(s)")
    print(f"{'#':>4} | {'Title':60} | {'Published':10}")
    print("-" * 80)
    n = 0
    for page in pages:
        for volume in page.get("items", []):
            n += 1
            info = volume.get("volumeInfo", {})
            print(f"{n:>4} | {info.get('title', '')[:60]:60} | {info.get('publishedDate', ''):10}")


if __name__ == "__main__":
    asyncio.run(main())
