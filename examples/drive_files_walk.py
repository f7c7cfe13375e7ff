#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import os

from laakhay.rest import BearerToken, CallDescriptor, DiskStore, HttpMethod, RestClient

FILES_GET = CallDescriptor(
    id="drive.files.get",
    method=HttpMethod.GET,
    url_template="https://www.googleapis.com/drive/v3/files/{fileId}",
    query_params={"fields": None},
    api_family="drive",
)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Fetch Drive file metadata in batches (token from GOOGLE_OAUTH_TOKEN)"
    )
    p.add_argument("file_ids", nargs="+")
    p.add_argument("--batch-size", type=int, default=50)
    p.add_argument("--cache-dir", default=None)
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    token = os.environ.get("GOOGLE_OAUTH_TOKEN")
    if not token:
        raise SystemExit("Set GOOGLE_OAUTH_TOKEN to an OAuth access token with Drive scope")

    store = DiskStore(args.cache_dir) if args.cache_dir else None
    try:
        async with RestClient(auth=BearerToken(token), store=store) as client:
            result = await client.walk(
                FILES_GET,
                "fileId",
                args.file_ids,
                fixed_args={"fields": "id,name,mimeType"},
                batch_size=args.batch_size,
            )
    finally:
        if store is not None:
            store.close()

    print(f"{len(result.values)} file(s) in {result.chunks_used} batch(es)")
    for file_id, item in result.pairs():
        if isinstance(item, Exception):
            print(f"{file_id:45} | error: {item}")
        else:
            print(f"{file_id:45} | {item.get('mimeType', ''):40} | {item.get('name', '')}")


if __name__ == "__main__":
    asyncio.run(main())
