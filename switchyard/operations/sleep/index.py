"""Pause a flow for a number of milliseconds."""

import asyncio


async def handler(options: dict, context: dict) -> None:
    milliseconds = float(options.get("milliseconds", 0))
    await asyncio.sleep(max(milliseconds, 0) / 1000)


default = {"id": "sleep", "handler": handler}
