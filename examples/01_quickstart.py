#!/usr/bin/env python3
"""
CacheSpine Quickstart Example

Shows the basic flow: get an adapter from the registry, store, count, lock.

Usage:
    python examples/01_quickstart.py
"""

import asyncio

from cachespine import CacheRegistry


async def main() -> None:
    """Strict and lenient counters on the in-memory engine."""

    registry = CacheRegistry()

    # Same config, same adapter (use engine="redis" or "memcached" in production)
    cache = await registry.get({"engine": "none"})
    assert cache is await registry.get({"engine": "none"})

    await cache.set("greeting", "hello", ttl=60)
    print(f"✓ get: {(await cache.get('greeting')).response}")

    # Strict mode never creates counters
    result = await cache.increment("hits", 5)
    print(f"✓ strict increment on missing key: {result.error_code}")

    await cache.set("hits", 10)
    print(f"✓ increment: {(await cache.increment('hits', 5)).response}")
    print(f"✓ decrement clamps at zero: {(await cache.decrement('hits', 100)).response}")

    # Lenient mode lets the engine start counters at zero
    lenient = await registry.get({"engine": "none", "consistent_behavior": False})
    print(f"✓ lenient increment: {(await lenient.increment('hits', 5)).response}")

    # Locks
    print(f"✓ first lock: {(await cache.acquire_lock('job:1', 30)).is_success}")
    print(f"✓ second lock: {(await cache.acquire_lock('job:1', 30)).error_code}")
    await cache.release_lock("job:1")

    await registry.close()


if __name__ == "__main__":
    asyncio.run(main())
