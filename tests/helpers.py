"""Fake injected transports for coordinator tests."""

import asyncio


class Gate:
    """Injected function whose calls stay pending until the test resolves them.

    Each call appends (args, future) to ``calls``; resolve with
    ``gate.succeed(i, value)`` or ``gate.fail(i, exc)``.
    """

    def __init__(self):
        self.calls = []

    async def __call__(self, *args):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((args, future))
        return await future

    def succeed(self, index, value):
        self.calls[index][1].set_result(value)

    def fail(self, index, exc):
        self.calls[index][1].set_exception(exc)


class Counter:
    """Injected function returning ``results`` in turn, repeating the last one.

    A result that is an exception instance is raised instead of returned.
    """

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def __call__(self, *args):
        self.calls.append(args)
        index = min(len(self.calls), len(self.results)) - 1
        result = self.results[index]
        if isinstance(result, BaseException):
            raise result
        return result


async def spin(times=3):
    """Let spawned tasks advance without waiting for gated calls."""
    for _ in range(times):
        await asyncio.sleep(0)
