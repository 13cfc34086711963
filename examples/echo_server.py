"""
Start an echo server, connect a client to it and tear both down in order.

Run with:
    python examples/echo_server.py
"""

import asyncio
import tempfile
import threading

from rmgr.config.logging_config import get_logger
from rmgr.runtime import ResourceManager, ResourceManagerConfig

log = get_logger(__name__)


async def handle_echo(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
    data = await reader.readline()
    writer.write(data)
    await writer.drain()
    writer.close()
    await writer.wait_closed()


async def start_server() -> asyncio.Server:
    return await asyncio.start_server(handle_echo, "127.0.0.1", 0)


async def close_server(server: asyncio.Server) -> None:
    server.close()
    await server.wait_closed()


def open_scratch_file(callback) -> None:
    # completion-callback style, finished on a worker thread
    def work():
        try:
            f = tempfile.TemporaryFile()
        except OSError as exc:
            callback(exc)
        else:
            callback(None, f)

    threading.Thread(target=work).start()


async def main() -> None:
    async with ResourceManager(ResourceManagerConfig(acquire_timeout=5.0, release_timeout=5.0)) as resources:
        scratch = await resources.add(open_scratch_file, lambda f: f.close())
        server = await resources.add(start_server, close_server)

        host, port = server.sockets[0].getsockname()[:2]
        reader, writer = await resources.add(
            lambda: asyncio.open_connection(host, port),
            lambda conn: conn[1].close(),
        )

        writer.write(b"hello\n")
        await writer.drain()
        reply = await reader.readline()
        scratch.write(reply)
        log.info(f"Echoed {reply!r} from {host}:{port}")
    # connection, server and scratch file are closed here, in that order


if __name__ == "__main__":
    asyncio.run(main())
