"""Example script showing the Hades logging styles end to end.

This script demonstrates how to use the library to:
1. Log `where > what  result` lines at every level
2. Highlight terms and values with `~[term]` and `~{value}` markup
3. Rewrite a console line in place for progress output
4. Log errors with causes and attached data (stack traces go to stderr and
   to `<name>.stack.log` when a log directory is given)
"""

from __future__ import annotations

import argparse
import asyncio
import pathlib
import time

from hades import Hades, error_cause, error_data


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser("Hades logging demo")
    parser.add_argument("--log-dir", type=pathlib.Path, default=None, help="Also write log files here")
    parser.add_argument("--level", default="all", help="Minimum level (all, off, trace ... mark)")
    parser.add_argument("--locale", default="en", help="Level label locale (en, zh)")
    parser.add_argument("--steps", type=int, default=20, help="Progress steps to show")
    parser.add_argument("--no-color", action="store_true", help="Disable highlighting")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    log = Hades(
        "demo",
        args.level,
        args.log_dir,
        locale=args.locale,
        use_highlighting=not args.no_color,
    )

    log.mark("demo", "start", "levels from ~[trace] to ~[mark]")
    log.trace("loop", "tick", "i = ~{0}")
    log.debug("cache", "lookup", "hit ratio ~{0.93}")
    log.info("server", "listen", "port ~{8080}", "workers ~{4}")
    log.warn("db", "connect", "slow handshake, retrying")

    for step in range(1, args.steps + 1):
        log.info_update("import", "rows", f"~{{{step}}}/{args.steps}")
        time.sleep(0.05)
    log.info_done("import", "rows", "finished")

    log.error(
        "api",
        "request",
        error_cause("upstream failed", error_data(ConnectionError("reset by peer"), {"host": "example.org"})),
    )

    await log.reload()
    log.info("demo", "reload", "sinks re-created")
    log.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
