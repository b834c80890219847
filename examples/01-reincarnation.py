"""Reincarnation: a server dies, recovers, and comes back under a new epoch.

Demonstrates:
- Recording dead servers and tracking recovery with add() / finish()
- Clearing the previous incarnation when a server restarts
- Exporting a time-ordered status report

Run with:
    uv run python examples/01-reincarnation.py
"""

import logging

from deadservers import DeadServerRegistry, ServerIdentity, build_report, codec_for


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    registry = DeadServerRegistry()

    old = ServerIdentity.of("rs-1.example.com", 16020, 1700000000000)
    other = ServerIdentity.of("rs-2.example.com", 16020, 1700000000123)

    registry.add(old)
    registry.add(other)
    print(f"dead: {registry}  in progress: {registry.are_dead_servers_in_progress()}")

    registry.finish(old)
    registry.finish(other)

    report = build_report(registry)
    print(codec_for("json").encode(report).decode())

    restarted = ServerIdentity.of("rs-1.example.com", 16020, 1700000600000)
    if registry.clean_previous_instance(restarted):
        print(f"{restarted.endpoint} is back")
    print(f"dead: {registry}")


if __name__ == "__main__":
    main()
