"""ovh-machine CLI: drive one machine's lifecycle from the command line.

Usage examples::

    ovh-machine --flags '{"ovh-project": "acme"}' create web-1
    ovh-machine url web-1
    ovh-machine rm web-1

The driver record is kept as JSON under ``<store>/machines/<name>/config.json``
between invocations. Credentials are never written there; every operation
reads them from the ``ovh-*`` credential entries of ``--flags``, falling back
to the environment (or ``ovh.conf``).
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

OPERATIONS = [
    "create", "state", "url", "ip", "ssh-key-path",
    "rm", "restart", "start", "stop", "kill", "flags",
]


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ``ovh-machine`` CLI.

    Returns:
        Configured :class:`~argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="ovh-machine",
        description="Create and manage machines on OVH Public Cloud",
    )
    parser.add_argument(
        "--store-path",
        type=str,
        default=os.path.join(os.path.expanduser("~"), ".ovh-machine"),
        help="Directory holding machine records and ssh keys",
    )
    parser.add_argument(
        "--flags", "-f",
        type=str,
        default="{}",
        help='JSON create flags (e.g. \'{"ovh-region":"GRA1"}\')',
    )
    parser.add_argument(
        "operation",
        choices=OPERATIONS,
        help="Lifecycle operation to perform",
    )
    parser.add_argument(
        "machine",
        nargs="?",
        default="",
        help="Machine name (not needed for 'flags')",
    )
    return parser


def record_path(store_path: str, machine: str) -> str:
    return os.path.join(store_path, "machines", machine, "config.json")


def _save(driver: Any) -> None:
    path = record_path(driver.machine.store_path, driver.machine.machine_name)
    os.makedirs(os.path.dirname(path), mode=0o700, exist_ok=True)
    with open(path, "w") as f:
        f.write(driver.to_record().model_dump_json(indent=2))


def _load(store_path: str, machine: str, flags: dict[str, Any]) -> Any:
    from ovh_machine.ovh.driver import Driver, credentials_from_flags
    from ovh_machine.ovh.models import DriverRecord

    with open(record_path(store_path, machine)) as f:
        record = DriverRecord.model_validate_json(f.read())
    return Driver.from_record(record, credentials_from_flags(flags))


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses arguments, builds or reloads the machine's driver and invokes
    the requested operation. Results are printed as plain text; errors go
    to stderr with exit status 1.

    Args:
        argv: Optional argument list (defaults to ``sys.argv``).
    """
    parser = _build_parser()
    ns = parser.parse_args(argv)

    try:
        flags: dict[str, Any] = json.loads(ns.flags)
    except json.JSONDecodeError as e:
        print(f"Invalid --flags JSON: {e}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(flags, dict):
        print("Invalid --flags JSON: expected an object", file=sys.stderr)
        sys.exit(1)

    # Lazy-import to keep --help fast
    from ovh_machine.base.exceptions import MachineDriverError
    from ovh_machine.factory import driver_factory
    from ovh_machine.ovh.driver import CREATE_FLAGS

    if ns.operation == "flags":
        print(json.dumps([flag.model_dump() for flag in CREATE_FLAGS], indent=2))
        return

    if not ns.machine:
        print(f"Operation '{ns.operation}' needs a machine name", file=sys.stderr)
        sys.exit(1)

    try:
        if ns.operation == "create":
            driver = driver_factory("ovh", ns.machine, ns.store_path, flags)
            driver.pre_create_check()
            try:
                driver.create()
            finally:
                # Keep ids of whatever got created so 'rm' can clean up
                _save(driver)
            print(driver.get_url())
            return

        try:
            driver = _load(ns.store_path, ns.machine, flags)
        except FileNotFoundError:
            print(f"Machine '{ns.machine}' does not exist", file=sys.stderr)
            sys.exit(1)

        if ns.operation == "state":
            print(driver.get_state().name.lower())
        elif ns.operation == "url":
            print(driver.get_url())
        elif ns.operation == "ip":
            print(driver.get_ssh_hostname())
        elif ns.operation == "ssh-key-path":
            print(driver.get_ssh_key_path())
        elif ns.operation == "rm":
            driver.remove()
            os.remove(record_path(ns.store_path, ns.machine))
            print("OK")
        else:
            getattr(driver, ns.operation)()
            print("OK")
    except (MachineDriverError, OSError) as e:
        print(f"Operation failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
