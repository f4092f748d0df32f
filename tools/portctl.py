#!/usr/bin/env python3
# ============================================================================
# PORT LEASE CLI
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Tool - Command-line client for the lease daemon
# PURPOSE: Allocate, release, list, look up and hold port leases
# CREATED: 19 OCT 2026
# ============================================================================
"""
Command-line client for the port lease daemon.

Usage:
    # Lease a port
    python tools/portctl.py alloc web --ttl 120 --tag dev

    # Give it back
    python tools/portctl.py release 8000

    # Show every lease
    python tools/portctl.py list

    # Print the port leased under a service name (exit 1 if none)
    python tools/portctl.py lookup web

    # Lease a port and keep it alive until interrupted
    python tools/portctl.py loop web --interval 5

    # Run a command with the leased port in $PORT, release on exit
    python tools/portctl.py run web --env-name PORT -- python -m http.server

The daemon URL comes from --url, else PM_URL, else http://localhost:3030.
"""

import argparse
import os
import subprocess
import sys
import threading
import time
from typing import Any, Dict, List, Optional, Tuple

import httpx

DEFAULT_URL = "http://localhost:3030"
DEFAULT_TIMEOUT = httpx.Timeout(10.0)
DEFAULT_HEARTBEAT_INTERVAL = 5.0


class PortManagerClient:
    """
    Sync HTTP client for the lease daemon.

    All methods return (status_code, response_body) tuples; connection
    failures come back as status 0 so callers print one error path.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout or DEFAULT_TIMEOUT,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PortManagerClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, Any]:
        try:
            resp = self._client.request(method, path, json=json_body, params=params)
        except httpx.HTTPError as e:
            return 0, {"detail": f"Cannot reach daemon: {e}"}

        try:
            body = resp.json()
        except ValueError:
            body = {"detail": resp.text}

        return resp.status_code, body

    def allocate(
        self,
        service_name: str,
        ttl_seconds: Optional[int] = None,
        tags: Optional[List[str]] = None,
    ) -> Tuple[int, Any]:
        """POST /alloc"""
        body: Dict[str, Any] = {"service_name": service_name}
        if ttl_seconds is not None:
            body["ttl_seconds"] = ttl_seconds
        if tags:
            body["tags"] = tags
        return self._request("POST", "/alloc", json_body=body)

    def release(self, port: int) -> Tuple[int, Any]:
        """POST /release"""
        return self._request("POST", "/release", json_body={"port": port})

    def heartbeat(self, port: int) -> Tuple[int, Any]:
        """POST /heartbeat"""
        return self._request("POST", "/heartbeat", json_body={"port": port})

    def list_leases(self) -> Tuple[int, Any]:
        """GET /list"""
        return self._request("GET", "/list")

    def lookup(self, service_name: str) -> Tuple[int, Any]:
        """GET /lookup?service=NAME"""
        return self._request("GET", "/lookup", params={"service": service_name})


def _fail(action: str, status: int, body: Any) -> int:
    detail = body.get("detail", body) if isinstance(body, dict) else body
    if status:
        print(f"ERROR: {action} failed ({status}): {detail}", file=sys.stderr)
    else:
        print(f"ERROR: {action} failed: {detail}", file=sys.stderr)
    return 1


class HeartbeatThread(threading.Thread):
    """
    Renews one lease every `interval` seconds until stopped.

    Stops on its own at the first failed heartbeat; `failed` is then set.
    """

    def __init__(self, client: PortManagerClient, port: int, interval: float):
        super().__init__(name=f"heartbeat-{port}", daemon=True)
        self.client = client
        self.port = port
        self.interval = interval
        self.failed = False
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            status, body = self.client.heartbeat(self.port)
            if status != 200:
                _fail(f"Heartbeat for {self.port}", status, body)
                self.failed = True
                return

    def stop(self) -> None:
        self._stop_event.set()
        self.join()


# ============================================================================
# COMMANDS
# ============================================================================

def cmd_alloc(client: PortManagerClient, args: argparse.Namespace) -> int:
    status, body = client.allocate(args.service_name, args.ttl, args.tag)
    if status != 200:
        return _fail("Allocate", status, body)

    lease = body["lease"]
    print(f"Allocated port: {body['port']}")
    print(
        f"Lease: service={lease['service_name']} ttl={lease['ttl_seconds']}s "
        f"tags={','.join(lease.get('tags') or []) or '-'}"
    )
    return 0


def cmd_release(client: PortManagerClient, args: argparse.Namespace) -> int:
    status, body = client.release(args.port)
    if status != 200:
        return _fail("Release", status, body)

    print(f"Released port: {args.port}")
    return 0


def cmd_list(client: PortManagerClient, args: argparse.Namespace) -> int:
    status, body = client.list_leases()
    if status != 200:
        return _fail("List", status, body)

    if not body:
        print("No active leases")
        return 0

    print("Active Leases:")
    for lease in body:
        print(
            f"Port: {lease['port']}, Service: {lease['service_name']}, "
            f"TTL: {lease['ttl_seconds']}s, Last heartbeat: {lease['last_heartbeat']}"
        )
    return 0


def cmd_lookup(client: PortManagerClient, args: argparse.Namespace) -> int:
    status, body = client.lookup(args.service_name)
    if status != 200:
        return _fail("Lookup", status, body)

    if body.get("port") is None:
        print(f"No port found for service: {args.service_name}", file=sys.stderr)
        return 1

    print(body["port"])
    return 0


def cmd_loop(client: PortManagerClient, args: argparse.Namespace) -> int:
    status, body = client.allocate(args.service_name, args.ttl)
    if status != 200:
        return _fail("Allocate", status, body)

    port = body["port"]
    print(f"Allocated port: {port}. Starting heartbeat loop (Ctrl-C to release)...")

    try:
        while True:
            time.sleep(args.interval)
            status, body = client.heartbeat(port)
            if status != 200:
                return _fail(f"Heartbeat for {port}", status, body)
            print(f"Heartbeat sent for {port}")
    except KeyboardInterrupt:
        client.release(port)
        print(f"\nReleased port {port}")
        return 0


def cmd_run(client: PortManagerClient, args: argparse.Namespace) -> int:
    command = list(args.command)
    if not command:
        print("ERROR: No command specified", file=sys.stderr)
        return 1

    status, body = client.allocate(args.service_name, args.ttl)
    if status != 200:
        return _fail("Allocate", status, body)

    port = body["port"]
    print(f"Allocated port {port} for service '{args.service_name}'")

    heartbeat = HeartbeatThread(client, port, args.interval)
    heartbeat.start()

    env = dict(os.environ)
    env[args.env_name] = str(port)
    print(f"Running: {' '.join(command)} with {args.env_name}={port}")

    try:
        exit_code = subprocess.call(command, env=env)
        if exit_code < 0:
            # Killed by a signal
            exit_code = 128 - exit_code
    except OSError as e:
        print(f"ERROR: Failed to run command: {e}", file=sys.stderr)
        exit_code = 1
    except KeyboardInterrupt:
        exit_code = 130
    finally:
        heartbeat.stop()
        client.release(port)
        print(f"Released port {port}")

    return exit_code


# ============================================================================
# ENTRY POINT
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lease TCP ports from the port lease daemon",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s alloc web --ttl 120
  %(prog)s lookup web
  %(prog)s run web -- python -m http.server
  %(prog)s run web --env-name APP_PORT -- python app.py
        """,
    )
    parser.add_argument(
        "--url", "-u",
        default=os.environ.get("PM_URL", DEFAULT_URL),
        help=f"Daemon base URL (default: $PM_URL or {DEFAULT_URL})",
    )
    sub = parser.add_subparsers(dest="command_name", required=True)

    p = sub.add_parser("alloc", help="Allocate a new port")
    p.add_argument("service_name")
    p.add_argument("--ttl", type=int, help="Lease TTL in seconds")
    p.add_argument("--tag", action="append", help="Tag (repeatable)")
    p.set_defaults(func=cmd_alloc)

    p = sub.add_parser("release", help="Release an allocated port")
    p.add_argument("port", type=int)
    p.set_defaults(func=cmd_release)

    p = sub.add_parser("list", help="List all active leases")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("lookup", help="Print the port leased under a service name")
    p.add_argument("service_name")
    p.set_defaults(func=cmd_lookup)

    p = sub.add_parser("loop", help="Allocate a port and send heartbeats in a loop")
    p.add_argument("service_name")
    p.add_argument("--ttl", type=int, help="Lease TTL in seconds")
    p.add_argument(
        "--interval", type=float, default=DEFAULT_HEARTBEAT_INTERVAL,
        help=f"Seconds between heartbeats (default: {DEFAULT_HEARTBEAT_INTERVAL})",
    )
    p.set_defaults(func=cmd_loop)

    p = sub.add_parser("run", help="Run a command with an allocated port")
    p.add_argument("service_name")
    p.add_argument("--ttl", type=int, help="Lease TTL in seconds")
    p.add_argument(
        "--env-name", default="PORT",
        help="Environment variable that receives the port (default: PORT)",
    )
    p.add_argument(
        "--interval", type=float, default=DEFAULT_HEARTBEAT_INTERVAL,
        help=f"Seconds between heartbeats (default: {DEFAULT_HEARTBEAT_INTERVAL})",
    )
    p.add_argument("command", nargs="*", help="Command after --")
    p.set_defaults(func=cmd_run)

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments, keeping everything after "--" as the `run` command."""
    argv = list(sys.argv[1:] if argv is None else argv)

    child: List[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, child = argv[:split], argv[split + 1:]

    parser = build_parser()
    args = parser.parse_args(argv)
    if child:
        if args.command_name != "run":
            parser.error(f"unrecognized arguments: -- {' '.join(child)}")
        args.command = list(args.command) + child

    return args


def main(argv: Optional[List[str]] = None, transport: Optional[httpx.BaseTransport] = None) -> int:
    args = parse_args(argv)

    with PortManagerClient(args.url, transport=transport) as client:
        return args.func(client, args)


if __name__ == "__main__":
    sys.exit(main())
