from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from . import __version__
from .output import print_banner, print_results
from .ports import partition, parse_ports, resolve_ports
from .progress import TerminalProgress
from .scanner import DEFAULT_TIMEOUT_S, ScanStartupError, default_workers, scan

COMMANDS = ("-s", "--scan", "-h", "--help", "-v", "--version")

NO_COMMAND = "Error: You need to specify a command to run. Run -h or --help for more information."


class _Parser(argparse.ArgumentParser):
    # usage errors exit with 1, not argparse's 2
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(prog="port-sniffer", description="Port sniffer CLI - TCP connect port scanner", add_help=False)
    p.add_argument("-h", "--help", action="help", help="Display this help message")
    p.add_argument(
        "-v", "--version",
        action="version",
        version=f"Version: {__version__}",
        help="Display the version of this program",
    )
    p.add_argument("-s", "--scan", metavar="TARGET", required=True, help="IPv4 address or hostname to scan")
    p.add_argument("-p", "--ports", help="Ports to scan: 22,80,443 (default: 1-65535)")
    p.add_argument("-t", "--threads", type=int, help="Worker threads (default: CPU count)")
    p.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        help=f"Connect timeout seconds (default: {DEFAULT_TIMEOUT_S})",
    )
    p.add_argument("--verbose", action="store_true", help="Debug logging on stderr")
    return p


def _first_is_command(argv: Sequence[str]) -> bool:
    return argv[0].split("=", 1)[0] in COMMANDS


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = build_parser()

    if not argv:
        print(NO_COMMAND, file=sys.stderr)
        return 1
    if not _first_is_command(argv):
        parser.print_usage(sys.stderr)
        return 1

    args = parser.parse_args(argv)
    if args.threads is not None and args.threads < 1:
        parser.error("--threads must be >= 1")
    if args.timeout <= 0:
        parser.error("--timeout must be > 0")

    setup_logging(args.verbose)

    explicit = parse_ports(args.ports) if args.ports is not None else None
    ports = resolve_ports(explicit)
    workers = args.threads or default_workers()

    print_banner(args.scan, workers, None if explicit is None else len(explicit))

    try:
        result = scan(
            args.scan,
            partition(ports),
            workers=workers,
            timeout_s=args.timeout,
            progress=TerminalProgress(),
        )
    except ScanStartupError as e:
        logging.error("%s", e)
        return 1
    except KeyboardInterrupt:
        print("\nScan interrupted.", file=sys.stderr)
        return 130

    print_results(result)
    return 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
