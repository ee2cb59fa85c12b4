from __future__ import annotations

from typing import Optional

from .models import ScanResult


def format_duration(seconds: float) -> str:
    s = int(seconds)
    return f"{s // 60}m {s % 60}s"


def print_banner(target: str, workers: int, explicit_count: Optional[int] = None) -> None:
    line = f"Port sniffer CLI | Starting scan of {target} with {workers} threads"
    if explicit_count is not None:
        line += f" | Scanning {explicit_count} specific ports"
    print(line)


def format_row(port: int) -> str:
    return f"OPEN\t{port}\tTCP"


def print_results(result: ScanResult) -> None:
    # leading newline ends the in-place progress line
    if result.cancelled:
        print(
            f"\nScan cancelled after {result.scanned}/{result.total} ports"
            f" in {format_duration(result.elapsed_s)}"
        )
    else:
        print(f"\nScan completed in {format_duration(result.elapsed_s)}")

    if not result.open_ports:
        print("No open ports found.")
        return

    print("STATE\tPORT\tPROTOCOL")
    for port in result.open_ports:
        print(format_row(port))
    print(f"\nFound {len(result.open_ports)} open ports")
