from __future__ import annotations

from typing import List, Optional, Sequence

MIN_PORT = 1
MAX_PORT = 65535
BATCH_SIZE = 1000


def parse_ports(spec: str) -> List[int]:
    """
    Parses a comma-separated port list, e.g. "22,80,443".

    Tokens that are not integers or fall outside 1-65535 are dropped
    silently. Repeated ports keep their first position.
    """
    ports: List[int] = []
    seen = set()
    for part in spec.split(","):
        part = part.strip()
        # plain ASCII digits only: int() would also take "8_0" or "٨٠"
        digits = part[1:] if part.startswith("+") else part
        if not (digits.isascii() and digits.isdigit()):
            continue
        p = int(digits)
        if p < MIN_PORT or p > MAX_PORT or p in seen:
            continue
        seen.add(p)
        ports.append(p)
    return ports


def all_ports() -> List[int]:
    return list(range(MIN_PORT, MAX_PORT + 1))


def resolve_ports(explicit: Optional[Sequence[int]] = None) -> List[int]:
    # None means "no -p given"; an empty list stays empty
    if explicit is None:
        return all_ports()
    return list(explicit)


def partition(ports: Sequence[int], batch_size: int = BATCH_SIZE) -> List[List[int]]:
    if batch_size < 1:
        raise ValueError(f"Invalid batch size: {batch_size}")
    return [list(ports[i:i + batch_size]) for i in range(0, len(ports), batch_size)]
