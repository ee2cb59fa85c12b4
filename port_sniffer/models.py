from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ScanResult:
    target: str
    open_ports: Tuple[int, ...]
    elapsed_s: float
    scanned: int
    total: int
    cancelled: bool = False


@dataclass(frozen=True)
class Progress:
    completed: int
    total: int
    percent: float
    elapsed_s: float
    eta_s: int
