import pytest

from port_sniffer import __version__, cli, scanner
from port_sniffer.models import ScanResult


def test_no_arguments(capsys):
    assert cli.main([]) == 1
    err = capsys.readouterr().err
    assert "You need to specify a command" in err


def test_unknown_first_argument(capsys):
    assert cli.main(["--bogus", "x"]) == 1
    captured = capsys.readouterr()
    assert "usage:" in captured.err
    assert captured.out == ""


def test_ports_before_scan_is_rejected(capsys):
    assert cli.main(["-p", "80", "-s", "127.0.0.1"]) == 1


def test_scan_without_target(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-s"])
    assert exc.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_ports_flag_without_value(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-s", "127.0.0.1", "-p"])
    assert exc.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_ports_flag_after_other_options(capsys, monkeypatch):
    seen = {}

    def _scan(target, batches, **kw):
        seen["target"] = target
        seen["batches"] = batches
        return ScanResult(target, (), 0.0, scanned=1, total=1)

    monkeypatch.setattr(cli, "scan", _scan)

    assert cli.main(["-s", "10.0.0.1", "--verbose", "-p", "80"]) == 0
    assert seen == {"target": "10.0.0.1", "batches": [[80]]}
    assert "Scanning 1 specific ports" in capsys.readouterr().out


def test_help(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--help"])
    assert exc.value.code == 0
    out = capsys.readouterr().out
    assert "--scan" in out
    assert "--ports" in out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-v"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.strip() == f"Version: {__version__}"


def test_bad_thread_count(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-s", "127.0.0.1", "-p", "80", "-t", "0"])
    assert exc.value.code == 1


def test_scan_reports_open_port(capsys, listener, closed_ports):
    ports = f"{closed_ports[0]},{listener},{closed_ports[1]}"
    assert cli.main(["-s", "127.0.0.1", "-p", ports, "-t", "2"]) == 0

    out = capsys.readouterr().out
    assert "Port sniffer CLI | Starting scan of 127.0.0.1 with 2 threads | Scanning 3 specific ports" in out
    assert "100.0% complete." in out
    assert "Scan completed in 0m" in out
    assert "STATE\tPORT\tPROTOCOL" in out
    assert f"OPEN\t{listener}\tTCP" in out
    assert "Found 1 open ports" in out


def test_scan_all_closed(capsys, closed_ports):
    ports = ",".join(str(p) for p in closed_ports)
    assert cli.main(["--scan", "127.0.0.1", "--ports", ports]) == 0

    out = capsys.readouterr().out
    assert "No open ports found." in out
    assert "STATE" not in out


def test_out_of_range_port_scans_nothing(capsys, monkeypatch):
    def _never(*a, **kw):
        raise AssertionError("probe should not run")

    monkeypatch.setattr(scanner, "probe", _never)

    assert cli.main(["-s", "127.0.0.1", "-p", "70000"]) == 0
    out = capsys.readouterr().out
    assert "Scanning 0 specific ports" in out
    assert "Scan completed in 0m 0s" in out
    assert "No open ports found." in out


def test_startup_error_exits_1(capsys, monkeypatch):
    def _fail(*a, **kw):
        raise scanner.ScanStartupError("no threads")

    monkeypatch.setattr(cli, "scan", _fail)
    assert cli.main(["-s", "127.0.0.1", "-p", "80"]) == 1


def test_interrupt_exits_130(capsys, monkeypatch):
    def _interrupt(*a, **kw):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "scan", _interrupt)
    assert cli.main(["-s", "127.0.0.1", "-p", "80"]) == 130
    assert "interrupted" in capsys.readouterr().err
