import importlib.util
import json
import logging

import pytest

from conftest import ROOT


def _load_script(name):
    path = ROOT / "scripts" / f"{name}.py"
    spec = importlib.util.spec_from_file_location(f"scripts_{name}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def export_script(monkeypatch):
    module = _load_script("export_process_map")
    monkeypatch.setattr(module, "configure_logging", lambda *args, **kwargs: logging.getLogger("process_map.tests"))
    return module


def test_export_writes_payload_and_xes(export_script, small_log_text, tmp_path):
    source = tmp_path / "log.csv"
    source.write_text(small_log_text, encoding="utf-8")
    output = tmp_path / "out" / "map.json"
    xes = tmp_path / "out" / "log.xes"

    export_script.main(["--input", str(source), "--output", str(output), "--xes", str(xes)])

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert set(payload) == {"nodes", "edges", "metadata", "overview", "recommendations"}
    assert payload["metadata"]["total_events"] == 13
    assert payload["overview"]["cases"] == 3
    assert payload["overview"]["start"].startswith("2024-01-02")
    assert "Streamline Payment Processing" in [rec["title"] for rec in payload["recommendations"]]
    assert xes.read_bytes().lstrip().startswith(b"<")


def test_export_rejects_unknown_suffix(export_script, tmp_path):
    source = tmp_path / "log.json"
    source.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        export_script.export_process_map(source, tmp_path / "map.json")


def test_export_exits_on_malformed_log(export_script, tmp_path):
    source = tmp_path / "bad.csv"
    source.write_text("Case ID,Activity,Timestamp,Resource,Amount,Vendor\nC1,A,not-a-date,System,10,V\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        export_script.main(["--input", str(source), "--output", str(tmp_path / "map.json")])
    assert excinfo.value.code == 1
    assert not (tmp_path / "map.json").exists()


def test_generate_sample_log_writes_csv(monkeypatch, tmp_path):
    module = _load_script("generate_sample_log")
    monkeypatch.setattr(module, "configure_logging", lambda *args, **kwargs: logging.getLogger("process_map.tests"))
    output = tmp_path / "data" / "ap.csv"

    module.main(["--output", str(output), "--cases", "5", "--seed", "1"])

    lines = output.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Case ID,Activity,Timestamp,Resource,Amount,Vendor"
    assert {line.split(",")[0] for line in lines[1:]} == {f"INV0000{index}" for index in range(1, 6)}
