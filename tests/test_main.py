import pytest

pytest.importorskip("uvicorn")

from happyarz.main import main, parse_args, run_ingest, run_list
from happyarz.settings import Settings
from happyarz.storage.stores import MemoryStore


def test_parse_args_requires_an_action() -> None:
    with pytest.raises(SystemExit):
        parse_args([])


def test_parse_args_rejects_lat_without_lon() -> None:
    with pytest.raises(SystemExit):
        parse_args(["--list", "--lat", "13.7"])


def test_parse_args_rejects_unknown_location() -> None:
    with pytest.raises(SystemExit):
        parse_args(["--list", "--location", "atlantis"])


def test_parse_args_ingest(tmp_path) -> None:
    args = parse_args(["--ingest", str(tmp_path / "upload.tsv"), "--delimiter", "tab"])
    assert args.ingest == tmp_path / "upload.tsv"
    assert args.delimiter == "tab"
    assert args.list is False


def test_run_ingest_prints_summary_and_first_errors(tmp_path, capsys) -> None:
    rows = ["Name\tDescription\tAddress", "Good\tFine\tRoad 1"]
    rows += [f"Bad {idx}\tNo address\t" for idx in range(7)]
    upload = tmp_path / "upload.tsv"
    upload.write_text("\n".join(rows) + "\n", encoding="utf-8")
    store = MemoryStore()

    assert run_ingest(upload, None, store, Settings()) == 0

    out = capsys.readouterr().out
    assert "Processed 1 of 8 rows with 7 errors." in out
    assert "Row 3: missing required field(s): address" in out
    assert "Row 8: missing required field(s): address" not in out
    assert "... and 2 more" in out
    assert [business.name for business in store.get_verified_businesses()] == ["Good"]
    assert store.get_upload_history()[0].errors == 7


def test_run_ingest_missing_file(tmp_path) -> None:
    assert run_ingest(tmp_path / "missing.csv", None, MemoryStore(), Settings()) == 2


def test_run_ingest_empty_file_fails(tmp_path) -> None:
    upload = tmp_path / "empty.csv"
    upload.write_text("", encoding="utf-8")
    store = MemoryStore()

    assert run_ingest(upload, None, store, Settings()) == 1
    assert store.get_upload_history() == []


def test_run_list_prints_ranked_venues(capsys) -> None:
    args = parse_args(["--list", "--location", "pattaya"])

    assert run_list(args, MemoryStore(), Settings()) == 0

    out = capsys.readouterr().out
    assert "Walking Street Beer Bar" in out
    assert "Sirocco" not in out
    assert "km" not in out


def test_main_ingest_uses_configured_database(tmp_path, monkeypatch, capsys) -> None:
    upload = tmp_path / "upload.csv"
    upload.write_text("Name,Description,Address\nOne,a,1\n", encoding="utf-8")
    monkeypatch.setenv("HAPPYARZ_DB_PATH", str(tmp_path / "happyarz.sqlite"))

    assert main(["--ingest", str(upload)]) == 0
    assert "Processed 1 of 1 rows with 0 errors." in capsys.readouterr().out
    assert (tmp_path / "happyarz.sqlite").exists()
