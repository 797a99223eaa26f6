# tests/test_exporter.py

import bibtexparser
import pytest

from comparer import compare_texts
from exporter import (
    FOUND_IN_FIELD,
    build_missing_database,
    build_parser,
    export_missing,
    missing_rows_for,
    record_to_entry,
    run,
)
from conftest import make_record
from parsing.records import parse_bibtex


def _result(bib_files):
    return compare_texts(
        [(path.name, path.read_text(encoding="utf-8")) for path in bib_files]
    )


def test_record_to_entry():
    record = make_record("Foo", "k1", "book", author="Doe", year="2001")
    entry = record_to_entry(record, ["a.bib", "b.bib"])
    assert entry == {
        "ENTRYTYPE": "book",
        "ID": "k1",
        "title": "Foo",
        "author": "Doe",
        "year": "2001",
        FOUND_IN_FIELD: "a.bib, b.bib",
    }
    assert FOUND_IN_FIELD not in record_to_entry(record)


def test_missing_rows_for_target(bib_files):
    result = _result(bib_files)
    assert [row.key for row in missing_rows_for(result, "scholar.bib")] == [
        "foobar",
        "onlyhere",
    ]
    assert [row.key for row in missing_rows_for(result, "fub.bib")] == ["onlyhere"]
    assert missing_rows_for(result, "computingeducation.bib") == []
    with pytest.raises(KeyError):
        missing_rows_for(result, "unknown.bib")


def test_build_missing_database_uses_first_holding_source(bib_files):
    db = build_missing_database(_result(bib_files), "scholar.bib")
    assert [entry["ID"] for entry in db.entries] == ["ce1", "ce2"]
    assert db.entries[0][FOUND_IN_FIELD] == "computingeducation.bib, fub.bib"
    assert db.entries[1][FOUND_IN_FIELD] == "computingeducation.bib"

    plain = build_missing_database(_result(bib_files), "scholar.bib", annotate=False)
    assert all(FOUND_IN_FIELD not in entry for entry in plain.entries)


def test_export_writes_a_readable_bib_file(bib_files, tmp_path):
    output = tmp_path / "out" / "scholar.missing.bib"
    messages = []
    count = export_missing(_result(bib_files), "scholar.bib", output, log=messages.append)

    assert count == 2
    text = output.read_text(encoding="utf-8")
    assert text.startswith("% Entries missing from scholar.bib: 2")

    records = parse_bibtex(text)
    assert [r.identifier for r in records] == ["ce1", "ce2"]
    assert records[0].fields.title == "Foo Bar"
    assert records[0].fields.journal == "Journal of Things"

    db = bibtexparser.loads(text)
    assert sorted(entry["ID"] for entry in db.entries) == ["ce1", "ce2"]
    assert any("2 entries missing from scholar.bib" in m for m in messages)


def test_export_with_nothing_missing(bib_files, tmp_path):
    output = tmp_path / "ce.missing.bib"
    count = export_missing(
        _result(bib_files), "computingeducation.bib", output, log=lambda _: None
    )
    assert count == 0
    assert parse_bibtex(output.read_text(encoding="utf-8")) == []


def test_run_export(bib_files, tmp_path, capsys):
    output = tmp_path / "fub.missing.bib"
    args = build_parser().parse_args(
        ["fub.bib"]
        + [str(p) for p in bib_files]
        + ["--output", str(output), "--log-dir", str(tmp_path / "logs")]
    )
    assert run(args) == 0
    records = parse_bibtex(output.read_text(encoding="utf-8"))
    assert [r.identifier for r in records] == ["ce2"]


def test_run_export_unknown_target(bib_files, tmp_path, capsys):
    args = build_parser().parse_args(
        ["nope.bib"] + [str(p) for p in bib_files] + ["--log-dir", str(tmp_path)]
    )
    assert run(args) == 1
    assert "is not one of the sources" in capsys.readouterr().out


def test_exported_values_escape_latex_specials(tmp_path):
    result = compare_texts(
        [
            ("a", r"@article{k, title = {R\&D at 50\% of \#1 for \_x and \$5}}"),
            ("b", ""),
        ]
    )
    assert result.rows[0].representative.title == "R&D at 50% of #1 for _x and $5"

    output = tmp_path / "b.missing.bib"
    export_missing(result, "b", output, log=lambda _: None)
    text = output.read_text(encoding="utf-8")

    assert r"{R\&D at 50\% of \#1 for \_x and \$5}" in text
    assert parse_bibtex(text)[0].fields.title == "R&D at 50% of #1 for _x and $5"


def test_found_in_names_are_escaped():
    record = make_record("T", "k")
    assert record_to_entry(record, ["my_refs.bib"])[FOUND_IN_FIELD] == r"my\_refs.bib"
