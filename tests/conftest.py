from typing import Optional

import pytest

from matching.normalize import NormalizedRecord, normalize_record
from matching.reconcile import SourceCollection
from parsing.records import FieldMap, RawRecord


def make_record(
    title: str,
    identifier: str = "key",
    entry_type: str = "article",
    **fields: str,
) -> NormalizedRecord:
    values = {"title": title} if title else {}
    values.update(fields)
    raw = RawRecord(identifier=identifier, type=entry_type, fields=FieldMap(values))
    return normalize_record(raw)


def make_source(name: str, *records: NormalizedRecord, error: Optional[str] = None):
    return SourceCollection(name=name, records=list(records), error=error)


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def source_factory():
    return make_source


@pytest.fixture
def bib_files(tmp_path):
    """Three small .bib files with overlapping content."""
    files = {
        "computingeducation.bib": (
            "@article{ce1, title = {Foo Bar}, author = {Jane Doe}, year = {2020},\n"
            "  journal = {Journal of Things}}\n"
            "@inproceedings{ce2, title = {Only Here}, author = {Ann Lee}, year = 2019}\n"
            "@book{ce3, title = {Shared Everywhere}, author = {Smith, John}, year = {2018}}\n"
        ),
        "scholar.bib": (
            "@book{sc3, title = {SHARED everywhere}, author = {John Smith}, year = 2018}\n"
        ),
        "fub.bib": (
            "@article{fu1, title = {{F}oo {B}ar}, author = {Doe, Jane}, year = {2020}}\n"
            "@misc{fu3, title = {Shared Everywhere}, author = {Smith, J.}, date = {2018-04-01}}\n"
        ),
    }
    paths = []
    for name, text in files.items():
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        paths.append(path)
    return paths
