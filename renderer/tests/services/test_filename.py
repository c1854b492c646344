from datetime import date

import pytest

from renderer.app.services.filename import build_pdf_filename


TODAY = date(2026, 3, 9)


def test_default_pattern_uses_date():
    assert build_pdf_filename("", {}, today=TODAY) == "documento_20260309.pdf"
    assert build_pdf_filename(None, {}, today=TODAY) == "documento_20260309.pdf"


def test_expands_payload_paths_and_date():
    payload = {"patient": {"last_name": "Silva"}, "deal": {"id": 42}}

    name = build_pdf_filename(
        "referral_{patient.last_name}_{deal.id}_{YYYYMMDD}",
        payload,
        today=TODAY,
    )

    assert name == "referral_Silva_42_20260309.pdf"


def test_unknown_paths_expand_to_nothing():
    assert build_pdf_filename("a{missing.path}b", {}, today=TODAY) == "ab.pdf"


def test_path_separators_are_replaced():
    payload = {"company": "ACME/Brasil\\SP"}
    assert build_pdf_filename("{company}", payload, today=TODAY) == "ACME_Brasil_SP.pdf"


@pytest.mark.parametrize("pattern", ["report.pdf", "report.PDF"])
def test_existing_pdf_suffix_is_kept(pattern):
    assert build_pdf_filename(pattern, {}, today=TODAY) == pattern


def test_blank_expansion_falls_back_to_default_name():
    assert build_pdf_filename("  {nothing}  ", {}, today=TODAY) == "documento_20260309.pdf"


def test_whitespace_is_trimmed():
    assert build_pdf_filename("  name  ", {}, today=TODAY) == "name.pdf"


def test_list_indexes_expand():
    payload = {"exams": [{"code": "HMG"}, {"code": "GLI"}]}
    assert build_pdf_filename("{exams.1.code}_{YYYYMMDD}", payload, today=TODAY) == "GLI_20260309.pdf"
