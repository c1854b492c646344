import pytest

from renderer.app.core.errors import MissingPlaceholdersError, TemplateResolutionError
from renderer.app.schemas.config import ConfigSnapshot, ExamPackage, Template
from renderer.app.schemas.render import RenderEnvelope
from renderer.app.services.resolver import (
    find_missing_placeholders,
    resolve_template,
    validate_placeholders,
)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _config() -> ConfigSnapshot:
    return ConfigSnapshot(
        templates=[
            Template(template_key="referral", doc_template_id="doc-1"),
            Template(template_key="invoice", doc_template_id="doc-2"),
        ],
        exam_packages=[
            ExamPackage(package_key="basic", default_template_key="referral"),
            ExamPackage(package_key="orphan", default_template_key="missing"),
        ],
    )


def _template(*required: str) -> Template:
    return Template(
        template_key="t",
        doc_template_id="doc",
        required_placeholders=list(required),
    )


# ----------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------

def test_resolves_by_template_key():
    template = resolve_template(_config(), RenderEnvelope(template_key="invoice"))
    assert template.template_key == "invoice"


def test_resolves_through_package_default():
    template = resolve_template(_config(), RenderEnvelope(package_key="basic"))
    assert template.template_key == "referral"


def test_template_key_wins_over_package_key():
    envelope = RenderEnvelope(template_key="invoice", package_key="basic")
    assert resolve_template(_config(), envelope).template_key == "invoice"


def test_unknown_template_key_does_not_fall_back_to_package():
    envelope = RenderEnvelope(template_key="nope", package_key="basic")
    with pytest.raises(TemplateResolutionError):
        resolve_template(_config(), envelope)


@pytest.mark.parametrize(
    "envelope",
    [
        RenderEnvelope(),
        RenderEnvelope(package_key="unknown"),
        RenderEnvelope(package_key="orphan"),
        RenderEnvelope(template_key=123, package_key="basic"),
        RenderEnvelope(template_key=["referral"]),
        RenderEnvelope(package_key={"key": "basic"}),
    ],
)
def test_unresolvable_requests(envelope):
    with pytest.raises(TemplateResolutionError) as excinfo:
        resolve_template(_config(), envelope)

    assert excinfo.value.status_code == 400
    assert excinfo.value.to_payload() == {
        "error": "Unable to resolve template from template_key/package_key"
    }


# ----------------------------------------------------------------------
# Placeholder validation
# ----------------------------------------------------------------------

def test_missing_placeholders_in_declaration_order():
    template = _template("b.x", "a", "c.deep.path", "d")
    payload = {"a": "ok", "b": {"x": ""}, "c": {"deep": "not-a-mapping"}, "d": None}

    assert find_missing_placeholders(template, payload) == ["b.x", "c.deep.path", "d"]


def test_list_index_placeholders_resolve():
    template = _template("exams.0.code", "exams.1.code")
    payload = {"exams": [{"code": "HMG"}]}

    assert find_missing_placeholders(template, payload) == ["exams.1.code"]


def test_zero_and_false_count_as_present():
    template = _template("count", "flag")
    assert find_missing_placeholders(template, {"count": 0, "flag": False}) == []


def test_validate_placeholders_raises_with_missing_list():
    template = _template("patient.name", "patient.id")

    with pytest.raises(MissingPlaceholdersError) as excinfo:
        validate_placeholders(template, {"patient": {"name": "Ana"}})

    assert excinfo.value.to_payload() == {
        "error": "Missing required placeholders",
        "missing": ["patient.id"],
    }


def test_validate_placeholders_passes_when_complete():
    template = _template("patient.name")
    validate_placeholders(template, {"patient": {"name": "Ana"}})
