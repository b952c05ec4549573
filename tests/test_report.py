from types import SimpleNamespace

from step_diff.models import Part, StepFileData, StepFileHeader
from step_diff.pipeline import run_diff
from step_diff.report import (
    DiffReportGenerator,
    generate_report_without_llm,
)
from step_diff.report.diff_report import (
    STATUS_CHANGED,
    STATUS_EMPTY,
    STATUS_IDENTICAL,
    render_tree,
)


SR = "Shape_Representation"


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_identical_report(car):
    report = generate_report_without_llm(run_diff(car, car))
    assert report.status == STATUS_IDENTICAL
    assert report.summary == "Both files look the same (6 nodes)"
    assert "**Both step files look the same** - 6 nodes shared." in report.report_text
    assert report.first_file == "car_v1"
    assert report.model_used == "template (no LLM)"


def test_empty_report():
    report = generate_report_without_llm(run_diff(None, None))
    assert report.status == STATUS_EMPTY
    assert report.summary == "Nothing to compare"
    assert "## Merged Tree" not in report.report_text


def test_changed_report_lists_changes(engine_moved, assembly):
    first, _ = engine_moved
    second = assembly(["Car", "Frame", "Body", "Engine", "Piston", "Roof"],
                      [("Car", "Frame"), ("Car", "Body"), ("Body", "Engine"),
                       ("Engine", "Piston"), ("Car", "Roof")])
    report = generate_report_without_llm(run_diff(first, second))

    assert report.status == STATUS_CHANGED
    assert report.summary == "1 added, 0 removed, 2 relocated, 3 shared"
    assert report.added == ["Car.Roof (Roof5:1)"]
    assert report.relocated[0] == "Car.Frame (Frame1:1).Engine (Engine2:1) -> Car.Body (Body2:1).Engine (Engine3:1)"
    assert "## Relocated" in report.report_text
    assert "## Removed (first file only)" not in report.report_text


def test_no_common_root_in_summary():
    first = StepFileData(parts=[Part(1, "PD", "Spider", SR)])
    second = StepFileData(parts=[Part(1, "PD", "Bolt", SR)])
    report = generate_report_without_llm(run_diff(first, second))
    assert report.summary.endswith("; the files have no common root")


def test_render_tree_markers(engine_moved):
    first, second = engine_moved
    lines = render_tree(run_diff(first, second))
    assert lines[0] == "= Car"
    assert lines[3].startswith("    ~ Engine (Engine3:1) (from ")


def test_render_tree_truncates(car):
    lines = render_tree(run_diff(car, car), max_nodes=2)
    assert len(lines) == 3
    assert lines[-1] == "... 4 more nodes"


def test_markdown_and_save(car, tmp_path):
    report = generate_report_without_llm(run_diff(car, car))
    markdown = report.to_markdown()
    assert markdown.startswith("# STEP Assembly Diff Report")
    assert "**Status:** IDENTICAL" in markdown

    path = report.save(str(tmp_path))
    assert path.endswith("StepDiffReport.md")
    with open(path, encoding="utf-8") as f:
        assert f.read() == markdown


def test_llm_report_uses_model_text(engine_moved, monkeypatch):
    first, second = engine_moved
    diff = run_diff(first, second)
    completions = FakeCompletions(content="## Summary\nEngine moved to Body.")

    generator = DiffReportGenerator(api_key="test", model_id="test-model")
    monkeypatch.setattr(generator, "_get_client", lambda: fake_client(completions))
    report = generator.generate(diff)

    assert report.report_text == "## Summary\nEngine moved to Body."
    assert report.model_used == "test-model"
    assert len(report.relocated) == 2
    prompt = completions.calls[0]["messages"][1]["content"]
    assert "[~ RELOCATED]" in prompt
    assert completions.calls[0]["model"] == "test-model"


def test_llm_failure_falls_back_to_raw_data(car, monkeypatch):
    diff = run_diff(car, car)
    generator = DiffReportGenerator(api_key="test")
    client = fake_client(FakeCompletions(error=RuntimeError("rate limited")))
    monkeypatch.setattr(generator, "_get_client", lambda: client)
    report = generator.generate(diff)

    assert report.report_text.startswith("Error generating report: rate limited")
    assert '"identical": true' in report.report_text
    assert report.status == STATUS_IDENTICAL


def test_report_file_label_falls_back_to_path():
    data = StepFileData(parts=[Part(1, "PD", "Spider", SR)],
                        header=StepFileHeader(file_path="/tmp/models/spider.stp"))
    report = generate_report_without_llm(run_diff(data, data))
    assert report.first_file == "spider.stp"


def test_llm_empty_answer_still_renders(car, monkeypatch):
    diff = run_diff(car, car)
    generator = DiffReportGenerator(api_key="test")
    monkeypatch.setattr(generator, "_get_client", lambda: fake_client(FakeCompletions(content=None)))
    report = generator.generate(diff)

    assert report.report_text == ""
    assert report.to_markdown().startswith("# STEP Assembly Diff Report")
