"""
STEP Assembly Diff v1.0

Compare two versions of a STEP AP242 assembly before importing the second
one into a shared engineering model.

Stages:
- HLR builder: flat part/relation records -> ordered assembly tree
- Comparator: align two trees by structural signature, never by file ids
- Orchestrator: hold both record sets, build, compare, expose the merge
- Report: template or LLM-written change report

Classifications:
- BOTH: same place in both files
- FIRST_ONLY: removed in the second file
- SECOND_ONLY: added in the second file
- SECOND_RELOCATED: moved to another place in the second file
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy imports so `import step_diff` stays cheap for the CLI."""

    _model_names = {
        "Part", "Relation", "StepFileHeader", "StepFileData",
        "AssemblyNode", "AssemblyTree", "BuildAnomaly", "AnomalyKind",
    }
    _hlr_names = {
        "HighLevelRepresentationBuilder", "build_tree", "SignatureFactory", "compute_signature",
    }
    _comparison_names = {
        "TreeComparator", "DiffKind", "DiffNode", "Both", "FirstOnly", "SecondOnly",
        "SecondRelocated", "StepDiffResult", "compare_trees",
    }
    _pipeline_names = {
        "StepDiffOrchestrator", "run_diff",
    }
    _report_names = {
        "DiffReportGenerator", "DiffReport", "generate_report", "generate_report_without_llm",
    }

    if name in _model_names:
        from . import models
        return getattr(models, name)
    elif name in _hlr_names:
        from . import hlr
        return getattr(hlr, name)
    elif name in _comparison_names:
        from . import comparison
        return getattr(comparison, name)
    elif name in _pipeline_names:
        from . import pipeline
        return getattr(pipeline, name)
    elif name in _report_names:
        from . import report
        return getattr(report, name)

    raise AttributeError(f"module 'step_diff' has no attribute {name!r}")
