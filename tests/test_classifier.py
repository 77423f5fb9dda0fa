"Tests for the basic line classifier."

from __future__ import annotations

from xcarchive.services.classifier import BasicClassifier, ClassifiedLine, OutputType


class ScriptedSource:
    """Lookahead double returning a fixed sequence."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = list(lines)
        self.requests = 0

    def next(self) -> str | None:
        self.requests += 1
        if not self._lines:
            return None
        return self._lines.pop(0)

    def remaining(self) -> int:
        return len(self._lines)


def test_plain_line_is_info() -> None:
    classifier = BasicClassifier()
    result = classifier.classify("CompileSwift normal arm64", ScriptedSource([]))
    assert result == ClassifiedLine("CompileSwift normal arm64", OutputType.INFO)


def test_result_banner() -> None:
    classifier = BasicClassifier()
    result = classifier.classify("** ARCHIVE SUCCEEDED **", ScriptedSource([]))
    assert result is not None
    assert result.output_type is OutputType.RESULT


def test_diagnostic_folds_snippet_and_caret() -> None:
    classifier = BasicClassifier()
    source = ScriptedSource(["    let unused = 1", "        ^", "next command"])
    result = classifier.classify("/p/A.swift:1:9: warning: unused variable", source)
    assert result == ClassifiedLine(
        "/p/A.swift:1:9: warning: unused variable\n    let unused = 1\n        ^",
        OutputType.WARNING,
    )
    assert classifier.classify("    let unused = 1", ScriptedSource([])) is None
    assert classifier.classify("        ^", ScriptedSource([])) is None
    follow = classifier.classify("next command", ScriptedSource([]))
    assert follow is not None
    assert follow.output_type is OutputType.INFO


def test_diagnostic_without_caret_is_not_folded() -> None:
    classifier = BasicClassifier()
    source = ScriptedSource(["CompileC foo.o", "Ld bar"])
    result = classifier.classify("/p/a.c:2:1: error: expected ';'", source)
    assert result == ClassifiedLine("/p/a.c:2:1: error: expected ';'", OutputType.ERROR)
    assert classifier.classify("CompileC foo.o", ScriptedSource([])) is not None


def test_no_lookahead_near_the_tail() -> None:
    classifier = BasicClassifier()
    source = ScriptedSource(["only one"])
    result = classifier.classify("/p/a.swift:1:1: warning: tail", source)
    assert result is not None
    assert source.requests == 0


def test_summary_counts_diagnostics() -> None:
    classifier = BasicClassifier()
    classifier.classify("/p/a.swift:1:1: warning: one", ScriptedSource([]))
    classifier.classify("/p/a.swift:2:1: error: two", ScriptedSource([]))
    classifier.classify("/p/a.swift:3:1: warning: three", ScriptedSource([]))
    assert classifier.formatted_summary() == "Build finished with 2 warning(s) and 1 error(s)"
