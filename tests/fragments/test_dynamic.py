"""Tests for DynamicFragmentDetector and StateVertex.assign_dynamic_fragments."""

from __future__ import annotations

import logging

import pytest

from pagestate.fragments.dynamic import DynamicFragmentDetector
from pagestate.state import StateVertex


@pytest.fixture
def fragmented(make_state, page_html, rectangles_for):  # type: ignore[no-untyped-def]
    """Build a fragmented state from the test page with a given first paragraph."""

    def _make(state_id: int, first: str = "one") -> StateVertex:
        state = make_state(state_id, page_html(first))
        state.add_fragments(rectangles_for(state.document))
        return state

    return _make


class TestAssign:
    def test_identical_content_has_no_dynamic_fragments(self, fragmented) -> None:  # type: ignore[no-untyped-def]
        current, reference = fragmented(1), fragmented(2)
        assert current.assign_dynamic_fragments(reference) == []
        assert not any(f.dynamic for f in current.fragments())

    def test_changed_text_flags_enclosing_fragment(self, fragmented) -> None:  # type: ignore[no-untyped-def]
        current, reference = fragmented(1, "fresh"), fragmented(2, "stale")
        dynamic = current.assign_dynamic_fragments(reference)
        assert [f.id for f in dynamic] == [2]
        assert dynamic[0].dynamic
        header = current.fragment_tree.get(1)  # type: ignore[union-attr]
        assert header is not None and not header.dynamic

    def test_changed_nodes_are_flagged(self, fragmented) -> None:  # type: ignore[no-untyped-def]
        current, reference = fragmented(1, "fresh"), fragmented(2, "stale")
        current.assign_dynamic_fragments(reference)
        flagged = [n for n in current.document.iter_nodes() if n.dynamic]
        assert [n.text for n in flagged] == ["fresh"]

    def test_fragment_reported_once(self, make_state, rectangles_for) -> None:  # type: ignore[no-untyped-def]
        html = (
            '<html><body data-rect="0,0,800,600">'
            '<div id="header" data-rect="0,0,800,100"><a>x</a><a>y</a></div>'
            '<div id="main" data-rect="0,100,800,500"><p>{0}</p><p>{0}</p></div>'
            "</body></html>"
        )
        current = make_state(1, html.format("new"))
        current.add_fragments(rectangles_for(current.document))
        reference = make_state(2, html.format("old"))
        dynamic = current.assign_dynamic_fragments(reference)
        assert [f.id for f in dynamic] == [2]

    def test_other_kind_yields_nothing(self, fragmented) -> None:  # type: ignore[no-untyped-def]
        from pagestate.factories import HybridStateFactory

        current = fragmented(1, "fresh")
        html = current.dom.replace("fresh", "stale")
        reference = HybridStateFactory().new_state(2, None, "hybrid", html, html)
        assert current.assign_dynamic_fragments(reference) == []

    def test_unfragmented_state_logs_missing_fragment(
        self, make_state, page_html, caplog: pytest.LogCaptureFixture
    ) -> None:  # type: ignore[no-untyped-def]
        current = make_state(1, page_html("fresh"))
        reference = make_state(2, page_html("stale"))
        with caplog.at_level(logging.ERROR):
            assert current.assign_dynamic_fragments(reference) == []
        assert "No fragment found for diff node" in caplog.text


class TestDetector:
    def test_missing_document(
        self, fragmented, caplog: pytest.LogCaptureFixture
    ) -> None:  # type: ignore[no-untyped-def]
        from pagestate.state import StateVertex

        current = fragmented(1)
        hollow = StateVertex(2, None, "hollow", "", "", current.strategy, None)
        with caplog.at_level(logging.ERROR):
            assert DynamicFragmentDetector().assign(current, hollow) == []
        assert "no document" in caplog.text

    def test_failure_returns_found_so_far(
        self, fragmented, caplog: pytest.LogCaptureFixture
    ) -> None:  # type: ignore[no-untyped-def]
        class BrokenDiff:
            def diff_nodes(self, doc1, doc2):  # type: ignore[no-untyped-def]
                raise RuntimeError("boom")

        detector = DynamicFragmentDetector(BrokenDiff())  # type: ignore[arg-type]
        with caplog.at_level(logging.ERROR):
            assert detector.assign(fragmented(1, "a"), fragmented(2, "b")) == []
        assert "Error assigning dynamic fragments" in caplog.text
