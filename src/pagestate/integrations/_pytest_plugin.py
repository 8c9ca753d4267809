"""pytest plugin for pagestate.

Auto-discovered by pytest via the pytest11 entry point declared in pyproject.toml.
When the package is installed (even in editable mode), pytest discovers this plugin
automatically -- no conftest.py changes are needed.
"""

from __future__ import annotations

from typing import Any

import pytest

from pagestate import EquivalenceConfig, compare


@pytest.fixture(scope="session")
def assert_dom_equivalent() -> Any:
    """Fixture that returns a callable DOM equivalence asserter.

    The fixture is session-scoped because the returned callable is stateless
    (delegates to compare() which creates a fresh TreeComparator per call).

    Usage in tests::

        def test_same_markup(assert_dom_equivalent):
            assert_dom_equivalent("<div><p>a</p></div>", "<div>\\n <p>a</p></div>")

        def test_extra_node(assert_dom_equivalent):
            with pytest.raises(AssertionError, match=r"distance="):
                assert_dom_equivalent("<div><p>a</p></div>", "<div></div>")

    Returns:
        A callable ``_assert(actual, expected, threshold=0.0, config=None) -> None``
        that raises ``AssertionError`` when the edit distance exceeds threshold.
    """

    def _assert(
        actual: Any,
        expected: Any,
        threshold: float = 0.0,
        config: EquivalenceConfig | None = None,
    ) -> None:
        """Assert that two documents are structurally equivalent.

        Args:
            actual:    HTML (or Document) produced by the code under test.
            expected:  The reference HTML (or Document).
            threshold: Maximum tolerated edit distance.  Defaults to 0.0.
            config:    Optional EquivalenceConfig for labeling options.

        Raises:
            AssertionError: When distance > threshold, with a message listing
                the distance, threshold and changed node paths.
        """
        result = compare(actual, expected, config=config)
        if result.distance > threshold:
            raise AssertionError(
                f"Documents not equivalent: "
                f"distance={result.distance} > threshold={threshold}\n"
                f"  changed_left:  {result.changed_left}\n"
                f"  changed_right: {result.changed_right}"
            )

    return _assert
