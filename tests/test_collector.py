"""
contractcase Collector Test Suite
"""

import pytest

from contractcase.collector import Collector


class TestCollector:

    def test_steps_are_numbered(self):
        collector = Collector("case")
        collector.log_step_pass("deployed")
        collector.assert_equal(2, 2, "value")
        assert [o.step for o in collector.outcomes] == [1, 2]
        assert collector.passed

    def test_mismatch_is_recorded_not_raised(self):
        collector = Collector("case")
        assert collector.assert_equal("ab", "cd", "hex") is False
        assert collector.assert_equal(True, True, "flag") is True
        assert not collector.passed
        assert len(collector.failures) == 1
        failure = collector.failures[0]
        assert failure.expected == "ab"
        assert failure.actual == "cd"

    def test_log_step_fail_includes_error(self):
        collector = Collector("case", label="row-1")
        outcome = collector.log_step_fail("aborted", RuntimeError("boom"))
        assert not outcome.passed
        assert "RuntimeError: boom" in outcome.message

    def test_assert_true(self):
        collector = Collector("case")
        assert collector.assert_true(1, "truthy")
        assert not collector.assert_true(0, "falsy")

    def test_outcomes_are_frozen(self):
        collector = Collector("case")
        outcome = collector.log_step_pass("x")
        with pytest.raises(AttributeError):
            outcome.passed = False

    def test_summary(self):
        collector = Collector("case")
        collector.log_step_pass("a")
        collector.assert_equal(1, 2)
        assert collector.summary() == {"steps": 2, "passed": 1, "failed": 1}

    def test_to_dict_hexes_bytes(self):
        collector = Collector("case")
        collector.assert_equal(b"\x01", b"\x02", "bytes")
        data = collector.outcomes[0].to_dict()
        assert data["expected"] == "01"
        assert data["actual"] == "02"
