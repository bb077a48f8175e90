"""Tests for pod health classification."""
from datetime import timedelta

import pytest

from healing_operator.healing import Thresholds, Verdict, classify
from healing_operator.models import PodPhase, PodSnapshot

from conftest import NOW, make_pod


class TestPendingRule:

    def test_pending_past_threshold(self):
        pod = make_pod(phase=PodPhase.PENDING, age=timedelta(minutes=16), ready=None)
        assert classify(pod, NOW) == Verdict.STUCK_PENDING

    def test_pending_exactly_at_threshold_is_not_stuck(self):
        """Test the boundary is strict greater-than."""
        pod = make_pod(phase=PodPhase.PENDING, age=timedelta(minutes=15), ready=None)
        assert classify(pod, NOW) == Verdict.HEALTHY

    def test_pending_just_past_threshold(self):
        pod = make_pod(phase=PodPhase.PENDING, age=timedelta(minutes=15, microseconds=1), ready=None)
        assert classify(pod, NOW) == Verdict.STUCK_PENDING

    def test_pending_without_creation_timestamp(self):
        pod = PodSnapshot(namespace="default", name="p", phase=PodPhase.PENDING)
        assert classify(pod, NOW) == Verdict.HEALTHY

    def test_custom_threshold(self):
        pod = make_pod(phase=PodPhase.PENDING, age=timedelta(minutes=2), ready=None)
        assert classify(pod, NOW, Thresholds(pending=timedelta(minutes=1))) == Verdict.STUCK_PENDING


class TestCrashLoopRules:

    @pytest.mark.parametrize("restarts,expected", [
        (0, Verdict.HEALTHY),
        (10, Verdict.HEALTHY),
        (11, Verdict.STUCK_CRASH_LOOP),
        (50, Verdict.STUCK_CRASH_LOOP),
    ])
    def test_restart_threshold(self, restarts, expected):
        assert classify(make_pod(restarts=restarts), NOW) == expected

    def test_restart_count_flips_verdict_monotonically(self):
        """Test once past the threshold, more restarts never flip back to healthy."""
        verdicts = [classify(make_pod(restarts=n), NOW) for n in range(0, 30)]
        first_stuck = verdicts.index(Verdict.STUCK_CRASH_LOOP)
        assert first_stuck == 11
        assert all(v == Verdict.HEALTHY for v in verdicts[:first_stuck])
        assert all(v == Verdict.STUCK_CRASH_LOOP for v in verdicts[first_stuck:])

    def test_crash_loop_back_off_waiting_reason(self):
        pod = make_pod(restarts=2, waiting_reason="CrashLoopBackOff")
        assert classify(pod, NOW) == Verdict.STUCK_CRASH_LOOP

    def test_other_waiting_reason(self):
        pod = make_pod(waiting_reason="ContainerCreating")
        assert classify(pod, NOW) == Verdict.HEALTHY

    def test_restarts_ignored_unless_running(self):
        pod = make_pod(phase=PodPhase.FAILED, restarts=20, waiting_reason="CrashLoopBackOff")
        assert classify(pod, NOW) == Verdict.HEALTHY

    def test_custom_restart_threshold(self):
        assert classify(make_pod(restarts=4), NOW, Thresholds(restarts=3)) == Verdict.STUCK_CRASH_LOOP


class TestNotReadyRule:

    def test_not_ready_past_threshold(self):
        pod = make_pod(ready="False", ready_for=timedelta(minutes=11))
        assert classify(pod, NOW) == Verdict.STUCK_NOT_READY

    def test_not_ready_at_threshold(self):
        pod = make_pod(ready="False", ready_for=timedelta(minutes=10))
        assert classify(pod, NOW) == Verdict.HEALTHY

    def test_no_ready_condition_never_stuck(self):
        """Test a pod that has not reported conditions is not flagged."""
        pod = make_pod(ready=None, age=timedelta(hours=5))
        assert classify(pod, NOW) == Verdict.HEALTHY

    def test_ready_false_without_timestamp(self):
        pod = make_pod(ready="False", ready_for=None)
        assert classify(pod, NOW) == Verdict.HEALTHY

    def test_ready_unknown_is_not_false(self):
        pod = make_pod(ready="Unknown", ready_for=timedelta(hours=1))
        assert classify(pod, NOW) == Verdict.HEALTHY

    def test_applies_to_any_phase(self):
        pod = make_pod(phase=PodPhase.SUCCEEDED, ready="False", ready_for=timedelta(hours=1))
        assert classify(pod, NOW) == Verdict.STUCK_NOT_READY


class TestRulePriority:

    def test_pending_wins_over_not_ready(self):
        pod = make_pod(
            phase=PodPhase.PENDING,
            age=timedelta(minutes=20),
            ready="False",
            ready_for=timedelta(minutes=20),
        )
        assert classify(pod, NOW) == Verdict.STUCK_PENDING

    def test_crash_loop_wins_over_not_ready(self):
        pod = make_pod(restarts=11, ready="False", ready_for=timedelta(minutes=20))
        assert classify(pod, NOW) == Verdict.STUCK_CRASH_LOOP

    def test_healthy_running_pod(self):
        assert classify(make_pod(), NOW) == Verdict.HEALTHY

    def test_classification_is_stateless(self):
        pod = make_pod(restarts=11)
        assert [classify(pod, NOW) for _ in range(3)] == [Verdict.STUCK_CRASH_LOOP] * 3
