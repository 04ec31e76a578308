# -*- coding: utf-8 -*-
"""Tests for ProjectionEngine."""

import pytest

from opterra.risk.failure_model import bio_age_to_fail_prob, fail_prob_to_health_score
from opterra.risk.models import UnitType
from opterra.risk.projection import (
    ProjectionEngine,
    project_future_health,
    project_health_timeline,
)


class TestProjectFutureHealth:

    def test_zero_months_is_current_state(self):
        point = project_future_health(8.0, 1.5, 0)
        assert point.months == 0
        assert point.bio_age == 8.0
        assert point.fail_prob == bio_age_to_fail_prob(8.0)
        assert point.health_score == fail_prob_to_health_score(point.fail_prob)

    def test_bio_age_step(self):
        assert project_future_health(8.0, 1.5, 24).bio_age == 11.0

    @pytest.mark.parametrize("rate", [0.5, 1.0, 1.5, 3.0])
    def test_longer_horizon_never_healthier(self, rate):
        scores = [project_future_health(5.0, rate, m).health_score for m in range(0, 121, 6)]
        assert scores == sorted(scores, reverse=True)

    def test_zero_rate_freezes_health(self):
        now = project_future_health(6.0, 0.0, 0)
        later = project_future_health(6.0, 0.0, 60)
        assert later.health_score == now.health_score

    @pytest.mark.parametrize(
        "bio_age, rate, months",
        [(-3.0, 1.0, 12), (4.0, -2.0, 12), (4.0, 1.0, -12)],
    )
    def test_negative_arguments_clamped(self, bio_age, rate, months):
        point = project_future_health(bio_age, rate, months)
        assert point.bio_age >= 0
        assert point.months >= 0

    def test_negative_months_equals_now(self):
        assert project_future_health(4.0, 1.0, -12) == project_future_health(4.0, 1.0, 0)

    def test_unit_type_selects_curve(self):
        tank = project_future_health(8.0, 1.5, 24, UnitType.TANK)
        tankless = project_future_health(8.0, 1.5, 24, UnitType.TANKLESS)
        assert tankless.health_score > tank.health_score


class TestTimeline:

    def test_sorted_and_deduplicated(self):
        points = project_health_timeline(4.0, 1.2, [24, 6, 12, 6])
        assert [p.months for p in points] == [6, 12, 24]

    def test_matches_single_projection(self):
        engine = ProjectionEngine()
        points = engine.timeline(4.0, 1.2, [12, 36])
        assert points[1] == engine.project(4.0, 1.2, 36)

    def test_empty(self):
        assert project_health_timeline(4.0, 1.2, []) == []
