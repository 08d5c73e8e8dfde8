"""Tests for risk scoring and validation-tier selection."""

import pytest

from smart_push.config import RiskPatternConfig
from smart_push.context import ChangeContext
from smart_push.selector import (
    CI_ONLY_STEPS,
    TIER_STEPS,
    Step,
    ValidationTier,
    score_change,
    select_tier,
    steps_for,
    tier_for_score,
)


def make_context(paths=(), lines=0, branch="feature/x", hour=22, weekday=6) -> ChangeContext:
    return ChangeContext(
        changed_file_paths=tuple(paths),
        changed_line_count=lines,
        branch_name=branch,
        hour=hour,
        day_of_week=weekday,
    )


class TestPathClasses:
    """Each path class adds its weight once."""

    @pytest.mark.parametrize(
        "path",
        ["setup.js", "lib/commands/deps.js", "templates/ci.yml", "config/defaults.js"],
    )
    def test_high_risk_paths(self, path):
        """Core paths add 4 (config/ also matches the config class)."""
        score, contributions = score_change(make_context([path]))
        labels = [c.label for c in contributions]
        assert "High-risk core files changed" in labels
        expected = 6 if path.startswith("config/") else 4
        assert score == expected

    def test_api_path(self):
        """An api/ directory adds 2."""
        score, _ = score_change(make_context(["src/api/users.py"]))
        assert score == 2

    @pytest.mark.parametrize("path", ["package.json", ".env.local", "app.config.ts"])
    def test_config_paths(self, path):
        """Manifests, env files and config files add 2."""
        score, _ = score_change(make_context([path]))
        assert score == 2

    def test_class_counted_once(self):
        """Many matches in one class still add the weight once."""
        score, contributions = score_change(make_context(["lib/a.js", "lib/b.js", "lib/c.js"]))
        assert score == 4
        assert len(contributions) == 1

    def test_all_classes_stack(self):
        """Different classes add independently."""
        score, _ = score_change(make_context(["lib/a.js", "api/b.js", "package.json"]))
        assert score == 8

    def test_unmatched_paths(self):
        """Docs-only changes score nothing."""
        score, contributions = score_change(make_context(["README.md", "docs/guide.md"]))
        assert score == 0
        assert contributions == ()

    def test_custom_patterns(self):
        """Configured patterns replace the defaults."""
        patterns = RiskPatternConfig(high_risk=(r"^src/core/",), api=(), config=())
        assert score_change(make_context(["src/core/engine.py"]), patterns)[0] == 4
        assert score_change(make_context(["lib/a.js"]), patterns)[0] == 0

    def test_evidence_truncated(self):
        """Evidence lists the first few matching paths."""
        _, contributions = score_change(make_context([f"lib/{i}.js" for i in range(5)]))
        assert contributions[0].evidence.endswith("(+2 more)")


class TestSizeContributions:
    """File count and line count bonuses."""

    def test_ten_files_no_bonus(self):
        score, _ = score_change(make_context([f"docs/{i}.md" for i in range(10)]))
        assert score == 0

    def test_eleven_files(self):
        score, _ = score_change(make_context([f"docs/{i}.md" for i in range(11)]))
        assert score == 2

    def test_twenty_files(self):
        score, _ = score_change(make_context([f"docs/{i}.md" for i in range(20)]))
        assert score == 2

    def test_twenty_one_files_both_bonuses(self):
        """Above 20 files both size bonuses apply."""
        score, _ = score_change(make_context([f"docs/{i}.md" for i in range(21)]))
        assert score == 5

    def test_line_threshold(self):
        assert score_change(make_context(lines=200))[0] == 0
        assert score_change(make_context(lines=201))[0] == 2


class TestBranchContributions:
    """First matching branch category wins."""

    @pytest.mark.parametrize(
        "branch,points",
        [
            ("main", 3),
            ("master", 3),
            ("production", 3),
            ("hotfix/login", 4),
            ("release/1.2", 2),
            ("develop", 1),
            ("feature/x", 0),
            ("", 0),
            ("mainline", 0),
            ("my-hotfix/x", 0),
        ],
    )
    def test_branch_points(self, branch, points):
        score, _ = score_change(make_context(branch=branch))
        assert score == points

    def test_main_adds_exactly_three(self):
        """Same change on main scores 3 more than on a feature branch."""
        paths = ["lib/a.js", "README.md"]
        feature, _ = score_change(make_context(paths, lines=50, branch="feature/a"))
        main, _ = score_change(make_context(paths, lines=50, branch="main"))
        assert main - feature == 3


class TestTierForScore:
    """Score-to-tier boundaries."""

    @pytest.mark.parametrize("work_hours", [True, False])
    def test_boundaries(self, work_hours):
        assert tier_for_score(3, work_hours) is ValidationTier.FAST
        assert tier_for_score(2, work_hours) is ValidationTier.FAST
        assert tier_for_score(4, work_hours) is ValidationTier.STANDARD
        assert tier_for_score(6, work_hours) is ValidationTier.STANDARD
        assert tier_for_score(7, work_hours) is ValidationTier.COMPREHENSIVE
        assert tier_for_score(16, work_hours) is ValidationTier.COMPREHENSIVE

    def test_low_score_work_hours_is_minimal(self):
        assert tier_for_score(0, True) is ValidationTier.MINIMAL
        assert tier_for_score(1, True) is ValidationTier.MINIMAL

    def test_low_score_off_hours_is_fast(self):
        assert tier_for_score(0, False) is ValidationTier.FAST
        assert tier_for_score(1, False) is ValidationTier.FAST

    def test_total_over_range(self):
        """Every score maps to some tier."""
        for score in range(0, 40):
            for work_hours in (True, False):
                assert tier_for_score(score, work_hours) in ValidationTier


class TestSelectTier:
    """End-to-end selection."""

    def test_empty_change_off_hours(self, feature_context):
        """Empty change on a feature branch off-hours scores 0 and runs fast."""
        selection = select_tier(feature_context)
        assert selection.score == 0
        assert selection.tier is ValidationTier.FAST
        assert selection.steps == (Step.UNIT_TESTS,)

    def test_empty_change_work_hours(self):
        """Empty change during work hours drops to minimal."""
        selection = select_tier(make_context(hour=10, weekday=2))
        assert selection.score == 0
        assert selection.tier is ValidationTier.MINIMAL
        assert selection.steps == (Step.LINT, Step.FORMAT_CHECK)

    def test_work_hours_tie_break(self):
        """At score 0 only the clock decides between minimal and fast."""
        on = select_tier(make_context(hour=9, weekday=1))
        off = select_tier(make_context(hour=18, weekday=1))
        weekend = select_tier(make_context(hour=12, weekday=6))
        assert on.tier is ValidationTier.MINIMAL
        assert off.tier is ValidationTier.FAST
        assert weekend.tier is ValidationTier.FAST

    def test_hotfix_scenario(self):
        """25 lib files, 250 lines, hotfix branch, Saturday night."""
        paths = [f"lib/file{i}.js" for i in range(25)]
        selection = select_tier(
            make_context(paths, lines=250, branch="hotfix/urgent", hour=22, weekday=6)
        )
        assert selection.score == 15
        assert selection.tier is ValidationTier.COMPREHENSIVE
        assert selection.steps == (Step.PATTERN_CHECK, Step.UNIT_TESTS, Step.SECURITY_AUDIT)

    def test_readme_scenario(self):
        """A small docs change mid-week during work hours."""
        selection = select_tier(
            make_context(["README.md"], lines=3, branch="feature/docs", hour=14, weekday=3)
        )
        assert selection.score == 0
        assert selection.tier is ValidationTier.MINIMAL

    def test_standard_tier(self):
        selection = select_tier(make_context(["lib/a.js"]))
        assert selection.score == 4
        assert selection.tier is ValidationTier.STANDARD
        assert selection.steps == (Step.PATTERN_CHECK, Step.UNIT_TESTS)

    def test_idempotent(self):
        """Same context, same answer."""
        context = make_context(["lib/a.js", "api/x.js"], lines=300, branch="main")
        first = select_tier(context)
        second = select_tier(context)
        assert (first.score, first.tier, first.steps) == (second.score, second.tier, second.steps)
        assert first == second

    def test_context_not_mutated(self):
        context = make_context(["lib/a.js"], lines=5, branch="main")
        before = context.to_dict()
        select_tier(context)
        assert context.to_dict() == before

    def test_justification(self):
        """One line per rule plus a summary line."""
        selection = select_tier(make_context(["lib/a.js"], branch="main"))
        assert len(selection.justification) == 3
        assert selection.justification[0].startswith("High-risk core files changed (+4)")
        assert "lib/a.js" in selection.justification[0]
        assert selection.justification[-1] == "Risk score 7 outside work hours -> comprehensive"

    def test_ci_adds_ci_only_steps_to_comprehensive(self):
        context = make_context(["lib/a.js"], branch="main")
        selection = select_tier(context, ci=True)
        assert selection.steps[-2:] == CI_ONLY_STEPS

    def test_ci_leaves_other_tiers_alone(self):
        selection = select_tier(make_context(["lib/a.js"]), ci=True)
        assert selection.steps == TIER_STEPS[ValidationTier.STANDARD]

    def test_local_path_never_has_ci_steps(self):
        for tier in ValidationTier:
            assert not set(steps_for(tier)) & set(CI_ONLY_STEPS)

    def test_to_dict(self):
        data = select_tier(make_context(["api/a.py"])).to_dict()
        assert data["score"] == 2
        assert data["tier"] == "fast"
        assert data["steps"] == ["unit_tests"]
        assert data["forced_by"] is None


class TestMonotonicity:
    """Adding a high-risk path never lowers the score or the tier."""

    @pytest.mark.parametrize(
        "paths,lines,branch,hour,weekday",
        [
            ([], 0, "feature/x", 10, 2),
            (["README.md"], 3, "feature/docs", 14, 3),
            (["api/a.py"], 0, "develop", 22, 6),
            ([f"docs/{i}.md" for i in range(12)], 250, "release/2", 9, 5),
            (["lib/a.js"], 0, "main", 3, 7),
        ],
    )
    def test_adding_high_risk_path(self, paths, lines, branch, hour, weekday):
        base = select_tier(make_context(paths, lines, branch, hour, weekday))
        more = select_tier(make_context(paths + ["lib/new.js"], lines, branch, hour, weekday))
        assert more.score >= base.score
        assert more.tier >= base.tier
