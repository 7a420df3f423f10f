"""Tests for removal planning."""

import json

import pytest

from toolkeep.manifest import InstallMethod, TrackingConfig
from toolkeep.removal import (
    DependencyFate,
    RemovalMethod,
    RemovalOptions,
    RemovalPlanner,
    SafetyLevel,
    WarningLevel,
    describe_removal_method,
    get_removal_method,
    render_removal_plan,
    render_validation,
)


@pytest.fixture
def planner(rust_tools):
    return RemovalPlanner(rust_tools)


@pytest.fixture
def core_bundle(rust_tools):
    rust_tools.track_bundle("core", ["ripgrep", "fd"])
    return rust_tools


@pytest.fixture
def jq_chain(tracker):
    """yq depends on jq, which is itself a tracked tool."""
    tracker.track_installation("jq", TrackingConfig(method=InstallMethod.SYSTEM_PACKAGE))
    tracker.track_installation(
        "yq", TrackingConfig(method=InstallMethod.PIPX, dependencies=["jq"])
    )
    return tracker


class TestSharedDependency:
    def test_removing_one_user_keeps_shared_dependency(self, planner):
        """rust stays while fd still needs it, cascade or not."""
        plan = planner.plan_removal(["ripgrep"], RemovalOptions(cascade=True))

        assert plan.removal_targets() == ["ripgrep"]
        action = plan.get_action("ripgrep")
        assert action.method == RemovalMethod.CARGO_UNINSTALL
        assert action.paths == ["/home/u/.cargo/bin/rg"]
        assert action.is_safe
        assert action.reason == "User requested removal"

        rust = plan.get_dependency_action("rust")
        assert rust.action == DependencyFate.PRESERVE
        assert rust.reason == "Still needed by: fd"
        assert sorted(rust.affected) == ["fd", "ripgrep"]

    def test_removing_all_users_with_cascade(self, planner):
        plan = planner.plan_removal(["ripgrep", "fd"], RemovalOptions(cascade=True))

        assert plan.removal_targets() == ["ripgrep", "fd"]
        rust = plan.get_dependency_action("rust")
        assert rust.action == DependencyFate.REMOVE
        assert rust.reason == "No remaining dependents - removing with cascade"
        assert plan.summary.dependency_actions == {"remove": 1}

    def test_removing_all_users_without_cascade(self, planner):
        plan = planner.plan_removal(["ripgrep", "fd"])

        rust = plan.get_dependency_action("rust")
        assert rust.action == DependencyFate.PRESERVE
        assert rust.reason == "No remaining dependents but cascade not enabled - keeping"

    def test_pre_existing_dependency_never_cascades(self, planner, rust_tools):
        rust_tools.ledger.get_dependency("rust").pre_existing = True

        plan = planner.plan_removal(["ripgrep", "fd"], RemovalOptions(cascade=True))

        rust = plan.get_dependency_action("rust")
        assert rust.action == DependencyFate.PRESERVE
        assert rust.reason == "Dependency was pre-existing before toolkeep - keeping"

    def test_each_dependency_reported_once(self, planner):
        plan = planner.plan_removal(["ripgrep", "fd"])
        assert [d.dependency for d in plan.dependencies] == ["rust"]


class TestPreExisting:
    def test_kept_even_with_force(self, tracker):
        tracker.track_pre_existing("git", "/usr/bin/git", "2.43.0")
        planner = RemovalPlanner(tracker)

        plan = planner.plan_removal(["git"], RemovalOptions(force=True))

        assert plan.to_remove == []
        keep = plan.get_keep("git")
        assert keep.reasons == ["Tool was pre-existing before toolkeep installation"]
        assert plan.summary.will_keep == 1


class TestBlockedTargets:
    def test_kept_when_required(self, jq_chain):
        plan = RemovalPlanner(jq_chain).plan_removal(["jq"])

        assert plan.to_remove == []
        assert plan.get_keep("jq").reasons == ["Required by other tools: yq"]

    def test_forced_removal_warns(self, jq_chain):
        planner = RemovalPlanner(jq_chain)
        plan = planner.plan_removal(["jq"], RemovalOptions(force=True))

        action = plan.get_action("jq")
        assert action.method == RemovalMethod.SYSTEM_UNINSTALL
        assert action.is_safe is False
        assert plan.warnings[0].level == WarningLevel.WARNING
        assert plan.warnings[0].message == (
            "Forcing removal despite dependencies: Required by other tools: yq"
        )

        errors = [w for w in planner.validate_plan(plan) if w.level == WarningLevel.ERROR]
        assert [(w.target, w.message) for w in errors] == [
            ("jq", "Forced removal may break other tools")
        ]

    def test_removing_dependent_alongside_is_still_blocked(self, jq_chain):
        """Blockers are checked against the ledger, not against the plan."""
        plan = RemovalPlanner(jq_chain).plan_removal(["yq", "jq"])

        assert plan.removal_targets() == ["yq"]
        assert plan.get_keep("jq") is not None


class TestTargets:
    def test_untracked_target_is_info_warning(self, planner):
        plan = planner.plan_removal(["ghost"])

        assert plan.to_remove == []
        assert plan.to_keep == []
        assert plan.warnings[0].target == "ghost"
        assert plan.warnings[0].level == WarningLevel.INFO
        assert "not tracked" in plan.warnings[0].message

    def test_duplicate_targets_analyzed_once(self, planner):
        plan = planner.plan_removal(["fd", "fd", "fd"])
        assert plan.removal_targets() == ["fd"]
        assert plan.summary.total_requested == 1

    def test_empty_request(self, planner):
        plan = planner.plan_removal([])
        assert plan.to_remove == []
        assert plan.summary.total_requested == 0

    def test_build_dir_and_config_paths(self, tracker):
        tracker.track_installation(
            "neovim",
            TrackingConfig(
                method=InstallMethod.SOURCE_BUILD,
                binary_paths=["/usr/local/bin/nvim"],
                build_dir="/home/u/build/neovim",
                config_files=["/home/u/.config/nvim"],
            ),
        )
        planner = RemovalPlanner(tracker)

        without = planner.plan_removal(["neovim"]).get_action("neovim")
        assert without.paths == ["/usr/local/bin/nvim", "/home/u/build/neovim"]

        with_config = planner.plan_removal(
            ["neovim"], RemovalOptions(remove_config=True)
        ).get_action("neovim")
        assert with_config.paths[-1] == "/home/u/.config/nvim"

    def test_planning_does_not_touch_ledger(self, planner, rust_tools, memory_store):
        before_doc = memory_store.document
        before_saves = memory_store.save_count

        planner.plan_removal(["ripgrep", "fd", "ghost"], RemovalOptions(force=True, cascade=True))

        assert memory_store.document == before_doc
        assert memory_store.save_count == before_saves
        assert rust_tools.is_installed("ripgrep")


class TestBundles:
    def test_bundle_without_contents(self, core_bundle):
        plan = RemovalPlanner(core_bundle).plan_removal(["core_bundle"])

        assert plan.removal_targets() == ["core_bundle"]
        action = plan.get_action("core_bundle")
        assert action.method == RemovalMethod.BUNDLE_REMOVE
        assert action.paths == []
        assert plan.warnings[0].message == (
            "Bundle contains 2 tools that will remain installed: ripgrep, fd"
        )

    def test_bundle_with_contents(self, core_bundle):
        plan = RemovalPlanner(core_bundle).plan_removal(
            ["core_bundle"], RemovalOptions(remove_bundle_contents=True)
        )

        assert plan.removal_targets() == ["core_bundle", "ripgrep", "fd"]
        assert plan.get_action("ripgrep").reason == "Removed with bundle core_bundle"
        assert plan.get_action("fd").is_safe
        assert plan.summary.method_breakdown == {"bundle_remove": 1, "cargo_uninstall": 2}
        # bundle members have no dependency records of their own
        assert [d.dependency for d in plan.dependencies] == ["rust"]

    def test_member_blocked_by_bundle_alone(self, core_bundle):
        plan = RemovalPlanner(core_bundle).plan_removal(["fd"])
        assert plan.get_keep("fd").reasons == ["Required by other tools: core_bundle"]

    def test_member_requested_with_bundle_is_not_analyzed_twice(self, core_bundle):
        plan = RemovalPlanner(core_bundle).plan_removal(
            ["core_bundle", "fd"], RemovalOptions(remove_bundle_contents=True)
        )
        assert plan.removal_targets().count("fd") == 1
        assert plan.summary.total_requested == 2

    def test_member_listed_before_bundle_gets_same_plan(self, core_bundle):
        planner = RemovalPlanner(core_bundle)
        options = RemovalOptions(remove_bundle_contents=True)

        bundle_first = planner.plan_removal(["core_bundle", "fd"], options)
        member_first = planner.plan_removal(["fd", "core_bundle"], options)

        assert sorted(member_first.removal_targets()) == sorted(bundle_first.removal_targets())
        assert sorted(member_first.removal_targets()) == ["core_bundle", "fd", "ripgrep"]
        assert member_first.to_keep == bundle_first.to_keep == []

    def test_member_listed_before_catalog_bundle_name(self, core_bundle, catalog):
        plan = RemovalPlanner(core_bundle, catalog=catalog).plan_removal(
            ["fd", "core"], RemovalOptions(remove_bundle_contents=True)
        )
        assert plan.get_action("fd").is_safe
        assert plan.to_keep == []

    def test_unrequested_bundle_still_blocks_member(self, core_bundle):
        core_bundle.track_bundle("search", ["fd"])
        plan = RemovalPlanner(core_bundle).plan_removal(
            ["fd", "core_bundle"], RemovalOptions(remove_bundle_contents=True)
        )
        assert plan.get_keep("fd").reasons == ["Required by other tools: search_bundle"]

    def test_catalog_name_resolves_to_tracked_bundle(self, core_bundle, catalog):
        plan = RemovalPlanner(core_bundle, catalog=catalog).plan_removal(["core"])
        assert plan.removal_targets() == ["core_bundle"]

    def test_catalog_name_without_catalog_is_a_tool_lookup(self, core_bundle):
        plan = RemovalPlanner(core_bundle).plan_removal(["core"])
        assert plan.to_remove == []
        assert "Tool is not tracked" in plan.warnings[0].message

    def test_untracked_bundle(self, planner):
        plan = planner.plan_removal(["ghost-bundle"])
        assert plan.warnings[0].message == "Bundle is not tracked by toolkeep"
        assert plan.warnings[0].level == WarningLevel.INFO

    def test_bundle_named_record_with_other_method(self, tracker):
        tracker.track_installation("cli-bundle", TrackingConfig(method=InstallMethod.NPM_GLOBAL))
        plan = RemovalPlanner(tracker).plan_removal(["cli-bundle"])

        assert plan.to_remove == []
        assert plan.warnings[0].message == "Target is not a bundle"
        assert plan.warnings[0].level == WarningLevel.WARNING


class TestValidation:
    def test_clean_standard_plan(self, planner):
        plan = planner.plan_removal(["fd"])
        warnings = planner.validate_plan(plan)
        assert warnings == []
        assert render_validation(warnings) == "Validation: no issues found"

    def test_shared_dependency_removal(self, planner):
        plan = planner.plan_removal(["ripgrep", "fd"], RemovalOptions(cascade=True))
        messages = [(w.target, w.message) for w in planner.validate_plan(plan)]
        assert ("rust", "Removing shared dependency used by 2 tools") in messages

    def test_conservative_flags_every_removal(self, rust_tools):
        planner = RemovalPlanner(rust_tools, SafetyLevel.CONSERVATIVE)
        plan = planner.plan_removal(["ripgrep", "fd"])

        conservative = [
            w.target
            for w in planner.validate_plan(plan)
            if w.message == "Conservative mode: double-check removal is necessary"
        ]
        assert conservative == ["ripgrep", "fd"]

    def test_aggressive_suggests_force(self, jq_chain):
        planner = RemovalPlanner(jq_chain, SafetyLevel.AGGRESSIVE)
        plan = planner.plan_removal(["jq"])

        warnings = planner.validate_plan(plan)
        assert [(w.target, w.level) for w in warnings] == [("general", WarningLevel.INFO)]

    def test_safety_level_does_not_change_decisions(self, jq_chain):
        plans = [
            RemovalPlanner(jq_chain, level).plan_removal(["jq", "yq"])
            for level in SafetyLevel
        ]
        assert len({tuple(p.removal_targets()) for p in plans}) == 1

    def test_validate_does_not_mutate_plan(self, planner):
        plan = planner.plan_removal(["ripgrep", "fd"], RemovalOptions(cascade=True))
        before = plan.to_dict()
        planner.validate_plan(plan)
        assert plan.to_dict() == before


class TestPlanOutput:
    def test_to_dict_is_json_ready(self, planner):
        plan = planner.plan_removal(["ripgrep", "ghost"])
        data = json.loads(json.dumps(plan.to_dict()))

        assert data["to_remove"][0]["method"] == "cargo_uninstall"
        assert data["warnings"][0]["level"] == "info"
        assert data["dependencies"][0]["action"] == "preserve"
        assert data["summary"]["total_requested"] == 2

    def test_render(self, planner):
        plan = planner.plan_removal(["ripgrep", "ghost"])
        text = render_removal_plan(plan)

        assert text.startswith("Removal Plan")
        assert "Tools to be removed (1):" in text
        assert "/home/u/.cargo/bin/rg" in text
        assert "Still needed by: fd" in text
        assert "Total requested: 2" in text
        assert describe_removal_method(RemovalMethod.CARGO_UNINSTALL) in text


def test_removal_method_mapping():
    assert get_removal_method(InstallMethod.GO_INSTALL) == RemovalMethod.GO_CLEAN
    assert get_removal_method(InstallMethod.PRE_EXISTING) == RemovalMethod.PRESERVE
    assert get_removal_method(InstallMethod.BUNDLE) == RemovalMethod.BUNDLE_REMOVE
    for method in InstallMethod:
        assert describe_removal_method(get_removal_method(method)) != "Unknown removal method"
