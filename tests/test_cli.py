"""Tests for CLI command registration and invocation."""
from __future__ import annotations
import json
from pathlib import Path
import pytest
from typer.testing import CliRunner
from codecanon.cli.main import app
from codecanon.git.git_utils import GitClient
from tests.conftest import CONFIG_YAML, PYTHON_MODULE, VUE_COMPONENT

runner = CliRunner()


def _invoke(*args: str):
    return runner.invoke(app, list(args))


class TestCLIHelp:
    def test_main_help(self) -> None:
        assert _invoke("--help").exit_code == 0

    @pytest.mark.parametrize("command", ["judge", "repent", "scripture", "sync", "cleanup"])
    def test_command_help(self, command: str) -> None:
        assert _invoke(command, "--help").exit_code == 0


class TestJudgeCommand:
    def test_violations_exit_one(self, sample_project: Path) -> None:
        r = _invoke("judge", "--dir", str(sample_project))
        assert r.exit_code == 1 and "Judgment Summary" in r.output

    def test_explicit_config(self, sample_project: Path) -> None:
        assert _invoke("judge", "--config", str(sample_project / "codecanon.yaml")).exit_code == 1

    def test_clean_project_exits_zero(self, sample_project: Path) -> None:
        (sample_project / "src" / "loader.py").write_text("x = 1\n")
        (sample_project / "web" / "List.vue").write_text("<template><p/></template>\n<script>\nexport default {}\n</script>\n")
        r = _invoke("judge", "--dir", str(sample_project))
        assert r.exit_code == 0 and "No violations found." in r.output

    def test_single_group_and_rule(self, sample_project: Path) -> None:
        assert _invoke("judge", "--dir", str(sample_project), "--group", "backend", "--rule", "long-function").exit_code == 0
        assert _invoke("judge", "--dir", str(sample_project), "--group", "frontend", "--rule", "3").exit_code == 0
        assert _invoke("judge", "--dir", str(sample_project), "--group", "frontend", "--rule", "2").exit_code == 1

    def test_single_file(self, sample_project: Path) -> None:
        assert _invoke("judge", "--dir", str(sample_project), "--file", "src/loader.py").exit_code == 1
        assert _invoke("judge", "--dir", str(sample_project), "--files", "web/List.vue", "--rule", "long-vue").exit_code == 0

    def test_missing_file(self, sample_project: Path) -> None:
        assert _invoke("judge", "--dir", str(sample_project), "--file", "src/gone.py").exit_code == 2

    def test_missing_config_is_fatal(self, tmp_path: Path) -> None:
        assert _invoke("judge", "--config", str(tmp_path / "nope.yaml")).exit_code == 2

    def test_unknown_group_is_fatal(self, sample_project: Path) -> None:
        assert _invoke("judge", "--dir", str(sample_project), "--group", "mobile").exit_code == 2

    def test_unknown_rule_in_config_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "codecanon.yaml").write_text("groups:\n  api:\n    rules: [no-such-rule]\n")
        assert _invoke("judge", "--dir", str(tmp_path)).exit_code == 2

    def test_acknowledge_suppresses_advisories(self, sample_project: Path) -> None:
        args = ("judge", "--dir", str(sample_project), "--group", "frontend", "--rule", "long-vue-files")
        first = _invoke(*args, "--acknowledge")
        assert first.exit_code == 0 and "Acknowledged 1 reviewed finding(s)." in first.output
        store = json.loads((sample_project / ".codecanon" / "acknowledgments.json").read_text())
        assert list(store) == ["web/List.vue"] and "long-vue-files" in store["web/List.vue"]
        second = _invoke(*args)
        assert second.exit_code == 0 and "No violations found." in second.output

    def test_acknowledgment_expires_on_change(self, sample_project: Path) -> None:
        args = ("judge", "--dir", str(sample_project), "--group", "frontend", "--rule", "long-vue-files")
        _invoke(*args, "--acknowledge")
        (sample_project / "web" / "List.vue").write_text(VUE_COMPONENT + "<!-- more -->\n")
        assert "Advisories need a manual review" in _invoke(*args).output

    def test_git_without_changes(self, sample_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(GitClient, "changed_files", lambda self: [])
        r = _invoke("judge", "--dir", str(sample_project), "--git")
        assert r.exit_code == 0 and "No changed files in git" in r.output

    def test_git_changes_only(self, sample_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (sample_project / "src" / "clean.py").write_text("x = 1\n")
        monkeypatch.setattr(GitClient, "changed_files", lambda self: [sample_project / "src" / "clean.py"])
        assert _invoke("judge", "--dir", str(sample_project), "--git").exit_code == 0


class TestRepentCommand:
    def test_fixes_remediable_violations(self, sample_project: Path) -> None:
        r = _invoke("repent", "--dir", str(sample_project))
        assert r.exit_code == 0
        assert "except Exception:" in (sample_project / "src" / "loader.py").read_text()
        assert '<template v-for="item in items"' in (sample_project / "web" / "List.vue").read_text()
        assert not (sample_project / "src" / "loader.py.bak").exists()

    def test_dry_run_leaves_files(self, sample_project: Path) -> None:
        r = _invoke("repent", "--dir", str(sample_project), "--dry-run")
        assert r.exit_code == 0 and "Would fix" in r.output
        assert (sample_project / "src" / "loader.py").read_text() == PYTHON_MODULE

    def test_rule_filter(self, sample_project: Path) -> None:
        assert _invoke("repent", "--dir", str(sample_project), "--rule", "bare").exit_code == 0
        assert (sample_project / "web" / "List.vue").read_text() == VUE_COMPONENT

    def test_files_option(self, sample_project: Path) -> None:
        r = _invoke("repent", "--dir", str(sample_project), "--files", "web/List.vue")
        assert r.exit_code == 0
        assert (sample_project / "src" / "loader.py").read_text() == PYTHON_MODULE
        assert "<template v-for" in (sample_project / "web" / "List.vue").read_text()

    def test_nothing_to_fix(self, sample_project: Path) -> None:
        _invoke("repent", "--dir", str(sample_project))
        assert "Nothing to fix." in _invoke("repent", "--dir", str(sample_project)).output


class TestScriptureCommand:
    def test_lists_configured_rules(self, sample_project: Path) -> None:
        r = _invoke("scripture", "--dir", str(sample_project))
        assert r.exit_code == 0 and "no-bare-except" in r.output

    def test_falls_back_to_builtin_catalog(self, tmp_path: Path) -> None:
        r = _invoke("scripture", "--dir", str(tmp_path))
        assert r.exit_code == 0 and "scoped-styles" in r.output

    def test_describes_one_rule(self, sample_project: Path) -> None:
        r = _invoke("scripture", "template-v-for", "--dir", str(sample_project))
        assert r.exit_code == 0 and "template-v-for" in r.output

    def test_group_option(self, sample_project: Path) -> None:
        r = _invoke("scripture", "--dir", str(sample_project), "--group", "frontend")
        assert r.exit_code == 0 and "template-v-for" in r.output and "no-bare-except" not in r.output
        assert _invoke("scripture", "--dir", str(sample_project), "--group", "mobile").exit_code == 2

    def test_review_flag_is_shown(self, sample_project: Path) -> None:
        r = _invoke("scripture", "long-vue-files", "--dir", str(sample_project))
        assert r.exit_code == 0 and "needs review" in r.output

    def test_unknown_rule(self, tmp_path: Path) -> None:
        assert _invoke("scripture", "no-such-rule", "--dir", str(tmp_path)).exit_code == 2

    def test_explicit_missing_config(self, tmp_path: Path) -> None:
        assert _invoke("scripture", "--config", str(tmp_path / "nope.yaml")).exit_code == 2


class TestSyncCommand:
    def test_dry_run(self, sample_project: Path) -> None:
        r = _invoke("sync", "--dir", str(sample_project), "--dry-run")
        assert r.exit_code == 0 and "scoped-styles" in r.output
        assert (sample_project / "codecanon.yaml").read_text() == CONFIG_YAML

    def test_write_then_up_to_date(self, sample_project: Path) -> None:
        assert _invoke("sync", "--dir", str(sample_project)).exit_code == 0
        assert "no-print-calls" in (sample_project / "codecanon.yaml").read_text()
        assert "Configuration is up to date." in _invoke("sync", "--dir", str(sample_project)).output


class TestCleanupCommand:
    def test_removes_stale_entries(self, sample_project: Path) -> None:
        store = sample_project / ".codecanon" / "acknowledgments.json"
        store.parent.mkdir()
        record = {"acknowledgedAt": "2024-01-01T00:00:00Z", "reason": None, "contentHash": "0" * 64}
        store.write_text(json.dumps({"web/List.vue": {"scoped-styles": record}, "web/Gone.vue": {"scoped-styles": record}}))
        r = _invoke("cleanup", "--dir", str(sample_project))
        assert r.exit_code == 0 and "Removed 1 stale acknowledgment entry." in r.output
        assert list(json.loads(store.read_text())) == ["web/List.vue"]

    def test_malformed_store_is_fatal(self, sample_project: Path) -> None:
        store = sample_project / ".codecanon" / "acknowledgments.json"
        store.parent.mkdir()
        store.write_text("[1, 2]")
        assert _invoke("cleanup", "--dir", str(sample_project)).exit_code == 2
