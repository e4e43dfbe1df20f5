"""CLI 命令测试 -- python -m zentodo <command>"""

import logging
import sys
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from zentodo.__main__ import main


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch) -> Generator[Path, None, None]:
    vault = tmp_path / "vault"
    monkeypatch.setenv("ZENTODO_VAULT_DIR", str(vault))
    monkeypatch.setenv("ZENTODO_SETTINGS_DB", str(tmp_path / "data" / "zentodo.db"))
    monkeypatch.setenv("ZENTODO_LOG_LEVEL", "WARNING")
    yield vault
    # main() 会重新配置日志，测试结束后恢复
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    structlog.reset_defaults()


def _run(monkeypatch, *args: str) -> None:
    monkeypatch.setattr(sys, "argv", ["zentodo", *args])
    main()


class TestCli:
    def test_new_list_add_and_show(self, cli_env, monkeypatch, capsys):
        _run(monkeypatch, "new-list", "Groceries")
        assert (cli_env / "30_ToDos" / "Groceries.md").read_text(encoding="utf-8") == "# Groceries\n\n"

        _run(monkeypatch, "add", "Groceries", "Milk 📅 2000-01-01")
        content = (cli_env / "30_ToDos" / "Groceries.md").read_text(encoding="utf-8")
        assert content == "# Groceries\n\n- [ ] Milk\n"

        capsys.readouterr()
        _run(monkeypatch, "show")
        out = capsys.readouterr().out
        assert "* Groceries  (30_ToDos/Groceries.md)" in out
        assert "\t- [ ] Milk" in out

    def test_archive_completed(self, cli_env, monkeypatch, capsys):
        todo_dir = cli_env / "30_ToDos"
        todo_dir.mkdir(parents=True)
        (todo_dir / "Work.md").write_text(
            "# Work\n\n- [ ] Open\n- [x] Done ✅ 2024-01-01\n", encoding="utf-8"
        )
        _run(monkeypatch, "archive-completed", "Work")
        assert "已归档 1 个任务" in capsys.readouterr().out
        assert (todo_dir / "Work.md").read_text(encoding="utf-8") == (
            "# Work\n\n- [ ] Open\n\n## Archived\n\n- [x] Done ✅ 2024-01-01\n"
        )

    def test_add_with_due_date(self, cli_env, monkeypatch):
        _run(monkeypatch, "new-list", "Work")
        _run(monkeypatch, "add", "Work", "Report", "2024-03-01")
        assert (cli_env / "30_ToDos" / "Work.md").read_text(encoding="utf-8") == (
            "# Work\n\n- [ ] Report 📅 2024-03-01\n"
        )

    def test_add_with_invalid_due_date(self, cli_env, monkeypatch, capsys):
        _run(monkeypatch, "new-list", "Work")
        with pytest.raises(SystemExit):
            _run(monkeypatch, "add", "Work", "Report", "2024-02-31")
        assert "非法日期" in capsys.readouterr().out
        assert (cli_env / "30_ToDos" / "Work.md").read_text(encoding="utf-8") == "# Work\n\n"

    def test_unknown_list(self, cli_env, monkeypatch):
        with pytest.raises(SystemExit):
            _run(monkeypatch, "add", "Nope", "task")

    def test_unknown_command(self, cli_env, monkeypatch):
        with pytest.raises(SystemExit):
            _run(monkeypatch, "frobnicate")

    def test_no_command(self, monkeypatch, capsys):
        with pytest.raises(SystemExit):
            _run(monkeypatch)
        assert "用法" in capsys.readouterr().out
