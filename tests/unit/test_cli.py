"""Tests for the docline command line."""

from __future__ import annotations

from pathlib import Path

import pytest

from docline import __version__, cli


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the CLI from attaching handlers to the root logger."""
    monkeypatch.setattr(cli, "_setup_logging", lambda *args, **kwargs: None)


class TestTransformCommand:
    """docline transform."""

    def test_stdout(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        src = tmp_path / "in.html"
        src.write_text("<h2>T</h2>", encoding="utf-8")
        cli.main(["transform", str(src), "--seed", "1"])

        captured = capsys.readouterr()
        assert "<br><h2>T</h2><br>" in captured.out
        assert "modified" in captured.err

    def test_output_file(self, tmp_path: Path) -> None:
        src = tmp_path / "in.html"
        src.write_text("<table><tr><td>a</td></tr></table>", encoding="utf-8")
        out = tmp_path / "out.html"
        cli.main(["transform", str(src), "-o", str(out), "--seed", "1"])
        assert "tbljson-" in out.read_text(encoding="utf-8")

    def test_seed_is_reproducible(self, tmp_path: Path) -> None:
        src = tmp_path / "in.html"
        src.write_text('<p><img src="http://a.com/i.png"></p>', encoding="utf-8")
        outputs = []
        for name in ("a.html", "b.html"):
            cli.main(["transform", str(src), "-o", str(tmp_path / name), "--seed", "7"])
            outputs.append((tmp_path / name).read_text(encoding="utf-8"))
        assert outputs[0] == outputs[1]

    def test_paste_mode(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "clip.html"
        src.write_text("<h2>T</h2>", encoding="utf-8")
        cli.main(["transform", str(src), "--paste"])
        out = capsys.readouterr().out
        assert out == "<h2>T</h2><br>"

    def test_unchanged(self, tmp_path: Path, capsys) -> None:
        src = tmp_path / "in.html"
        src.write_text("<p>plain</p>", encoding="utf-8")
        cli.main(["transform", str(src)])
        captured = capsys.readouterr()
        assert captured.out == "<p>plain</p>"
        assert "unchanged" in captured.err

    def test_missing_input(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["transform", str(tmp_path / "missing.html")])
        assert excinfo.value.code == 1


class TestImportCommand:
    """docline import."""

    def test_delegates(self, tmp_path: Path, monkeypatch) -> None:
        calls: list[tuple[Path, Path]] = []

        async def fake_import(src: Path, dest: Path) -> bool:
            calls.append((src, dest))
            return True

        monkeypatch.setattr(cli, "import_document", fake_import)
        src = tmp_path / "a.docx"
        src.write_bytes(b"x")
        cli.main(["import", str(src), str(tmp_path / "a.html")])
        assert calls == [(src, tmp_path / "a.html")]

    def test_not_handled(self, tmp_path: Path, monkeypatch) -> None:
        async def fake_import(src: Path, dest: Path) -> bool:
            return False

        monkeypatch.setattr(cli, "import_document", fake_import)
        src = tmp_path / "a.docx"
        src.write_bytes(b"x")
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["import", str(src), str(tmp_path / "a.html")])
        assert excinfo.value.code == 1

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["import", str(tmp_path / "nope.docx"), str(tmp_path / "o.html")])
        assert excinfo.value.code == 1


class TestParser:
    """Global options."""

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main([])
        assert excinfo.value.code == 2
