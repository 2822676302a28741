"""Tests for the main.py command-line front-end (no model calls)."""

import sys
from unittest.mock import patch

import pytest

import main


def _run(argv):
    with patch.object(sys, "argv", ["surgical-codegen"] + argv):
        main.main()


# ---------------------------------------------------------------------------
# Snapshot I/O
# ---------------------------------------------------------------------------

def test_load_snapshot_skips_vendor_dirs_and_binaries(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "App.tsx").write_text("export default function App() {}")
    (tmp_path / "node_modules" / "react").mkdir(parents=True)
    (tmp_path / "node_modules" / "react" / "index.js").write_text("module.exports = {}")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG")

    assert main.load_snapshot(str(tmp_path)) == {"src/App.tsx": "export default function App() {}"}


def test_write_files_stays_inside_root(tmp_path):
    written = main.write_files(str(tmp_path / "app"), {
        "components/Clock.tsx": "export const Clock = () => null;",
        "../escape.tsx": "nope",
    })
    assert len(written) == 1
    assert (tmp_path / "app" / "components" / "Clock.tsx").read_text() == "export const Clock = () => null;"
    assert not (tmp_path / "escape.tsx").exists()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        _run([])
    assert exc.value.code == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_chunk_prints_one_based_ranges(tmp_path, capsys):
    source = tmp_path / "two.ts"
    source.write_text("function foo() {\n}\nfunction bar() {\n}")
    _run(["chunk", str(source)])
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert "1-2" in lines[0] and "foo" in lines[0]
    assert "3-4" in lines[1] and "bar" in lines[1]


def test_chunk_without_declarations(tmp_path, capsys):
    source = tmp_path / "empty.ts"
    source.write_text("// nothing here")
    _run(["chunk", str(source)])
    assert "No declarations found." in capsys.readouterr().out


def test_check_clean_file(tmp_path, capsys):
    source = tmp_path / "Ok.tsx"
    source.write_text("import React from 'react';\nexport default function Ok() {\n  return null;\n}")
    _run(["check", str(source)])
    assert capsys.readouterr().out.strip() == f"{source}: ok"


def test_check_fix_rewrites_file(tmp_path, capsys):
    source = tmp_path / "Price.tsx"
    source.write_text("const label = 'Price: ${price}';")
    with pytest.raises(SystemExit) as exc:
        _run(["check", "--fix", str(source)])
    assert exc.value.code == 1
    out = capsys.readouterr().out
    assert "template_literal" in out
    assert "applied: template_literal: Template literal using single quotes" in out
    assert source.read_text() == "const label = `Price: ${price}`;"
