import pytest

from givilsta.cli import PROJECT_VERSION, build_parser, main


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "source.list"
    path.write_text("example.com\nfoo.example.com\n\nbar.org\nads.example.net\n")
    return path


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_version_subcommand(capsys):
    assert main(["version"]) == 0
    assert capsys.readouterr().out == f"Givilsta: {PROJECT_VERSION}\n"


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.source == ""
    assert args.whitelist == []
    assert args.log_level == "error"
    assert args.handle_complement is False


def test_parser_splits_comma_separated_and_repeated_values():
    args = build_parser().parse_args(["-w", "a.list,b.list", "-w", "c.list"])
    assert args.whitelist == ["a.list", "b.list", "c.list"]


def test_missing_source_fails(capsys, tmp_path):
    whitelist = _write(tmp_path, "w.list", "example.com\n")
    assert main(["-w", str(whitelist)]) == 1
    assert "source must be specified" in capsys.readouterr().err


def test_missing_whitelists_fails(capsys, source):
    assert main(["-s", str(source)]) == 1
    assert "at least one whitelist file" in capsys.readouterr().err


def test_plain_and_all_whitelists_to_stdout(capsys, tmp_path, source):
    plain = _write(tmp_path, "plain.list", "foo.example.com\n")
    ends = _write(tmp_path, "all.list", ".org\n")
    code = main(["-s", str(source), "-w", str(plain), "-a", str(ends)])
    assert code == 0
    assert capsys.readouterr().out.splitlines() == ["example.com", "ads.example.net"]


def test_regex_whitelist(capsys, tmp_path, source):
    regex = _write(tmp_path, "reg.list", "^ads\\.\n")
    assert main(["-s", str(source), "-r", str(regex)]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "example.com",
        "foo.example.com",
        "bar.org",
    ]


def test_output_file(tmp_path, source):
    plain = _write(tmp_path, "plain.list", "example.com\nbar.org\n")
    output = tmp_path / "out.list"
    assert main(["-s", str(source), "-w", str(plain), "-o", str(output)]) == 0
    assert output.read_text() == "foo.example.com\nads.example.net\n"


def test_complement_handling(capsys, tmp_path):
    src = _write(tmp_path, "src.list", "www.foo.com\n")
    plain = _write(tmp_path, "plain.list", "www.foo.com\n")

    assert main(["-s", str(src), "-w", str(plain)]) == 0
    assert capsys.readouterr().out.splitlines() == ["www.foo.com"]

    assert main(["-s", str(src), "-w", str(plain), "-c"]) == 0
    assert capsys.readouterr().out == ""


def test_missing_whitelist_file(capsys, tmp_path, source):
    missing = tmp_path / "nope.list"
    assert main(["-s", str(source), "-w", str(missing)]) == 1
    out = capsys.readouterr().out
    assert str(missing) in out
    assert "does not exist" in out


def test_missing_all_whitelist_file(capsys, tmp_path, source):
    missing = tmp_path / "nope-all.list"
    assert main(["-s", str(source), "-a", str(missing)]) == 1
    assert "Whitelist ALL file" in capsys.readouterr().out


def test_missing_source_file(capsys, tmp_path):
    plain = _write(tmp_path, "plain.list", "example.com\n")
    missing = tmp_path / "missing-source.list"
    assert main(["-s", str(missing), "-w", str(plain)]) == 1
    assert capsys.readouterr().out == ""


def test_unknown_log_level_warns_and_continues(capsys, tmp_path, source):
    plain = _write(tmp_path, "plain.list", "example.com\n")
    code = main(["-s", str(source), "-w", str(plain), "-l", "loud"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Unrecognized log-level 'loud'" in captured.err
    assert "example.com" not in captured.out.splitlines()


def test_debug_log_level_emits_json_to_stderr(capsys, tmp_path, source):
    plain = _write(tmp_path, "plain.list", "example.com\n")
    assert main(["-s", str(source), "-w", str(plain), "-l", "DEBUG"]) == 0
    err_lines = [line for line in capsys.readouterr().err.splitlines() if line]
    assert err_lines
    assert all(line.startswith("{") and '"level": "DEBUG"' in line for line in err_lines)