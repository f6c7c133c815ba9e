import json

import pytest

from point_mapper.cli import build_parser, main, read_version


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["-V"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == read_version()


def test_subcommands_are_discovered():
    parser = build_parser()
    args = parser.parse_args(["annotate", "image.png", "-p", "LOC", "PT"])
    assert args.prefixes == ["LOC", "PT"]
    assert callable(args.fn)


def test_settings_show(tmp_path, capsys):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"pointSize": 14}))
    assert main(["settings", "show", "--settings", str(path)]) == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["point_size"] == 14
    assert shown["csv_delimiter"] == ","


def test_settings_import_export_reset(tmp_path):
    store = tmp_path / "settings.json"
    document = tmp_path / "import.json"
    document.write_text(json.dumps({"clickTolerance": 30, "unknown": 1}))

    assert main(["settings", "import", str(document), "--settings", str(store)]) == 0
    assert json.loads(store.read_text())["click_tolerance"] == 30

    assert main(["settings", "export", str(tmp_path), "--settings", str(store)]) == 0
    (exported,) = tmp_path.glob("image-point-mapper-settings-*.json")
    assert json.loads(exported.read_text())["click_tolerance"] == 30

    assert main(["settings", "reset", "--settings", str(store)]) == 0
    assert not store.exists()


def test_settings_theme(tmp_path):
    store = tmp_path / "settings.json"
    assert main(["settings", "theme", "cosmic", "--settings", str(store)]) == 0
    assert json.loads(store.read_text())["theme"] == "cosmic"
    assert main(["settings", "theme", "neon", "--settings", str(store)]) == 1


def test_import_missing_file(tmp_path):
    store = tmp_path / "settings.json"
    assert main(["settings", "import", str(tmp_path / "nope.json"), "--settings", str(store)]) == 1
