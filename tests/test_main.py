import json

import pytest

import featuresync.main as cli
from featuresync.errors import BlockedByProtectionError

PAGE = """<!doctype html>
<html>
<head><script src="/cdn/theme.js"></script></head>
<body>
<quiz-element class="quiz-outer-wrapper" data-section="buttons">
  <script>
    window.yearNameCombos = ['2021 Model 3', '2023 Model Y'];
  </script>
  <script>
    window.quizFunctionData = {CATALOG};
  </script>
</quiz-element>
</body>
</html>
"""

CATALOG = """{
      "5": {name: "Mirror fold", notes: "", categoryName: "Exterior", categoryOrderNumber: 2,
            orderNumber: 1, buttonsAvailability: ["center-console"]},
      "3": {name: "Wiper speed", notes: "Hold to cycle", categoryName: "Driving",
            categoryOrderNumber: 1, orderNumber: 1},
    }"""


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    for name in ("FEATURESYNC_URL", "FEATURESYNC_TIMEOUT", "FEATURESYNC_OUTPUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def _write_page(tmp_path, catalog: str = CATALOG):
    page = tmp_path / "buttons-functions.html"
    page.write_text(PAGE.replace("{CATALOG}", catalog), encoding="utf-8")
    return page


def test_parse_args_defaults() -> None:
    args = cli.parse_args([])

    assert args.local_html is None
    assert args.output_path is None


def test_main_converts_local_snapshot(tmp_path) -> None:
    page = _write_page(tmp_path)

    assert cli.main([str(page)]) == 0

    document = json.loads((tmp_path / "_data" / "features.json").read_text(encoding="utf-8"))
    assert document["yearModels"] == ["2021 Model 3", "2023 Model Y"]
    assert [c["name"] for c in document["categories"]] == ["Driving", "Exterior"]
    assert document["categories"][1]["scenarios"][0]["supportedDevices"] == {
        "knobs": [],
        "buttons": ["center-console"],
        "stalks": [],
    }


def test_main_writes_partial_document_for_empty_catalog(tmp_path) -> None:
    page = _write_page(tmp_path, catalog="{}")
    output = tmp_path / "site" / "features.json"

    assert cli.main([str(page), "--output", str(output)]) == 0

    assert json.loads(output.read_text(encoding="utf-8")) == {
        "yearModels": ["2021 Model 3", "2023 Model Y"],
        "categories": [],
    }


def test_main_exits_with_error_for_missing_snapshot(tmp_path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(tmp_path / "missing.html")])

    assert excinfo.value.code == 1


def test_main_exits_with_error_when_no_catalog_region(tmp_path) -> None:
    page = tmp_path / "page.html"
    page.write_text("<html><body><p>Maintenance</p></body></html>", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(page)])

    assert excinfo.value.code == 1
    assert not (tmp_path / "_data").exists()


def test_main_exits_with_error_when_blocked(monkeypatch) -> None:
    def _blocked(*args, **kwargs):
        raise BlockedByProtectionError(source="https://www.enhauto.com/pages/buttons-functions")

    monkeypatch.setattr(cli, "acquire_source", _blocked)

    with pytest.raises(SystemExit) as excinfo:
        cli.main([])

    assert excinfo.value.code == 1


def test_run_is_repeatable(tmp_path) -> None:
    page = _write_page(tmp_path)
    output = tmp_path / "features.json"
    args = cli.parse_args([str(page), "--output", str(output)])

    cli.run(args)
    first = output.read_bytes()
    cli.run(args)

    assert output.read_bytes() == first


def test_main_handles_unpaired_surrogate_escape(tmp_path) -> None:
    catalog = '{"1": {name: "Bad \\ud800 name", categoryName: "Driving", categoryOrderNumber: 1, orderNumber: 1}}'
    page = _write_page(tmp_path, catalog=catalog)
    output = tmp_path / "out" / "features.json"

    assert cli.main([str(page), "--output", str(output)]) == 0

    text = output.read_text(encoding="utf-8")
    assert '"name": "Bad \\ud800 name"' in text
    assert [path.name for path in output.parent.iterdir()] == ["features.json"]


def test_main_exits_with_error_for_malformed_config(tmp_path) -> None:
    page = _write_page(tmp_path)
    config = tmp_path / "featuresync.yml"
    config.write_text("source: [unclosed\n", encoding="utf-8")
    output = tmp_path / "out" / "features.json"

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(page), "--config", str(config), "--output", str(output)])

    assert excinfo.value.code == 1
    assert not output.exists()
