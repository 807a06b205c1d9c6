"""
Tests for the command-line interface.

Covers:
- Parameter merging from YAML files and flags
- Plain and JSON output
- Exit codes on failure
"""

import json
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError

from podcast_feed.cli import build_parser, main
from podcast_feed.config import Config
from podcast_feed.errors import FeedParseError
from podcast_feed.models.entities import StepResult


@pytest.fixture(autouse=True)
def _isolate(test_config):
    with patch("podcast_feed.cli.get_config", return_value=test_config), \
         patch("podcast_feed.cli.load_feed_yaml", return_value={}), \
         patch("podcast_feed.cli._configure_logging"):
        yield


class TestParser:
    def test_repeatable_item_flags(self):
        args = build_parser().parse_args([
            "append", "--file", "f.xml",
            "--item-link", "a.mp3", "--item-link", "b.mp3",
            "--item-type", "audio/mpeg",
        ])

        assert args.item_link == ["a.mp3", "b.mp3"]
        assert args.item_type == ["audio/mpeg"]
        assert args.output_json is False

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 0
        assert "append" in capsys.readouterr().out


class TestAppendCommand:
    @patch("podcast_feed.step.runner.run_step")
    def test_prints_url(self, mock_run, capsys):
        mock_run.return_value = StepResult(url="https://cdn.example.com/f.xml", item_count=1)

        main(["append", "--file", "f.xml", "--item-link", "a.mp3"])

        assert capsys.readouterr().out.strip() == "https://cdn.example.com/f.xml"
        params = mock_run.call_args.args[0]
        assert params.file_key == "f.xml"
        assert params.item_link == ["a.mp3"]

    @patch("podcast_feed.step.runner.run_step")
    def test_json_output(self, mock_run, capsys):
        mock_run.return_value = StepResult(url="https://cdn.example.com/f.xml", item_count=3, created=True)

        main(["append", "--file", "f.xml", "--output-json"])

        data = json.loads(capsys.readouterr().out)
        assert data == {"url": "https://cdn.example.com/f.xml", "item_count": 3, "created": True}

    @patch("podcast_feed.step.runner.run_step")
    def test_params_file_merged_with_flags(self, mock_run, temp_dir):
        params_file = temp_dir / "step.yaml"
        params_file.write_text(
            "params:\n"
            "  file: feeds/from-yaml.xml\n"
            "  feed_title: YAML Title\n"
            "  item_link: [a.mp3, b.mp3]\n",
            encoding="utf-8",
        )
        mock_run.return_value = StepResult(url="u")

        main(["append", "--params", str(params_file), "--feed-title", "Flag Title"])

        params = mock_run.call_args.args[0]
        assert params.file_key == "feeds/from-yaml.xml"
        assert params.title == "Flag Title"
        assert params.item_link == ["a.mp3", "b.mp3"]

    @patch("podcast_feed.step.runner.run_step")
    def test_parse_error_exits_1(self, mock_run):
        mock_run.side_effect = FeedParseError("bad feed")

        with pytest.raises(SystemExit) as excinfo:
            main(["append", "--file", "f.xml"])

        assert excinfo.value.code == 1

    @patch("podcast_feed.step.runner.run_step")
    def test_storage_error_json(self, mock_run, capsys):
        mock_run.side_effect = ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "PutObject")

        with pytest.raises(SystemExit) as excinfo:
            main(["append", "--file", "f.xml", "--output-json"])

        assert excinfo.value.code == 1
        assert "error" in json.loads(capsys.readouterr().out)

    def test_missing_file_exits_1(self):
        with pytest.raises(SystemExit) as excinfo:
            main(["append", "--item-link", "a.mp3"])
        assert excinfo.value.code == 1

    def test_invalid_config_exits_1(self):
        with patch("podcast_feed.cli.get_config", side_effect=ValueError("part_size too small")):
            with pytest.raises(SystemExit) as excinfo:
                main(["append", "--file", "f.xml"])
        assert excinfo.value.code == 1


class TestParamsFileErrors:
    def test_missing_params_file_exits_1(self, temp_dir):
        with pytest.raises(SystemExit) as excinfo:
            main(["append", "--file", "f.xml", "--params", str(temp_dir / "missing.yaml")])
        assert excinfo.value.code == 1

    def test_invalid_yaml_exits_1(self, temp_dir, capsys):
        params_file = temp_dir / "broken.yaml"
        params_file.write_text("params: [unclosed\n  file: :\n", encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            main(["append", "--params", str(params_file), "--output-json"])

        assert excinfo.value.code == 1
        assert "error" in json.loads(capsys.readouterr().out)

    def test_non_mapping_params_file_exits_1(self, temp_dir):
        params_file = temp_dir / "list.yaml"
        params_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            main(["append", "--params", str(params_file)])
        assert excinfo.value.code == 1
