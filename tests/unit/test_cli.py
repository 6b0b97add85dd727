"""
Unit tests for the command-line parser and configuration mapping.
"""
import pytest

from novel_translator.cli import _split_list, build_parser, main
from novel_translator.config import BATCH_FILE_LIMIT, PipelineConfig


class TestParser:
    """Tests for argument parsing."""

    def test_translate_arguments(self):
        args = build_parser().parse_args([
            "translate", "a.txt", "b.zip", "-t", "Kiếm Đạo", "--genres", "Tiên hiệp, Huyền huyễn",
            "-b", "3", "--gemini_api_key", "k"
        ])
        assert args.command == "translate"
        assert args.inputs == ["a.txt", "b.zip"]
        assert _split_list(args.genres) == ("Tiên hiệp", "Huyền huyễn")

        config = PipelineConfig.from_cli_args(args)
        assert config.batch_size == 3
        assert config.gemini_api_key == "k"
        assert config.enable_colors

    def test_crawl_arguments(self):
        args = build_parser().parse_args(["--no-color", "crawl", "https://a.test/1", "-n", "5"])
        assert args.count == 5
        assert not PipelineConfig.from_cli_args(args).enable_colors
        assert PipelineConfig.from_cli_args(args).batch_size == BATCH_FILE_LIMIT

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_split_list_ignores_blanks(self):
        assert _split_list(" a ,, b ,") == ("a", "b")
        assert _split_list(None) == ()

    def test_translate_without_key_exits(self):
        with pytest.raises(SystemExit):
            main(["translate", "a.txt", "--gemini_api_key", ""])


class TestPipelineConfig:

    def test_redacted_key(self):
        config = PipelineConfig(gemini_api_key="abcdefgh1234")
        assert config.to_dict()['gemini_api_key'] == "***1234"
        assert config.to_dict(redact_key=False)['gemini_api_key'] == "abcdefgh1234"
