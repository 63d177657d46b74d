"""Unit tests for the campusrag CLI (argument parsing, dispatch, exit codes)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from campusrag.cli.ingest import _build_parser, _handle_ask, _handle_collections, main
from campusrag.config.settings import Settings
from campusrag.models.records import IngestionResult


def _settings(**overrides) -> Settings:
    return Settings(**{"openai_api_key": "sk-test", "app_env": "test", **overrides})


class TestParser:
    def test_courses_programs_repeatable(self) -> None:
        args = _build_parser().parse_args(["courses", "--program", "MBI", "--program", "MGM"])
        assert args.command == "courses"
        assert args.program == ["MBI", "MGM"]
        assert args.base is None

    def test_pdf_requires_file_and_program(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["pdf", "--file", "x.pdf"])

    def test_ask_takes_positional_question(self) -> None:
        args = _build_parser().parse_args(["--config", "other.yaml", "ask", "How many ECTS?"])
        assert args.question == "How many ECTS?"
        assert args.config == "other.yaml"


class TestMain:
    def test_no_command_exits_1(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_missing_api_key_exits_1(self, tmp_path, capsys) -> None:
        with patch("campusrag.cli.ingest.Settings", return_value=_settings(openai_api_key="")), \
             patch("campusrag.cli.ingest.configure_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main(["--config", str(tmp_path / "none.yaml"), "collections"])

        assert exc_info.value.code == 1
        assert "OPENAI_API_KEY" in capsys.readouterr().err

    def test_faq_success_exits_0(self, tmp_path, capsys) -> None:
        service = MagicMock()
        service.ensure_collection = AsyncMock(return_value=True)
        service.ingest_faq_csv = AsyncMock(
            return_value=IngestionResult(source="faq.csv", records_created=2, duplicates=1)
        )

        with patch("campusrag.cli.ingest.Settings", return_value=_settings()), \
             patch("campusrag.cli.ingest.configure_logging"), \
             patch("campusrag.cli.ingest._build_ingestion_service", return_value=service):
            with pytest.raises(SystemExit) as exc_info:
                main(["--config", str(tmp_path / "none.yaml"), "faq", "--file", "faq.csv"])

        assert exc_info.value.code == 0
        service.ensure_collection.assert_awaited_once()
        service.ingest_faq_csv.assert_awaited_once_with("faq.csv")
        out = capsys.readouterr().out
        assert "Created:    2" in out
        assert "Duplicates: 1" in out

    def test_handler_failure_exits_1(self, tmp_path) -> None:
        service = MagicMock()
        service.ensure_collection = AsyncMock(side_effect=RuntimeError("store down"))

        with patch("campusrag.cli.ingest.Settings", return_value=_settings()), \
             patch("campusrag.cli.ingest.configure_logging"), \
             patch("campusrag.cli.ingest._build_ingestion_service", return_value=service):
            with pytest.raises(SystemExit) as exc_info:
                main(["--config", str(tmp_path / "none.yaml"), "theses", "--file", "t.xlsx"])

        assert exc_info.value.code == 1


class TestHandlers:
    @pytest.mark.asyncio
    async def test_ask_streams_to_stdout(self, capsys) -> None:
        async def _tokens(history):  # noqa: ANN001, ANN202
            assert history == [{"role": "user", "content": "Hi?"}]
            for token in ("Hello", " world"):
                yield token

        service = MagicMock()
        service.stream_answer = _tokens
        args = _build_parser().parse_args(["ask", "Hi?"])

        assert await _handle_ask(args, service) == 0
        assert capsys.readouterr().out == "Hello world\n"

    @pytest.mark.asyncio
    async def test_collections_sorted(self, capsys) -> None:
        store = MagicMock()
        store.is_available.return_value = True
        store.list_collections = AsyncMock(return_value=["zeta", "campusrag"])

        with patch("campusrag.cli.ingest._build_providers", return_value=(MagicMock(), store)):
            code = await _handle_collections(_settings(), {})

        assert code == 0
        assert capsys.readouterr().out.splitlines() == ["campusrag", "zeta"]

    @pytest.mark.asyncio
    async def test_collections_unavailable_store(self) -> None:
        store = MagicMock()
        store.is_available.return_value = False

        with patch("campusrag.cli.ingest._build_providers", return_value=(MagicMock(), store)):
            assert await _handle_collections(_settings(), {}) == 1
