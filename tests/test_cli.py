from __future__ import annotations

import threading
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import MagicMock, patch

import httpx

from ssg import cli
from ssg.config import AppConfig, DatabaseConfig, GeneratorConfig
from ssg.pipeline import GenerationError, GenerationResult
from ssg.serve import build_server


class BuildCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = AppConfig(database=DatabaseConfig(dsn="sqlite://"), ssg=GeneratorConfig(concurrency=4))

    @patch("ssg.cli.generate")
    @patch("ssg.cli.load_config")
    def test_build_applies_overrides_and_succeeds(self, load_config_mock: MagicMock, generate_mock: MagicMock) -> None:
        load_config_mock.return_value = self.config
        generate_mock.return_value = GenerationResult(succeeded=4, elapsed=0.5, dispatched=4)

        exit_code = cli.main(
            ["build", "-c", "site.ini", "--output-dir", "out", "--concurrency", "0", "--base-url", "https://x.test"]
        )

        self.assertEqual(exit_code, 0)
        load_config_mock.assert_called_once_with(Path("site.ini"))
        generate_mock.assert_called_once_with(self.config)
        self.assertEqual(self.config.ssg.output_dir, Path("out"))
        self.assertEqual(self.config.ssg.concurrency, 0)
        self.assertEqual(self.config.ssg.base_url, "https://x.test")

    @patch("ssg.cli.generate")
    @patch("ssg.cli.load_config")
    def test_partial_failure_still_exits_cleanly(self, load_config_mock: MagicMock, generate_mock: MagicMock) -> None:
        load_config_mock.return_value = self.config
        generate_mock.return_value = GenerationResult(succeeded=3, elapsed=0.5, failed=1, dispatched=4)

        self.assertEqual(cli.main(["build"]), 0)

    @patch("ssg.cli.generate")
    @patch("ssg.cli.load_config")
    def test_fail_on_error_flag_reports_partial_failure(
        self, load_config_mock: MagicMock, generate_mock: MagicMock
    ) -> None:
        load_config_mock.return_value = self.config
        generate_mock.return_value = GenerationResult(succeeded=3, elapsed=0.5, failed=1, dispatched=4)

        self.assertEqual(cli.main(["build", "--fail-on-error"]), 1)

    @patch("ssg.cli.generate")
    @patch("ssg.cli.load_config")
    def test_fatal_error_returns_non_zero(self, load_config_mock: MagicMock, generate_mock: MagicMock) -> None:
        load_config_mock.return_value = self.config
        generate_mock.side_effect = GenerationError("cannot list series")

        self.assertEqual(cli.main(["build"]), 1)

    def test_missing_config_file_is_a_usage_error(self) -> None:
        with TemporaryDirectory() as tmpdir:
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["build", "-c", str(Path(tmpdir) / "absent.ini")])
        self.assertEqual(ctx.exception.code, 2)


class ServeTests(unittest.TestCase):
    def test_serves_generated_pages(self) -> None:
        with TemporaryDirectory() as tmpdir:
            output_dir = Path(tmpdir)
            page = output_dir / "novel" / "echo" / "index.html"
            page.parent.mkdir(parents=True)
            page.write_text("<h1>Echo</h1>", encoding="utf-8")

            server = build_server(output_dir, port=0, host="127.0.0.1")
            thread = threading.Thread(target=server.serve_forever, daemon=True)
            thread.start()
            try:
                port = server.server_address[1]
                with httpx.Client(trust_env=False, timeout=5.0) as client:
                    response = client.get(f"http://127.0.0.1:{port}/novel/echo/")
            finally:
                server.shutdown()
                server.server_close()
                thread.join(timeout=5)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "<h1>Echo</h1>")

    @patch("ssg.cli.serve_site")
    @patch("ssg.cli.load_config")
    def test_serve_command_uses_configured_output(self, load_config_mock: MagicMock, serve_mock: MagicMock) -> None:
        load_config_mock.return_value = AppConfig(ssg=GeneratorConfig(output_dir=Path("dist")))

        self.assertEqual(cli.main(["serve", "-p", "8080"]), 0)
        serve_mock.assert_called_once_with(Path("dist"), 8080)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
