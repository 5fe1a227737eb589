from __future__ import annotations

import json
from pathlib import Path
from urllib import error, request

import pytest

from cli_harness.config import HarnessConfig
from cli_harness.fallback_server import FallbackServer
from cli_harness.servers import ProcessOutputError, start_fallback_server, start_server


pytestmark = pytest.mark.integration


def _get(url: str) -> tuple[int, bytes]:
    try:
        with request.urlopen(url, timeout=5) as resp:
            return resp.status, resp.read()
    except error.HTTPError as exc:
        return exc.code, exc.read()


@pytest.fixture
def static_site(tmp_path: Path) -> Path:
    site = tmp_path / "dist"
    (site / "about").mkdir(parents=True)
    (site / "node_modules" / "pkg").mkdir(parents=True)
    (site / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (site / "about" / "index.html").write_text("<h1>about</h1>", encoding="utf-8")
    (site / "app.js").write_text("console.log('hi')", encoding="utf-8")
    (site / "node_modules" / "pkg" / "readme.html").write_text("ignored", encoding="utf-8")
    return site


def test_start_server_reports_announced_port(harness_config: HarnessConfig, tmp_path: Path) -> None:
    sql_file = str(tmp_path / "server.tmp.sql")
    server = start_server(sql_file, config=harness_config)
    try:
        assert server.sql_file == sql_file
        assert server.port > 0
        status, body = _get(f"http://127.0.0.1:{server.port}/healthz")
        assert status == 200
        assert json.loads(body) == {"status": "ok"}
    finally:
        server.close()
    assert server.process.exited
    assert not Path(sql_file).exists()


def test_start_server_generates_sql_file_name(harness_config: HarnessConfig, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    server = start_server(config=harness_config)
    try:
        assert server.sql_file.startswith("cli-test-")
        assert server.sql_file.endswith(".tmp.sql")
        assert (tmp_path / server.sql_file).exists()
    finally:
        server.close()


def test_start_server_without_port_kills_child(fast_fail_config: HarnessConfig, tmp_path: Path) -> None:
    with pytest.raises(ProcessOutputError) as excinfo:
        start_server(str(tmp_path / "x.tmp.sql"), ["--no-port"], config=fast_fail_config)
    assert "never announced its port" in str(excinfo.value)
    assert excinfo.value.handle.exited
    assert excinfo.value.handle.process.stdout.closed


def test_fallback_server_serves_files_and_spa_routes(
    static_site: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    server = start_fallback_server("dist", is_single_page_application=True)
    try:
        assert server.path_to_build_dir == static_site.resolve()
        assert _get(f"{server.url}/app.js") == (200, b"console.log('hi')")
        assert _get(f"{server.url}/about/") == (200, b"<h1>about</h1>")
        assert _get(f"{server.url}/some/client/route") == (200, b"<h1>home</h1>")
    finally:
        server.close()


def test_fallback_server_without_spa_returns_404(static_site: Path) -> None:
    with FallbackServer(static_site, is_single_page_application=False) as server:
        status, _ = _get(f"{server.url}/missing")
        assert status == 404
        assert _get(f"{server.url}/")[0] == 200


def test_fallback_server_lists_html_urls(static_site: Path) -> None:
    with FallbackServer(static_site) as server:
        assert server.get_available_urls() == [
            f"http://localhost:{server.port}/about/index.html",
            f"http://localhost:{server.port}/index.html",
        ]


def test_fallback_server_close_is_idempotent(static_site: Path) -> None:
    server = FallbackServer(static_site)
    server.listen()
    server.close()
    server.close()
    with pytest.raises(RuntimeError, match="not listening"):
        _ = server.port
