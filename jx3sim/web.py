"""HTTP front end: the public simulation API and a local management endpoint."""

from __future__ import annotations

import argparse
import logging
import re
import threading
from collections.abc import Callable, Sequence
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

from jx3sim.catalog import UNKNOWN_NAME
from jx3sim.config import Config, ConfigError, configure
from jx3sim.report import NameOf
from jx3sim.task import TaskServer

log = logging.getLogger(__name__)

VERSION = "v1.3.5"
JSON = "application/json"
ERROR_TASK_ID = '{"status":-1,"data":"error task id"}'

Reply = tuple[int, str, str]

_QUERY = re.compile(r"/query/([^/]+)/(dps|damage-list|damage-analysis)")


def _unknown_name(skill_id: int, level: int, is_buff: bool) -> str:
    return UNKNOWN_NAME


class WebApp:
    """Routes requests to the task server and the configuration file.

    Handlers return ``(status, content type, body)``. ``stop_event`` is set when
    the management endpoint asks the service to stop.
    """

    def __init__(self, server: TaskServer, config: Config, config_path: str | Path,
                 version: str = VERSION, name_of: NameOf = _unknown_name) -> None:
        self.server = server
        self.config = config
        self.config_path = Path(config_path)
        self.version = version
        self.name_of = name_of
        self.stop_event = threading.Event()

    def handle(self, method: str, path: str, body: str = "") -> Reply:
        """Serve the public API."""
        path = urlsplit(path).path
        if path == "/status":
            if method != "GET":
                return 405, "", ""
            return 200, JSON, self.config.status(self.server.available, self.version)
        if path == "/create":
            if method != "POST":
                return 405, "", ""
            return 200, JSON, self.server.create(body)
        match = _QUERY.fullmatch(path)
        if match is None:
            return 404, "", ""
        if method != "GET":
            return 405, "", ""
        task = self.server.get(unquote(match.group(1)))
        if task is None:
            return 200, JSON, ERROR_TASK_ID
        kind = match.group(2)
        if kind == "dps":
            return 200, JSON, task.query_dps()
        if kind == "damage-list":
            return 200, JSON, task.query_damage_list(self.name_of)
        return 200, JSON, task.query_damage_analysis(self.name_of)

    def handle_manager(self, method: str, path: str, body: str = "") -> Reply:
        """Serve the local management API: rewrite the configuration or stop."""
        path = urlsplit(path).path
        if path == "/config":
            if method != "POST":
                return 405, "", ""
            try:
                configure(self.config_path, body)
            except ConfigError:
                return 400, "", ""
            self.stop_event.set()
            return 200, "", ""
        if path == "/stop":
            if method != "GET":
                return 405, "", ""
            self.stop_event.set()
            return 200, "", ""
        return 404, "", ""


def _handler_for(dispatch: Callable[[str, str, str], Reply]) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        def _cors(self) -> None:
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
            self.send_header("Access-Control-Allow-Headers", "*")

        def _respond(self) -> None:
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length).decode("utf-8", "replace") if length else ""
            status, content_type, text = dispatch(self.command, self.path, body)
            payload = text.encode("utf-8")
            self.send_response(status)
            if content_type:
                self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self._cors()
            self.end_headers()
            self.wfile.write(payload)

        do_GET = _respond
        do_POST = _respond

        def do_OPTIONS(self) -> None:
            self.send_response(204)
            self._cors()
            self.send_header("Content-Length", "0")
            self.end_headers()

        def log_message(self, format: str, *args: object) -> None:
            log.debug("%s - %s", self.address_string(), format % args)

    return Handler


def serve(app: WebApp, host: str = "0.0.0.0", port: int = 12897,
          manager_host: str = "127.0.0.1", manager_port: int = 12898) -> None:
    """Run both HTTP servers until the management endpoint asks to stop."""
    public = ThreadingHTTPServer((host, port), _handler_for(app.handle))
    manager = ThreadingHTTPServer((manager_host, manager_port),
                                  _handler_for(app.handle_manager))
    threads = [threading.Thread(target=s.serve_forever, daemon=True)
               for s in (public, manager)]
    for thread in threads:
        thread.start()
    try:
        while not app.stop_event.wait(1):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        for httpd in (public, manager):
            httpd.shutdown()
            httpd.server_close()
        app.server.shutdown()


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Combat simulation web service.")
    parser.add_argument("--config", default="config.json", help="configuration file")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=12897)
    parser.add_argument("--manager-port", type=int, default=12898)
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    config = Config.load(config_path)
    # Without a simulation engine the service reports its data as unavailable.
    server = TaskServer(config)
    app = WebApp(server, config, config_path)
    serve(app, args.host, args.port, "127.0.0.1", args.manager_port)
    return 0