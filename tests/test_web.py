import json
import time

import pytest

from jx3sim.config import Config
from jx3sim.report import Damage
from jx3sim.task import TaskServer
from jx3sim.web import ERROR_TASK_ID, VERSION, WebApp

HIT = Damage(tick=2048, damage_type=1, id=9, level=2, damage_base=5,
             damage_critical=9, damage_except=7, critical_rate=0.25,
             is_critical=True)


def simulate(data):
    return 512, [HIT]


def name_of(skill_id, level, is_buff):
    return "Strike"


REQUEST = json.dumps({
    "player": "Hero",
    "delayNetwork": 45,
    "delayKeyboard": 20,
    "fightTime": 300,
    "fightCount": 2,
    "attribute": {"method": "data", "data": {}},
    "effects": {},
})


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def app(tmp_path):
    config = Config()
    server = TaskServer(config, {"Hero"}, simulate, workers=2, poll=0.01)
    yield WebApp(server, config, tmp_path / "config.json", name_of=name_of)
    server.shutdown()


def test_status_ready(app):
    status, content_type, body = app.handle("GET", "/status")
    assert status == 200
    assert content_type == "application/json"
    doc = json.loads(body)
    assert doc["status"] == 0
    assert doc["data"]["version"] == VERSION


def test_status_unavailable(tmp_path):
    server = TaskServer(Config())
    try:
        web = WebApp(server, Config(), tmp_path / "config.json")
        _, _, body = web.handle("GET", "/status")
        assert json.loads(body) == {"status": -1}
    finally:
        server.shutdown()


def test_create_and_query(app):
    status, _, body = app.handle("POST", "/create", REQUEST)
    assert status == 200
    reply = json.loads(body)
    assert reply["status"] == 0
    task_id = reply["data"]
    assert wait_until(lambda: app.server.get(task_id).completed == 2)

    _, _, dps = app.handle("GET", f"/query/{task_id}/dps")
    assert json.loads(dps)["data"]["list"] == [512, 512]

    _, _, listing = app.handle("GET", f"/query/{task_id}/damage-list")
    fights = json.loads(listing)["data"]
    assert len(fights) == 2
    assert fights[0][0]["name"] == "Strike"

    _, _, analysis = app.handle("GET", f"/query/{task_id}/damage-analysis")
    (entry,) = json.loads(analysis)["data"]
    assert entry["id"] == 9 and entry["level"] == 2


def test_unknown_task_id(app):
    for kind in ("dps", "damage-list", "damage-analysis"):
        assert app.handle("GET", f"/query/nothing/{kind}") == (
            200, "application/json", ERROR_TASK_ID)


def test_wrong_method_and_path(app):
    assert app.handle("POST", "/status")[0] == 405
    assert app.handle("GET", "/create")[0] == 405
    assert app.handle("GET", "/missing")[0] == 404
    assert app.handle_manager("GET", "/missing")[0] == 404


def test_manager_stop(app):
    assert not app.stop_event.is_set()
    assert app.handle_manager("GET", "/stop")[0] == 200
    assert app.stop_event.is_set()


def test_manager_config_invalid(app):
    assert app.handle_manager("POST", "/config", "{broken")[0] == 400
    assert not app.stop_event.is_set()
    assert not app.config_path.exists()


def test_manager_config_writes_file(app):
    body = json.dumps({"maxFightCount": 10})
    assert app.handle_manager("POST", "/config", body)[0] == 200
    assert app.stop_event.is_set()
    assert json.loads(app.config_path.read_text(encoding="utf-8")) == {"maxFightCount": 10}