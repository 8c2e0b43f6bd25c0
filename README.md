# jx3sim

Building blocks for a combat damage simulation service. The package provides
an HTTP task server that runs many fights for a character setup in a worker pool
and reports the damage per second, every hit of a few detailed fights, and how
damage is split across skills and buffs. It also provides table lookups, an
event queue and a compiler from in-game macros to a fight script.

The fight simulation itself is not part of the package. It is supplied to
`TaskServer` as a callable (see "What the package does not do").

## Installing

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Running the server

```
jx3sim [--config config.json] [--host 0.0.0.0] [--port 12897] [--manager-port 12898]
```

This reads the configuration file and starts two HTTP listeners. Both answer
CORS preflight requests.

The public API listens on `--host:--port` (default `0.0.0.0:12897`):

| Method | Path                          | Purpose                                    |
|--------|-------------------------------|--------------------------------------------|
| GET    | `/status`                     | Readiness, version and task limits         |
| POST   | `/create`                     | Start a simulation task from a JSON body   |
| GET    | `/query/<id>/dps`             | DPS list, average, deviation, min/max, largest deviation, 99% confidence interval, progress |
| GET    | `/query/<id>/damage-list`     | Every hit of the detailed fights           |
| GET    | `/query/<id>/damage-analysis` | Per skill level: average count, min/max and share of damage |

The manager listens on `127.0.0.1:--manager-port` (default `12898`):

| Method | Path      | Purpose                                              |
|--------|-----------|------------------------------------------------------|
| POST   | `/config` | Write a new configuration file, then stop the server; `400` if the body is not valid JSON |
| GET    | `/stop`   | Stop the server                                      |

API replies are JSON of the form `{"status": <code>, "data": ...}`: `0` for
success, `1` when the data is not ready yet, and `-1` for an error such as an
unknown task id or a rejected request. A finished task is kept for 60 seconds,
then dropped.

## Task requests

A `/create` body holds:

- `player` — the player type, one of those the server was given
- `delayNetwork`, `delayKeyboard`, `fightTime`, `fightCount` — positive and
  no larger than the configured limits
- `attribute` — `{"method": "data", "data": {...}}` or
  `{"method": "jx3box", "data": {"pzid": "..."}}`
- `effects` — an object of effect names to settings
- `fight` (optional) — `{"method": "lua", "data": "<script>"}` (only when
  `allowCustom` is on), `{"method": "jx3", "data": ["<macro>", ...]}`, or
  `{"data": <fight type number>}`
- `talents` (optional) — a list of integers
- `recipes` (optional) — an object of skill id to a list of integers

`jx3sim.task.parse_task_request` validates a request and raises `TaskError`
naming the first offending field.

## Configuration

Settings come from the configuration file (`config.json` by default). Keys of
the wrong type are ignored:

- `dirSeasunGame`, `dirUnpacked` — where the game data lives
- `clientType` — which game client the data belongs to (default `jx3_hd`)
- `isUTF8` — whether data file names are UTF-8 rather than GBK
- `maxDelayNetwork`, `maxDelayKeyboard`, `maxFightTime`, `maxFightCount`,
  `maxTaskDuration` — limits on what a task may request and how long it may run
- `allowCustom` — whether tasks may carry their own fight script

When a `/config` request body contains an `update` key and the file exists,
its fields are merged into the existing file and `update` is dropped.
Otherwise the body replaces the file.

## Macros

A task's `fight` section may give a list of in-game macros, one command per
line:

```
/cast [buff:日月同辉=3&nobuff:诛邪镇魔|sun<20] 银月斩
/switch 1
```

`jx3sim.macro.parse_macros` compiles such a list into a Lua fight script with
one `MacroN(player)` function per macro. `jx3sim.macro.convert_condition`
translates a single bracketed condition.

## Library use

- `jx3sim.tabs` — `Tab`, `MemoryTables` for in-memory OR-of-AND table queries,
  and `serialize` / `deserialize` for the row exchange format
- `jx3sim.event` — `EventQueue`, a tick-ordered event scheduler
- `jx3sim.catalog` — `Catalog`, a cache of `Buff`, `Cooldown`, `Item`,
  `SkillEvent` and `SkillRecipe` records built from table rows
- `jx3sim.report` — `dps_summary`, `damage_list`, `damage_analysis`,
  `generate_id` and the `Damage` record
- `jx3sim.task` — `parse_task_request`, `Task`, `TaskServer`
- `jx3sim.config` — `Config`, `TaskLimits`, `configure`
- `jx3sim.web` — `WebApp`, `serve` and the `main` command
- `jx3sim.conv` — `utf8_to_gbk`, `gbk_to_utf8`
- `jx3sim.gfunc` — bit, distance and random helpers for scripts
- `jx3sim.recorders` — `Log` and `ChannelIntervalRecorder`

To run real tasks, build a `TaskServer(config, players, simulate)` where
`simulate(task_data)` runs one fight and returns `(dps, hits)`, and serve it
with `WebApp` and `serve`.

## What the package does not do

- It contains no fight simulation engine, characters or skills. The `jx3sim`
  command starts a `TaskServer` without one, so `/status` reports status `-1`
  and every `/create` request is rejected as unavailable.
- It does not read game data files or execute Lua. Tables are filled through
  `MemoryTables.add_rows`, and the scripts produced by `parse_macros` are text
  only.
- Skill and buff names in damage replies come from a `name_of` callable given
  to `WebApp`; by default every name is `未知技能`.