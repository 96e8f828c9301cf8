# /main.py
# Command line entry point.
#   run SCENARIO [--state PATH]    execute a scenario's opportunities against the simulator
#   serve SCENARIO [--state PATH]  build the scenario world and expose the control API
import argparse
import asyncio
import json

import uvicorn

from flasharb.core import persistence
from flasharb.core.config import settings
from flasharb.core.config_validator import validate as validate_config
from flasharb.core.logger import configure_logging, get_logger
from flasharb.core.scenario import Simulation, load_scenario
from flasharb.core.state import ExecutorState


async def _load_state(path: str | None, latest: bool) -> ExecutorState | None:
    if path:
        return await persistence.load_snapshot(path)
    if latest:
        return await persistence.load_latest_snapshot()
    return None


async def run(args) -> int:
    log = get_logger("flasharb.main")
    scenario = load_scenario(args.scenario)
    state = await _load_state(args.state, args.resume)
    simulation = Simulation(scenario, state=state)
    log.info("SCENARIO_STARTING", scenario=args.scenario, opportunities=len(scenario.opportunities))

    outcomes = simulation.run()
    snapshot_path = await persistence.save_snapshot(simulation.executor.state)

    total_profits, total_arbitrages = simulation.executor.get_stats()
    print(json.dumps({
        "outcomes": [o.model_dump() for o in outcomes],
        "total_profits": total_profits,
        "total_arbitrages": total_arbitrages,
        "snapshot": snapshot_path,
    }, indent=2))
    return 0 if all(o.status == "executed" for o in outcomes) else 1


def serve(args) -> int:
    from flasharb.core.control_api import app, bind_executor

    log = get_logger("flasharb.main")
    scenario = load_scenario(args.scenario)
    state = asyncio.run(_load_state(args.state, args.resume))
    simulation = Simulation(scenario, state=state)
    bind_executor(simulation.executor)
    log.info("CONTROL_API_STARTING", port=args.port)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flasharb", description="Flash-loan arbitrage executor simulator")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("run", "Execute a scenario's opportunities"), ("serve", "Serve the control API")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("scenario", help="Path to a scenario JSON file")
        p.add_argument("--state", help="Executor state snapshot to start from")
        p.add_argument("--resume", action="store_true", help="Start from the most recent snapshot")
        if name == "serve":
            p.add_argument("--host", default="0.0.0.0")
            p.add_argument("--port", type=int, default=settings.API_PORT)
    return parser


def main(argv=None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    validate_config(live=False)
    if args.command == "run":
        return asyncio.run(run(args))
    return serve(args)


if __name__ == "__main__":
    raise SystemExit(main())
