# depth_analyzer/cli.py
import argparse
import logging
import sys

from . import __version__, config
from .decision import get_policy
from .errors import AnalyzerError, ConfigError
from .pipeline import DirectoryWatcher, run_batch, run_single
from .proximity import ProximityConfig
from .telemetry import TelemetryClient
from .utils import set_level, setup_logger

log = setup_logger(__name__)

DESCRIPTION = "Program that analyzes an image processed by depth-detection AI models."

EPILOG = """\
Possible results (in order of precedence):

    FORWARD
    RIGHT
    LEFT
    STOP

With --decision REDUCED or BINARY, NIL replaces FORWARD.
"""


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        prog="depth-analyzer",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = ap.add_mutually_exclusive_group()
    source.add_argument("image", nargs="?", default=None, help="path to image.[jpg | png | webp]")
    ap.add_argument(
        "-v", "--version", action="version", version=f"Depth Analyzer v{__version__}"
    )
    ap.add_argument(
        "-c",
        "--color",
        default=None,
        help="[ RED | WHITE ] color used as an indicator for proximity (default: RED)",
    )
    ap.add_argument(
        "-t",
        "--threshold",
        default=None,
        help="[ 0 .. 255 ] value a pixel must reach to count as the proximity color (default: 150)",
    )
    ap.add_argument(
        "-d",
        "--decision",
        default=None,
        help="[ RATIO | REDUCED | BINARY ] decision policy (default: RATIO)",
    )
    source.add_argument("-w", "--watch", default=None, help="directory to poll for new images")
    source.add_argument("-b", "--batch", default=None, help="classify every image in a directory once")
    ap.add_argument("--poll-interval", type=float, default=None, help="seconds between polls in watch mode (0 = spin)")
    ap.add_argument("--on-error", default=None, help="[ SKIP | ABORT ] on undecodable files in watch/batch mode")
    ap.add_argument("--reprocess", action="store_true", default=None, help="re-analyse every file on every poll")
    ap.add_argument("--workers", type=int, default=None, help="threads used to scan one image")
    ap.add_argument("--out-dir", default=None, help="write debug overlays here")
    ap.add_argument("--telemetry", default=None, help="append JSONL classification records to this file")
    ap.add_argument("--config", default=None, help="YAML file with option defaults")
    ap.add_argument("--verbose", action="count", default=0, help="more logging (repeatable)")
    return ap.parse_args(argv)


def resolve_options(args):
    """config.py defaults <- YAML file <- command line."""
    opts = {
        "color": config.DEFAULT_COLOR,
        "threshold": config.DEFAULT_THRESHOLD,
        "decision": config.DECISION_MODE,
        "poll_interval": config.WATCH_POLL_INTERVAL,
        "on_error": config.WATCH_ON_ERROR,
        "reprocess": config.WATCH_REPROCESS,
        "workers": config.DEFAULT_WORKERS,
        "out_dir": None,
        "telemetry": None,
    }
    if args.config:
        opts.update(config.load_config_file(args.config))
    for key in opts:
        value = getattr(args, key, None)
        if value is not None:
            opts[key] = value

    opts["color"] = config.parse_color(opts["color"])
    opts["threshold"] = config.parse_threshold(opts["threshold"])
    opts["decision"] = config.parse_decision_mode(opts["decision"])
    opts["on_error"] = config.parse_error_policy(opts["on_error"])
    if opts["workers"] < 1:
        raise ConfigError("--workers must be >= 1")
    return opts


def main(argv=None):
    args = parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG if args.verbose > 1 else logging.INFO)
    else:
        set_level(logging.WARNING)

    telemetry = None
    try:
        opts = resolve_options(args)
        proximity = ProximityConfig.from_options(opts["color"], opts["threshold"])
        policy = get_policy(opts["decision"])
        telemetry = TelemetryClient(log_path=opts["telemetry"])
        common = dict(workers=opts["workers"], out_dir=opts["out_dir"], telemetry=telemetry)

        if args.watch:
            watcher = DirectoryWatcher(
                args.watch,
                proximity,
                policy,
                poll_interval=opts["poll_interval"],
                on_error=opts["on_error"],
                reprocess=opts["reprocess"],
                emit=lambda line: print(line, flush=True),
                **common,
            )
            watcher.run()
        elif args.batch:
            for path, decision in run_batch(args.batch, proximity, policy, on_error=opts["on_error"], **common):
                print(f"{path.name}: {decision.cmd}")
        else:
            decision = run_single(args.image, proximity, policy, **common)
            print(decision.cmd)
    except AnalyzerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        log.info("Stopped by user.")
        return 130
    finally:
        if telemetry is not None:
            telemetry.flush()
    return 0
