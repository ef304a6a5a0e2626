"""
Command-line interface for itmsplit.

Reads a trace stream from a trace server (``-s host:port``, default
localhost:3443) or a capture file (``-f``) and feeds it, byte by byte, to a
decoder that splits ITM channels out to fifos or files. The options mirror
the original splitter; ``--config`` loads the same settings from a JSON or
YAML document, with command-line flags applied on top.
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from itmsplit import __version__
from itmsplit.bootstrap import build_decoder
from itmsplit.core.exceptions import ConfigurationError, ExitCode, ItmSplitException
from itmsplit.core.lifecycle import LifecycleController
from itmsplit.core.logger import configure_root_logger, get_logger, level_for_verbosity
from itmsplit.core.shutdown import ShutdownFlag
from itmsplit.models.app_config import AppConfig, load_config_document
from itmsplit.models.channel_config import NUM_CHANNELS, parse_channels
from itmsplit.models.source_config import FileSourceConfig, parse_server
from itmsplit.orchestrator import TerminalReason, TraceOrchestrator

logger = get_logger(__name__)

_EXIT_CODES = {
    TerminalReason.SHUTDOWN_REQUESTED: ExitCode.OK,
    TerminalReason.SOURCE_EXHAUSTED: ExitCode.OK,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="itmsplit",
        description="Split an ITM trace stream from a trace server or capture file into channels",
    )
    parser.add_argument("-b", dest="channel_path", metavar="<basedir>", help="Base directory for channels")
    parser.add_argument(
        "-c",
        dest="channels",
        action="append",
        default=[],
        metavar="<Number>,<Name>[,<Format>]",
        help="Channel to populate (repeat per channel)",
    )
    parser.add_argument(
        "-e",
        dest="terminate",
        action="store_true",
        help="When reading from file, terminate at end of file rather than waiting for further input",
    )
    parser.add_argument("-f", dest="file", metavar="<filename>", help="Take input from specified file")
    parser.add_argument(
        "-n", dest="no_sync", action="store_true", help="Do not force ITM sync before decoding"
    )
    parser.add_argument(
        "-P", dest="permafile", action="store_true", help="Create permanent files rather than fifos"
    )
    parser.add_argument("-s", dest="server", metavar="<host>[:<port>]", help="Trace server to connect to")
    parser.add_argument(
        "-t", dest="tpiu_channel", type=int, metavar="<channel>", help="Use TPIU decoder on specified channel (normally 1)"
    )
    parser.add_argument(
        "-v", dest="verbose", type=int, choices=range(4), metavar="<level>", help="Verbose mode 0(errors)..3(debug)"
    )
    parser.add_argument(
        "-w", dest="filewriter_path", metavar="<path>", help="Enable filewriter functionality using specified base path"
    )
    parser.add_argument("--decoder", metavar="<module:attr>", help="Decoder factory to feed the stream into")
    parser.add_argument("--config", metavar="<file>", help="JSON or YAML configuration document")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> AppConfig:
    """Merge an optional config document with command-line flags."""
    doc: Dict[str, Any] = load_config_document(args.config) if args.config else {}
    decoder: Dict[str, Any] = dict(doc.get("decoder") or {})

    if args.file:
        doc["source"] = FileSourceConfig(path=args.file, terminate_on_exhaustion=args.terminate).model_dump()
    elif args.server:
        try:
            doc["source"] = parse_server(args.server).model_dump()
        except (ValueError, ValidationError) as exc:
            raise ConfigurationError(f"Invalid server address {args.server!r}", details={"error": str(exc)}) from exc
    elif args.terminate and isinstance(doc.get("source"), dict):
        doc["source"] = {**doc["source"], "terminate_on_exhaustion": True}

    if args.channel_path is not None:
        decoder["channel_path"] = args.channel_path
    if args.channels:
        decoder["channels"] = list(decoder.get("channels") or []) + [
            ch.model_dump() for ch in parse_channels(args.channels)
        ]
    if args.no_sync:
        decoder["force_itm_sync"] = False
    if args.permafile:
        decoder["permafile"] = True
    if args.tpiu_channel is not None:
        decoder["use_tpiu"] = True
        decoder["tpiu_channel"] = args.tpiu_channel
    if args.filewriter_path:
        decoder["filewriter"] = True
        decoder["filewriter_path"] = args.filewriter_path

    doc["decoder"] = decoder
    if args.decoder:
        doc["decoder_factory"] = args.decoder
    if args.verbose is not None:
        doc["verbosity"] = args.verbose

    try:
        return AppConfig.model_validate(doc)
    except ValidationError as exc:
        raise ConfigurationError("Invalid configuration", details={"errors": exc.errors(include_url=False)}) from exc


def log_startup(config: AppConfig) -> None:
    settings = config.decoder
    logger.info(f"itmsplit V{__version__}")
    logger.info(f"BasePath    : {settings.channel_path}")
    logger.info(f"ForceSync   : {str(settings.force_itm_sync).lower()}")
    logger.info(f"Permafile   : {str(settings.permafile).lower()}")
    if settings.use_tpiu:
        logger.info(f"Using TPIU  : true (ITM on channel {settings.tpiu_channel})")
    else:
        logger.info("Using TPIU  : false")

    source = config.source
    if source.kind == "file":
        mode = "Terminate on exhaustion" if source.terminate_on_exhaustion else "Ongoing read"
        logger.info(f"Input File  : {source.path} ({mode})")
    else:
        logger.info(f"Server      : {source.label}")

    logger.info("Channels    :")
    for index in range(NUM_CHANNELS):
        channel = settings.channel(index)
        if channel is not None:
            logger.info(f"         {channel.describe()}")


def run(config: AppConfig, *, shutdown: Optional[ShutdownFlag] = None) -> ExitCode:
    """
    Run the acquisition loop until shutdown or file exhaustion.

    Fatal errors (unopenable file, socket failure) propagate after cleanup
    has run; the caller maps them to exit codes.
    """
    shutdown = shutdown or ShutdownFlag()
    decoder = build_decoder(config.decoder_factory, config.decoder)
    orchestrator = TraceOrchestrator(config.source, decoder, shutdown=shutdown)

    try:
        with LifecycleController(shutdown, decoder) as lifecycle:
            reason = orchestrator.run()
    finally:
        shutdown.close()

    if lifecycle.signalled:
        logger.info(f"Stopped by {shutdown.reason}")
    logger.info(f"Finished: {reason.value}, {orchestrator.total_bytes} bytes over {orchestrator.stats.sessions} sessions")
    return _EXIT_CODES.get(reason, ExitCode.MAIN_LOOP_FALLTHROUGH)


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run, and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_root_logger(level_for_verbosity(args.verbose if args.verbose is not None else 1))

    try:
        config = config_from_args(args)
        configure_root_logger(level_for_verbosity(config.verbosity))
        log_startup(config)
        return int(run(config))
    except ItmSplitException as e:
        logger.error(f"{e}")
        return int(e.exit_code)


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
