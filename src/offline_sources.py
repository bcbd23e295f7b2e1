"""offline-sources - Generate a sources list for an offline build.

Reads the dependency graph a build tool resolved, finds where every required
artifact, module file and POM can be downloaded, and writes a JSON sources
list with URL, SHA-512 and destination for each file.

    Returns:
        int: Exit code
"""
import logging
import sys
from typing import Optional

from constants import ExitCodes
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import ConfigError, GeneratorConfig, build_config
from graph import GraphExportError, BuildGraph, load_build_graph
from resolution import (
    ArtifactResolver,
    ContentFetcher,
    DependencyWalker,
    DigestAlgorithmUnavailable,
    DigestEngine,
    WorkerTaskFailure,
    write_manifest,
)

logger = logging.getLogger(__name__)


def generate(config: GeneratorConfig, graph: BuildGraph, fetcher: Optional[ContentFetcher] = None) -> str:
    """Resolve ``graph`` and return the rendered sources list.

    Every call starts from empty caches and an empty manifest.

    Raises:
        DigestAlgorithmUnavailable: SHA-512 is not available.
        WorkerTaskFailure: resolving a dependency raised.
    """
    resolver = ArtifactResolver(
        config.download_directory,
        fetcher if fetcher is not None else ContentFetcher(),
        DigestEngine(),
    )
    walker = DependencyWalker(resolver, max_workers=config.workers, group_filter=config.group_filter)
    walker.walk(graph)
    if is_debug_enabled(logger):
        logger.debug(
            "Resolution finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action="generate",
                outcome="success",
                count=len(resolver.manifest),
                probes=resolver.fetcher.probes_performed,
                fetches=resolver.fetcher.fetches_performed
            )
        )
    return resolver.render()


def run(config: GeneratorConfig) -> int:
    """Run one generation with ``config``; return the exit code."""
    try:
        graph = load_build_graph(config.graph)
    except GraphExportError as e:
        logging.error("%s", e)
        return ExitCodes.FILE_ERROR.value

    try:
        text = generate(config, graph)
    except DigestAlgorithmUnavailable as e:
        logging.error("%s, aborting", e)
        return ExitCodes.RESOLUTION_ERROR.value
    except WorkerTaskFailure as e:
        logging.error("%s; no sources list written", e)
        return ExitCodes.RESOLUTION_ERROR.value

    try:
        write_manifest(text, config.output)
    except OSError as e:
        logging.error("Sources list couldn't be written to disk: %s", e)
        return ExitCodes.FILE_ERROR.value
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    try:
        config = build_config(args)
    except ConfigError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    # Honor log settings from the config file too
    configure_logging(config.log_level, config.log_file)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )
    logging.info("Generating sources list from %s", config.graph)

    sys.exit(run(config))


if __name__ == "__main__":
    main()
