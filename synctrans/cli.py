"""Command-Line Interface handler for SyncTrans."""

import argparse
import logging
import os
import sys
import textwrap
from itertools import zip_longest
from typing import List, Optional

from .config_loader import ConfigLoader, resolve_api_key
from .log_setup import setup_logging
from .gateway import GeminiGateway
from .inputs import load_audio_input, load_text_input
from .languages import SUPPORTED_LANGUAGES, get_language
from .models import Transcript
from .workflow import WorkflowController, SessionState, Stage
from .exporter import PdfExporter, export_session
from .utils import sanitize_identifier
from .exceptions import SyncTransError, ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

FORMAT_CHOICES = {"pdf": ["pdf"], "txt": ["txt"], "both": ["pdf", "txt"]}


def create_gateway(config: dict) -> GeminiGateway:
    """Builds the model gateway from config. Raises ConfigurationError if the API key is missing."""
    api_key = resolve_api_key(config)
    return GeminiGateway(
        api_key=api_key,
        model_name=config.get("model_name", "gemini-2.5-flash"),
        timeout_seconds=float(config.get("request_timeout_seconds", 60)),
    )


def create_pdf_exporter(config: dict) -> PdfExporter:
    fonts = config.get("fonts") or {}
    return PdfExporter(
        tamil_font_path=fonts.get("tamil_regular"),
        tamil_bold_font_path=fonts.get("tamil_bold"),
    )


def render_side_by_side(source: Optional[Transcript], translation: Optional[Transcript],
                        right_title: str, width: int = 100) -> str:
    """Lays out both transcripts in two columns. Missing panels show a placeholder."""
    column = (width - 3) // 2

    def panel(title: str, items: Optional[Transcript], placeholder: str) -> List[str]:
        lines = [title, "=" * min(len(title), column)]
        if not items:
            return lines + [placeholder]
        for item in items:
            lines.extend(textwrap.wrap(item.to_line(), column) or [""])
        return lines

    left = panel("Original Transcript", source, "(no transcript)")
    right = panel(right_title, translation, "(no translation)")
    rows = [f"{l:<{column}} | {r}" for l, r in zip_longest(left, right, fillvalue="")]
    return "\n".join(rows)


class CLIHandler:
    """Parses arguments and orchestrates the SyncTrans process."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="SyncTrans: Generate a timestamped transcript from audio or text and translate it.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        source = parser.add_mutually_exclusive_group()
        source.add_argument(
            "-a", "--audio",
            help="Path to the input audio file (MP3, WAV, M4A, ...)."
        )
        source.add_argument(
            "-t", "--text-file",
            help="Path to a UTF-8 text file to turn into a transcript."
        )
        parser.add_argument(
            "-l", "--language",
            help="Target language id or name. See --list-languages."
        )
        parser.add_argument(
            "--also-translate",
            action="append",
            metavar="LANGUAGE",
            help="Translate the same transcript into another language as well. Repeatable. "
                 "Exports go to a per-language subdirectory of the output directory."
        )
        parser.add_argument(
            "-o", "--output-dir",
            default=None,
            help="Directory for the exported files. Defaults to 'output_dir' from the config."
        )
        parser.add_argument(
            "-f", "--format",
            default=None,
            choices=sorted(FORMAT_CHOICES),
            help="Export format. Defaults to 'export_formats' from the config."
        )
        parser.add_argument(
            "--no-export",
            action="store_true",
            help="Only print the transcripts."
        )
        parser.add_argument(
            "-c", "--config",
            default="config.yaml",
            help="Path to the configuration YAML file."
        )
        parser.add_argument(
            "--timeout",
            type=float,
            default=None,
            help="Override the per-request timeout (seconds) from the config."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        parser.add_argument(
            "--list-languages",
            action="store_true",
            help="Print the supported languages and exit."
        )
        return parser

    def _load_config(self, config_path: str) -> dict:
        loader = ConfigLoader()
        try:
            return loader.load_config(config_path)
        except FileNotFoundError:
            logger.warning(f"Configuration file not found: {config_path}. Using defaults.")
            return loader.defaults()

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the workflow. Always exits."""
        args = self.parser.parse_args(argv)

        if args.list_languages:
            for option in SUPPORTED_LANGUAGES:
                print(f"{option.id:<24} {option.variant.value}")
            sys.exit(0)

        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        setup_logging(log_level=log_level, log_dir='logs', log_file='synctrans_init.log')

        # --- Load Configuration ---
        try:
            config = self._load_config(args.config)
        except ConfigurationError as e:
            logger.critical(f"Failed to load configuration from {args.config}: {e}", exc_info=True)
            sys.exit(1)

        setup_logging(log_level=log_level, log_dir=config.get('log_dir', 'logs'),
                      log_file=config.get('log_file', 'synctrans.log'))
        logger.info("Logging re-configured with settings from config file.")

        # --- Apply CLI Overrides ---
        if args.timeout:
            logger.info(f"Overriding request_timeout_seconds with CLI argument: {args.timeout}")
            config['request_timeout_seconds'] = args.timeout
        if args.output_dir:
            config['output_dir'] = args.output_dir
        if args.format:
            config['export_formats'] = FORMAT_CHOICES[args.format]

        # --- Startup: credential is mandatory ---
        try:
            gateway = create_gateway(config)
        except ConfigurationError as e:
            logger.critical(f"Cannot start: {e}")
            sys.exit(1)

        try:
            # --- Validate Inputs ---
            if args.text_file:
                source = load_text_input(args.text_file)
            else:
                source = load_audio_input(args.audio, config.get('max_audio_mb', 20))
            language = get_language(args.language)
            extra_languages = [get_language(name) for name in args.also_translate or []]

            # --- Run Workflow ---
            controller = WorkflowController(gateway, on_change=self._report_stage)
            state = controller.generate(source, language)
            if state.synthetic_timing:
                logger.info("Timestamps were synthesized from text and are estimates, not measurements.")
            succeeded = self._present(state, args, config, config.get('output_dir', 'exports'))

            # --- Reuse the transcript for further languages ---
            if state.source:
                for extra in extra_languages:
                    state = controller.translate(extra)
                    extra_dir = os.path.join(config.get('output_dir', 'exports'), sanitize_identifier(extra.id))
                    succeeded = self._present(state, args, config, extra_dir) and succeeded

            if not succeeded:
                sys.exit(1)
            logger.info("SyncTrans finished successfully.")
            sys.exit(0)

        except ValidationError as e:
            logger.error(str(e))
            sys.exit(1)
        except SyncTransError as e:
             logger.error(f"A SyncTrans error occurred: {e}")
             sys.exit(1)
        except KeyboardInterrupt:
             logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
             sys.exit(1)
        except Exception as e:
             logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
             sys.exit(2)

    def _present(self, state: SessionState, args: argparse.Namespace, config: dict, output_dir: str) -> bool:
        """Prints the transcripts and exports them. Returns False if the session errored."""
        print(render_side_by_side(state.source, state.translation, f"Translation ({state.language.name})"))
        if state.stage is Stage.ERRORED:
            logger.error(state.error)
            return False

        if not args.no_export:
            written = export_session(
                state,
                output_dir,
                config.get('export_formats', ['pdf', 'txt']),
                pdf_exporter=create_pdf_exporter(config),
            )
            for path in written:
                logger.info(f"Exported: {path}")
        return True

    def _report_stage(self, state: SessionState) -> None:
        if state.stage is Stage.TRANSCRIBING:
            logger.info("Step 1: Generating transcript...")
        elif state.stage is Stage.TRANSLATING:
            logger.info(f"Transcript ready ({len(state.source)} segments).")
            logger.info(f"Step 2: Translating to {state.language.name}...")
        elif state.stage is Stage.DONE:
            logger.info(f"Translation ready ({len(state.translation)} segments).")


def main() -> None:
    CLIHandler().run()
