#!/usr/bin/env python3
"""
SyncTrans Batch Processing Entry Point

Processes all audio files in a specified directory, ordered by size,
generating a transcript and a translation for each one.
"""

import argparse
import logging
import os
import sys
import time
from typing import List, Tuple

from tqdm import tqdm

from synctrans.cli import create_gateway, create_pdf_exporter
from synctrans.config_loader import ConfigLoader
from synctrans.log_setup import setup_logging
from synctrans.inputs import AUDIO_EXTENSIONS, load_audio_input
from synctrans.languages import get_language
from synctrans.workflow import WorkflowController, Stage
from synctrans.exporter import export_session
from synctrans.exceptions import SyncTransError, ConfigurationError, FileSystemError
from synctrans.utils import ensure_dir_exists

logger = logging.getLogger(__name__)

def find_and_sort_audio(input_dir: str) -> List[Tuple[str, int]]:
    """
    Finds all audio files in the input directory and sorts them by size.

    Args:
        input_dir: The directory to search for audio files.

    Returns:
        A list of (filepath, filesize) tuples, smallest first.

    Raises:
        FileNotFoundError: If the input directory doesn't exist.
        ValueError: If the input path is not a directory.
    """
    if not os.path.exists(input_dir):
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not os.path.isdir(input_dir):
        raise ValueError(f"Input path is not a directory: {input_dir}")

    files = []
    logger.info(f"Scanning directory for audio files: {input_dir}")
    for filename in os.listdir(input_dir):
        if filename.lower().endswith(AUDIO_EXTENSIONS):
            filepath = os.path.join(input_dir, filename)
            try:
                if os.path.isfile(filepath):
                    files.append((filepath, os.path.getsize(filepath)))
            except OSError as e:
                logger.warning(f"Could not access file {filepath}: {e}. Skipping.")

    files.sort(key=lambda item: item[1])
    logger.info(f"Found {len(files)} audio files. Sorted by size (smallest first).")
    return files


def run_batch_processing():
    """Parses arguments, sets up, and runs the batch transcript generation."""
    parser = argparse.ArgumentParser(
        description="SyncTrans Batch: Transcribe and translate every audio file in a directory.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "-i", "--input-dir",
        required=True,
        help="Directory containing the input audio files."
    )
    parser.add_argument(
        "-l", "--language",
        required=True,
        help="Target language id or name."
    )
    parser.add_argument(
        "-o", "--output-dir",
        default=None,
        help="Directory for the exports. Defaults to <input-dir>/Transcripts."
    )
    parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to the configuration YAML file."
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level for console and file output."
    )

    args = parser.parse_args()

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    setup_logging(log_level=log_level, log_dir='logs', log_file='synctrans_batch_init.log')

    # --- Load Configuration ---
    loader = ConfigLoader()
    try:
        config = loader.load_config(args.config)
    except FileNotFoundError:
        logger.warning(f"Configuration file not found: {args.config}. Using defaults.")
        config = loader.defaults()
    except ConfigurationError as e:
        logger.critical(f"Failed to load configuration: {e}", exc_info=True)
        sys.exit(1)

    setup_logging(log_level=log_level, log_dir=config.get('log_dir', 'logs'), log_file='synctrans_batch.log')
    logger.info("Logging re-configured with settings from config file for batch processing.")

    # --- Find and Sort Audio ---
    try:
        audio_paths = [item[0] for item in find_and_sort_audio(args.input_dir)]
        if not audio_paths:
            logger.warning(f"No audio files found in {args.input_dir}. Exiting.")
            sys.exit(0)
    except (FileNotFoundError, ValueError) as e:
        logger.critical(f"Input directory error: {e}")
        sys.exit(1)

    output_dir = args.output_dir or os.path.join(args.input_dir, "Transcripts")
    try:
        ensure_dir_exists(output_dir)
    except FileSystemError as e:
        logger.critical(f"Could not create output directory: {e}")
        sys.exit(1)

    # --- Initialize Components (ONCE) ---
    try:
        language = get_language(args.language)
        gateway = create_gateway(config)
        pdf_exporter = create_pdf_exporter(config)
    except SyncTransError as e:
        logger.critical(f"Failed to initialize SyncTrans components: {e}")
        sys.exit(1)

    total_files = len(audio_paths)
    files_processed = 0
    files_failed = 0
    batch_start_time = time.time()

    logger.info(f"--- Starting Batch Generation for {total_files} files ---")

    with tqdm(total=total_files, unit="file", desc="Starting Batch") as pbar:
        for audio_path in audio_paths:
            audio_filename = os.path.basename(audio_path)
            pbar.set_description(f"Processing: {audio_filename[:30]}...")

            try:
                logger.info(f"--- Processing audio: {audio_path} ---")
                source = load_audio_input(audio_path, config.get('max_audio_mb', 20))
                # One session per file; nothing is shared between them.
                controller = WorkflowController(gateway)
                state = controller.generate(source, language)

                if state.stage is Stage.DONE:
                    export_session(state, output_dir, config.get('export_formats', ['pdf', 'txt']),
                                   pdf_exporter=pdf_exporter)
                    files_processed += 1
                else:
                    logger.error(f"{audio_filename}: {state.error}")
                    files_failed += 1

            except SyncTransError as e:
                logger.error(f"SyncTrans failed for '{audio_filename}': {e}")
                files_failed += 1
            except KeyboardInterrupt:
                 logger.warning("Batch process interrupted by user (Ctrl+C). Exiting.")
                 sys.exit(1)
            except Exception as e:
                logger.error(f"An unexpected error occurred processing '{audio_filename}': {e}", exc_info=True)
                files_failed += 1
            finally:
                 pbar.update(1)

    logger.info("--- Batch Generation Finished ---")
    logger.info(f"Total time: {time.time() - batch_start_time:.2f} seconds")
    logger.info(f"Successfully processed: {files_processed}/{total_files} files")
    logger.info(f"Failed: {files_failed}/{total_files} files")

    sys.exit(1 if files_failed > 0 else 0)


if __name__ == "__main__":
    if sys.version_info < (3, 9):
        sys.stderr.write("SyncTrans requires Python 3.9 or later.\n")
        sys.exit(1)

    run_batch_processing()
