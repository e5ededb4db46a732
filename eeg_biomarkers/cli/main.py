"""
Main CLI entry point for EEG Biomarkers

This module provides the command-line interface for one-shot analysis of a
synthetic recording and for live streaming sessions.
"""

import argparse
import json
import logging
import signal
import sys
import time
from threading import Event
from typing import Any, Dict

import numpy as np

from ..core.config import (
    ALL_CHANNELS, DEFAULT_CHANNELS, FS_EXPECTED, SERIAL_PORT, UDP_HOST, UDP_PORT, StreamConfig, validate_config,
)
from ..core.data_types import IntegratedResult
from ..acquisition.sources import SimulatedEEGSource, BoardSampleSource
from ..processing.features import analyze_batch
from ..detection.depression import analyze_depression_features
from ..detection.epilepsy import analyze_epilepsy_features
from ..detection.mental_state import analyze_conditions, condition_summary
from ..detection.neurodegenerative import analyze_neurodegenerative_features
from ..communication.udp_sender import ResultSender, integrated_message
from ..streaming.scheduler import StreamScheduler
from ..streaming.runner import SessionRunner


def run_batch_analysis(duration: float, channels, seed=None) -> Dict[str, Any]:
    """
    Analyse a synthetic recording with every analysis group

    Returns:
        Dict[str, Any]: JSON-ready summary
    """
    source_seed, score_seed = np.random.SeedSequence(seed).spawn(2)
    source = SimulatedEEGSource(FS_EXPECTED, rng=np.random.default_rng(source_seed))
    recording = source.generate_recording(duration)
    rng = np.random.default_rng(score_seed)

    batch = analyze_batch(recording, channels, "statistics")
    result = IntegratedResult(timestamp=recording.duration)
    result.conditions = analyze_conditions(recording, channels, rng)
    result.neurodegenerative = analyze_neurodegenerative_features(recording, channels, rng)
    if len(channels) >= 2:
        result.depression = analyze_depression_features(recording, channels)
        result.epilepsy = analyze_epilepsy_features(recording, channels)
    else:
        logging.warning("Depression and epilepsy analyses need at least 2 channels - skipped")

    summary = integrated_message(result)
    summary["type"] = "batch"
    summary["samples"] = recording.n_samples
    summary["statistics"] = {
        ch: {"mean": s.mean, "std": s.std, "min": s.min, "max": s.max}
        for ch, s in batch.statistics.items()
    }
    summary["condition_scores"] = condition_summary(result.conditions)
    return summary


def run_streaming(config: StreamConfig, duration: float, source_type: str, serial_port: str,
                  sender: ResultSender = None) -> int:
    """
    Run a live session until the duration elapses or a shutdown signal arrives
    """
    validate_config(config)

    source = None
    if source_type == "brainflow":
        source = BoardSampleSource(serial_port=serial_port)
        if not source.connect():
            logging.error("Failed to connect to EEG source")
            return 1
        config.sample_rate = source.fs
        config.channels = [ch for ch in config.channels if ch in source.channels] or source.channels

    scheduler = StreamScheduler(source=source, config=config)

    def print_alert(alert):
        print(f"[{alert.severity.upper():>8}] #{alert.id} {alert.message}")

    def print_integrated(result):
        if result.conditions:
            print(f"Conditions: {condition_summary(result.conditions)}")
        if result.neurodegenerative:
            neuro = result.neurodegenerative
            print(f"Neuro: AD {neuro.alzheimers.score:.2f} | PD {neuro.parkinsons.score:.2f} | "
                  f"VaD {neuro.vascular_dementia.score:.2f} | DLB {neuro.lewy_bodies.score:.2f}")

    scheduler.on_alert(print_alert)
    scheduler.on_integrated(print_integrated)
    if sender is not None:
        scheduler.on_alert(sender.send_alert)
        scheduler.on_result(sender.send_snapshot)
        scheduler.on_integrated(sender.send_integrated)

    # Graceful shutdown handler
    shutdown_event = Event()
    def signal_handler(signum, frame):
        logging.info("Shutdown signal received")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    runner = SessionRunner(scheduler)
    try:
        logging.info("Streaming started. Press Ctrl+C to stop.")
        runner.start(config)
        started = time.monotonic()
        shutdown_event.wait(duration)
        logging.info(f"Processed {scheduler.sample_count} samples in {time.monotonic() - started:.1f} s")
    finally:
        runner.stop()
        if source is not None:
            source.disconnect()
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        description="EEG Biomarkers - Spectral biomarker analysis and streaming alerts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyse a 10 s synthetic recording
  python -m eeg_biomarkers --batch --duration 10 --seed 1

  # Stream for one minute with integrated analysis every 5 s
  python -m eeg_biomarkers --stream --duration 60 --integrated --ai --neuro

  # Stream from the BrainFlow synthetic board and forward alerts over UDP
  python -m eeg_biomarkers --stream --source brainflow --udp
        """
    )

    # Mode selection (mutually exclusive)
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument("--batch", action="store_true",
                            help="Analyse a synthetic recording and print a JSON summary")
    mode_group.add_argument("--stream", action="store_true",
                            help="Run a live streaming session")

    parser.add_argument("--duration", type=float, default=10.0,
                        help="Recording length or session duration in seconds (default: 10)")
    parser.add_argument("--channels", nargs="+", choices=ALL_CHANNELS, default=DEFAULT_CHANNELS,
                        help="Channels to analyse (default: Channel1-4)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for the simulated signal and scorer perturbation")

    # Data source options
    parser.add_argument("--source", choices=["simulated", "brainflow"], default="simulated",
                        help="Sample source for streaming (default: simulated)")
    parser.add_argument("--serial-port", default=SERIAL_PORT,
                        help=f"Serial port for BrainFlow (default: {SERIAL_PORT})")

    # Streaming parameters
    parser.add_argument("--tick-ms", type=int, default=100,
                        help="Sample tick interval in ms (default: 100)")
    parser.add_argument("--buffer-size", type=int, default=500,
                        help="Sliding buffer size in samples (default: 500)")
    parser.add_argument("--analysis-interval", type=float, default=5.0,
                        help="Integrated analysis interval in seconds (default: 5)")
    parser.add_argument("--integrated", action="store_true",
                        help="Run integrated analysis on a timer")
    parser.add_argument("--ai", action="store_true",
                        help="Include condition scoring in integrated analysis")
    parser.add_argument("--neuro", action="store_true",
                        help="Include neurodegenerative scoring in integrated analysis")

    # Communication options
    parser.add_argument("--udp", action="store_true",
                        help="Forward alerts and results over UDP")
    parser.add_argument("--udp-host", default=UDP_HOST,
                        help=f"UDP host (default: {UDP_HOST})")
    parser.add_argument("--udp-port", type=int, default=UDP_PORT,
                        help=f"UDP port (default: {UDP_PORT})")

    # Logging
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose logging")

    return parser


def main(argv=None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    sender = None
    try:
        if args.batch:
            summary = run_batch_analysis(args.duration, args.channels, args.seed)
            print(json.dumps(summary, indent=2))
            return 0

        print("=" * 60)
        print("EEG Biomarkers - Streaming Session")
        print("=" * 60)

        config = StreamConfig(
            tick_interval_ms=args.tick_ms,
            buffer_size=args.buffer_size,
            channels=list(args.channels),
            integrated_mode=args.integrated,
            auto_analysis=args.integrated,
            analysis_interval_s=args.analysis_interval,
            ai_analysis=args.ai,
            neuro_analysis=args.neuro,
            seed=args.seed,
        )
        if args.udp:
            sender = ResultSender(args.udp_host, args.udp_port)
        return run_streaming(config, args.duration, args.source, args.serial_port, sender)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 0
    except ValueError as e:
        logging.error(f"Invalid input: {e}")
        return 2
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        return 1
    finally:
        if sender is not None:
            sender.close()


if __name__ == "__main__":
    sys.exit(main())
