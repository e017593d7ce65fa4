"""
Marked Calendar Extractor — CLI Entry Point

Usage:
    python main.py -i calendar.jpg --year 2024 --month 2 -o february.ics
    python main.py -i calendar.jpg --mode shift_tracking --strategy opencv -v
"""

import argparse
import logging
import os
import sys
import time
from datetime import date

from calendar_extractor.calendar_parser import parse_calendar
from calendar_extractor.ics_builder import write_ics
from calendar_extractor.image_loader import load_image, to_pixel_buffer
from calendar_extractor.models import CalendarMode
from calendar_extractor.ocr_engine import extract_fragments, get_extractor
from calendar_extractor.region_detector import available_strategies, get_strategy


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")


def _banner(logger: logging.Logger, title: str, first: bool = False):
    if not first:
        logger.info("")
    logger.info("=" * 60)
    logger.info(title)
    logger.info("=" * 60)


def run_pipeline(input_path: str, output_path: str, year: int, month: int,
                 mode: str = "standard", strategy: str = "canvas",
                 ocr_engine: str = "tesseract", min_size: int | None = None) -> int:
    """Run image -> regions -> text -> events -> .ics. Returns the number of events written."""
    logger = logging.getLogger("pipeline")
    total_start = time.time()

    _banner(logger, "STAGE 1: Loading image", first=True)
    if not os.path.isfile(input_path):
        logger.error(f"Input file not found: {input_path}")
        sys.exit(1)
    try:
        frame = load_image(input_path)
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)

    _banner(logger, "STAGE 2: Detecting marked regions")
    t = time.time()
    detector = get_strategy(strategy)
    logger.info(f"  Strategy: {detector.label}")
    regions = detector.detect(to_pixel_buffer(frame), min_size=min_size)
    logger.info(f"  Found {len(regions)} marked regions")
    logger.info(f"  Completed in {time.time() - t:.1f}s")
    _banner(logger, "STAGE 3: Reading text in each region")
    if regions:
        t = time.time()
        fragments = extract_fragments(frame, regions, get_extractor(ocr_engine))
        logger.info(f"  Completed in {time.time() - t:.1f}s")
    else:
        logger.warning("No marked dates detected. Try the opencv strategy or check the image.")
        fragments = []

    _banner(logger, f"STAGE 4: Reconstructing events for {year}-{month:02d}")
    parsed = parse_calendar(fragments, year, month, mode)
    for event in parsed.events:
        when = f" {event.start_time}" if event.start_time else ""
        if event.end_time:
            when += f"-{event.end_time}"
        logger.info(f"  {event.date.isoformat()}{when}  {event.title}")

    _banner(logger, "STAGE 5: Writing .ics file")
    path = write_ics(parsed, output_path)

    _banner(logger, "EXTRACTION COMPLETE")
    logger.info(f"  Regions detected: {len(regions)}")
    logger.info(f"  Regions with text: {len(fragments)}")
    logger.info(f"  Events:          {parsed.event_count}")
    logger.info(f"  Output file:     {path}")
    logger.info(f"  Total time:      {time.time() - total_start:.1f}s")
    return parsed.event_count


def main():
    today = date.today()
    parser = argparse.ArgumentParser(
        description="Extract red-marked dates from a photo of a monthly calendar and save them as .ics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n  python main.py -i calendar.jpg --year 2024 --month 2\n"
               "  python main.py -i shifts.jpg --mode shift_tracking --strategy opencv -v")
    parser.add_argument("-i", "--input", required=True, help="Path to the calendar photo")
    parser.add_argument("-o", "--output", default="calendar-events.ics", help="Path for output .ics file")
    parser.add_argument("--year", type=int, default=today.year, help="Year shown in the calendar (default: this year)")
    parser.add_argument("--month", type=int, default=today.month, help="Month shown, 1-12 (default: this month)")
    parser.add_argument("--mode", choices=[m.value for m in CalendarMode], default=CalendarMode.STANDARD.value,
                        help="standard: text becomes the title; shift_tracking: dayshift/nightshift events")
    parser.add_argument("--strategy", choices=[name for name, _ in available_strategies()], default="canvas",
                        help="Red region detection strategy (default: canvas)")
    parser.add_argument("--ocr-engine", choices=["tesseract", "easyocr"], default="tesseract", help="OCR engine (default: tesseract)")
    parser.add_argument("--min-size", type=int, default=None, help="Minimum region width/height in pixels (default: per strategy)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    args = parser.parse_args()
    setup_logging(args.verbose)
    if not 1 <= args.month <= 12:
        parser.error(f"--month must be between 1 and 12, got {args.month}")
    output = args.output
    if not output.lower().endswith(".ics"):
        output += ".ics"
    run_pipeline(input_path=args.input, output_path=output, year=args.year, month=args.month,
                 mode=args.mode, strategy=args.strategy, ocr_engine=args.ocr_engine, min_size=args.min_size)


if __name__ == "__main__":
    main()
