"""Command line entry point: JSON appointment export in, month calendar PDF out."""

import argparse
import logging
import sys
from typing import List, Optional

from monthgrid.appointments import (Visibility, appointments_in_range, filter_by_tags,
                                    filter_by_visibility, load_source, populate_builder,
                                    sort_appointments)
from monthgrid.builder import BuilderConfig, CalendarBuilder
from monthgrid.dates import LOCALES, TimeRange, WeekStart, calculate_date_range, calculate_year_range
from monthgrid.errors import CalendarError
from monthgrid.grid import Margins, Orientation, PaperSize, page_dimensions
from monthgrid.output import generate_filename, save_document

logger = logging.getLogger(__name__)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monthgrid",
        description="Render calendar appointments as one printable grid page per month.",
    )
    parser.add_argument("source", help="JSON file with calendars and appointments")
    parser.add_argument("-r", "--range", dest="time_range", default=TimeRange.NEXT.value,
                        choices=[t.value for t in TimeRange],
                        help="months to print, relative to today (default: next)")
    parser.add_argument("-y", "--year", type=int,
                        help="print January-December of this year instead of --range")
    parser.add_argument("-p", "--paper", default=PaperSize.A4.value,
                        choices=[p.value for p in PaperSize], help="paper size (default: A4)")
    parser.add_argument("--orientation", default=Orientation.PORTRAIT.value,
                        choices=[o.value for o in Orientation])
    parser.add_argument("--week-start", default="monday", choices=["monday", "sunday"])
    parser.add_argument("--margin", type=float, default=5, help="page margin in mm (default: 5)")
    parser.add_argument("--visibility", default=Visibility.PUBLIC.value,
                        choices=[v.value for v in Visibility])
    parser.add_argument("-c", "--calendar", dest="calendar_ids", type=int, action="append",
                        help="calendar id to include (repeatable, default: all)")
    parser.add_argument("-t", "--tag", dest="tag_ids", type=int, action="append", default=[],
                        help="only appointments with this tag id (repeatable)")
    parser.add_argument("--show-end-time", action="store_true")
    parser.add_argument("--no-colors", action="store_true", help="print entries black on white")
    parser.add_argument("--no-legend", action="store_true")
    parser.add_argument("--locale", default="en", choices=sorted(LOCALES))
    parser.add_argument("--author", help="author written to the PDF metadata")
    parser.add_argument("-o", "--output-dir", default="output")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = get_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        print("Generating month calendar PDF...")
        calendars, appointments = load_source(args.source)
        if args.calendar_ids:
            selected = set(args.calendar_ids)
            calendars = [c for c in calendars if c.id in selected]
            appointments = [a for a in appointments if a.calendar_id in selected]

        if args.year is not None:
            start, end, months = calculate_year_range(args.year)
        else:
            start, end, months = calculate_date_range(args.time_range)
        appointments = appointments_in_range(appointments, start, end)
        appointments = filter_by_visibility(appointments, args.visibility)
        appointments = filter_by_tags(appointments, args.tag_ids)
        appointments = sort_appointments(appointments)
        print(f"  {len(appointments)} appointments in {len(calendars)} calendars")

        month_names, day_names = LOCALES[args.locale]
        week_start = WeekStart.MONDAY if args.week_start == "monday" else WeekStart.SUNDAY
        config = BuilderConfig(
            orientation=args.orientation,
            paper_size=args.paper,
            week_start=week_start,
            margins=Margins(args.margin, args.margin, args.margin, args.margin),
            show_end_time=args.show_end_time,
            use_colors=not args.no_colors,
            # A single calendar needs no legend
            show_legend=not args.no_legend and len(calendars) > 1,
            day_names=day_names[week_start:] + day_names[:week_start],
            month_names=month_names,
            author=args.author,
        )
        builder = CalendarBuilder(config)
        populate_builder(builder, calendars, appointments, months)

        for page in builder.pages:
            print(f"  [{page.title}] {len(page.entries)} entries")
        data = builder.generate()
        path = save_document(data, generate_filename(months), args.output_dir)
    except (CalendarError, OSError) as e:
        logger.debug("Generation failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    width, height = page_dimensions(config.paper_size, config.orientation)
    print("\n" + "=" * 50)
    print("GENERATION COMPLETE")
    print("=" * 50)
    print(f"Output: {path}")
    print(f"Pages: {len(builder.pages)}")
    print(f"Size: {config.paper_size.value} {config.orientation.value} ({width} x {height} mm)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
