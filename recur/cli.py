#!/usr/bin/env python3
# recur/cli.py
"""
Recurrence rule CLI.
Expands rules, finds next occurrences and validates rule text from the shell.
"""

import sys
import json
import argparse
from typing import List, Optional

from observability.logging import cli_logger, log_function_call
from observability.metrics import get_metrics_text

from .config import EvaluationConfig, setup_logging
from .errors import RecurrenceError
from .occurrence import Occurrence
from .parser import parse_rule, validate_rule_text


def print_json(data):
    """Pretty print JSON data."""
    print(json.dumps(data, indent=2, default=str))


def _occurrence(text: str, tz_id: Optional[str]) -> Occurrence:
    """Parse an RRULE date or date-time, placing floating times in ``tz_id``."""
    occurrence = Occurrence.parse(text)
    if tz_id and occurrence.is_floating:
        occurrence = Occurrence.zoned(occurrence.value, tz_id)
    return occurrence


def _config(args) -> EvaluationConfig:
    config = EvaluationConfig.from_environment()
    if args.max_stall is not None:
        config.max_stall_increments = args.max_stall
    if args.log_level:
        config.log_level = args.log_level
    return config


@log_function_call(cli_logger)
def cmd_expand(args, config: EvaluationConfig) -> int:
    """List the occurrences of a rule within a window."""
    rule = parse_rule(args.rule, relaxed=args.relaxed).unwrap()
    seed = _occurrence(args.seed, args.tz)
    start = _occurrence(args.start, args.tz) if args.start else seed
    end = _occurrence(args.end, args.tz) if args.end else None
    if end is None and rule.count is None and rule.until is None and args.max_count < 0:
        print("Error: unbounded rule needs --end, --max-count, COUNT or UNTIL")
        return 1

    dates = rule.enumerate(seed, start, end, max_count=args.max_count, config=config)
    print_json({
        "rule": rule.to_canonical_string(),
        "seed": seed.to_ical(),
        "count": len(dates),
        "occurrences": [str(d) for d in dates],
    })
    return 0


@log_function_call(cli_logger)
def cmd_next(args, config: EvaluationConfig) -> int:
    """Show the next occurrence after a date."""
    rule = parse_rule(args.rule, relaxed=args.relaxed).unwrap()
    seed = _occurrence(args.seed, args.tz)
    after = _occurrence(args.after, args.tz) if args.after else seed

    occurrence = rule.next_after(seed, after, config=config)
    print_json({
        "rule": rule.to_canonical_string(),
        "after": str(after),
        "next": str(occurrence) if occurrence is not None else None,
    })
    return 0


@log_function_call(cli_logger)
def cmd_validate(args, config: EvaluationConfig) -> int:
    """Validate rule text and report warnings."""
    report = validate_rule_text(args.rule)
    print_json(report)
    return 0 if report['valid'] else 1


def cmd_metrics(args, config: EvaluationConfig) -> int:
    """Print Prometheus metrics collected in this process."""
    print(get_metrics_text(), end='')
    return 0


COMMANDS = {
    'expand': cmd_expand,
    'next': cmd_next,
    'validate': cmd_validate,
    'metrics': cmd_metrics,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='recur',
        description="RFC-5545 recurrence rule evaluation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s expand 'FREQ=DAILY;COUNT=3' --seed 20080401
  %(prog)s expand 'FREQ=WEEKLY;BYDAY=MO,WE' --seed 20240101T090000 --end 20240201T000000 --tz Europe/Chisinau
  %(prog)s next 'FREQ=MONTHLY;BYDAY=FR;BYMONTHDAY=13' --seed 20240101
  %(prog)s validate 'FREQ=YEARLY;BYMONTH=2;BYMONTHDAY=30'
        """
    )

    # Global options
    parser.add_argument('--max-stall', type=int, default=None,
                        help='Empty cursor increments before a search gives up (negative disables)')
    parser.add_argument('--log-level', default=None,
                        help='Log level (default: RECUR_LOG_LEVEL or INFO)')
    parser.add_argument('--relaxed', action='store_true',
                        help='Ignore unknown rule parts')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    expand_parser = subparsers.add_parser('expand', help='List occurrences in a window')
    expand_parser.add_argument('rule', help='RRULE text')
    expand_parser.add_argument('--seed', required=True, help='First occurrence (yyyyMMdd[THHmmss[Z]])')
    expand_parser.add_argument('--start', help='Window start (default: seed)')
    expand_parser.add_argument('--end', help='Window end (default: unbounded)')
    expand_parser.add_argument('--max-count', type=int, default=-1,
                               help='Maximum occurrences to return (default: no limit)')
    expand_parser.add_argument('--tz', help='Timezone for floating date-times')

    next_parser = subparsers.add_parser('next', help='Show the next occurrence')
    next_parser.add_argument('rule', help='RRULE text')
    next_parser.add_argument('--seed', required=True, help='First occurrence (yyyyMMdd[THHmmss[Z]])')
    next_parser.add_argument('--after', help='Search after this date (default: seed)')
    next_parser.add_argument('--tz', help='Timezone for floating date-times')

    validate_parser = subparsers.add_parser('validate', help='Validate rule text')
    validate_parser.add_argument('rule', help='RRULE text')

    subparsers.add_parser('metrics', help='Print search metrics')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = _config(args)
    if args.verbose or args.log_level:
        setup_logging(config)

    try:
        return COMMANDS[args.command](args, config)
    except (RecurrenceError, ValueError) as e:
        print(f"Error: {e}")
        if args.verbose:
            cli_logger.exception(f"Command {args.command} failed", command=args.command)
        return 1


if __name__ == '__main__':
    sys.exit(main())
