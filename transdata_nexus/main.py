#!/usr/bin/env python3
"""
TransDataNexus - Main Entry Point

Command-line interface for the trade analytics service.

Usage:
    python -m transdata_nexus.main [command] [options]

Commands:
    Service:
        serve          - Run the HTTP API
        init-db        - Create the shipment table

    Data:
        load-csv       - Import a shipment CSV export

    Analysis:
        analyze        - Print AI or advanced analytics for a search term
        report         - Generate a PDF/PPTX report for a search term
        purge-reports  - Delete expired reports
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config.settings import TransDataConfig
from .database.models import init_database
from .database.loader import load_trade_records_csv
from .database.repository import TradeRecordRepository
from .exceptions import TransDataError
from .services.advanced_analytics import AdvancedAnalyticsEngine
from .services.market_analytics import MarketAnalyticsService
from .services.report_generator import DynamicReportGenerator
from .services.report_schema import create_report_config, REPORT_TYPES
from .services.report_store import ReportStore
from .utils.logging_utils import LogAction, setup_logging, log_event

logger = logging.getLogger(__name__)


def _session(config: TransDataConfig):
    session_factory, _ = init_database(config.database.get_connection_string(), echo=config.database.echo)
    return session_factory()


def cmd_serve(args, config: TransDataConfig):
    """Run the Flask development server"""
    from .api import create_app

    host = args.host or config.api.host
    port = args.port or config.api.port

    app = create_app(config)
    log_event(logger, logging.INFO, LogAction.STARTUP, f"Serving API on {host}:{port}",
              details={'host': host, 'port': port, 'debug': config.api.debug})
    app.run(host=host, port=port, debug=config.api.debug)
    return 0


def cmd_init_db(args, config: TransDataConfig):
    """Create tables"""
    init_database(config.database.get_connection_string(), echo=config.database.echo)
    print(f"Database initialized: {config.database.db_type.value}")
    return 0


def cmd_load_csv(args, config: TransDataConfig):
    """Import a shipment CSV"""
    session = _session(config)
    try:
        result = load_trade_records_csv(session, Path(args.path), batch_size=args.batch_size)
    finally:
        session.close()

    log_event(logger, logging.INFO if result.success else logging.ERROR, LogAction.DATA_LOAD,
              f"Loaded {result.records_inserted} records from {args.path}",
              details={'read': result.records_read, 'ignoredColumns': result.columns_ignored},
              duration_seconds=result.duration_seconds)

    print("\n" + "=" * 60)
    print("CSV LOAD RESULTS")
    print("=" * 60)
    print(f"File: {args.path}")
    print(f"Success: {result.success}")
    print(f"Rows read: {result.records_read}")
    print(f"Rows inserted: {result.records_inserted}")
    print(f"Columns ignored: {result.columns_ignored}")
    print(f"Duration: {result.duration_seconds:.1f}s")
    if result.error_message:
        print(f"Error: {result.error_message}")

    return 0 if result.success else 1


def cmd_analyze(args, config: TransDataConfig):
    """Print analytics for a search term"""
    session = _session(config)
    try:
        repository = TradeRecordRepository(session)
        if args.advanced:
            payload = AdvancedAnalyticsEngine.load(args.query, repository, config).run_comprehensive_analysis()
        else:
            payload = MarketAnalyticsService(repository, config).generate(args.query)
    except TransDataError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        session.close()

    output = json.dumps(payload, indent=2, default=str)
    if args.output:
        with open(args.output, 'w') as f:
            f.write(output)
        print(f"Analytics saved to: {args.output}")
    else:
        print(output)
    return 0


def cmd_report(args, config: TransDataConfig):
    """Generate a report document"""
    session = _session(config)
    try:
        report_config = create_report_config(args.query, args.type, format=args.format)
        engine = AdvancedAnalyticsEngine.load(args.query, TradeRecordRepository(session), config)
        store = ReportStore(config.reports.reports_directory, config.reports.expiry_hours)
        response = DynamicReportGenerator(store, config).generate(report_config, engine)
    except TransDataError as e:
        print(f"Error: {e.message}")
        if e.details:
            print(f"Details: {e.details}")
        return 1
    finally:
        session.close()

    print("\n" + "=" * 60)
    print("REPORT GENERATED")
    print("=" * 60)
    if args.format == 'html':
        summary = response['report']['summary']
        print(f"Sections: {summary['totalSections']}")
        print(f"Estimated pages: {summary['totalPages']}")
    else:
        print(f"Report ID: {response['reportId']}")
        print(f"File: {response['fileName']}")
        print(f"Sections: {response['metadata']['totalSections']}")
        print(f"Estimated pages: {response['metadata']['totalPages']}")
        print(f"AI insights: {response['metadata']['aiInsightsCount']}")
    return 0


def cmd_purge_reports(args, config: TransDataConfig):
    """Delete expired reports"""
    store = ReportStore(config.reports.reports_directory, config.reports.expiry_hours)
    removed = store.purge_expired()
    print(f"Removed {removed} expired reports from {config.reports.reports_directory}")
    return 0


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='TransDataNexus trade analytics service',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create the table and import a shipment export
  python -m transdata_nexus.main init-db
  python -m transdata_nexus.main load-csv exports_2024.csv

  # Run the API on port 8080
  python -m transdata_nexus.main serve --port 8080

  # Market analytics for paracetamol
  python -m transdata_nexus.main analyze paracetamol

  # Comprehensive PDF report
  python -m transdata_nexus.main report paracetamol --type comprehensive --format pdf
        """
    )

    parser.add_argument('--version', action='version', version='%(prog)s 1.0.0')
    parser.add_argument('--log-dir', help='Directory for JSON-lines log files')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', help='Bind address')
    serve_parser.add_argument('--port', type=int, help='Port')

    subparsers.add_parser('init-db', help='Create database tables')

    load_parser = subparsers.add_parser('load-csv', help='Import a shipment CSV')
    load_parser.add_argument('path', help='CSV file')
    load_parser.add_argument('--batch-size', type=int, default=1000, help='Rows per insert batch')

    analyze_parser = subparsers.add_parser('analyze', help='Print analytics for a search term')
    analyze_parser.add_argument('query', help='Product search term')
    analyze_parser.add_argument('--advanced', '-a', action='store_true', help='Run the advanced engine')
    analyze_parser.add_argument('--output', '-o', help='Write JSON to a file')

    report_parser = subparsers.add_parser('report', help='Generate a report')
    report_parser.add_argument('query', help='Product search term')
    report_parser.add_argument('--type', '-t', default='comprehensive',
                               choices=[t for t in REPORT_TYPES if t != 'custom'])
    report_parser.add_argument('--format', '-f', default='pdf', choices=['pdf', 'pptx', 'html'])

    subparsers.add_parser('purge-reports', help='Delete expired reports')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    config = TransDataConfig.from_environment()
    log_dir = Path(args.log_dir) if args.log_dir else config.api.log_directory
    setup_logging('transdata_nexus', log_dir=log_dir, level=getattr(logging, config.log_level, logging.INFO))

    # Route to command handler
    handlers = {
        'serve': cmd_serve,
        'init-db': cmd_init_db,
        'load-csv': cmd_load_csv,
        'analyze': cmd_analyze,
        'report': cmd_report,
        'purge-reports': cmd_purge_reports,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args, config)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
