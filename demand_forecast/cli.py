"""
Command line entry point
Generates a forecast report for an inventory CSV export
"""

import argparse
import logging
import sys

from demand_forecast.exceptions import ForecastingError
from demand_forecast.forecaster import DemandForecastingService
from demand_forecast.inventory import CsvInventorySource
from demand_forecast.model import ModelStore
from demand_forecast.config import MODEL_FILE, TRAINING_SEED
from demand_forecast.utils import (
    daily_forecasts_to_frame, forecasts_to_frame, format_forecast_table,
    format_number, get_alert_items, setup_logging
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='demand-forecast',
        description='Forecast store demand, stockout risk and reorder quantities'
    )
    parser.add_argument('--inventory', required=True, help='Inventory CSV export')
    parser.add_argument('--model', default=str(MODEL_FILE), help='Model artifact path')
    parser.add_argument('--retrain', action='store_true', help='Train a new model before forecasting')
    parser.add_argument('--seed', type=int, default=TRAINING_SEED, help='Synthetic training data seed')
    parser.add_argument('--output', help='Write the forecast report to this CSV file')
    parser.add_argument('--daily-output', help='Write daily projections to this CSV file')
    parser.add_argument('--workers', type=int, default=1, help='Parallel forecast workers')
    parser.add_argument('--log-level', default=None, help='Logging level (default: from config)')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    service = DemandForecastingService(
        inventory_source=CsvInventorySource(args.inventory),
        model_store=ModelStore(args.model),
        training_seed=args.seed,
        max_workers=args.workers
    )

    print("=" * 80)
    print("DEMAND FORECAST")
    print("=" * 80)

    try:
        if args.retrain:
            print(">>> Retraining model...")
            service.retrain(args.seed)

        report = service.generate_report()
    except (ForecastingError, OSError, ValueError) as e:
        logger.debug("Forecast run failed", exc_info=True)
        print(f"Error generating forecast: {e}", file=sys.stderr)
        return 1

    forecasts = report['forecasts']
    summary = report['summary']

    print(f"Reference date: {report['reference_date']}")
    print(f"Model trained: {report['model']['trained_at']} "
          f"({report['model']['n_samples']} examples)")
    print(f"Items: {summary['total_items']} across {len(summary['stores'])} store(s)")
    for level, count in summary['items_by_risk_level'].items():
        print(f"  {level}: {count}")
    print(f"Total reorder quantity: {format_number(summary['total_reorder_quantity'])} units")

    alerts = get_alert_items(forecasts)
    if alerts:
        print(f"\n{len(alerts)} item(s) need attention:")
        print(format_forecast_table(alerts).to_string(index=False))

    if args.output:
        forecasts_to_frame(forecasts).to_csv(args.output, index=False)
        print(f"\n>>> Forecast report saved to {args.output}")
    if args.daily_output:
        daily_forecasts_to_frame(forecasts).to_csv(args.daily_output, index=False)
        print(f">>> Daily projections saved to {args.daily_output}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
