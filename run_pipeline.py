"""
Admissions feature pipeline orchestrator.

Turns a raw admissions export into the model-ready feature table plus a
data-quality audit report.

Usage:
    python run_pipeline.py                                  # Default input/output from config
    python run_pipeline.py --input export.xlsx              # Custom export
    python run_pipeline.py --csv data/feature/features.csv  # Also write a CSV copy
    python run_pipeline.py --zip-centroids zips.csv         # Offline postal centroids
    python run_pipeline.py --no-save                        # Dry run, report only
"""
import argparse
import logging
import sys

from src import config
from src.feature_pipeline import PipelineError
from src.main import run_preprocessing_pipeline
from src.utils.geo import CentroidTableGeocoder

logger = logging.getLogger(__name__)


def run_full_pipeline(
    input_path: str = None,
    output_path: str = None,
    csv_path: str = None,
    zip_centroids: str = None,
    save: bool = True,
) -> None:
    """
    Execute the preprocessing pipeline and report the outcome.

    Args:
        input_path: Raw export (default config.RAW_DATA_PATH).
        output_path: Parquet output (default config.PROCESSED_DATA_PATH).
        csv_path: Optional CSV copy of the output.
        zip_centroids: Optional offline postal centroid CSV.
        save: Write the outputs; False runs every stage and only reports.
    """
    logger.info("=" * 80)
    logger.info("ADMISSIONS FEATURE PIPELINE")
    logger.info("=" * 80)
    logger.info(f"Input:  {input_path or config.RAW_DATA_PATH}")
    if save:
        logger.info(f"Output: {output_path or config.PROCESSED_DATA_PATH}")

    geocoder = CentroidTableGeocoder.from_csv(zip_centroids) if zip_centroids else None

    try:
        df, audit = run_preprocessing_pipeline(
            file_path=input_path,
            save_outputs=save,
            geocoder=geocoder,
            output_path=output_path,
            csv_path=csv_path,
        )
    except PipelineError as e:
        logger.error(f"❌ Pipeline failed at stage '{e.stage}' (column: {e.column}): {e.message}")
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error(f"❌ Input not found: {e}")
        sys.exit(1)

    logger.info("\n" + "=" * 80)
    logger.info("✓ PIPELINE COMPLETE")
    logger.info("=" * 80)
    logger.info(f"Final shape: {df.shape}")
    logger.info(f"Audit entries: {len(audit)}")
    if not save:
        logger.info("Outputs not written (--no-save)")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Build the model-ready admissions feature table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with config defaults
  python run_pipeline.py

  # Custom export, offline postal centroids
  python run_pipeline.py --input data/raw/fall_export.xlsx --zip-centroids data/zip_centroids.csv

  # Also write a CSV copy next to the parquet output
  python run_pipeline.py --csv

  # Validate an export without writing anything
  python run_pipeline.py --input data/raw/fall_export.xlsx --no-save
        """
    )
    parser.add_argument('--input', default=None, help='Raw export (.xlsx or .csv)')
    parser.add_argument('--output', default=None, help=f'Parquet output (default: {config.PROCESSED_DATA_PATH})')
    parser.add_argument(
        '--csv',
        nargs='?',
        const=str(config.PROCESSED_CSV_PATH),
        default=None,
        help=f'Also write a CSV copy (default path: {config.PROCESSED_CSV_PATH})'
    )
    parser.add_argument('--zip-centroids', default=None, help='Offline CSV of postal_code, latitude, longitude')
    parser.add_argument('--no-save', action='store_true', help='Run every stage without writing outputs')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger().setLevel(level)

    run_full_pipeline(
        input_path=args.input,
        output_path=args.output,
        csv_path=args.csv,
        zip_centroids=args.zip_centroids,
        save=not args.no_save,
    )


if __name__ == "__main__":
    main()
