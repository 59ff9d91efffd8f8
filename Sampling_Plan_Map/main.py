#!/usr/bin/env python3
"""
Sampling Plan Map - Main Entry Point

Loads the yearly sampling plan, builds run polygons and the layered map
model, and writes an interactive HTML map for review plus GeoJSON of the
sites and run hulls.

Usage:
    python -m Sampling_Plan_Map.main

    Environment overrides (see config.py):
    SPM_REGION=PRO SPM_YEAR=2026 python -m Sampling_Plan_Map.main
"""

import sys
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

from Sampling_Plan_Map.config import CONFIG
from Sampling_Plan_Map.config_types import AppConfig
from Sampling_Plan_Map.pipeline import (
    PipelineResult,
    build_sampling_plan_map,
    export_geometries,
    load_sampling_plan_tables,
    summarize_warnings,
)
from Sampling_Plan_Map.visualization.html_builder import generate_map_html

# ═══════════════════════════════════════════════════════════════════════════
# 🎯 MODULE-LEVEL CONFIG (Single Source of Truth)
# ═══════════════════════════════════════════════════════════════════════════
APP_CONFIG = AppConfig.from_dict(CONFIG)

# Parent of every module logger in the package
LOGGER_NAME = "Sampling_Plan_Map"


# ═══════════════════════════════════════════════════════════════════════════
# 📝 LOGGING
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(
    app_config: AppConfig = APP_CONFIG,
) -> Tuple[logging.Logger, Path]:
    """Configure logging with file and console handlers.

    Returns:
        Tuple of (logger, run_log_folder) where run_log_folder holds the
        main log of this run.

    Folder naming convention:
        {region}_{year}_{MMDD}_{HHMM}, e.g. BRRO_2025_0129_1028
        (region is "all" when no region filter is set)
    """
    log_dir = app_config.file_paths.log_path
    log_dir.mkdir(parents=True, exist_ok=True)

    # Compact timestamp: MMDD_HHMM
    timestamp = datetime.now().strftime("%m%d_%H%M")
    region = app_config.region_filter or "all"
    run_log_folder = log_dir / f"{region}_{app_config.sampling_year}_{timestamp}"
    run_log_folder.mkdir(parents=True, exist_ok=True)

    log_path = run_log_folder / "main.log"

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()

    # File handler
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(fh)
    logger.addHandler(ch)

    return logger, run_log_folder


def _log_warnings(result: PipelineResult, logger: logging.Logger) -> None:
    if not result.warnings:
        logger.info("   ✅ No data warnings")
        return
    logger.warning(f"⚠️ {len(result.warnings)} data warning(s):")
    for message in summarize_warnings(result.warnings):
        logger.warning(f"   ⚠️ {message}")


def _log_summary(result: PipelineResult, logger: logging.Logger) -> None:
    logger.info("\n" + "=" * 60)
    logger.info("MAP SUMMARY")
    logger.info("=" * 60)
    for layer in result.map_model.overlay_layers:
        state = "visible" if layer.visible else "hidden"
        logger.info(f"   {layer.name}: {len(layer.features)} features ({state})")
    logger.info(f"   Categories: {', '.join(result.color_scale.domain) or '-'}")
    degenerate = [rp.group_id for rp in result.run_polygons if rp.degenerate]
    if degenerate:
        logger.info(f"   Runs without polygon: {', '.join(degenerate)}")


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 WORKFLOW
# ═══════════════════════════════════════════════════════════════════════════


def run_sampling_plan_map(
    app_config: Optional[AppConfig] = None,
) -> PipelineResult:
    """Run the sampling plan map workflow: load, build, render."""
    app_config = app_config or APP_CONFIG
    logger, run_log_folder = setup_logging(app_config)
    logger.info("=" * 60)
    logger.info(f"🗺️ {app_config.map_title} ({app_config.sampling_year})")
    logger.info("=" * 60)
    logger.info(f"   Region filter: {app_config.region_filter or 'none'}")
    logger.info(f"   Log folder: {run_log_folder}")

    total_start = time.perf_counter()

    try:
        logger.info("\nSTEP 1: Loading sampling plan tables")
        tables = load_sampling_plan_tables(app_config)

        logger.info("\nSTEP 2: Building map model")
        result = build_sampling_plan_map(tables, app_config)
        _log_warnings(result, logger)

        logger.info("\nSTEP 3: Rendering HTML map")
        generate_map_html(
            result.map_model,
            app_config.file_paths.output_html_path,
            app_config.visualization,
            logger,
        )

        logger.info("\nSTEP 4: Exporting GeoJSON")
        export_geometries(
            tables, result, app_config.file_paths.output_html_path.parent, logger
        )

        _log_summary(result, logger)
        logger.info(f"   ⏱️ Total time: {time.perf_counter() - total_start:.2f}s")
        return result

    except Exception as e:
        logger.error(f"❌ Sampling plan map failed: {str(e)}")
        import traceback

        logger.error(traceback.format_exc())
        raise


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════


if __name__ == "__main__":
    run_sampling_plan_map()
