from __future__ import annotations

import argparse

from core.config import get_pipeline_config
from core.filters.kinds import FilterKind
from core.logging.logger import get_logger
from core.pipeline.service import PipelineService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the frame filter pipeline without a display")
    parser.add_argument("--filter", default=None, choices=[kind.value for kind in FilterKind])
    parser.add_argument("--intensity", type=int, default=None)
    parser.add_argument("--ticks", type=int, default=120, help="Number of frames to process")
    parser.add_argument("--snapshot", action="store_true", help="Save the last output frame as PNG")
    args = parser.parse_args(argv)

    logger = get_logger()
    service = PipelineService(get_pipeline_config())
    service.set_controls(filter_name=args.filter, intensity=args.intensity)
    try:
        ran = service.pipeline.run(max_ticks=args.ticks)
        status = service.status()
        logger.info(
            "Processed %s frames (%s failed) with %s; stats=%s",
            ran,
            status.failed_ticks,
            status.filter.value,
            status.stats,
        )
        if args.snapshot and ran:
            logger.info("Snapshot written to %s", service.snapshot().path)
    finally:
        service.close()
    return 0 if not service.pipeline.halted else 1


if __name__ == "__main__":
    raise SystemExit(main())
