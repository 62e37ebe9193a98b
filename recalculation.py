"""Batch recomputation of stored percentage grades.

Walks every stored correction page by page and rewrites ``percentage_grade``
from the stored ``final_grade``. Each record is handled on its own, so a run can
be stopped at any point and resumed from ``RecalculationSummary.last_id``.
"""
import logging
from typing import Callable, Dict, Optional

from pydantic import ValidationError

import storage
from grading import calculate_percentage_grade
from models import Activity, Correction, RecalculationSummary, activity_from_record

logger = logging.getLogger(__name__)


def recalculate_percentage_grades(page_size: int = 100, start_after: Optional[int] = None,
                                  should_stop: Optional[Callable[[], bool]] = None) -> RecalculationSummary:
    summary = RecalculationSummary(last_id=start_after)
    activities: Dict[int, Optional[Activity]] = {}

    for page in storage.iter_correction_pages(page_size=page_size, start_after=start_after):
        for record in page:
            if should_stop is not None and should_stop():
                logger.info("Recalculation stopped after id %s (%d processed)",
                            summary.last_id, summary.processed)
                return summary

            summary.processed += 1
            summary.last_id = record["id"]
            try:
                correction = Correction(**record)
            except ValidationError as e:
                logger.warning("Skipping unreadable correction %s: %s", record.get("id"), e)
                summary.skipped += 1
                continue

            if correction.activity_id not in activities:
                activities[correction.activity_id] = activity_from_record(
                    storage.load_activity(correction.activity_id)
                )
            activity = activities[correction.activity_id]
            if activity is None:
                logger.warning("Skipping correction %s: activity %s not found",
                               correction.id, correction.activity_id)
                summary.skipped += 1
                continue

            percentage = calculate_percentage_grade(
                correction.final_grade, activity.points, correction.disabled_parts
            )
            if percentage == correction.percentage_grade:
                continue
            storage.save_correction({**record, "percentage_grade": percentage})
            summary.updated += 1

    summary.completed = True
    logger.info("Recalculation done: %d processed, %d updated, %d skipped",
                summary.processed, summary.updated, summary.skipped)
    return summary
