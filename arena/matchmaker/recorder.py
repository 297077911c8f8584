# SPDX-License-Identifier: GPL-2.0-or-later
import logging

from arena.models import GameResult

from .monitoring import matchmaker_results_recorded_total


class ResultRecorder:
    """Writes game results and marks their event as played."""

    async def record(self, db, result: GameResult) -> None:
        """Inserts `result`, then flags its event as played.

        The event is flagged as soon as any of its games is recorded; other
        repeats of the same event failing afterwards do not bring it back.
        Raises PersistenceError if either write fails.
        """
        await db.insert_result(result.to_document())
        matchmaker_results_recorded_total.inc()
        await db.mark_played(result.event_id)
        logging.debug(
            'recorded game %s of event %s', result.index, result.event_id
        )
