"""Aggregation orchestrator running every source and merging the results."""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from processor.event_processor import EventProcessor
from processor.models import AggregationReport, AggregationResult, Event, SourceResult

logger = logging.getLogger(__name__)


class ScheduleAggregator:
    """
    Run source adapters and build the deduplicated, ordered schedule.

    Adapters are anything with a ``name`` attribute and a ``run(rank)``
    method returning a SourceResult. Their order is the dedup priority:
    when two sources report the same event, the earlier source's copy wins.
    """

    def __init__(
        self,
        adapters: Sequence,
        processor: Optional[EventProcessor] = None,
        delay_seconds: float = 3.0,
        max_workers: int = 1,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the aggregator.

        Args:
            adapters: Source adapters in priority order
            processor: Processor used for dedup, ordering and statistics
            delay_seconds: Pause between sources in sequential mode
            max_workers: Values above 1 run sources on a thread pool
            sleep: Sleep function, replaceable in tests
        """
        self.adapters = list(adapters)
        self.processor = processor or EventProcessor()
        self.delay_seconds = delay_seconds
        self.max_workers = max(1, max_workers)
        self._sleep = sleep

    def run(self) -> AggregationResult:
        """
        Run every source once and merge the results.

        Returns:
            AggregationResult with final events and the run report
        """
        logger.info(f"Starting aggregation over {len(self.adapters)} sources")

        if self.max_workers > 1 and len(self.adapters) > 1:
            results = self._run_parallel()
        else:
            results = self._run_sequential()

        return self.merge(results)

    def _run_sequential(self) -> List[SourceResult]:
        results = []
        for rank, adapter in enumerate(self.adapters):
            results.append(self._run_adapter(adapter, rank))
            if rank < len(self.adapters) - 1 and self.delay_seconds > 0:
                self._sleep(self.delay_seconds)
        return results

    def _run_parallel(self) -> List[SourceResult]:
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self._run_adapter, adapter, rank)
                for rank, adapter in enumerate(self.adapters)
            ]
            results = [future.result() for future in futures]
        return sorted(results, key=lambda result: result.rank)

    def _run_adapter(self, adapter, rank: int) -> SourceResult:
        name = getattr(adapter, 'name', type(adapter).__name__)
        logger.info(f"Scraping {name}")
        try:
            return adapter.run(rank)
        except Exception as e:
            logger.error(
                f"Source {name} raised unexpectedly: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return SourceResult(
                source=name,
                source_type=getattr(getattr(adapter, 'config', None), 'source_type', 'unknown'),
                rank=rank,
                error=str(e) or type(e).__name__
            )

    def merge(self, results: Sequence[SourceResult]) -> AggregationResult:
        """
        Merge settled source results into the final schedule.

        Args:
            results: One result per source, in priority order

        Returns:
            AggregationResult with deduplicated, sorted events
        """
        report = AggregationReport()
        candidates: List[Event] = []

        for result in sorted(results, key=lambda result: result.rank):
            report.record(result)
            if result.succeeded:
                candidates.extend(result.events)

        unique = self.processor.deduplicate(candidates)
        events = self.processor.sort_events(unique)
        self.processor.summarize(events, report)

        logger.info(
            f"Aggregation complete: {len(events)} unique events from "
            f"{len(report.successful)} successful sources, "
            f"{len(report.failed)} failed",
            extra={'venue_stats': report.venue_stats}
        )
        return AggregationResult(events=events, report=report)
