"""
Progress Tracker for providing user feedback during title enrichment.

This module provides progress updates, time estimation, and status
information while the pipeline works through the title catalog.
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta


logger = logging.getLogger(__name__)


class ProgressTracker:
    """Tracks and displays progress during title enrichment."""

    STATUSES = ('enriched', 'fallback', 'reserved', 'failed')

    def __init__(self, total_items: int, update_interval: float = 10.0,
                 display: bool = True):
        """
        Initialize the progress tracker.

        Args:
            total_items: Upper bound on the number of titles to process
            update_interval: Progress update interval as percentage (default: 10%)
            display: Whether to print progress to the console
        """
        self.total_items = max(total_items, 0)
        self.update_interval = update_interval
        self.display = display
        self.processed_items = 0
        self.counts: Dict[str, int] = {status: 0 for status in self.STATUSES}
        self.start_time: Optional[datetime] = None
        self.last_update_percentage = 0.0
        self.current_item: Optional[str] = None

        logger.debug(f"Progress tracker initialized for {self.total_items} titles")

    def start(self) -> None:
        """Start tracking progress."""
        self.start_time = datetime.now()
        logger.info("Progress tracking started")
        if self.display:
            self._print_progress_header()

    def update(self, item_name: str, status: str = 'enriched') -> None:
        """
        Update progress with a completed title.

        Args:
            item_name: Label of the title that was processed
            status: One of 'enriched', 'fallback', 'reserved' or 'failed'
        """
        if status not in self.counts:
            raise ValueError(f"Unknown progress status: {status}")

        self.current_item = item_name
        self.processed_items += 1
        self.counts[status] += 1

        current_percentage = self._percentage()
        if (current_percentage - self.last_update_percentage >= self.update_interval or
                self.processed_items == self.total_items):
            if self.display:
                self._display_progress_update(current_percentage)
            self.last_update_percentage = current_percentage

    def _percentage(self) -> float:
        if self.total_items == 0:
            return 100.0
        return min(self.processed_items / self.total_items * 100, 100.0)

    def get_progress_stats(self) -> Dict[str, Any]:
        """
        Get current progress statistics.

        Returns:
            Dictionary with progress statistics, empty before start()
        """
        if not self.start_time:
            return {}

        elapsed_time = datetime.now() - self.start_time

        # Calculate estimated time remaining
        if self.processed_items > 0:
            avg_time_per_item = elapsed_time.total_seconds() / self.processed_items
            remaining_items = max(self.total_items - self.processed_items, 0)
            estimated_remaining = timedelta(seconds=avg_time_per_item * remaining_items)
        else:
            estimated_remaining = timedelta(0)

        elapsed_seconds = elapsed_time.total_seconds()
        return {
            'total_items': self.total_items,
            'processed_items': self.processed_items,
            'percentage_complete': self._percentage(),
            'elapsed_time': elapsed_time,
            'estimated_remaining': estimated_remaining,
            'current_item': self.current_item,
            'items_per_second': self.processed_items / elapsed_seconds if elapsed_seconds > 0 else 0,
            **self.counts,
        }

    def finish(self) -> None:
        """Finish progress tracking and display final summary."""
        if not self.start_time:
            logger.warning("Progress tracking was never started")
            return

        total_time = datetime.now() - self.start_time

        if self.display:
            print("\n" + "="*80)
            print("ENRICHMENT COMPLETE")
            print("="*80)
            print(f"Titles processed: {self.processed_items}")
            print(f"Enriched: {self.counts['enriched']} | Fallback: {self.counts['fallback']} | "
                  f"Reserved: {self.counts['reserved']} | Failed: {self.counts['failed']}")
            print(f"Total time: {self._format_duration(total_time)}")
            print("="*80)

        logger.info(f"Progress tracking completed: {self.processed_items} titles in "
                    f"{self._format_duration(total_time)}")

    def _print_progress_header(self) -> None:
        print("\n" + "="*80)
        print("eCFR ANALYZER - TITLE ENRICHMENT")
        print("="*80)
        print(f"Processing up to {self.total_items} titles...")
        print("-"*80)

    def _display_progress_update(self, percentage: float) -> None:
        stats = self.get_progress_stats()

        bar_width = 40
        filled_width = int(bar_width * percentage / 100)
        bar = "█" * filled_width + "░" * (bar_width - filled_width)

        print(f"\n[{bar}] {percentage:.1f}%")
        print(f"Processed: {stats['processed_items']}/{stats['total_items']} titles")
        print(f"Enriched: {stats['enriched']} | Fallback: {stats['fallback']} | "
              f"Failed: {stats['failed']}")
        print(f"Elapsed: {self._format_duration(stats['elapsed_time'])} | "
              f"Remaining: {self._format_duration(stats['estimated_remaining'])}")

        if stats['current_item']:
            print(f"Current: {stats['current_item']}")

        print("-"*80)

    def _format_duration(self, duration: timedelta) -> str:
        """
        Format a duration for display.

        Args:
            duration: Duration to format

        Returns:
            Formatted duration string
        """
        total_seconds = int(duration.total_seconds())
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60

        if hours > 0:
            return f"{hours}h {minutes}m {seconds}s"
        elif minutes > 0:
            return f"{minutes}m {seconds}s"
        else:
            return f"{seconds}s"

    def get_summary_line(self) -> str:
        """
        Get a one-line summary of current progress.

        Returns:
            Summary string
        """
        if not self.start_time:
            return "Progress tracking not started"

        stats = self.get_progress_stats()
        return (f"Progress: {stats['percentage_complete']:.1f}% "
                f"({stats['processed_items']}/{stats['total_items']}) | "
                f"Fallback: {stats['fallback']} | Failed: {stats['failed']}")
