"""Diff orchestrator for two STEP files.

Ties the components together into a single comparison workflow:
1. Store the records of both files
2. Build the high-level representation (HLR) tree of each file
3. Compare the trees by signature
4. Expose the merged, classified tree and both file headers

Usage:
    from step_diff.pipeline import StepDiffOrchestrator

    orchestrator = StepDiffOrchestrator()
    orchestrator.set_data(first_data, second_data)
    result = orchestrator.process()

    for node in orchestrator.step3d_hlr:
        print(node.local_id, node.parent_local_id, node.kind.value, node.name)
"""

import logging
from datetime import datetime
from typing import List, Optional

from ..config import Config, default_config
from ..models.step import StepFileData, StepFileHeader
from ..hlr.builder import HighLevelRepresentationBuilder
from ..hlr.signature import OwnKeyFunction
from ..comparison.matcher import DiffNode
from ..comparison.diff_result import StepDiffResult, compare_trees

logger = logging.getLogger(__name__)


class StepDiffOrchestrator:
    """
    Hold two STEP record sets and compare them on demand.

    State is replaced in full by every process() call. No locking is done:
    callers serialize set_data()/process() on one instance.

    Attributes:
        step3d_hlr: Merged tree of the last run (empty until processed)
        first_file_header: HEADER of the first file of the last run
        second_file_header: HEADER of the second file of the last run
        result: Full StepDiffResult of the last run
    """

    def __init__(
        self,
        config: Config = None,
        key_fn: Optional[OwnKeyFunction] = None,
    ):
        """
        Args:
            config: Configuration (uses default if None)
            key_fn: Custom own-key function for signatures
        """
        self.config = config or default_config
        self.key_fn = key_fn

        self.first_data: Optional[StepFileData] = None
        self.second_data: Optional[StepFileData] = None

        self.step3d_hlr: List[DiffNode] = []
        self.first_file_header: Optional[StepFileHeader] = None
        self.second_file_header: Optional[StepFileHeader] = None
        self.result: Optional[StepDiffResult] = None

    def set_data(
        self,
        first: Optional[StepFileData],
        second: Optional[StepFileData],
    ) -> None:
        """Store both record sets. Nothing is built until process()."""
        self.first_data = first
        self.second_data = second

    def process(self) -> StepDiffResult:
        """
        Build both trees and compare them.

        Missing or empty input on both sides gives an empty result with no
        headers, never an error.

        Returns:
            StepDiffResult of this run (also exposed on the instance)
        """
        first = self.first_data
        second = self.second_data

        if _is_empty(first) and _is_empty(second):
            logger.info("Step Diff: nothing to compare")
            return self._publish(StepDiffResult(
                compared_at=datetime.now().isoformat() + "Z",
                signature_separator=self.config.signature_separator,
            ))

        builder = HighLevelRepresentationBuilder(self.config, self.key_fn)
        first_tree = builder.build_from_data(first)
        second_tree = builder.build_from_data(second)

        result = compare_trees(
            first_tree,
            second_tree,
            first_header=first.header if first else None,
            second_header=second.header if second else None,
            config=self.config,
        )

        if result.identical:
            logger.info("Step Diff: the two files are the same.")
        elif result.no_common_root:
            logger.info("Step Diff: the two files have no common root node.")
        logger.info(
            "Step Diff: %d shared, %d removed, %d added, %d relocated",
            result.shared_count, result.removed_count,
            result.added_count, result.relocated_count,
        )
        if result.anomalies:
            logger.warning("Step Diff: %d record anomalies while building the trees",
                           len(result.anomalies))

        return self._publish(result)

    def _publish(self, result: StepDiffResult) -> StepDiffResult:
        self.result = result
        self.step3d_hlr = list(result.nodes)
        self.first_file_header = result.first_header
        self.second_file_header = result.second_header
        return result


def _is_empty(data: Optional[StepFileData]) -> bool:
    return data is None or data.is_empty


def run_diff(
    first: Optional[StepFileData],
    second: Optional[StepFileData],
    config: Config = None,
) -> StepDiffResult:
    """
    Convenience function to compare two record sets in one call.

    Example:
        result = run_diff(first_data, second_data)
        print(result.summary)
    """
    orchestrator = StepDiffOrchestrator(config)
    orchestrator.set_data(first, second)
    return orchestrator.process()
