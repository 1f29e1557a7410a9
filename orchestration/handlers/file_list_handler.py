"""
FileListHandler - Handles the file list state.

Reads the input file list. Failing to open the list is the one condition that
fails the whole run.
"""

from orchestration.context import PipelineContext
from orchestration.states import PipelineState
from utils.paths import read_file_list
from .base import StateHandler


class FileListHandler(StateHandler):
    """Handler for READING_FILE_LIST state."""

    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        """
        Read the file list and determine next state.

        Args:
            context: Current pipeline context

        Returns:
            Tuple of (updated_context, next_state)

        Raises:
            FileAccessFailure: If the list cannot be opened
        """
        self._log_state_entry(context)

        list_path = context.config.file_list_path
        self.logger.info(f"Reading from list: {list_path}")
        file_names = read_file_list(list_path)
        self.logger.info(f"Found {len(file_names)} file name(s)")

        updated_context = context.with_file_names(file_names)
        next_state = self._determine_next_state(updated_context)
        self._log_state_exit(context, next_state)
        return updated_context, next_state
