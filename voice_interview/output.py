"""
Transcript Output Writer.

Persists the final snapshot of a completed session to a JSON file.

Thread Safety:
    File operations are atomic at the write level only. One writer per
    output directory is expected.

Last Grunted: 10/19/2026
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .errors import TranscriptWriteError
from .models import SessionSnapshot, utc_timestamp


__all__ = ["TranscriptWriter"]


logger = logging.getLogger(__name__)


class TranscriptWriter:
    """
    Writes completed session snapshots to JSON files.

    Output files are named: {session_id}_transcript.json

    Example:
        >>> writer = TranscriptWriter(Path("./output"))
        >>> writer.write_snapshot(snapshot)
        PosixPath('output/sess_20261019_103000_a1b2c3_transcript.json')
    """

    def __init__(self, output_dir: Path) -> None:
        """
        Initialize the writer.

        Args:
            output_dir: Directory for transcript files. Created if missing.

        Raises:
            TranscriptWriteError: If the directory cannot be created.
        """
        self.output_dir = Path(output_dir)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TranscriptWriteError(self.output_dir, e) from e

    def _get_output_path(self, session_id: str) -> Path:
        return self.output_dir / f"{session_id}_transcript.json"

    def write_snapshot(self, snapshot: SessionSnapshot) -> Path:
        """
        Write a snapshot, overwriting any earlier file for the same session.

        Raises:
            TranscriptWriteError: If the file write fails.
        """
        output_path = self._get_output_path(snapshot.session_id)

        data = snapshot.model_dump()
        data["_meta"] = {
            "written_at": utc_timestamp(),
            "version": "1.0",
        }

        try:
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise TranscriptWriteError(output_path, e) from e

        logger.info("Wrote transcript (%d entries) to %s", len(snapshot.entries), output_path)
        return output_path

    def load_snapshot(self, session_id: str) -> Optional[SessionSnapshot]:
        """
        Load a previously written snapshot.

        Returns:
            The snapshot, or None if no file exists or it is unreadable.
        """
        output_path = self._get_output_path(session_id)
        if not output_path.exists():
            return None

        try:
            with open(output_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read transcript %s: %s", output_path, e)
            return None

        data.pop("_meta", None)
        try:
            return SessionSnapshot.model_validate(data)
        except ValidationError as e:
            logger.warning("Transcript %s failed validation: %s", output_path, e)
            return None
