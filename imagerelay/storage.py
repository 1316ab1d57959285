import logging
import os
from pathlib import Path
from typing import Union

from .bridge.models import DownloadArtifact

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Save target for downloaded images. Writes into a local directory."""

    ENV_DIR = "DOWNLOAD_DIR"
    DEFAULT_DIR = "downloads"

    def __init__(self, directory: Union[str, Path, None] = None):
        self.directory = Path(directory or os.getenv(self.ENV_DIR, self.DEFAULT_DIR))

    def save(self, artifact: DownloadArtifact) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Artifact names are generated, but never let one escape the directory
        file_path = self.directory / Path(artifact.filename).name
        with open(file_path, "wb") as f:
            f.write(artifact.data)
        logger.info(f"Wrote {file_path}")
        return file_path
