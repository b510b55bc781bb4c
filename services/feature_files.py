"""
Reading and writing .feature files.
"""
import re
import logging
from pathlib import Path
from typing import Dict, List, Union

from services.gherkin_parser import parse_gherkin

logger = logging.getLogger(__name__)

FEATURE_SUFFIX = ".feature"


class FeatureFileError(Exception):
    """Raised when feature files cannot be read or written."""
    pass


def feature_filename(feature_name: str) -> str:
    """'User Login (v2)' -> 'user_login__v2_.feature'"""
    return re.sub(r"[^a-z0-9]", "_", feature_name, flags=re.IGNORECASE).lower() + FEATURE_SUFFIX


def split_feature_files(text: str) -> List[Dict[str, str]]:
    """
    Split Gherkin text into one file per Feature.

    Returns:
        List of {"filename", "content"}; content ends with a blank line so the
        files can be concatenated back together
    """
    files = []
    for feature in parse_gherkin(text):
        files.append({
            "filename": feature_filename(feature.name),
            "content": feature.raw_content.strip() + "\n\n"
        })
    return files


def save_feature_files(text: str, directory: Union[str, Path]) -> List[str]:
    """
    Write each Feature to its own file in `directory`.

    Returns:
        Paths of the written files
    """
    target = Path(directory)
    if not target.is_dir():
        raise FeatureFileError(f"Not a directory: {target}")

    saved = []
    for feature_file in split_feature_files(text):
        path = target / feature_file["filename"]
        try:
            path.write_text(feature_file["content"], encoding="utf-8")
        except OSError as e:
            raise FeatureFileError(f"Failed to write {path.name}: {str(e)}")
        saved.append(str(path))

    logger.info(f"Saved {len(saved)} feature files to {target}")
    return saved


def load_feature_folder(directory: Union[str, Path]) -> Dict[str, object]:
    """
    Read every .feature file in a folder.

    Returns:
        Dict with "folder_name", "files" (sorted names) and "content" (all files
        joined by a blank line)
    """
    folder = Path(directory)
    if not folder.is_dir():
        raise FeatureFileError(f"Not a directory: {folder}")

    paths = sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() == FEATURE_SUFFIX)
    if not paths:
        raise FeatureFileError(f"No {FEATURE_SUFFIX} files found in {folder}")

    contents = []
    for path in paths:
        try:
            contents.append(path.read_text(encoding="utf-8").strip())
        except (OSError, UnicodeDecodeError) as e:
            raise FeatureFileError(f"Failed to read {path.name}: {str(e)}")

    logger.info(f"Loaded {len(paths)} feature files from {folder}")
    return {
        "folder_name": folder.name,
        "files": [p.name for p in paths],
        "content": "\n\n".join(contents) + "\n"
    }
