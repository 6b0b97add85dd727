"""
File utilities for ingestion and export
"""
import re
from pathlib import Path


def get_unique_output_path(output_path):
    """
    Generate a unique output path by adding a number suffix if the file already exists.

    Args:
        output_path (str): Desired output path

    Returns:
        str: Unique output path (original or with numeric suffix)

    Examples:
        book.txt -> book.txt (if doesn't exist)
        book.txt -> book (1).txt (if book.txt exists)
    """
    path = Path(output_path)
    if not path.exists():
        return str(output_path)

    parent = path.parent
    stem = path.stem
    suffix = path.suffix

    counter = 1
    while True:
        new_path = parent / f"{stem} ({counter}){suffix}"
        if not new_path.exists():
            return str(new_path)

        counter += 1
        if counter > 9999:
            raise RuntimeError(f"Could not find unique filename after 9999 attempts for: {output_path}")


def natural_sort_key(value: str):
    """Sort key that orders 'ch2.txt' before 'ch10.txt'."""
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r'(\d+)', value)]


def sanitize_filename(name: str, default: str = "novel") -> str:
    """Strip characters that are not allowed in file names."""
    cleaned = re.sub(r'[\\/:*?"<>|\r\n]+', ' ', name or '').strip().strip('.')
    return cleaned or default
