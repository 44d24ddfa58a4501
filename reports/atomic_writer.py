"""
Atomic file writer - ensures no partial writes or corrupted files.
Implements temp-write → fsync → rename pattern for durability.
"""

import os
import tempfile
import time
from pathlib import Path
from typing import Dict, Any, List, Mapping, Tuple


class AtomicWriteError(Exception):
    """Raised when atomic write operations fail."""
    pass


def _stage_temp(content: str, output_path: Path) -> Path:
    """Write content to a synced temp file beside output_path and return its path."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the target directory so the rename stays on one filesystem
    temp_fd, temp_path_str = tempfile.mkstemp(
        suffix='.tmp',
        prefix=f'{output_path.stem}_',
        dir=output_path.parent
    )
    temp_path = Path(temp_path_str)

    try:
        with os.fdopen(temp_fd, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise

    return temp_path


def write_text_atomic(content: str, output_path: Path) -> Dict[str, Any]:
    """
    Write text content atomically to prevent partial files.

    Args:
        content: Text to write
        output_path: Final path for the file

    Returns:
        Dictionary with status, output_path, bytes_written, duration_seconds
        (and error when status is 'failed')
    """
    start_time = time.time()
    temp_path = None

    try:
        temp_path = _stage_temp(content, output_path)
        os.replace(temp_path, output_path)
        temp_path = None

    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        return {
            'status': 'failed',
            'error': str(e),
            'output_path': str(output_path),
            'bytes_written': 0,
            'duration_seconds': time.time() - start_time
        }

    return {
        'status': 'completed',
        'output_path': str(output_path),
        'bytes_written': len(content.encode('utf-8')),
        'duration_seconds': time.time() - start_time
    }


def write_bundle_atomic(files: Mapping[Path, str]) -> Dict[str, Any]:
    """
    Write several files as one bundle.

    Every file is first staged as a synced temp file. Only when all of them
    are on disk are they renamed over their targets, so a failure while
    staging leaves any previous bundle untouched. A failure during the
    rename phase (rare: same-directory renames) can leave the bundle partly
    replaced; the remaining temp files are removed either way.

    Args:
        files: {output_path: content}

    Returns:
        Dictionary with status, written paths and total bytes

    Raises:
        AtomicWriteError: If staging or renaming fails
    """
    staged: List[Tuple[Path, Path]] = []

    try:
        for path, content in files.items():
            staged.append((_stage_temp(content, path), path))
    except OSError as e:
        for temp_path, _ in staged:
            temp_path.unlink(missing_ok=True)
        raise AtomicWriteError(f"Write failed for {path}: {e}") from e

    written = []
    for index, (temp_path, path) in enumerate(staged):
        try:
            os.replace(temp_path, path)
        except OSError as e:
            for pending, _ in staged[index:]:
                pending.unlink(missing_ok=True)
            raise AtomicWriteError(f"Rename failed for {path}: {e}") from e
        written.append(path)

    return {
        'status': 'completed',
        'paths': [str(p) for p in written],
        'bytes_written': sum(len(files[p].encode('utf-8')) for p in written)
    }
