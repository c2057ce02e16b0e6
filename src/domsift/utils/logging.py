"""Run log files for domsift.

All library logging goes through logfire, so a run log is a logfire console
sink pointed at a file under .domsift/logs/ instead of the terminal.
"""

from datetime import datetime
from pathlib import Path

import logfire

from domsift.utils.files import get_logs_path

LOG_LEVELS = ('trace', 'debug', 'info', 'notice', 'warn', 'error', 'fatal')


def setup_local_logging(level: str = 'debug') -> tuple[Path, logfire.ConsoleOptions]:
    """Open a run log file and build the logfire console options that write to it.

    Pass the options as ``logfire.configure(console=...)``. The caller owns the
    stream in ``options.output`` and closes it when the run is over.

    Args:
        level: Lowest logfire level written to the file. Defaults to 'debug'.

    Returns:
        The log file path and the console options.

    Raises:
        ValueError: If the level is not a logfire level name.

    """
    level = level.lower()
    if level not in LOG_LEVELS:
        raise ValueError(f'Unknown log level {level!r}, expected one of: {", ".join(LOG_LEVELS)}')

    logs_dir = get_logs_path()
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_file = logs_dir / f'run_{timestamp}.log'

    # Line buffered so the file is readable while the run is still going
    stream = log_file.open('w', encoding='utf-8', buffering=1)
    options = logfire.ConsoleOptions(
        colors='never',
        include_timestamps=True,
        min_log_level=level,
        output=stream,
    )
    return log_file, options
