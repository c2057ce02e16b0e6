"""Utility components for domsift."""

from domsift.utils.files import get_logs_path, get_project_root
from domsift.utils.logging import setup_local_logging
from domsift.utils.prompts import load_prompt
from domsift.utils.retry import get_retryer, log_retry, retry_reporter

__all__ = [
    'get_logs_path',
    'get_project_root',
    'get_retryer',
    'load_prompt',
    'log_retry',
    'retry_reporter',
    'setup_local_logging',
]
