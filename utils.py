import logging
import os
from logging.handlers import RotatingFileHandler
from datetime import date, datetime

import pandas as pd


def setup_logging(file_prefix, log_dir = 'Logs'):
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_file = os.path.join(log_dir, f'{file_prefix}_{timestamp}.log')

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5),
            logging.StreamHandler()
        ]
    )
    return log_file


def add_months(start: date, months: int) -> date:
    """Calendar date `months` after `start`, clamped to the end of short months."""
    return (pd.Timestamp(start) + pd.DateOffset(months=months)).date()
