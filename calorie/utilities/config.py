"""Configuration management for the Weekly Calorie Budget application."""
import os
from typing import Final
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = os.getenv('DEBUG', 'False').lower() == 'true'

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('CALORIE_DATA_DIR', str(BASE_DIR / 'data')))
STATE_KEY: Final[str] = os.getenv('CALORIE_STATE_KEY', 'weekly-calorie-budget-state')
BACKUP_KEEP: Final[int] = int(os.getenv('BACKUP_KEEP', '5'))

# Budget safety limits
MIN_DAILY_CALORIES: Final[int] = int(os.getenv('MIN_DAILY_CALORIES', '1200'))
MAX_DAILY_REDUCTION: Final[int] = int(os.getenv('MAX_DAILY_REDUCTION', '500'))
LOW_TARGET_WARNING: Final[int] = int(os.getenv('LOW_TARGET_WARNING', '1400'))
LARGE_REDUCTION_WARNING: Final[int] = int(os.getenv('LARGE_REDUCTION_WARNING', '300'))

# Overeating thresholds (excess calories over the day's target)
OVEREATING_THRESHOLDS: Final[dict[str, int]] = {
    "mild": int(os.getenv('OVEREATING_MILD', '200')),
    "moderate": int(os.getenv('OVEREATING_MODERATE', '500')),
    "severe": int(os.getenv('OVEREATING_SEVERE', '1000')),
}

# Week rollover: "literal" adds (net - allowance) to next week, "inverted" subtracts it
CARRYOVER_POLICY: Final[str] = os.getenv('CARRYOVER_POLICY', 'literal').lower()

# Activity tracking proxy
ACTIVITY_PROXY_URL: Final[str] = os.getenv('ACTIVITY_PROXY_URL', '')
ACTIVITY_PROXY_SESSION: Final[str] = os.getenv('ACTIVITY_PROXY_SESSION', '')
ACTIVITY_PROXY_TIMEOUT: Final[float] = float(os.getenv('ACTIVITY_PROXY_TIMEOUT', '10'))

# AI suggestions
OPENAI_MODEL: Final[str] = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

# Background jobs
JOB_MAX_ATTEMPTS: Final[int] = int(os.getenv('JOB_MAX_ATTEMPTS', '3'))
