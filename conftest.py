"""
Root pytest configuration for HireAssist.

Sets up Python path and test environment variables for all test directories.
"""

import os
import sys
from pathlib import Path

# Set test environment variables before anything else imports settings
os.environ.setdefault("HIREASSIST_SECURITY_SERVER_SECRET", "test_server_key_for_pytest_only_not_for_production_use_minimum_32_chars")
os.environ.setdefault("HIREASSIST_SERVICE_ENV", "development")
os.environ.setdefault("HIREASSIST_SERVICE_LOG_LEVEL", "DEBUG")
os.environ.pop("HIREASSIST_SECURITY_ENCRYPTION_PASSPHRASE", None)

# Project root
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
