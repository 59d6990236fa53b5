"""Configuration constants for studylog application."""

import os

# Daily record layout
WORD_SLOT_COUNT = 13          # Word slots per daily record

# Test sessions
CUMULATIVE_QUESTION_COUNT = 5  # Questions drawn in cumulative mode
GRADER_TIMEOUT_SECONDS = 20    # Upper bound on a single grading call
MAX_OPEN_SESSIONS = 20         # Oldest open tests are dropped beyond this

# Remote store
DEFAULT_ENDPOINT_URL = os.environ.get('STUDYLOG_ENDPOINT_URL', '')
FETCH_TIMEOUT_SECONDS = 15
APPEND_TIMEOUT_SECONDS = 15
SYNC_REFRESH_DELAY_SECONDS = 2  # Wait before re-reading the sheet after an insert
COMPLETED_STATUS = '학습완료'

# Submission policy: 'optimistic' commits locally before the remote append,
# 'confirmed' commits only once the append went through
SUBMIT_POLICY = os.environ.get('STUDYLOG_SUBMIT_POLICY', 'optimistic')

# Local storage keys
ENDPOINT_URL_KEY = 'study_gas_url'
HISTORY_KEY = 'study_history'

# Grader
GEMINI_MODEL = 'gemini-2.0-flash'
