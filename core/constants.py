"""
Shared constants.

This module has no dependencies on models or services to avoid circular imports.
"""

# Maximum length for a free-text profile field included in a prompt
MAX_PROFILE_TEXT_LENGTH = 100

# Maximum number of exercise ids accepted per candidate pool bucket
MAX_POOL_BUCKET_SIZE = 50

# Sessions per week at or below which the blueprint prompt asks for a
# rotating multi-week cycle instead of a single repeated week
LOW_FREQUENCY_SESSIONS_PER_WEEK = 3
