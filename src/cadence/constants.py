#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
MAX_OCCURRENCES = 100
"""Upper bound on the number of (start, end) pairs a rule expands to."""
DEFAULT_START_OF_WEEK = 1
"""Monday, with Sunday = 0."""
DAYS_PER_WEEK = 7
RULE_SEPARATOR = ";"
RULE_KEY_VALUE_SEPARATOR = "="
ICAL_DATE_FORMAT = "%Y%m%d"
ICAL_DATETIME_FORMAT = "%Y%m%dT%H%M%S"
