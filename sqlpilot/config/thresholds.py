"""Tuning constants for the query assistant.

Deadlines are wall-clock budgets for one network round trip each.
"""

# =============================================================================
# DEADLINES
# =============================================================================

# Proxy calls (query execution and the connectivity probe)
DEFAULT_QUERY_TIMEOUT_MS = 15000

# Language-model calls have no service-side deadline; the orchestrator applies these
DEFAULT_GENERATION_TIMEOUT_S = 60.0
DEFAULT_SUMMARY_TIMEOUT_S = 30.0

# Hosted knowledge file fetch
REMOTE_KNOWLEDGE_TIMEOUT_S = 10.0


# =============================================================================
# RESULT ANALYSIS
# =============================================================================

# Rows sent to the model when asking for a summary
SUMMARY_PREVIEW_ROWS = 5


# =============================================================================
# GENERATION
# =============================================================================

GENERATION_TEMPERATURE = 0.0
