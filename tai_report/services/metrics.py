from prometheus_client import Counter, Histogram

# --- Report Metrics ---

# Counter for tracking generated reports.
# Labels:
# - narrative_source: "llm" when the model produced the analysis, "fallback" when
#   the deterministic template was used.
REPORTS_GENERATED_TOTAL = Counter(
    "tai_reports_generated_total",
    "Total number of reports generated or regenerated.",
    ["narrative_source"],
)

# Histogram for the end-to-end latency of report generation, dominated by the LLM call.
REPORT_GENERATION_SECONDS = Histogram(
    "tai_report_generation_seconds",
    "Latency of the full report generation pipeline.",
    buckets=[0.1, 0.5, 1, 2.5, 5, 10, 30, 60, 120, 300],
)

# --- LLM Metrics ---

# Counter for tracking completion calls.
# Labels:
# - model: The name of the model being called.
LLM_CALLS_TOTAL = Counter(
    "tai_llm_calls_total", "Total number of calls to the LLM.", ["model"]
)

# Counter for tracking failed completion calls.
# Labels:
# - model: The name of the model.
# - error_type: The exception class name (e.g. "CompletionTimeoutError").
LLM_FAILURES_TOTAL = Counter(
    "tai_llm_failures_total",
    "Total number of failures when calling the LLM.",
    ["model", "error_type"],
)

# Counter for switches from the primary to the fallback model.
LLM_FALLBACK_SWITCHES_TOTAL = Counter(
    "tai_llm_fallback_switches_total",
    "Total number of times the fallback model was tried.",
)
