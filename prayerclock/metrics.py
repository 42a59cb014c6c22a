# prayerclock/metrics.py

from prometheus_client import Counter, Histogram

# Cache Metrics
CACHE_HITS = Counter('prayerclock_cache_hits_total', 'Total cache hits', ['cache_type', 'provider'])
CACHE_MISSES = Counter('prayerclock_cache_misses_total', 'Total cache misses', ['cache_type', 'provider'])

# Provider Metrics
PROVIDER_REQUESTS_TOTAL = Counter('prayerclock_provider_requests_total', 'Total outbound provider requests', ['adapter_name', 'endpoint', 'status'])
PROVIDER_REQUEST_DURATION_SECONDS = Histogram('prayerclock_provider_request_duration_seconds', 'Provider request duration in seconds', ['adapter_name', 'endpoint'])

# Resolution Metrics
RESOLUTIONS_TOTAL = Counter('prayerclock_resolutions_total', 'Prayer day resolutions by outcome', ['provider', 'outcome'])

# Prefetch Metrics
PREFETCH_MONTHS_TOTAL = Counter('prayerclock_prefetch_months_total', 'Prefetched months by classification', ['provider', 'outcome'])

# Background Task Metrics
BACKGROUND_TASK_RUNS_TOTAL = Counter('prayerclock_background_task_runs_total', 'Total background task runs', ['task_name', 'status'])
BACKGROUND_TASK_DURATION_SECONDS = Histogram('prayerclock_background_task_duration_seconds', 'Background task duration in seconds', ['task_name'])
