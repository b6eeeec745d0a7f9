"""
Prometheus metrics and the /health report
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
from sqlalchemy import func
from sqlmodel import Session, select
import os
import time
import psutil
import structlog

logger = structlog.get_logger()

# HTTP
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])

# Summary pipeline
AI_GENERATION_REQUESTS = Counter('ai_generation_requests_total', 'Total AI generation requests', ['type', 'status'])
SUMMARY_FALLBACKS = Counter('summary_fallbacks_total', 'Summaries served by the heuristic fallback', ['reason'])
KEY_PHRASES_UNPLACED = Counter('key_phrases_unplaced_total', 'Model key phrases that could not be anchored in the source')
SUMMARY_KEY_POINTS = Histogram(
    'summary_key_points', 'Key points per generated summary', buckets=(0, 2, 4, 6, 8, 10, 12, 15)
)
TOTAL_STUDY_SUMMARIES = Gauge('study_summaries_total', 'Number of stored study summaries')

# Worst first; the overall status is the worst component status.
_SEVERITY = ("unhealthy", "degraded", "healthy")


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()
        self.process = psutil.Process(os.getpid())

    def check_database(self, session: Session) -> dict:
        """Count stored summaries; any database error marks the component unhealthy"""
        try:
            from app.models import StudySummary

            count = session.exec(select(func.count()).select_from(StudySummary)).one()
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            return {"status": "unhealthy", "message": f"Database query failed: {e}"}
        TOTAL_STUDY_SUMMARIES.set(count)
        return {"status": "healthy", "study_summaries": count}

    def check_llm(self) -> dict:
        from app.services.llm import is_configured

        if is_configured():
            return {"status": "healthy", "message": "Language model API key configured"}
        # Summaries still work through the heuristic fallback.
        return {
            "status": "degraded",
            "message": "OPENAI_API_KEY not set; summaries use the heuristic fallback"
        }

    def process_metrics(self) -> dict:
        try:
            with self.process.oneshot():
                rss = self.process.memory_info().rss
                cpu = self.process.cpu_percent(interval=None)
            return {
                "process_rss_mb": round(rss / (1024**2), 1),
                "process_cpu_percent": cpu,
                "system_memory_percent": psutil.virtual_memory().percent,
                "uptime_seconds": round(time.time() - self.start_time, 1),
            }
        except psutil.Error as e:
            logger.error("process_metrics_failed", error=str(e))
            return {"error": str(e)}

    def get_health_status(self, session: Session) -> dict:
        checks = {
            "database": self.check_database(session),
            "llm": self.check_llm(),
        }
        statuses = {check["status"] for check in checks.values()}
        overall = next(s for s in _SEVERITY if s in statuses)

        return {
            "status": overall,
            "timestamp": time.time(),
            "checks": checks,
            "process": self.process_metrics(),
        }


health_checker = HealthChecker()


def get_metrics():
    """Prometheus text exposition of the default registry"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
