"""Azure Data Factory processor (tracing-capable).

Pipeline and activity runs become a two-level trace: the run's correlationId
(hyphens stripped) is the trace id, the pipeline run is the root span whose id
is the first 16 characters of the trace id, and each activity run is a child
span of it identified by its own activityRunId.
"""

from nrforwarder.config import Settings
from nrforwarder.processors.base import SourceProcessor, duration_attributes
from nrforwarder.structured import LogShape, dig, strip_hyphens, to_epoch_millis

CATEGORY_PIPELINE_RUNS = "PipelineRuns"
CATEGORY_ACTIVITY_RUNS = "ActivityRuns"
TERMINAL_STATUSES = ("Succeeded", "Failed", "Cancelled")
SPAN_ID_LENGTH = 16

LEVELS = {
    "Informational": "info",
    "Warning": "warn",
    "Error": "error",
    "Critical": "error",
}


def map_level(level) -> str:
    return LEVELS.get(level, "info")


def run_duration(meta: dict) -> int | None:
    """Milliseconds between ``start`` and ``end``, when both parse and end > start."""
    start = to_epoch_millis(meta.get("start"))
    end = to_epoch_millis(meta.get("end"))
    if start is None or end is None or end <= start:
        return None
    return end - start


def correlation_ids(meta: dict) -> dict:
    """trace.id / span.id / parent.id for pipeline and activity runs."""
    category = meta.get("category")
    if category not in (CATEGORY_PIPELINE_RUNS, CATEGORY_ACTIVITY_RUNS):
        return {}
    trace_id = strip_hyphens(meta.get("correlationId"))
    if not trace_id:
        return {}

    root_span = trace_id[:SPAN_ID_LENGTH]
    if category == CATEGORY_PIPELINE_RUNS:
        return {"trace.id": trace_id, "span.id": root_span}

    activity_id = strip_hyphens(meta.get("activityRunId"))
    return {
        "trace.id": trace_id,
        "span.id": activity_id[:SPAN_ID_LENGTH] if activity_id else None,
        "parent.id": root_span,
    }


def _service_name(meta: dict) -> str | None:
    resource_id = meta.get("resourceId")
    if not isinstance(resource_id, str) or not resource_id.strip("/"):
        return None
    return resource_id.rstrip("/").split("/")[-1].lower()


class DataFactoryProcessor(SourceProcessor):
    source_type = "@azure/DataFactory"
    supports_tracing = True
    requires_properties = False

    def build(self, properties: dict, meta: dict, shape: LogShape, context, settings: Settings) -> dict:
        duration = run_duration(meta)
        if duration is not None:
            meta["duration"] = duration

        return shape.build(
            properties,
            meta,
            serviceName=_service_name(meta),
            level=map_level(meta.get("level")),
            **correlation_ids(meta),
        )

    def span_for(self, log: dict, shape: LogShape) -> dict | None:
        meta = shape.meta(log)
        status = meta.get("status")
        if status not in TERMINAL_STATUSES or not log.get("trace.id") or not log.get("span.id"):
            return None

        is_activity = meta.get("category") == CATEGORY_ACTIVITY_RUNS
        attributes = {
            **duration_attributes(meta.get("duration")),
            "name": meta.get("activityName") if is_activity else meta.get("pipelineName"),
            "data_factory.category": meta.get("category"),
            "data_factory.status": status,
            "pipeline.name": meta.get("pipelineName"),
            "pipeline.run_id": meta.get("pipelineRunId"),
            "activity.name": meta.get("activityName"),
            "activity.type": meta.get("activityType"),
            "parent.id": log.get("parent.id"),
            "service.name": log.get("serviceName"),
        }

        if status == "Failed":
            error = dig(shape.properties(log), "Error")
            attributes["error"] = True
            if isinstance(error, dict):
                attributes["error.message"] = error.get("message")
                attributes["error.class"] = error.get("errorCode") or error.get("failureType")

        return {
            "trace.id": log["trace.id"],
            "id": log["span.id"],
            "timestamp": to_epoch_millis(meta.get("start")) or log.get("timestamp"),
            "attributes": {k: v for k, v in attributes.items() if v is not None},
        }
