"""Generic request pipeline shared by the generation endpoints.

    auth gate -> validation -> capability call -> best-effort persistence -> response

Each endpoint supplies a `Capability` describing how to validate its payload,
which collaborator to call, what record to store and how to shape the reply.
"""
from flask import current_app

from models import db
import storage

METRICS_KEY = 'nexus_metrics'


# --- Errors ---
class PipelineError(Exception):
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class Unauthorized(PipelineError):
    status_code = 401
    default_message = "Unauthorized"


class BadRequest(PipelineError):
    status_code = 400
    default_message = "Bad request"


class NotFound(PipelineError):
    status_code = 404
    default_message = "Not found"


class InternalError(PipelineError):
    status_code = 500
    default_message = "Internal error"


def sanitize_error(exc, fallback="Service error"):
    """Error text safe for logs: never echo anything that looks like a credential"""
    error_msg = str(exc) or type(exc).__name__
    lowered = error_msg.lower()
    if 'key' in lowered or 'token' in lowered or 'secret' in lowered:
        return fallback
    return error_msg


# --- Metrics ---
def init_metrics(app):
    app.extensions[METRICS_KEY] = {'persistence_failures': 0}


def record_persistence_failure(capability_name, exc):
    """Persistence is best-effort, so failures are only visible here and in the log"""
    metrics = current_app.extensions.setdefault(METRICS_KEY, {'persistence_failures': 0})
    metrics['persistence_failures'] += 1
    current_app.logger.warning(
        f"⚠️ [PERSISTENCE_FAILURE] {capability_name}: {sanitize_error(exc, 'Database error')} "
        f"(total={metrics['persistence_failures']})"
    )


# --- Validation helpers ---
def require_messages(payload):
    """A non-empty list of {role, content} message objects"""
    messages = payload.get('messages') if isinstance(payload, dict) else None
    if not messages or not isinstance(messages, list):
        raise BadRequest("Messages are required")
    for message in messages:
        if not isinstance(message, dict):
            raise BadRequest("Messages must be objects with role and content")
        if not isinstance(message.get('role'), str) or not isinstance(message.get('content'), str):
            raise BadRequest("Messages must be objects with role and content")
    return messages


def require_prompt(payload):
    prompt = payload.get('prompt') if isinstance(payload, dict) else None
    if not isinstance(prompt, str) or not prompt.strip():
        raise BadRequest("Prompt is required")
    return prompt


# --- Pipeline ---
class Capability:
    """Describes one generation endpoint.

    validate(payload) -> parsed input, raises BadRequest
    invoke(parsed) -> collaborator result
    record(parsed, result) -> kwargs for storage.save_generation minus the user,
        or a list of them when one call yields several rows
    respond(parsed, result) -> JSON-serializable body

    Rows are tagged with `generation_type`, which defaults to the name.
    """

    def __init__(self, name, validate, invoke, record, respond, generation_type=None):
        self.name = name
        self.validate = validate
        self.invoke = invoke
        self.record = record
        self.respond = respond
        self.generation_type = generation_type or name

    def __repr__(self):
        return f"Capability({self.name!r})"


def persist_best_effort(capability, subject_id, parsed, result):
    """Store the generation. Never raises: failures are logged and counted."""
    try:
        user = storage.get_or_create_user(subject_id)
        rows = capability.record(parsed, result)
        for row in rows if isinstance(rows, list) else [rows]:
            storage.save_generation(user, capability.generation_type, **row)
        return True
    except Exception as e:
        db.session.rollback()
        record_persistence_failure(capability.name, e)
        return False


def run_capability(capability, subject_id, payload):
    # Auth gate: nothing below runs without an identity
    if not subject_id:
        raise Unauthorized()

    parsed = capability.validate(payload or {})

    try:
        result = capability.invoke(parsed)
    except PipelineError:
        raise
    except Exception as e:
        current_app.logger.error(f"❌ [{capability.name.upper()}_ERROR] {sanitize_error(e)}")
        raise InternalError() from e

    persist_best_effort(capability, subject_id, parsed, result)

    return capability.respond(parsed, result)
