"""Replicate predictions: create, poll until terminal, extract output URLs."""
import time

import replicate
from flask import current_app

from pipeline import InternalError

MAX_POLL_ATTEMPTS = 60  # 60 x 5s = 5 minutes
TERMINAL_STATUSES = ('succeeded', 'failed', 'canceled')


class PredictionError(RuntimeError):
    pass


def init_app(app):
    api_token = app.config.get("REPLICATE_API_TOKEN")
    if api_token:
        app.extensions['replicate'] = replicate.Client(api_token=api_token)
        app.logger.info("✅ Replicate client configured")
    else:
        app.extensions['replicate'] = None
        app.logger.warning("⚠️ REPLICATE_API_TOKEN not set, image-2/audio/video generation will fail")


def get_client():
    client = current_app.extensions.get('replicate')
    if client is None:
        raise InternalError("Replicate API token not configured")
    return client


def _create(client, model_ref, model_input):
    # "owner/name:version" and bare version hashes pin a version, "owner/name" runs the latest
    if ':' in model_ref:
        return client.predictions.create(version=model_ref.split(':', 1)[1], input=model_input)
    if '/' in model_ref:
        return client.predictions.create(model=model_ref, input=model_input)
    return client.predictions.create(version=model_ref, input=model_input)


def run_prediction(model_ref, model_input):
    """Create a prediction and block until it reaches a terminal status"""
    client = get_client()
    interval = current_app.config.get('REPLICATE_POLL_INTERVAL', 5)

    prediction = _create(client, model_ref, model_input)
    current_app.logger.info(f"🚀 Replicate prediction {prediction.id} created ({model_ref})")

    attempts = 0
    while prediction.status not in TERMINAL_STATUSES:
        if attempts >= MAX_POLL_ATTEMPTS:
            raise PredictionError(f"Prediction {prediction.id} timed out after {attempts} polls")
        time.sleep(interval)
        prediction = client.predictions.get(prediction.id)
        attempts += 1

    if prediction.status != 'succeeded':
        raise PredictionError(f"Prediction {prediction.status}: {prediction.error or 'Unknown error'}")
    return prediction


def output_urls(output):
    """Normalize a prediction output (URL, list of URLs or dict of URLs) into a list"""
    if isinstance(output, str):
        return [output]
    if isinstance(output, list) and all(isinstance(url, str) for url in output):
        return list(output)
    if isinstance(output, dict):
        urls = [value for value in output.values() if isinstance(value, str) and value.startswith('http')]
        if urls:
            return urls
    raise PredictionError("Unexpected output format from model")


def summarize(prediction):
    """JSON-safe view of a prediction for responses"""
    fields = ('id', 'model', 'version', 'status', 'output', 'error', 'urls', 'metrics',
              'created_at', 'completed_at')
    summary = {}
    for name in fields:
        value = getattr(prediction, name, None)
        summary[name] = value.isoformat() if hasattr(value, 'isoformat') else value
    return summary
