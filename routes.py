import math
import re
import time

from flask import Blueprint, Response, current_app, jsonify, redirect, request
from werkzeug.exceptions import HTTPException

import gemini
import images
import mailer
import paypal
import predictions
import prompt_enhancer
import storage
from auth import current_subject
from models import db, GENERATION_TYPES
from pipeline import (
    BadRequest, Capability, InternalError, NotFound, PipelineError, Unauthorized,
    require_messages, require_prompt, run_capability, sanitize_error,
)

DEFAULT_REPLICATE_RESOLUTION = '1024x1024'
DEFAULT_REPLICATE_IMAGE_MODEL = 'free-model-basic'
ASPECT_RATIOS = {
    '512x512': '1:1',
    '1024x1024': '1:1',
    '1024x768': '4:3',
    '768x1024': '3:4',
}

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
CONTACT_FIELDS = ('firstName', 'lastName', 'email', 'phone', 'message')
PRO_PLAN_AMOUNT = 29

bp = Blueprint('api', __name__)


@bp.errorhandler(PipelineError)
def handle_pipeline_error(e):
    return Response(e.message, status=e.status_code, mimetype='text/plain')


@bp.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    db.session.rollback()
    current_app.logger.error(f"❌ [{request.endpoint}] {type(e).__name__}: {sanitize_error(e)}")
    return Response("Internal error", status=500, mimetype='text/plain')


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _require_subject():
    subject_id = current_subject()
    if not subject_id:
        raise Unauthorized()
    return subject_id


# --- Capabilities ---
def _validate_messages(payload):
    return {'messages': require_messages(payload)}


def _assistant_reply(parsed, text):
    return {'role': 'assistant', 'content': text}


def _generate_code(parsed):
    return gemini.generate_text(gemini.build_code_prompt(parsed['messages']))


def _code_record(parsed, text):
    messages = parsed['messages']
    return {
        'prompt': messages[-1]['content'],
        'input_payload': messages,
        'output': text,
        'metadata': {
            'model': gemini.model_name(),
            'language': 'auto-detect',
            'conversation_history': messages,
        },
    }


def _generate_reply(parsed):
    return gemini.generate_text(gemini.build_conversation_prompt(parsed['messages']))


def _conversation_record(parsed, text):
    messages = parsed['messages']
    return {
        'prompt': messages[-1]['content'],
        'input_payload': messages + [{'role': 'assistant', 'content': text}],
        'output': text,
        'metadata': {
            'model': gemini.model_name(),
            'session_id': f"session_{int(time.time() * 1000)}",
        },
    }


def _image_amount(payload):
    amount = payload.get('amount', 1)
    if isinstance(amount, str) and amount.strip().isdigit():
        amount = int(amount)
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise BadRequest("Amount must be a whole number")
    if not 1 <= amount <= images.MAX_IMAGES:
        raise BadRequest(f"Amount must be between 1 and {images.MAX_IMAGES}")
    return amount


def _validate_image_request(payload):
    prompt = require_prompt(payload)
    amount = _image_amount(payload)

    style = payload.get('style') or images.DEFAULT_STYLE
    if not isinstance(style, str):
        raise BadRequest("Style must be a string")

    return {'prompt': prompt, 'amount': amount, 'style': style}


def _generate_images(parsed):
    return images.generate_images(parsed['prompt'], parsed['amount'])


def _image_record(parsed, generated):
    return {
        'prompt': parsed['prompt'],
        'input_payload': parsed,
        'output': generated,
        'metadata': {
            'style': parsed['style'],
            'amount': parsed['amount'],
            'resolution': f"{images.IMAGE_SIZE}x{images.IMAGE_SIZE}",
            'enhanced_prompt': prompt_enhancer.enhance_prompt(parsed['prompt'], parsed['style'])['enhanced_prompt'],
        },
    }


# --- Replicate capabilities ---
def _validate_replicate_image(payload):
    prompt = require_prompt(payload)
    amount = _image_amount(payload)
    resolution = payload.get('resolution') or DEFAULT_REPLICATE_RESOLUTION
    model = payload.get('model') or DEFAULT_REPLICATE_IMAGE_MODEL
    if not isinstance(resolution, str) or not isinstance(model, str):
        raise BadRequest("Resolution and model must be strings")
    return {'prompt': prompt, 'amount': amount, 'resolution': resolution, 'model': model}


def _generate_replicate_images(parsed):
    enhanced = prompt_enhancer.enhance_image_prompt(parsed['prompt'], parsed['model'])
    aspect_ratio = ASPECT_RATIOS.get(parsed['resolution'], '1:1')
    prediction = predictions.run_prediction(
        current_app.config['REPLICATE_IMAGE_MODEL'],
        {'prompt': enhanced, 'aspect_ratio': aspect_ratio, 'num_outputs': parsed['amount']},
    )
    return {
        'urls': predictions.output_urls(prediction.output),
        'prediction': predictions.summarize(prediction),
        'enhanced_prompt': enhanced,
        'aspect_ratio': aspect_ratio,
    }


def _replicate_image_records(parsed, generated):
    # One row per image
    return [
        {
            'prompt': parsed['prompt'],
            'input_payload': parsed,
            'output': {'url': url},
            'metadata': {
                'model': parsed['model'],
                'resolution': parsed['resolution'],
                'aspect_ratio': generated['aspect_ratio'],
                'replicate_id': generated['prediction']['id'],
                'enhanced_prompt': generated['enhanced_prompt'],
            },
        }
        for url in generated['urls']
    ]


def _replicate_image_response(parsed, generated):
    return {
        'success': True,
        'urls': generated['urls'],
        'prediction': generated['prediction'],
        'usedPrompt': generated['enhanced_prompt'],
        'model': parsed['model'],
        'resolution': parsed['resolution'],
        'message': "Images generated successfully!",
    }


def _validate_prompt_only(payload):
    return {'prompt': require_prompt(payload)}


def _generate_video(parsed):
    enhanced = prompt_enhancer.enhance_video_prompt(parsed['prompt'])
    prediction = predictions.run_prediction(current_app.config['REPLICATE_VIDEO_MODEL'], {'prompt': enhanced})
    return {
        'url': predictions.output_urls(prediction.output)[0],
        'prediction': predictions.summarize(prediction),
        'enhanced_prompt': enhanced,
    }


def _generate_audio(parsed):
    prediction = predictions.run_prediction(current_app.config['REPLICATE_AUDIO_MODEL'], {'prompt': parsed['prompt']})
    return {
        'url': predictions.output_urls(prediction.output)[0],
        'prediction': predictions.summarize(prediction),
    }


def _media_record(parsed, generated):
    metadata = {
        'replicate_id': generated['prediction']['id'],
        'model': generated['prediction'].get('model'),
    }
    if 'enhanced_prompt' in generated:
        metadata['enhanced_prompt'] = generated['enhanced_prompt']
    return {
        'prompt': parsed['prompt'],
        'input_payload': parsed,
        'output': {'url': generated['url']},
        'metadata': metadata,
    }


def _video_response(parsed, generated):
    return {
        'success': True,
        'videoUrl': generated['url'],
        'prediction': generated['prediction'],
        'usedPrompt': generated['enhanced_prompt'],
        'message': "Video generated successfully!",
    }


def _audio_response(parsed, generated):
    return {
        'success': True,
        'audioUrl': generated['url'],
        'prediction': generated['prediction'],
        'message': "Audio generated successfully!",
    }


CODE = Capability('code', _validate_messages, _generate_code, _code_record, _assistant_reply)
CONVERSATION = Capability('conversation', _validate_messages, _generate_reply, _conversation_record, _assistant_reply)
IMAGE = Capability('image', _validate_image_request, _generate_images, _image_record, lambda parsed, generated: generated)
REPLICATE_IMAGE = Capability(
    'image-2', _validate_replicate_image, _generate_replicate_images, _replicate_image_records,
    _replicate_image_response, generation_type='image',
)
VIDEO = Capability('video', _validate_prompt_only, _generate_video, _media_record, _video_response)
AUDIO = Capability('audio', _validate_prompt_only, _generate_audio, _media_record, _audio_response)


# --- Core App Routes ---
@bp.route("/")
def index():
    return jsonify({'name': 'NexusAI API', 'status': 'ok'})


@bp.route("/ping")
def ping():
    """Ultra-minimal ping endpoint for uptime bots - returns only 1 byte"""
    return "1", 200, {'Content-Type': 'text/plain', 'Content-Length': '1'}


@bp.route("/api/code", methods=["POST"])
def code():
    return jsonify(run_capability(CODE, current_subject(), _json_body()))


@bp.route("/api/conversation", methods=["POST"])
def conversation():
    return jsonify(run_capability(CONVERSATION, current_subject(), _json_body()))


@bp.route("/api/gemini/image", methods=["POST"])
def gemini_image():
    return jsonify(run_capability(IMAGE, current_subject(), _json_body()))


@bp.route("/api/image-2", methods=["POST"], provide_automatic_options=False)
def replicate_image():
    return jsonify(run_capability(REPLICATE_IMAGE, current_subject(), _json_body()))


@bp.route("/api/video", methods=["POST"], provide_automatic_options=False)
def video():
    return jsonify(run_capability(VIDEO, current_subject(), _json_body()))


@bp.route("/api/audio", methods=["POST"])
def audio():
    return jsonify(run_capability(AUDIO, current_subject(), _json_body()))


@bp.route("/api/image-2", methods=["OPTIONS"])
def replicate_image_tips():
    return jsonify({'promptTips': {
        'styleOptions': ["realistic", "artistic", "fantasy", "abstract", "cinematic", "anime"],
        'subjectIdeas': ["landscape", "portrait", "still life", "architecture", "animals", "nature"],
        'qualityModifiers': ["detailed", "high resolution", "professional", "masterpiece"],
        'examples': {
            'basic': "mountain landscape",
            'enhanced': prompt_enhancer.enhance_image_prompt("mountain landscape", DEFAULT_REPLICATE_IMAGE_MODEL),
        },
        'modelTypes': ["free-model-basic", "free-model-advanced"],
    }})


@bp.route("/api/video", methods=["OPTIONS"])
def video_tips():
    return jsonify({'promptTips': {
        'styleOptions': [keyword for keyword, _ in prompt_enhancer.VIDEO_STYLES],
        'settingOptions': [keyword for keyword, _ in prompt_enhancer.VIDEO_SETTINGS],
        'timeOptions': [keyword for keyword, _ in prompt_enhancer.VIDEO_TIMES],
        'motionOptions': [keyword for keyword, _ in prompt_enhancer.VIDEO_MOTIONS],
        'examples': {
            'basic': "cat playing with yarn",
            'enhanced': prompt_enhancer.enhance_video_prompt("cat playing with yarn"),
        },
    }})


@bp.route("/api/video/user-videos", methods=["GET"])
def user_videos():
    """Stored videos for the caller. Any lookup failure degrades to an empty list."""
    subject_id = _require_subject()

    try:
        user = storage.find_user(subject_id)
        if not user:
            current_app.logger.warning("⚠️ Video listing for a subject with no stored user")
            return jsonify([])
        videos = storage.list_generations(user.id, 'video')
        return jsonify([video.to_dict() for video in videos])
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"❌ Database error listing videos: {sanitize_error(e, 'Database error')}")
        return jsonify([])


# --- Contact ---
@bp.route("/api/email/contact", methods=["POST"])
def contact():
    data = _json_body()

    fields = {}
    for name in CONTACT_FIELDS:
        value = data.get(name)
        # Phone numbers often arrive as JSON numbers
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or not value.strip():
            raise BadRequest("All fields are required")
        fields[name] = value.strip()

    if not EMAIL_PATTERN.match(fields['email']):
        raise BadRequest("Invalid email address")

    subject_id = current_subject()
    user = storage.get_or_create_user(subject_id) if subject_id else None

    saved = storage.create_contact_message(
        first_name=fields['firstName'],
        last_name=fields['lastName'],
        email=fields['email'],
        phone=fields['phone'],
        message=fields['message'],
        user=user,
    )

    sent = mailer.send_contact_email({
        'first_name': saved.first_name,
        'last_name': saved.last_name,
        'email': saved.email,
        'phone': saved.phone,
        'message': saved.message,
        'submitted_at': saved.created_at.isoformat() if saved.created_at else None,
    })
    if not sent:
        # Message is stored, delivery failure does not change the outcome
        current_app.logger.error(f"❌ Failed to send contact email for message {saved.id}")

    return jsonify({
        'success': True,
        'message': "Contact form submitted successfully",
        'data': saved.to_dict(),
    })


# ===== PAYPAL PAYMENT ROUTES =====
def _parse_amount(value):
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise BadRequest("Amount must be a number")
    if not math.isfinite(amount):
        raise BadRequest("Amount must be a number")
    if amount <= 0:
        raise BadRequest("Amount must be positive")
    return amount


@bp.route("/api/music", methods=["POST"])
def create_payment_order():
    """Create a PayPal order for a subscription plan"""
    subject_id = _require_subject()

    data = _json_body()
    plan_id = data.get('planId')
    if not plan_id or not data.get('amount'):
        raise BadRequest("Plan ID and amount are required")
    amount = _parse_amount(data.get('amount'))

    user = storage.find_user(subject_id)
    if not user:
        raise NotFound("User not found")

    try:
        order = paypal.get_client().create_order(amount, 'USD')
    except Exception as e:
        current_app.logger.error(f"❌ Error creating order: {sanitize_error(e)}")
        raise InternalError() from e

    current_app.logger.info(f"✅ PayPal order {order.get('id')} created for plan {plan_id}")
    return jsonify({
        'success': True,
        'orderId': order.get('id'),
        'approvalUrl': paypal.approval_url(order),
    })


@bp.route("/api/payment/capture-order", methods=["GET"])
def capture_payment_order():
    """PayPal return URL: capture the approved order and activate the subscription"""
    subject_id = _require_subject()
    upgrade_url = f"{current_app.config.get('APP_URL', '').rstrip('/')}/upgrade"

    order_id = request.args.get('token')
    if not order_id:
        return redirect(f"{upgrade_url}?error=missing_order")

    try:
        user = storage.find_user(subject_id)
        if not user:
            return redirect(f"{upgrade_url}?error=user_not_found")

        capture = paypal.get_client().capture_order(order_id)
        if capture.get('status') != 'COMPLETED':
            current_app.logger.warning(f"⚠️ Order {order_id} capture status {capture.get('status')}")
            return redirect(f"{upgrade_url}?error=payment_failed")

        amount = paypal.captured_amount(capture)
        plan = 'pro' if amount == PRO_PLAN_AMOUNT else 'basic'
        payment_id = capture.get('id')

        subscription = storage.create_subscription(user, plan, amount, paypal_order_id=order_id)
        storage.create_invoice(
            user,
            subscription,
            amount,
            invoice_json={
                'user': {
                    'firstName': user.first_name or '',
                    'lastName': user.last_name or '',
                    'email': user.email,
                },
                'items': [{
                    'description': f"NexusAI {plan.capitalize()} Plan",
                    'quantity': 1,
                    'unitPrice': amount,
                    'total': amount,
                }],
                'subtotal': amount,
                'tax': 0,
                'total': amount,
            },
            paypal_payment_id=payment_id,
        )
        current_app.logger.info(f"✅ Subscription {subscription.id} activated ({plan})")
        return redirect(f"{upgrade_url}?success=true")
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"❌ [PAYMENT_CAPTURE_ORDER_ERROR] {sanitize_error(e)}")
        return redirect(f"{upgrade_url}?error=capture_failed")


# --- Subscription ---
@bp.route("/api/subscription", methods=["GET"])
def get_subscription():
    subject_id = _require_subject()

    user = storage.find_user(subject_id)
    if not user:
        raise NotFound("User not found")

    subscription = storage.latest_subscription(user.id)
    return jsonify(subscription.to_dict() if subscription else None)


@bp.route("/api/subscription", methods=["POST"])
def cancel_subscription():
    subject_id = _require_subject()

    user = storage.find_user(subject_id)
    if not user:
        raise NotFound("User not found")

    subscription = storage.latest_subscription(user.id)
    if not subscription:
        raise NotFound("No active subscription found")

    if subscription.status == 'cancelled':
        current_app.logger.info(f"⚠️ Subscription {subscription.id} was already cancelled, overwriting end date")

    storage.cancel_subscription(subscription)
    return jsonify({
        'success': True,
        'message': "Subscription cancelled successfully",
    })


# --- Generation sync ---
def _sync_fields(gen_type, data):
    """Map a client-produced generation onto a stored row"""
    metadata = data.get('metadata') if isinstance(data.get('metadata'), dict) else {}

    if gen_type == 'conversation':
        messages = require_messages(data)
        return {
            'prompt': messages[-1]['content'],
            'input_payload': messages,
            'output': None,
            'metadata': {**metadata, 'model': data.get('model'), 'session_id': data.get('sessionId')},
        }

    prompt = require_prompt(data)

    if gen_type == 'code':
        generated = data.get('generatedCode')
        if not isinstance(generated, str) or not generated:
            raise BadRequest("generatedCode is required")
        return {
            'prompt': prompt,
            'input_payload': {'prompt': prompt},
            'output': generated,
            'metadata': {**metadata, 'language': data.get('language')},
        }

    url_field = f"{gen_type}Url"
    url = data.get(url_field)
    if isinstance(url, list) and url:
        url = url[0]
    if not isinstance(url, str) or not url.startswith('http'):
        raise BadRequest(f"{url_field} is required")

    extra = {}
    if gen_type == 'image':
        extra = {'model': data.get('model') or 'gemini', 'resolution': data.get('resolution') or '512x512'}
    elif data.get('duration') is not None:
        extra = {'duration': data.get('duration')}

    return {
        'prompt': prompt,
        'input_payload': {'prompt': prompt},
        'output': {'url': url},
        'metadata': {**metadata, **extra},
    }


@bp.route("/api/database/sync", methods=["POST"])
def sync_generation():
    """Store a generation produced client-side"""
    subject_id = _require_subject()
    data = _json_body()

    user = storage.find_user(subject_id)
    if not user:
        raise NotFound("User not found")

    gen_type = data.get('type')
    if gen_type not in GENERATION_TYPES:
        raise BadRequest("Invalid generation type")

    generation = storage.save_generation(user, gen_type, **_sync_fields(gen_type, data))
    return jsonify({'success': True, 'data': generation.to_dict()})
