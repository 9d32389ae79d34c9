from authlib.integrations.flask_client import OAuth
from flask import Blueprint, Response, current_app, redirect, request, session, url_for

import storage
from models import db
from pipeline import sanitize_error

SESSION_SUBJECT_KEY = 'subject_id'

PUBLIC_PATHS = frozenset([
    "/",
    "/sign-in",
    "/sign-up",
    "/pricing",
    "/api/webhook",
    "/login",
    "/auth/callback",
    "/logout",
    "/ping",
    "/api/email/contact",
])

oauth = OAuth()
bp = Blueprint('auth', __name__)


def init_app(app):
    oauth.init_app(app)
    oauth.register(
        name='google',
        client_id=app.config.get("GOOGLE_CLIENT_ID"),
        client_secret=app.config.get("GOOGLE_CLIENT_SECRET"),
        server_metadata_url=app.config.get("GOOGLE_DISCOVERY_URL"),
        client_kwargs={
            'scope': 'openid email profile'
        }
    )
    app.before_request(enforce_access)
    app.register_blueprint(bp)


def current_subject():
    """Identity-provider subject of the caller, or None"""
    return session.get(SESSION_SUBJECT_KEY)


def is_public_path(path):
    return path in PUBLIC_PATHS or path.startswith('/static/')


def enforce_access():
    """Route-level gate: every non-public path needs a session"""
    if request.method == 'OPTIONS' or is_public_path(request.path):
        return None
    if current_subject():
        return None
    if request.path.startswith('/api/'):
        return Response("Unauthorized", status=401, mimetype='text/plain')
    return redirect(url_for('auth.login'))


# --- Authentication Routes ---
@bp.route("/login")
def login():
    """Initiate Google OAuth login"""
    redirect_uri = url_for('auth.auth_callback', _external=True)
    return oauth.google.authorize_redirect(redirect_uri)


@bp.route("/auth/callback")
def auth_callback():
    try:
        token = oauth.google.authorize_access_token()
        user_info = token.get('userinfo') or oauth.google.userinfo()

        if not user_info or not user_info.get('sub'):
            current_app.logger.warning("⚠️ No user info received")
            return redirect('/')

        storage.get_or_create_user(
            user_info['sub'],
            email=user_info.get('email'),
            first_name=user_info.get('given_name'),
            last_name=user_info.get('family_name'),
        )

        # Store ONLY the subject in the session
        session[SESSION_SUBJECT_KEY] = user_info['sub']
        return redirect('/')
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"❌ OAuth error: {sanitize_error(e, 'Authentication error')}")
        return redirect('/')


@bp.route("/logout")
def logout():
    session.clear()
    return redirect('/')
