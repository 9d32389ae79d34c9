import logging

import redis
from flask import Flask
from flask_migrate import Migrate
from flask_session import Session

import auth
import gemini
import paypal
import predictions
import routes
from config import Config
from mailer import mail
from models import db
from pipeline import init_metrics

migrate = Migrate()


def create_app(config=Config):
    app = Flask(__name__)
    app.config.from_object(config)

    # Configure logging for the Flask app
    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'))
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if not app.config.get('SECRET_KEY'):
        app.logger.warning("⚠️ SECRET_KEY not set, sessions cannot be signed!")

    # Server-side sessions (redis in production, signed cookies under test)
    if app.config.get('SESSION_TYPE') == 'redis':
        app.config['SESSION_REDIS'] = redis.from_url(app.config['REDIS_URL'])
    if app.config.get('SESSION_TYPE'):
        Session(app)

    # Initialize database
    db.init_app(app)
    migrate.init_app(app, db)

    mail.init_app(app)
    init_metrics(app)
    gemini.init_app(app)
    paypal.init_app(app)
    predictions.init_app(app)
    auth.init_app(app)
    app.register_blueprint(routes.bp)

    return app


if __name__ == "__main__":
    app = create_app()
    # Initialize database tables when app starts
    with app.app_context():
        try:
            db.create_all()
            app.logger.info("✅ Database tables created successfully!")
        except Exception as e:
            app.logger.warning(f"⚠️ Database connection failed: {type(e).__name__}")

    app.run(debug=True)
